"""
application.services.profile - The user's health profile.

ProfileStore is the only writer of the persisted profile document. The
document is overwritten wholesale on every save; there is no field-level
merge. Completeness is NOT checked here; that is the caller's gate.
"""

from __future__ import annotations

import logging

from vitalscope.domain.exceptions import InvalidProfileError
from vitalscope.domain.models import Gender, Profile, is_configured
from vitalscope.domain.ports import DocumentStorePort

logger = logging.getLogger(__name__)

DEFAULT_PROFILE_KEY = "vitalscope_profile"


class ProfileStore:
    """Loads and saves the single device-local Profile."""

    def __init__(self, store: DocumentStorePort, key: str = DEFAULT_PROFILE_KEY):
        self._store = store
        self._key = key

    async def load(self) -> Profile:
        """Return the last saved profile, or an empty profile.

        A malformed document is logged and treated as absent.
        """
        document = await self._store.get(self._key)
        if document is None:
            return Profile.empty()
        try:
            return Profile.from_dict(document)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring malformed profile document '%s': %s", self._key, e)
            return Profile.empty()

    async def save(self, profile: Profile) -> None:
        """Persist profile unconditionally after a structural shape check."""
        _check_shape(profile)
        await self._store.set(self._key, profile.to_dict())
        logger.info(
            "Saved profile (configured=%s)", is_configured(profile),
        )

    @staticmethod
    def is_configured(profile: Profile) -> bool:
        return is_configured(profile)


def _check_shape(profile: object) -> None:
    if not isinstance(profile, Profile):
        raise InvalidProfileError(
            f"Expected Profile, got {type(profile).__name__}"
        )
    if not isinstance(profile.age, str) or not isinstance(profile.health_context, str):
        raise InvalidProfileError("age and health_context must be strings")
    if not isinstance(profile.gender, Gender):
        raise InvalidProfileError(f"Unknown gender: {profile.gender!r}")
