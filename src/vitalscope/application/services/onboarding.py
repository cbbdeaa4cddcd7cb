"""
application.services.onboarding - Profile form session with consent.

The consent flag lives only inside one OnboardingForm instance and is never
persisted. A fresh onboarding pass always starts without consent. Editing a
profile that is already configured starts consented, unless the
require_consent_on_edit policy is on.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from vitalscope.domain.exceptions import ConsentRequiredError, ProfileIncompleteError
from vitalscope.domain.models import Gender, Profile, is_configured
from vitalscope.application.services.profile import ProfileStore

logger = logging.getLogger(__name__)


class OnboardingForm:
    """Draft profile plus the ephemeral consent flag for one form session."""

    def __init__(
        self,
        profile_store: ProfileStore,
        initial: Profile,
        *,
        is_editing: bool = False,
        require_consent_on_edit: bool = False,
    ):
        self._profile_store = profile_store
        self._draft = initial
        self._is_editing = is_editing
        self.consented = (
            is_editing and is_configured(initial) and not require_consent_on_edit
        )

    @classmethod
    async def open(
        cls,
        profile_store: ProfileStore,
        *,
        require_consent_on_edit: bool = False,
    ) -> OnboardingForm:
        """Start a form on the stored profile.

        It is an edit when the stored profile is already configured,
        otherwise a fresh onboarding pass.
        """
        current = await profile_store.load()
        return cls(
            profile_store,
            current,
            is_editing=is_configured(current),
            require_consent_on_edit=require_consent_on_edit,
        )

    @property
    def draft(self) -> Profile:
        return self._draft

    @property
    def is_editing(self) -> bool:
        return self._is_editing

    def update(
        self,
        *,
        age: Optional[str] = None,
        gender: Optional[Gender | str] = None,
        health_context: Optional[str] = None,
    ) -> Profile:
        changes: dict = {}
        if age is not None:
            changes["age"] = age.strip()
        if gender is not None:
            changes["gender"] = Gender.parse(gender)
        if health_context is not None:
            changes["health_context"] = health_context.strip()
        self._draft = replace(self._draft, **changes)
        return self._draft

    @property
    def can_submit(self) -> bool:
        return is_configured(self._draft) and self.consented

    async def submit(self) -> Profile:
        if not is_configured(self._draft):
            raise ProfileIncompleteError("Age, gender and health context are required.")
        if not self.consented:
            raise ConsentRequiredError("Consent is required before saving the profile.")
        await self._profile_store.save(self._draft)
        logger.info("Profile form submitted (editing=%s)", self._is_editing)
        return self._draft
