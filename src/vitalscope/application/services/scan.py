"""
application.services.scan - One scan attempt, end to end.

State machine per attempt:

    IDLE ──start_scan()──▶ ANALYZING ──▶ RESOLVED_SUCCESS   (history append)
                                     ├─▶ RESOLVED_UNCLEAR   (no history)
                                     └─▶ FAILED             (no history)

    retry():      RESOLVED_UNCLEAR → IDLE, Selection cleared
                  FAILED           → IDLE, Selection kept
    reset_scan(): any state        → IDLE, Selection and result cleared

The profile gate is checked against ProfileStore before every gateway call.
At most one attempt is ANALYZING at a time. Every attempt carries an id; a
gateway response whose id is no longer current (the user reset or started
over while it was in flight) is dropped instead of being applied.

History writes for successful results run as background tasks, so the result
is published before persistence finishes. wait_for_history() drains them.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from vitalscope.domain.exceptions import (
    AnalysisServiceError,
    ConfigurationError,
    InvalidScanTransitionError,
    NoImagesSelectedError,
    ProfileNotConfiguredError,
    ScanInProgressError,
)
from vitalscope.domain.models import (
    AnalysisResult,
    EncodedImage,
    HistoryEntry,
    ScanSnapshot,
    ScanState,
    is_configured,
)
from vitalscope.domain.ports import AnalysisGatewayPort
from vitalscope.application.services.history import HistoryStore
from vitalscope.application.services.image_ingestor import ImageIngestor
from vitalscope.application.services.profile import ProfileStore

logger = logging.getLogger(__name__)

ScanListener = Callable[[ScanSnapshot], None]

GENERIC_FAILURE_MESSAGE = "Analysis failed. Please wait a moment and try again."


class ScanOrchestrator:
    """Drives scan attempts over a shared ImageIngestor Selection."""

    def __init__(
        self,
        profile_store: ProfileStore,
        ingestor: ImageIngestor,
        gateway: AnalysisGatewayPort,
        history: HistoryStore,
    ):
        self._profile_store = profile_store
        self._ingestor = ingestor
        self._gateway = gateway
        self._history = history

        self._state = ScanState.IDLE
        self._attempt_id = 0
        self._result: Optional[AnalysisResult] = None
        self._error_message: Optional[str] = None
        self._listeners: list[ScanListener] = []
        self._history_tasks: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def attempt_id(self) -> int:
        return self._attempt_id

    @property
    def ingestor(self) -> ImageIngestor:
        return self._ingestor

    def snapshot(self) -> ScanSnapshot:
        return ScanSnapshot(
            state=self._state,
            attempt_id=self._attempt_id,
            selection=self._ingestor.selection,
            result=self._result,
            error_message=self._error_message,
        )

    def subscribe(self, listener: ScanListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def start_scan(self) -> ScanSnapshot:
        """Run one attempt on the current Selection.

        Raises:
            ScanInProgressError:       an attempt is already ANALYZING.
            InvalidScanTransitionError: the previous attempt was not retried or reset.
            NoImagesSelectedError:     the Selection is empty.
            ProfileNotConfiguredError: the stored profile fails the gate.
        """
        if self._state is ScanState.ANALYZING:
            raise ScanInProgressError("An analysis is already in progress.")
        if self._state is not ScanState.IDLE:
            raise InvalidScanTransitionError(
                f"Cannot start a scan from state '{self._state.value}'; retry or reset first."
            )
        images = self._ingestor.selection
        if not images:
            raise NoImagesSelectedError("Select at least one image to analyze.")

        # Claim ANALYZING before the first suspension point so a second call
        # made while the profile loads is rejected.
        self._attempt_id += 1
        attempt = self._attempt_id
        self._result = None
        self._error_message = None
        self._transition(ScanState.ANALYZING)

        try:
            profile = await self._profile_store.load()
        except Exception:
            if self._is_current(attempt):
                self._transition(ScanState.IDLE)
            raise
        if not self._is_current(attempt):
            logger.info("Scan attempt %d: abandoned while loading the profile", attempt)
            return self.snapshot()
        if not is_configured(profile):
            self._transition(ScanState.IDLE)
            logger.warning("Scan blocked: profile is not configured")
            raise ProfileNotConfiguredError(
                "Complete your profile before scanning."
            )

        logger.info("Scan attempt %d: analyzing %d image(s)", attempt, len(images))

        try:
            result = await self._gateway.analyze(profile, images)
        except (ConfigurationError, AnalysisServiceError) as e:
            return self._resolve_failure(attempt, str(e))
        except Exception:
            logger.exception("Scan attempt %d: unexpected gateway error", attempt)
            return self._resolve_failure(attempt, GENERIC_FAILURE_MESSAGE)

        if not self._is_current(attempt):
            logger.info(
                "Dropping stale response for attempt %d (current is %d)",
                attempt, self._attempt_id,
            )
            return self.snapshot()

        self._result = result
        if result.is_unclear:
            logger.info(
                "Scan attempt %d: image unclear (%s)",
                attempt, result.image_quality_check.reason,
            )
            self._transition(ScanState.RESOLVED_UNCLEAR)
            return self.snapshot()

        self._transition(ScanState.RESOLVED_SUCCESS)
        self._schedule_history_write(result, images)
        return self.snapshot()

    def retry(self) -> ScanSnapshot:
        """Return to IDLE after an unclear image (clears Selection) or a failure (keeps it)."""
        if self._state is ScanState.RESOLVED_UNCLEAR:
            self._ingestor.clear()
        elif self._state is not ScanState.FAILED:
            raise InvalidScanTransitionError(
                f"Nothing to retry from state '{self._state.value}'."
            )
        self._result = None
        self._error_message = None
        self._transition(ScanState.IDLE)
        return self.snapshot()

    def reset_scan(self) -> ScanSnapshot:
        """Clear Selection and result and return to IDLE.

        Resetting while ANALYZING abandons that attempt; its response will be
        dropped when it arrives.
        """
        if self._state is ScanState.ANALYZING:
            logger.info("Abandoning in-flight attempt %d", self._attempt_id)
            self._attempt_id += 1
        self._ingestor.clear()
        self._result = None
        self._error_message = None
        self._transition(ScanState.IDLE)
        return self.snapshot()

    def open_history_entry(self, entry: HistoryEntry) -> ScanSnapshot:
        """Show a stored result without analyzing or writing history."""
        if self._state is ScanState.ANALYZING:
            raise ScanInProgressError("An analysis is already in progress.")
        self._ingestor.clear()
        self._attempt_id += 1
        self._result = entry.result
        self._error_message = None
        self._transition(ScanState.RESOLVED_SUCCESS)
        return self.snapshot()

    async def wait_for_history(self) -> None:
        """Wait until every scheduled history write has finished."""
        while self._history_tasks:
            await asyncio.gather(*list(self._history_tasks))

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _is_current(self, attempt: int) -> bool:
        return attempt == self._attempt_id and self._state is ScanState.ANALYZING

    def _resolve_failure(self, attempt: int, message: str) -> ScanSnapshot:
        if not self._is_current(attempt):
            logger.info("Dropping stale failure for attempt %d: %s", attempt, message)
            return self.snapshot()
        logger.warning("Scan attempt %d failed: %s", attempt, message)
        self._error_message = message
        self._transition(ScanState.FAILED)
        return self.snapshot()

    def _schedule_history_write(
        self, result: AnalysisResult, images: tuple[EncodedImage, ...],
    ) -> None:
        task = asyncio.create_task(self._write_history(result, images))
        self._history_tasks.add(task)
        task.add_done_callback(self._history_tasks.discard)

    async def _write_history(
        self, result: AnalysisResult, images: tuple[EncodedImage, ...],
    ) -> None:
        try:
            entry = await self._history.record(result, images)
            logger.info("Saved scan to history as %s", entry.id)
        except Exception:
            logger.exception("Failed to save scan to history")

    def _transition(self, state: ScanState) -> None:
        logger.debug("Scan state %s -> %s", self._state.value, state.value)
        self._state = state
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)
