"""
factory - Composition root for VitalScope.

ALL dependency wiring happens here. No other module constructs its own
dependencies. Adapters (CLI, REST) call this factory to get fully
configured services.

The stores, the ingestor and the orchestrator are created once per factory
and shared by every consumer, so one factory is one app session.

Usage:
    from vitalscope.factory import ServiceFactory
    from vitalscope.infrastructure.config import Settings

    config = Settings.from_env()
    factory = ServiceFactory(config)
    await factory.initialize()  # one-time startup

    orchestrator = factory.scan_orchestrator
    await orchestrator.ingestor.add_files(["label.jpg"])
    snapshot = await orchestrator.start_scan()
"""

from __future__ import annotations

import logging
from typing import Optional

from vitalscope.application.services.history import HistoryStore
from vitalscope.application.services.image_ingestor import ImageIngestor
from vitalscope.application.services.onboarding import OnboardingForm
from vitalscope.application.services.profile import ProfileStore
from vitalscope.application.services.scan import ScanOrchestrator
from vitalscope.domain.ports import AnalysisGatewayPort, DocumentStorePort, ImageDecoderPort
from vitalscope.infrastructure.config import Settings
from vitalscope.infrastructure.imaging.decoder import PillowImageDecoder
from vitalscope.infrastructure.llm.analysis_gateway import LLMAnalysisGateway
from vitalscope.infrastructure.persistence.connection import AsyncSQLiteConnection
from vitalscope.infrastructure.persistence.document_store import SQLiteDocumentStore
from vitalscope.infrastructure.persistence.memory_store import InMemoryDocumentStore
from vitalscope.infrastructure.persistence.migrations import run_migrations

logger = logging.getLogger(__name__)


class ServiceFactory:
    """Composition root — wires all dependencies together.

    Call initialize() once at startup, then use the shared services.
    Any port can be overridden (tests pass fakes for the gateway, decoder
    or document store).
    """

    def __init__(
        self,
        config: Settings,
        *,
        document_store: Optional[DocumentStorePort] = None,
        gateway: Optional[AnalysisGatewayPort] = None,
        decoder: Optional[ImageDecoderPort] = None,
    ):
        self._config = config
        self._connection: Optional[AsyncSQLiteConnection] = None

        if document_store is None:
            if config.db_path:
                self._connection = AsyncSQLiteConnection(config.db_path)
                document_store = SQLiteDocumentStore(
                    self._connection, quota_bytes=config.storage_quota_bytes,
                )
            else:
                document_store = InMemoryDocumentStore(
                    quota_bytes=config.storage_quota_bytes,
                )
        self._document_store = document_store
        self._gateway = gateway or self._build_gateway()
        self._decoder = decoder or PillowImageDecoder()

        self._profile_store = ProfileStore(self._document_store, key=config.profile_key)
        self._history_store = HistoryStore(
            self._document_store, key=config.history_key, limit=config.history_limit,
        )
        self._ingestor = ImageIngestor(self._decoder)
        self._orchestrator = ScanOrchestrator(
            profile_store=self._profile_store,
            ingestor=self._ingestor,
            gateway=self._gateway,
            history=self._history_store,
        )
        self._initialized = False

    async def initialize(self) -> None:
        """One-time startup: run migrations and load history into memory."""
        logger.info("Initializing ServiceFactory...")
        if self._connection is not None:
            await run_migrations(self._connection)
        await self._history_store.load()
        self._initialized = True
        logger.info("ServiceFactory ready")

    @property
    def config(self) -> Settings:
        return self._config

    @property
    def profile_store(self) -> ProfileStore:
        return self._profile_store

    @property
    def history_store(self) -> HistoryStore:
        self._ensure_initialized()
        return self._history_store

    @property
    def scan_orchestrator(self) -> ScanOrchestrator:
        self._ensure_initialized()
        return self._orchestrator

    async def open_profile_form(self) -> OnboardingForm:
        """Start an onboarding (or edit) form on the stored profile."""
        return await OnboardingForm.open(
            self._profile_store,
            require_consent_on_edit=self._config.require_consent_on_edit,
        )

    async def shutdown(self) -> None:
        """Let pending history writes finish before the session ends."""
        await self._orchestrator.wait_for_history()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _build_gateway(self) -> LLMAnalysisGateway:
        return LLMAnalysisGateway(
            provider=self._config.llm_provider,
            model=self._config.active_llm_model,
            ollama_base_url=self._config.ollama_base_url,
            openai_api_key=self._config.openai_api_key,
            groq_api_key=self._config.groq_api_key,
            timeout=self._config.analysis_timeout,
            response_language=self._config.response_language,
        )

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError(
                "ServiceFactory not initialized. Call await factory.initialize() first."
            )
