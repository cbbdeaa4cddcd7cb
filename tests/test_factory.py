"""Tests for ServiceFactory wiring."""

import pytest

from vitalscope.factory import ServiceFactory
from vitalscope.infrastructure.config import Settings
from vitalscope.infrastructure.persistence.memory_store import InMemoryDocumentStore

from conftest import ScriptedGateway


class TestServiceFactory:
    """Tests for the composition root."""

    def test_services_require_initialize(self):
        """Test that history-backed services are unavailable before startup."""
        factory = ServiceFactory(Settings(db_path=""), gateway=ScriptedGateway())
        with pytest.raises(RuntimeError):
            factory.scan_orchestrator

    async def test_sqlite_backed_session(self, tmp_path, configured_profile):
        """Test that a SQLite factory persists the profile across sessions."""
        settings = Settings(db_path=str(tmp_path / "vs.db"))
        first = ServiceFactory(settings, gateway=ScriptedGateway())
        await first.initialize()
        await first.profile_store.save(configured_profile)

        second = ServiceFactory(settings, gateway=ScriptedGateway())
        await second.initialize()
        assert await second.profile_store.load() == configured_profile

    async def test_shared_services(self):
        """Test that one factory hands out one orchestrator and one ingestor."""
        factory = ServiceFactory(
            Settings(db_path=""), document_store=InMemoryDocumentStore(), gateway=ScriptedGateway(),
        )
        await factory.initialize()
        assert factory.scan_orchestrator is factory.scan_orchestrator
        assert factory.scan_orchestrator.ingestor is factory.scan_orchestrator.ingestor

    async def test_storage_prefix_and_limit(self, configured_profile):
        """Test that configured keys and bound reach the stores."""
        store = InMemoryDocumentStore()
        factory = ServiceFactory(
            Settings(db_path="", storage_key_prefix="demo", history_limit=3),
            document_store=store,
            gateway=ScriptedGateway(),
        )
        await factory.initialize()
        await factory.profile_store.save(configured_profile)

        assert "demo_profile" in store
        assert factory.history_store.limit == 3

    async def test_edit_consent_policy(self, configured_profile):
        """Test that the consent-on-edit setting reaches the form."""
        factory = ServiceFactory(
            Settings(db_path="", require_consent_on_edit=True),
            gateway=ScriptedGateway(),
        )
        await factory.initialize()
        await factory.profile_store.save(configured_profile)

        form = await factory.open_profile_form()
        assert form.is_editing
        assert not form.consented
