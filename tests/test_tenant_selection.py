"""Tests for grc/services/tenant_selection.py: selection stores."""

from grc.services.tenant_selection import (
    SESSION_KEY,
    InMemoryTenantSelectionStore,
    SessionTenantSelectionStore,
)


class TestSessionStore:
    def test_empty_session_has_no_selection(self):
        store = SessionTenantSelectionStore({})
        assert store.get().is_empty

    def test_select_writes_session_key(self):
        session = {}
        store = SessionTenantSelectionStore(session)
        store.select("T1")
        assert session[SESSION_KEY] == "T1"
        assert store.get().selected_tenant_id == "T1"

    def test_last_write_wins(self):
        store = SessionTenantSelectionStore({})
        store.select("T1")
        store.select("T2")
        assert store.get().selected_tenant_id == "T2"

    def test_clear_is_idempotent(self):
        session = {SESSION_KEY: "T1", "other": 1}
        store = SessionTenantSelectionStore(session)
        store.clear()
        store.clear()
        assert session == {"other": 1}


class TestInMemoryStore:
    def test_initial_value(self):
        assert InMemoryTenantSelectionStore("T9").get().selected_tenant_id == "T9"

    def test_clear(self):
        store = InMemoryTenantSelectionStore("T9")
        store.clear()
        assert store.get().is_empty
