"""
Tenant Selector: where a platform admin's chosen tenant lives.

The selection is per browser session: it survives page loads, is written
only by explicit admin action (last write wins), and is dropped at
sign-out. Stores are injected into the resolver call site rather than
read from a module-level singleton:

    store = SessionTenantSelectionStore(flask.session)
    scope = resolve_scope(principal, store.get())

InMemoryTenantSelectionStore backs tests and CLI commands.
"""

from typing import MutableMapping, Protocol

from grc.services.tenant_scope import TenantSelection

SESSION_KEY = "selected_tenant_id"


class TenantSelectionStore(Protocol):
    def get(self) -> TenantSelection: ...

    def select(self, tenant_id: str) -> TenantSelection: ...

    def clear(self) -> None: ...


class SessionTenantSelectionStore:
    """Selection persisted in the signed Flask session cookie."""

    def __init__(self, session: MutableMapping):
        self._session = session

    def get(self) -> TenantSelection:
        return TenantSelection(self._session.get(SESSION_KEY))

    def select(self, tenant_id: str) -> TenantSelection:
        self._session[SESSION_KEY] = tenant_id
        return TenantSelection(tenant_id)

    def clear(self) -> None:
        self._session.pop(SESSION_KEY, None)


class InMemoryTenantSelectionStore:
    """Process-local selection holder."""

    def __init__(self, tenant_id: str | None = None):
        self._tenant_id = tenant_id

    def get(self) -> TenantSelection:
        return TenantSelection(self._tenant_id)

    def select(self, tenant_id: str) -> TenantSelection:
        self._tenant_id = tenant_id
        return TenantSelection(tenant_id)

    def clear(self) -> None:
        self._tenant_id = None


def current_store() -> SessionTenantSelectionStore:
    """Store bound to the current request's session."""
    from flask import session

    return SessionTenantSelectionStore(session)
