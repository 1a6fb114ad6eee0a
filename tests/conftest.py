"""
Shared pytest fixtures for the GRC scope service test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - tenant_a / tenant_b: Pre-created Tenant entities
    - make_token / auth_headers: bearer tokens for arbitrary principals
    - framework_factory: framework with N active questions
"""

import pytest

from grc import create_app
from grc.models import db as _db
from grc.services.security_observability import reset_security_events


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        reset_security_events()
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()
        reset_security_events()


@pytest.fixture()
def client(app):
    """Flask test client (fresh cookie jar per test)."""
    return app.test_client()


# ── Tenants ──────────────────────────────────────────────────────────────


def _make_tenant(name, slug):
    from grc.models.auth import Tenant

    tenant = Tenant(name=name, slug=slug)
    _db.session.add(tenant)
    _db.session.commit()
    return tenant


@pytest.fixture()
def tenant_a():
    return _make_tenant("Tenant A", "tenant-a")


@pytest.fixture()
def tenant_b():
    return _make_tenant("Tenant B", "tenant-b")


# ── Auth helpers ─────────────────────────────────────────────────────────


@pytest.fixture()
def make_token():
    """Return a factory: make_token(user_id, tenant_id, roles=None, admin=False)."""
    from grc.services.jwt_service import generate_access_token

    def _make(user_id="user-1", tenant_id=None, roles=None, admin=False, expires_in=None):
        return generate_access_token(
            user_id, tenant_id, roles or [], is_platform_admin=admin, expires_in=expires_in,
        )

    return _make


@pytest.fixture()
def auth_headers(make_token):
    """Return a factory producing Authorization headers."""

    def _headers(user_id="user-1", tenant_id=None, roles=None, admin=False):
        return {"Authorization": f"Bearer {make_token(user_id, tenant_id, roles, admin)}"}

    return _headers


# ── Catalogue helpers ────────────────────────────────────────────────────


@pytest.fixture()
def framework_factory():
    """Return a factory building a framework with ``n`` active questions.

    framework_factory(tenant_id, n=10, is_standard=False)
        → (framework, [question, ...])
    """
    from grc.models.framework import Control, Framework, Question

    def _make(tenant_id, n=10, is_standard=False, code="ISO27001"):
        fw = Framework(tenant_id=tenant_id, name=f"{code} framework", code=code,
                       is_standard=is_standard)
        _db.session.add(fw)
        _db.session.flush()
        control = Control(framework_id=fw.id, tenant_id=tenant_id, code="A.5.1",
                          title="Information security policies")
        _db.session.add(control)
        _db.session.flush()
        questions = []
        for i in range(n):
            q = Question(control_id=control.id, tenant_id=tenant_id, code=f"Q{i + 1}",
                         text=f"Question {i + 1}?", question_type="sim_nao", order=i)
            _db.session.add(q)
            questions.append(q)
        _db.session.commit()
        return fw, questions

    return _make


@pytest.fixture()
def assessment_factory():
    """Return a factory: assessment_factory(tenant_id, framework_id, status="planejado")."""
    from grc.models.assessment import Assessment

    def _make(tenant_id, framework_id, status="planejado", name="Annual review"):
        a = Assessment(tenant_id=tenant_id, framework_id=framework_id, name=name, status=status)
        _db.session.add(a)
        _db.session.commit()
        return a

    return _make
