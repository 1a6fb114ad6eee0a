"""
API tests for scope resolution and the platform-admin tenant selector.

  GET    /api/v1/scope
  GET    /api/v1/tenant-selection
  PUT    /api/v1/tenant-selection
  DELETE /api/v1/tenant-selection
  POST   /api/v1/auth/sign-out
"""

from grc.services.security_observability import get_recent_security_events


class TestAuthentication:
    def test_health_needs_no_token(self, client):
        assert client.get("/api/v1/health").status_code == 200

    def test_data_route_without_token_is_401(self, client):
        res = client.get("/api/v1/assessments")
        assert res.status_code == 401
        assert res.get_json()["code"] == "ERR_UNAUTHORIZED"

    def test_expired_token_is_401(self, client, tenant_a, make_token):
        token = make_token("u1", tenant_a.id, expires_in=-10)
        res = client.get("/api/v1/scope", headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 401

    def test_garbage_token_is_401(self, client):
        res = client.get("/api/v1/scope", headers={"Authorization": "Bearer not-a-jwt"})
        assert res.status_code == 401


class TestScopeEndpoint:
    def test_user_scope_is_own_tenant(self, client, tenant_a, auth_headers):
        res = client.get("/api/v1/scope", headers=auth_headers("u1", tenant_a.id))
        assert res.status_code == 200
        assert res.get_json()["scope"] == {"tenant_id": tenant_a.id, "is_unrestricted": False}

    def test_user_without_tenant_is_403(self, client, auth_headers):
        res = client.get("/api/v1/assessments", headers=auth_headers("u1"))
        assert res.status_code == 403
        assert res.get_json()["code"] == "ERR_TENANT_REQUIRED"
        events = get_recent_security_events(event_type="tenant_scope_error")
        assert events and events[0]["user_id"] == "u1"

    def test_user_with_sentinel_tenant_is_403(self, client, auth_headers):
        res = client.get("/api/v1/frameworks", headers=auth_headers("u1", "default"))
        assert res.status_code == 403
        assert res.get_json()["code"] == "ERR_TENANT_REQUIRED"

    def test_admin_without_selection_is_unrestricted(self, client, auth_headers):
        res = client.get("/api/v1/scope", headers=auth_headers("root", admin=True))
        body = res.get_json()
        assert body["is_platform_admin"] is True
        assert body["scope"] == {"tenant_id": None, "is_unrestricted": True}


class TestTenantSelection:
    def test_select_then_clear(self, client, tenant_a, auth_headers):
        headers = auth_headers("root", admin=True)

        res = client.put("/api/v1/tenant-selection", json={"tenant_id": tenant_a.id},
                         headers=headers)
        assert res.status_code == 200
        assert res.get_json()["scope"] == {"tenant_id": tenant_a.id, "is_unrestricted": False}

        # Persisted in the session for later requests
        assert client.get("/api/v1/scope", headers=headers).get_json()["scope"] == {
            "tenant_id": tenant_a.id, "is_unrestricted": False,
        }
        assert client.get("/api/v1/tenant-selection", headers=headers).get_json() == {
            "selected_tenant_id": tenant_a.id,
        }

        res = client.delete("/api/v1/tenant-selection", headers=headers)
        assert res.status_code == 200
        assert client.get("/api/v1/scope", headers=headers).get_json()["scope"] == {
            "tenant_id": None, "is_unrestricted": True,
        }

    def test_last_write_wins(self, client, tenant_a, tenant_b, auth_headers):
        headers = auth_headers("root", admin=True)
        client.put("/api/v1/tenant-selection", json={"tenant_id": tenant_a.id}, headers=headers)
        client.put("/api/v1/tenant-selection", json={"tenant_id": tenant_b.id}, headers=headers)
        scope = client.get("/api/v1/scope", headers=headers).get_json()["scope"]
        assert scope["tenant_id"] == tenant_b.id

    def test_non_admin_cannot_select(self, client, tenant_a, tenant_b, auth_headers):
        headers = auth_headers("u1", tenant_a.id)
        res = client.put("/api/v1/tenant-selection", json={"tenant_id": tenant_b.id},
                         headers=headers)
        assert res.status_code == 403
        scope = client.get("/api/v1/scope", headers=headers).get_json()["scope"]
        assert scope["tenant_id"] == tenant_a.id

    def test_unknown_tenant_is_404(self, client, auth_headers):
        res = client.put("/api/v1/tenant-selection", json={"tenant_id": "nope"},
                         headers=auth_headers("root", admin=True))
        assert res.status_code == 404

    def test_sentinel_selection_rejected(self, client, auth_headers):
        res = client.put("/api/v1/tenant-selection", json={"tenant_id": "default"},
                         headers=auth_headers("root", admin=True))
        assert res.status_code == 422

    def test_missing_tenant_id(self, client, auth_headers):
        res = client.put("/api/v1/tenant-selection", json={},
                         headers=auth_headers("root", admin=True))
        assert res.status_code == 400

    def test_deactivated_tenant_rejected(self, client, tenant_a, auth_headers):
        from grc.models import db

        tenant_a.is_active = False
        db.session.commit()
        res = client.put("/api/v1/tenant-selection", json={"tenant_id": tenant_a.id},
                         headers=auth_headers("root", admin=True))
        assert res.status_code == 422

    def test_sign_out_clears_selection(self, client, tenant_a, auth_headers):
        headers = auth_headers("root", admin=True)
        client.put("/api/v1/tenant-selection", json={"tenant_id": tenant_a.id}, headers=headers)
        assert client.post("/api/v1/auth/sign-out", headers=headers).status_code == 204
        scope = client.get("/api/v1/scope", headers=headers).get_json()["scope"]
        assert scope["is_unrestricted"] is True


class TestTenantAdmin:
    def test_create_and_list(self, client, auth_headers):
        headers = auth_headers("root", admin=True)
        res = client.post("/api/v1/tenants", json={"name": "Acme Corp"}, headers=headers)
        assert res.status_code == 201
        assert res.get_json()["slug"] == "acme-corp"

        dup = client.post("/api/v1/tenants", json={"name": "Acme Corp"}, headers=headers)
        assert dup.status_code == 409

        listing = client.get("/api/v1/tenants", headers=headers).get_json()
        assert listing["total"] == 1

    def test_non_admin_forbidden(self, client, tenant_a, auth_headers):
        res = client.get("/api/v1/tenants", headers=auth_headers("u1", tenant_a.id))
        assert res.status_code == 403

    def test_security_alerts(self, client, auth_headers):
        for _ in range(5):
            client.get("/api/v1/assessments", headers=auth_headers("u1"))
        body = client.get("/api/v1/security/alerts",
                          headers=auth_headers("root", admin=True)).get_json()
        assert body["counts"]["tenant_scope_error"] == 5
        assert [a["code"] for a in body["alerts"]] == ["SEC-TENANT-SCOPE-001"]
