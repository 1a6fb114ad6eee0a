"""
API tests for frameworks, assessments and responses.

Covers tenant isolation on every route family and the progress fields
recomputed after each response write.
"""

import pytest
from sqlalchemy.exc import OperationalError

from grc.models import db
from grc.models.assessment import Assessment, AssessmentResponse
from grc.services import progress_aggregator


@pytest.fixture()
def headers_a(tenant_a, auth_headers):
    return auth_headers("alice", tenant_a.id)


@pytest.fixture()
def headers_b(tenant_b, auth_headers):
    return auth_headers("bob", tenant_b.id)


@pytest.fixture()
def catalogue(tenant_a, framework_factory):
    """Tenant A framework with 10 yes/no questions."""
    return framework_factory(tenant_a.id, n=10)


@pytest.fixture()
def assessment(client, headers_a, catalogue):
    fw, _ = catalogue
    res = client.post("/api/v1/assessments", json={"name": "2024 audit", "framework_id": fw.id},
                      headers=headers_a)
    assert res.status_code == 201
    return res.get_json()


def _answer(client, headers, assessment_id, question_id, **answer):
    answer.setdefault("boolean_answer", True)
    return client.post(f"/api/v1/assessments/{assessment_id}/responses",
                       json={"question_id": question_id, **answer}, headers=headers)


# ═════════════════════════════════════════════════════════════════════════
# Frameworks
# ═════════════════════════════════════════════════════════════════════════


class TestFrameworks:
    def test_tenant_sees_own_and_standard(self, client, tenant_a, tenant_b, framework_factory,
                                          headers_b):
        framework_factory(tenant_a.id, n=1, code="A-ONLY")
        framework_factory(None, n=1, code="ISO", is_standard=True)
        framework_factory(tenant_b.id, n=1, code="B-ONLY")

        body = client.get("/api/v1/frameworks", headers=headers_b).get_json()
        assert sorted(f["code"] for f in body["items"]) == ["B-ONLY", "ISO"]

    def test_create_builds_hierarchy(self, client, headers_a):
        fw = client.post("/api/v1/frameworks", json={"name": "Internal", "code": "INT"},
                         headers=headers_a).get_json()
        domain = client.post(f"/api/v1/frameworks/{fw['id']}/domains", json={"name": "Access"},
                             headers=headers_a)
        assert domain.status_code == 201
        control = client.post(f"/api/v1/frameworks/{fw['id']}/controls",
                              json={"code": "AC-1", "title": "Access policy",
                                    "domain_id": domain.get_json()["id"]},
                              headers=headers_a)
        assert control.status_code == 201
        question = client.post(f"/api/v1/controls/{control.get_json()['id']}/questions",
                               json={"text": "Is there a policy?", "question_type": "escala"},
                               headers=headers_a)
        assert question.status_code == 201

        tree = client.get(f"/api/v1/frameworks/{fw['id']}", headers=headers_a).get_json()
        assert tree["controls"][0]["questions"][0]["question_type"] == "escala"

    def test_invalid_question_type(self, client, headers_a, catalogue):
        fw, questions = catalogue
        res = client.post(f"/api/v1/controls/{questions[0].control_id}/questions",
                          json={"text": "?", "question_type": "essay"}, headers=headers_a)
        assert res.status_code == 422

    def test_non_admin_cannot_create_standard(self, client, headers_a):
        res = client.post("/api/v1/frameworks",
                          json={"name": "ISO", "code": "ISO", "is_standard": True},
                          headers=headers_a)
        assert res.status_code == 403

    def test_tenant_cannot_modify_standard(self, client, framework_factory, headers_a):
        fw, _ = framework_factory(None, n=1, code="ISO", is_standard=True)
        res = client.post(f"/api/v1/frameworks/{fw.id}/domains", json={"name": "X"},
                          headers=headers_a)
        assert res.status_code == 403

    def test_admin_creates_standard(self, client, auth_headers, headers_b):
        res = client.post("/api/v1/frameworks",
                          json={"name": "NIST CSF", "code": "CSF", "is_standard": True},
                          headers=auth_headers("root", admin=True))
        assert res.status_code == 201
        assert res.get_json()["tenant_id"] is None
        codes = [f["code"] for f in client.get("/api/v1/frameworks", headers=headers_b)
                 .get_json()["items"]]
        assert codes == ["CSF"]

    def test_admin_with_selection_cannot_create_standard(self, client, tenant_a, auth_headers):
        headers = auth_headers("root", admin=True)
        client.put("/api/v1/tenant-selection", json={"tenant_id": tenant_a.id}, headers=headers)
        res = client.post("/api/v1/frameworks",
                          json={"name": "NIST CSF", "code": "CSF", "is_standard": True},
                          headers=headers)
        assert res.status_code == 403

    def test_admin_can_extend_own_standard_framework(self, client, auth_headers):
        headers = auth_headers("root", admin=True)
        fw = client.post("/api/v1/frameworks",
                         json={"name": "NIST CSF", "code": "CSF", "is_standard": True},
                         headers=headers).get_json()
        res = client.post(f"/api/v1/frameworks/{fw['id']}/domains", json={"name": "Identify"},
                          headers=headers)
        assert res.status_code == 201

    def test_non_string_code_rejected(self, client, headers_a):
        res = client.post("/api/v1/frameworks", json={"name": "Internal", "code": 7},
                          headers=headers_a)
        assert res.status_code == 422
        assert res.get_json()["details"] == {"code": "Must be a string."}

    def test_other_tenant_framework_is_404(self, client, catalogue, headers_b):
        fw, _ = catalogue
        assert client.get(f"/api/v1/frameworks/{fw.id}", headers=headers_b).status_code == 404

    def test_deactivate_question_recomputes(self, client, headers_a, catalogue, assessment):
        _, questions = catalogue
        _answer(client, headers_a, assessment["id"], questions[0].id)
        res = client.post(f"/api/v1/questions/{questions[9].id}/deactivate", headers=headers_a)
        assert res.status_code == 200
        assert res.get_json()["active"] is False
        detail = client.get(f"/api/v1/assessments/{assessment['id']}", headers=headers_a)
        assert detail.get_json()["percentual_conclusao"] == 11


# ═════════════════════════════════════════════════════════════════════════
# Assessments
# ═════════════════════════════════════════════════════════════════════════


class TestAssessments:
    def test_created_planned_at_zero(self, assessment):
        assert assessment["status"] == "planejado"
        assert assessment["percentual_conclusao"] == 0

    def test_on_standard_framework(self, client, framework_factory, headers_b):
        fw, _ = framework_factory(None, n=2, code="ISO", is_standard=True)
        res = client.post("/api/v1/assessments", json={"name": "ISO", "framework_id": fw.id},
                          headers=headers_b)
        assert res.status_code == 201

    def test_on_other_tenant_framework_is_404(self, client, catalogue, headers_b):
        fw, _ = catalogue
        res = client.post("/api/v1/assessments", json={"name": "x", "framework_id": fw.id},
                          headers=headers_b)
        assert res.status_code == 404

    def test_missing_fields(self, client, headers_a):
        res = client.post("/api/v1/assessments", json={}, headers=headers_a)
        assert res.status_code == 422
        assert set(res.get_json()["details"]) == {"name", "framework_id"}

    def test_non_string_name_rejected(self, client, headers_a, catalogue, assessment):
        fw, _ = catalogue
        res = client.post("/api/v1/assessments", json={"name": 123, "framework_id": fw.id},
                          headers=headers_a)
        assert res.status_code == 422
        assert res.get_json()["details"]["name"] == "Must be a string."

        res = client.put(f"/api/v1/assessments/{assessment['id']}", json={"name": ["x"]},
                         headers=headers_a)
        assert res.status_code == 422
        assert res.get_json()["details"]["name"] == "Must be a string."

    def test_unrestricted_admin_cannot_create(self, client, catalogue, auth_headers):
        fw, _ = catalogue
        res = client.post("/api/v1/assessments", json={"name": "x", "framework_id": fw.id},
                          headers=auth_headers("root", admin=True))
        assert res.status_code == 403
        assert res.get_json()["code"] == "ERR_TENANT_REQUIRED"

    def test_cross_tenant_is_404(self, client, assessment, headers_b):
        aid = assessment["id"]
        assert client.get(f"/api/v1/assessments/{aid}", headers=headers_b).status_code == 404
        assert client.put(f"/api/v1/assessments/{aid}", json={"name": "x"},
                          headers=headers_b).status_code == 404
        assert client.delete(f"/api/v1/assessments/{aid}", headers=headers_b).status_code == 404
        assert client.get("/api/v1/assessments", headers=headers_b).get_json()["total"] == 0

    def test_admin_sees_all_without_selection(self, client, assessment, auth_headers):
        body = client.get("/api/v1/assessments", headers=auth_headers("root", admin=True))
        assert body.get_json()["total"] == 1

    def test_update_status_and_ignore_progress(self, client, assessment, headers_a):
        res = client.put(f"/api/v1/assessments/{assessment['id']}",
                         json={"status": "em_revisao", "percentual_conclusao": 99,
                               "due_date": "2025-12-31"},
                         headers=headers_a)
        body = res.get_json()
        assert body["status"] == "em_revisao"
        assert body["percentual_conclusao"] == 0
        assert body["due_date"] == "2025-12-31"

    def test_update_invalid_status(self, client, assessment, headers_a):
        res = client.put(f"/api/v1/assessments/{assessment['id']}", json={"status": "done"},
                         headers=headers_a)
        assert res.status_code == 422

    def test_filter_by_status(self, client, assessment, headers_a):
        body = client.get("/api/v1/assessments?status=em_andamento", headers=headers_a)
        assert body.get_json()["total"] == 0

    def test_delete_cascades_responses(self, client, headers_a, catalogue, assessment):
        _, questions = catalogue
        _answer(client, headers_a, assessment["id"], questions[0].id)
        assert client.delete(f"/api/v1/assessments/{assessment['id']}",
                             headers=headers_a).status_code == 204
        assert db.session.get(Assessment, assessment["id"]) is None


# ═════════════════════════════════════════════════════════════════════════
# Responses
# ═════════════════════════════════════════════════════════════════════════


class TestResponses:
    def test_progress_example(self, client, headers_a, catalogue, assessment):
        _, questions = catalogue
        aid = assessment["id"]

        for q in questions[:3]:
            res = _answer(client, headers_a, aid, q.id)
            assert res.status_code == 201
        detail = client.get(f"/api/v1/assessments/{aid}", headers=headers_a).get_json()
        assert detail["percentual_conclusao"] == 30
        assert detail["status"] == "em_andamento"

        # Upsert: re-answering updates the existing row
        res = _answer(client, headers_a, aid, questions[0].id, boolean_answer=False)
        assert res.status_code == 200
        assert res.get_json()["progress"][0]["percentual_conclusao"] == 30

        # Append mode stores a duplicate row; still counted once
        res = client.post(f"/api/v1/assessments/{aid}/responses?upsert=false",
                          json={"question_id": questions[1].id, "boolean_answer": True},
                          headers=headers_a)
        assert res.status_code == 201
        assert res.get_json()["progress"][0]["percentual_conclusao"] == 30
        listing = client.get(f"/api/v1/assessments/{aid}/responses", headers=headers_a)
        assert listing.get_json()["total"] == 4

        third = [r for r in listing.get_json()["items"] if r["question_id"] == questions[2].id]
        res = client.delete(f"/api/v1/responses/{third[0]['id']}", headers=headers_a)
        assert res.status_code == 200
        assert res.get_json()["progress"][0]["percentual_conclusao"] == 20

    def test_scoring_is_applied(self, client, headers_a, catalogue, assessment):
        _, questions = catalogue
        body = _answer(client, headers_a, assessment["id"], questions[0].id).get_json()
        assert body["response"]["score_obtained"] == 5.0
        assert body["response"]["conformity_status"] == "conforme"
        assert body["response"]["answered_by"] == "alice"
        assert body["progress"][0]["percentual_maturidade"] == 100

    def test_question_from_other_framework_rejected(self, client, headers_a, tenant_a,
                                                    framework_factory, assessment):
        _, other_questions = framework_factory(tenant_a.id, n=1, code="OTHER")
        res = _answer(client, headers_a, assessment["id"], other_questions[0].id)
        assert res.status_code == 422

    def test_inactive_question_rejected(self, client, headers_a, catalogue, assessment):
        _, questions = catalogue
        questions[0].active = False
        db.session.commit()
        res = _answer(client, headers_a, assessment["id"], questions[0].id)
        assert res.status_code == 422

    def test_cross_tenant_response_is_404(self, client, headers_a, headers_b, catalogue,
                                          assessment):
        _, questions = catalogue
        rid = _answer(client, headers_a, assessment["id"], questions[0].id).get_json()["response"]["id"]
        assert _answer(client, headers_b, assessment["id"], questions[1].id).status_code == 404
        assert client.put(f"/api/v1/responses/{rid}", json={"boolean_answer": False},
                          headers=headers_b).status_code == 404
        assert client.delete(f"/api/v1/responses/{rid}", headers=headers_b).status_code == 404

    def test_move_response_recomputes_both(self, client, headers_a, catalogue, assessment):
        fw, questions = catalogue
        other = client.post("/api/v1/assessments", json={"name": "Other", "framework_id": fw.id},
                            headers=headers_a).get_json()
        rid = _answer(client, headers_a, assessment["id"], questions[0].id).get_json()["response"]["id"]

        res = client.put(f"/api/v1/responses/{rid}", json={"assessment_id": other["id"]},
                         headers=headers_a)
        assert res.status_code == 200
        progress = {p["assessment_id"]: p["percentual_conclusao"] for p in res.get_json()["progress"]}
        assert progress == {assessment["id"]: 0, other["id"]: 10}

    def test_admin_with_selection_can_answer(self, client, tenant_a, auth_headers, catalogue,
                                             assessment):
        _, questions = catalogue
        headers = auth_headers("root", admin=True)
        client.put("/api/v1/tenant-selection", json={"tenant_id": tenant_a.id}, headers=headers)
        assert _answer(client, headers, assessment["id"], questions[0].id).status_code == 201

    def test_unrestricted_admin_cannot_answer(self, client, auth_headers, catalogue, assessment):
        _, questions = catalogue
        res = _answer(client, auth_headers("root", admin=True), assessment["id"], questions[0].id)
        assert res.status_code == 403
        assert res.get_json()["code"] == "ERR_TENANT_REQUIRED"

    @pytest.mark.parametrize("error", [
        OperationalError("SELECT count(*)", {}, Exception("database is locked")),
        ArithmeticError("bad ratio"),
    ], ids=["db-error", "arithmetic-error"])
    def test_failed_recompute_keeps_the_write(self, client, headers_a, catalogue, assessment,
                                              monkeypatch, error):
        _, questions = catalogue

        def _boom(assessment_id):
            raise error

        monkeypatch.setattr(progress_aggregator, "count_answered_questions", _boom)

        res = _answer(client, headers_a, assessment["id"], questions[0].id)
        assert res.status_code == 201
        assert res.get_json()["progress"] == []
        rid = res.get_json()["response"]["id"]
        assert db.session.get(AssessmentResponse, rid) is not None

        res = client.put(f"/api/v1/responses/{rid}", json={"boolean_answer": False},
                         headers=headers_a)
        assert res.status_code == 200
        assert res.get_json()["progress"] == []

        res = client.delete(f"/api/v1/responses/{rid}", headers=headers_a)
        assert res.status_code == 200
        assert res.get_json()["progress"] == []
        assert db.session.get(AssessmentResponse, rid) is None
