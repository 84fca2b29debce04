"""HTTP-level tests for the navigation, stages and health blueprints."""

import json

BASE = "https://backend.test/api"


class TestNavigationAPI:
    def test_routes_for_caller(self, client, auth_headers):
        res = client.get("/api/v1/navigation/routes", headers=auth_headers)

        assert res.status_code == 200
        body = res.get_json()
        assert body["role"] == "DLC"
        assert body["routes"][0] == "/dashboard"
        assert body["routes"].count("/dashboard/dlc-recommendations") == 1

    def test_anonymous_caller_sees_unkeyed_routes_only(self, client):
        res = client.get("/api/v1/navigation/routes")

        assert "/dashboard" not in res.get_json()["routes"]

    def test_redirect_uses_session_access(self, client):
        headers = {
            "Authorization": "Bearer t",
            "X-User-Access": json.dumps(["conversion", "report"]),
        }
        res = client.post(
            "/api/v1/navigation/redirect",
            json={"path": "/dashboard/enquiries", "query": {"type": "conversion"}},
            headers=headers,
        )

        body = res.get_json()
        assert body["path"] == "/dashboard/enquiries"
        assert body["redirect"] == "/dashboard/legacy-data?type=conversion"

    def test_redirect_with_explicit_access_list(self, client):
        res = client.post(
            "/api/v1/navigation/redirect",
            json={"path": "/dashboard", "access": ["dashboard"]},
        )

        assert res.get_json()["redirect"] is None

    def test_redirect_requires_path(self, client):
        res = client.post("/api/v1/navigation/redirect", json={})

        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_REQUIRED"

    def test_redirect_rejects_non_list_access(self, client):
        res = client.post("/api/v1/navigation/redirect", json={"path": "/dashboard", "access": "dashboard"})

        assert res.status_code == 422

    def test_redirect_rejects_non_string_access_keys(self, client):
        res = client.post(
            "/api/v1/navigation/redirect",
            json={"path": "/dashboard", "access": ["dashboard", {"x": 1}]},
        )

        assert res.status_code == 422
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"

    def test_menu_is_filtered(self, client, auth_headers):
        res = client.get("/api/v1/navigation/menu", headers=auth_headers)

        items = {item["label"]: item for item in res.get_json()["items"]}
        assert "Dashboard" in items
        assert "Diversion" not in items
        subs = [s["label"] for s in items["Conversion"]["sub_items"]]
        assert "DLC Recommendations" in subs


class TestStagesAPI:
    def test_resolve_two_variant_stage(self, client):
        res = client.get("/api/v1/stages/resolve?stage=dlc_recommendations&type=conversion")

        body = res.get_json()
        assert body["workflow_sequence_id"] == 23
        assert body["descriptor"]["stage"] == "dlc_recommendations"

    def test_resolve_accepts_route_slug(self, client):
        res = client.get("/api/v1/stages/resolve?stage=dlc-recommendations&type=diversion")

        assert res.get_json()["workflow_sequence_id"] == 20

    def test_resolve_without_variant(self, client):
        res = client.get("/api/v1/stages/resolve?stage=dlc_recommendations")

        body = res.get_json()
        assert body["workflow_sequence_id"] is None
        assert body["descriptor"] is None

    def test_resolve_requires_stage(self, client):
        res = client.get("/api/v1/stages/resolve")

        assert res.status_code == 400

    def test_stage_table_filtered_by_role(self, client):
        res = client.get("/api/v1/stages?role=LRD")

        body = res.get_json()
        assert [item["stage"] for item in body["items"]] == ["lrd_report"]
        assert set(body["conflicts"]) == {"9", "17", "20"}

    def test_stage_applications_filtered_by_workflow_id(
        self, client, auth_headers, gateway, http_session, make_response
    ):
        http_session.request.return_value = make_response(
            200, {"success": True, "data": {"items": [], "total": 0}}
        )

        res = client.get(
            "/api/v1/stages/dlc_recommendations/applications?type=conversion&page=2&limit=5",
            headers=auth_headers,
        )

        assert res.status_code == 200
        assert res.get_json()["workflow_sequence_id"] == 23
        method, url = http_session.request.call_args.args
        assert (method, url) == ("GET", f"{BASE}/applications/lists")
        assert http_session.request.call_args.kwargs["params"] == {
            "page": 2, "limit": 5, "workflow_sequence_id": 23,
        }

    def test_unresolved_variant_lists_unfiltered(
        self, client, auth_headers, gateway, http_session, make_response
    ):
        http_session.request.return_value = make_response(200, {"success": True, "data": []})

        res = client.get("/api/v1/stages/report/applications?type=bogus", headers=auth_headers)

        assert res.status_code == 200
        assert res.get_json()["workflow_sequence_id"] is None
        assert "workflow_sequence_id" not in http_session.request.call_args.kwargs["params"]

    def test_unknown_stage_is_404(self, client, auth_headers, gateway, http_session):
        res = client.get("/api/v1/stages/nowhere/applications", headers=auth_headers)

        assert res.status_code == 404
        http_session.request.assert_not_called()

    def test_stage_applications_need_a_token(self, client):
        res = client.get("/api/v1/stages/report/applications?type=conversion")

        assert res.status_code == 401


class TestHealthAPI:
    def test_ready(self, client):
        res = client.get("/api/v1/health/ready")

        assert res.status_code == 200
        assert res.get_json() == {"status": "ok"}

    def test_live_reports_gateway_and_registry(self, client, gateway):
        res = client.get("/api/v1/health/live")

        checks = res.get_json()["checks"]
        assert checks["backend"]["base_url"] == BASE
        assert checks["backend"]["upload_timeout_s"] == 7.0
        assert checks["stage_registry"]["shared_ids"] == [9, 17, 20]
        assert checks["app"]["testing"] is True

    def test_unknown_route_is_json_404(self, client):
        res = client.get("/api/v1/nothing-here")

        assert res.status_code == 404
        assert res.get_json()["path"] == "/api/v1/nothing-here"
