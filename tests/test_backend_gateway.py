"""Unit tests for landuse.integrations.backend_gateway.

All HTTP goes through a MagicMock requests.Session injected into
BackendGateway, so no backend is needed. Backoff sleeps are a no-op.
"""

import io

import requests

from landuse.integrations.backend_gateway import (
    FAILURE_AUTH,
    FAILURE_BACKEND,
    FAILURE_NETWORK,
    FAILURE_TIMEOUT,
    GENERIC_ERROR_MESSAGE,
    MISSING_TOKEN_MESSAGE,
)

TOKEN = "tok-1"


class TestEnvelope:
    def test_success_unwraps_data(self, gateway, http_session, make_response):
        http_session.request.return_value = make_response(
            200, {"success": True, "message": "ok", "data": {"id": 42, "form_type": "Forward"}}
        )

        result = gateway.fetch_application(TOKEN, 42)

        assert result.ok is True
        assert result.data == {"id": 42, "form_type": "Forward"}
        assert result.error is None
        assert result.message == "ok"

    def test_request_carries_bearer_token_url_and_timeout(self, gateway, http_session, make_response):
        http_session.request.return_value = make_response(200, {"success": True, "data": {}})

        gateway.fetch_application(TOKEN, 7, workflow_sequence_id=23)

        method, url = http_session.request.call_args.args
        kwargs = http_session.request.call_args.kwargs
        assert method == "GET"
        assert url == "https://backend.test/api/applications/7"
        assert kwargs["headers"]["Authorization"] == f"Bearer {TOKEN}"
        assert kwargs["params"] == {"workflow_sequence_id": 23}
        assert kwargs["timeout"] == 5.0

    def test_success_false_uses_backend_message(self, gateway, http_session, make_response):
        http_session.request.return_value = make_response(
            200, {"success": False, "message": "Application already forwarded"}
        )

        result = gateway.submit_transition(TOKEN, {"application_details_id": 1})

        assert result.ok is False
        assert result.error == "Application already forwarded"
        assert result.failure == FAILURE_BACKEND

    def test_missing_success_field_is_a_failure(self, gateway, http_session, make_response):
        http_session.request.return_value = make_response(200, {"data": {"filename": "x.pdf"}})

        result = gateway.submit_transition(TOKEN, {})

        assert result.ok is False
        assert "success" in result.error

    def test_malformed_json_gives_generic_message(self, gateway, http_session, make_response):
        http_session.request.return_value = make_response(200, raw=b"<html>oops</html>")

        result = gateway.submit_transition(TOKEN, {})

        assert result.ok is False
        assert result.error == GENERIC_ERROR_MESSAGE

    def test_non_2xx_without_message_gives_generic_message(self, gateway, http_session, make_response):
        http_session.request.return_value = make_response(400, {"success": False})

        result = gateway.submit_transition(TOKEN, {})

        assert result.ok is False
        assert result.status_code == 400
        assert result.error == GENERIC_ERROR_MESSAGE


class TestAuth:
    def test_no_token_sends_nothing(self, gateway, http_session):
        result = gateway.fetch_workflow_history(None, 3)

        assert result.ok is False
        assert result.failure == FAILURE_AUTH
        assert result.error == MISSING_TOKEN_MESSAGE
        http_session.request.assert_not_called()


class TestRetryPolicy:
    def test_get_retried_on_server_error(self, gateway, http_session, make_response):
        http_session.request.side_effect = [
            make_response(503, {"success": False, "message": "busy"}),
            make_response(503, {"success": False, "message": "busy"}),
            make_response(200, {"success": True, "data": []}),
        ]

        result = gateway.fetch_workflow_history(TOKEN, 3)

        assert result.ok is True
        assert http_session.request.call_count == 3

    def test_get_not_retried_on_client_error(self, gateway, http_session, make_response):
        http_session.request.return_value = make_response(404, {"success": False, "message": "Not found"})

        result = gateway.fetch_application(TOKEN, 999)

        assert result.ok is False
        assert result.status_code == 404
        assert http_session.request.call_count == 1

    def test_post_never_retried(self, gateway, http_session, make_response):
        http_session.request.return_value = make_response(502, {"success": False})

        result = gateway.submit_transition(TOKEN, {"application_details_id": 1})

        assert result.ok is False
        assert http_session.request.call_count == 1

    def test_timeout_maps_to_timeout_failure(self, gateway, http_session):
        http_session.request.side_effect = requests.Timeout("read timed out")

        result = gateway.submit_transition(TOKEN, {})

        assert result.ok is False
        assert result.failure == FAILURE_TIMEOUT
        assert http_session.request.call_count == 1

    def test_get_timeout_exhausts_retries(self, gateway, http_session):
        http_session.request.side_effect = requests.Timeout("read timed out")

        result = gateway.list_applications(TOKEN, page=1, limit=10)

        assert result.failure == FAILURE_TIMEOUT
        assert http_session.request.call_count == 3

    def test_connection_error_maps_to_network_failure(self, gateway, http_session):
        http_session.request.side_effect = requests.ConnectionError("refused")

        result = gateway.request_reverification(TOKEN, {})

        assert result.ok is False
        assert result.failure == FAILURE_NETWORK
        assert result.error == GENERIC_ERROR_MESSAGE


class TestOperations:
    def test_upload_sends_multipart_under_field_name(self, gateway, http_session, make_response):
        http_session.request.return_value = make_response(
            200, {"success": True, "data": {"filename": "srv_123.pdf"}}
        )
        stream = io.BytesIO(b"%PDF")

        result = gateway.upload_file(
            TOKEN, field_name="marsac_file", filename="site.pdf", stream=stream,
            content_type="application/pdf",
        )

        assert result.data == {"filename": "srv_123.pdf"}
        kwargs = http_session.request.call_args.kwargs
        assert http_session.request.call_args.args == ("POST", "https://backend.test/api/upload-file")
        assert kwargs["files"] == {"marsac_file": ("site.pdf", stream, "application/pdf")}
        assert kwargs["timeout"] == 7.0

    def test_list_applications_omits_missing_workflow_id(self, gateway, http_session, make_response):
        http_session.request.return_value = make_response(200, {"success": True, "data": {}})

        gateway.list_applications(TOKEN, page=2, limit=25, workflow_sequence_id=None)

        assert http_session.request.call_args.kwargs["params"] == {"page": 2, "limit": 25}

    def test_reverification_path(self, gateway, http_session, make_response):
        http_session.request.return_value = make_response(200, {"success": True})

        gateway.request_reverification(TOKEN, {"application_details_id": 5})

        method, url = http_session.request.call_args.args
        assert method == "POST"
        assert url == "https://backend.test/api/workflow/reverification"
        assert http_session.request.call_args.kwargs["json"] == {"application_details_id": 5}

    def test_configure_overrides_base_url(self, gateway):
        gateway.configure(base_url="https://other.example/api/", timeout=9.0)

        assert gateway.url_for("/workflow") == "https://other.example/api/workflow"
        assert gateway.timeout == 9.0
        assert gateway.upload_timeout == 7.0
