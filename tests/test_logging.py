import logging
import uuid

from config.settings import mask_sensitive_data


class TestCorrelationIdMiddleware:
    def test_echoes_provided_request_id(self, client):
        response = client.get("/health", HTTP_X_REQUEST_ID="pedido-req-123")
        assert response["X-Request-ID"] == "pedido-req-123"

    def test_generates_uuid4_when_missing(self, client):
        request_id = client.get("/health")["X-Request-ID"]
        assert str(uuid.UUID(request_id, version=4)) == request_id

    def test_correlation_id_bound_to_logs(self, api_client_with_correlation, caplog):
        client, cid = api_client_with_correlation
        with caplog.at_level(logging.INFO):
            client.get("/health")

        assert any(cid in record.getMessage() for record in caplog.records)

    def test_request_finished_logged_with_duration(self, client, caplog):
        with caplog.at_level(logging.INFO):
            client.get("/health")

        finished = [
            r.getMessage() for r in caplog.records if "request_finished" in r.getMessage()
        ]
        assert finished
        assert "duration_ms" in finished[0]


class TestSensitiveDataMasking:
    def test_cnpj_masked(self):
        result = mask_sensitive_data(
            None, None, {"event": "company.created", "document": "11.222.333/0001-81"}
        )
        assert "11.222.333/0001-81" not in result["document"]
        assert "***MASKED***" in result["document"]

    def test_password_masked(self):
        result = mask_sensitive_data(
            None, None, {"event": "auth", "data": "password='s3cret123'"}
        )
        assert "s3cret123" not in result["data"]

    def test_token_masked(self):
        result = mask_sensitive_data(None, None, {"event": "auth", "header": "token=abc123xyz"})
        assert "abc123xyz" not in result["header"]

    def test_non_sensitive_values_unchanged(self):
        event = {"event": "order.created", "display_id": "TX-20261001-0A1B"}
        result = mask_sensitive_data(None, None, event)
        assert result["display_id"] == "TX-20261001-0A1B"
