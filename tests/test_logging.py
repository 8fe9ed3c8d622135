import logging
import uuid

from config.settings import mask_sensitive_data


class TestCorrelationIdMiddleware:
    def test_returns_provided_request_id(self, client):
        custom_id = "my-custom-request-id-123"
        response = client.get("/health", HTTP_X_REQUEST_ID=custom_id)
        assert response["X-Request-ID"] == custom_id

    def test_generates_uuid_when_no_request_id(self, client):
        request_id = client.get("/health")["X-Request-ID"]
        assert str(uuid.UUID(request_id, version=4)) == request_id

    def test_api_responses_carry_request_id(self, api_client_with_correlation):
        api_client, cid = api_client_with_correlation
        response = api_client.get("/api/v1/colonies/")
        assert response["X-Request-ID"] == cid

    def test_correlation_id_in_logs(self, client, caplog):
        custom_id = "log-test-correlation-456"
        with caplog.at_level(logging.INFO):
            client.get("/health", HTTP_X_REQUEST_ID=custom_id)
        found = any(custom_id in record.getMessage() for record in caplog.records)
        assert found, (
            f"correlation_id '{custom_id}' not found in log records: "
            f"{[r.getMessage() for r in caplog.records]}"
        )


class TestSensitiveDataMasking:
    def test_phone_masked(self):
        result = mask_sensitive_data(None, None, {"event": "test", "phone": "55 1234 5678"})
        assert "1234" not in result["phone"]
        assert "***MASKED***" in result["phone"]

    def test_international_phone_masked(self):
        result = mask_sensitive_data(None, None, {"event": "test", "phone": "+525512345678"})
        assert "5512345678" not in result["phone"]

    def test_password_masked(self):
        result = mask_sensitive_data(None, None, {"event": "test", "data": "password='s3cret123'"})
        assert "s3cret123" not in result["data"]
        assert "***MASKED***" in result["data"]

    def test_authorization_header_masked(self):
        result = mask_sensitive_data(
            None, None, {"event": "test", "header": "Authorization: eyJhbGciOi.abc"}
        )
        assert "eyJhbGciOi" not in result["header"]

    def test_non_sensitive_data_unchanged(self):
        event_dict = {"event": "order.created", "order_number": "ORD-20260101-A1B2C3"}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["order_number"] == "ORD-20260101-A1B2C3"
        assert result["event"] == "order.created"

    def test_non_string_values_untouched(self):
        result = mask_sensitive_data(None, None, {"event": "test", "count": 5512345678})
        assert result["count"] == 5512345678
