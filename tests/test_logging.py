import logging
import uuid

import pytest


class TestCorrelationIdMiddleware:
    def test_returns_provided_request_id(self, client):
        custom_id = "my-custom-request-id-123"
        response = client.get("/health", HTTP_X_REQUEST_ID=custom_id)
        assert response["X-Request-ID"] == custom_id

    def test_generates_uuid_when_no_request_id(self, client):
        response = client.get("/health")
        request_id = response["X-Request-ID"]
        parsed = uuid.UUID(request_id, version=4)
        assert str(parsed) == request_id

    def test_correlation_id_in_logs(self, client, caplog):
        custom_id = "log-test-correlation-456"
        with caplog.at_level(logging.INFO):
            client.get("/health", HTTP_X_REQUEST_ID=custom_id)
        found = any(custom_id in record.getMessage() for record in caplog.records)
        assert found, (
            f"correlation_id '{custom_id}' not found in log records: "
            f"{[r.getMessage() for r in caplog.records]}"
        )

    def test_operator_header_in_logs(self, client, caplog):
        with caplog.at_level(logging.INFO):
            client.get("/health", HTTP_X_OPERATOR="warehouse-7")
        assert any("warehouse-7" in record.getMessage() for record in caplog.records)


class TestSensitiveDataMasking:
    def test_mobile_number_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "phone": "13800138000"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "13800138000" not in result["phone"]
        assert "***MASKED***" in result["phone"]

    def test_mobile_number_inside_text_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "note": "call 15912345678 before delivery"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "15912345678" not in result["note"]
        assert result["note"].startswith("call ")

    def test_password_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "data": "password='s3cret123'"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "s3cret123" not in result["data"]
        assert "***MASKED***" in result["data"]

    def test_token_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "header": "token=abc123xyz"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "abc123xyz" not in result["header"]
        assert "***MASKED***" in result["header"]

    @pytest.mark.parametrize("value", ["ORD-001", "202610180042", "12.50"])
    def test_non_sensitive_data_unchanged(self, value):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "order_created", "order_number": value}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["order_number"] == value
        assert result["event"] == "order_created"
