from chatbridge.services.errors import ErrorKind
from chatbridge.services.result import Result


class TestResultSuccess:
    def test_success_creates_ok_result(self):
        result = Result.success({"show": "Breaking Bad"})
        assert result.ok is True
        assert result.value == {"show": "Breaking Bad"}
        assert result.error is None
        assert result.error_code is None


class TestResultFailure:
    def test_failure_creates_not_ok_result(self):
        result = Result.failure("Something went wrong", "test_error")
        assert result.ok is False
        assert result.error == "Something went wrong"
        assert result.error_code == "test_error"
        assert result.value is None

    def test_failure_default_code(self):
        result = Result.failure("Error message")
        assert result.error_code == "unknown"

    def test_failure_keeps_response_body(self):
        body = {"error": {"message": "Invalid OAuth access token."}}
        result = Result.failure("Invalid OAuth access token.", ErrorKind.TRANSPORT_ERROR.value, value=body)
        assert result.ok is False
        assert result.value == body


class TestResultUnwrapOr:
    def test_unwrap_or_returns_value_on_success(self):
        assert Result.success("actual value").unwrap_or("default") == "actual value"

    def test_unwrap_or_returns_default_on_failure(self):
        assert Result.failure("Error", "code", value={"partial": True}).unwrap_or("default") == "default"

    def test_unwrap_or_with_none_value(self):
        assert Result.success(None).unwrap_or("default") is None


class TestErrorCodes:
    def test_kinds_are_plain_strings(self):
        result = Result.failure("No handler registered", ErrorKind.UNKNOWN_ACTION.value)
        assert result.error_code == "unknown_action"
        assert result.error_code == ErrorKind.UNKNOWN_ACTION
