"""
Tests for the error hierarchy.
"""
import asyncio

from core.errors import (
    DiscernConfigError,
    DiscernError,
    DiscernIntegrationError,
    DiscernTimeoutError,
    DiscernValidationError,
    ErrorContext,
    ErrorSeverity,
    classify_error,
)


class TestDiscernError:
    def test_to_dict(self):
        error = DiscernConfigError(
            "Missing rule",
            config_key="rules",
            suggestions=["Add it"],
            context=ErrorContext(operation="load", component="rules", rule_id="worship"),
        )
        data = error.to_dict()

        assert data["error_code"] == "CONFIG_ERROR"
        assert data["severity"] == "critical"
        assert data["suggestions"] == ["Add it"]
        assert data["context"]["rule_id"] == "worship"

    def test_str_includes_cause(self):
        error = DiscernError("Outer", cause=ValueError("inner"))
        assert str(error) == "[DISCERN_ERROR] Outer [caused by: inner]"

    def test_integration_errors_are_recoverable(self):
        assert DiscernIntegrationError("down", service="scripture").recoverable
        assert DiscernTimeoutError("slow", timeout_seconds=1).recoverable
        assert not DiscernConfigError("bad").recoverable

    def test_severity_defaults(self):
        assert DiscernValidationError("bad").severity is ErrorSeverity.WARNING
        assert DiscernError("x").severity is ErrorSeverity.ERROR

    def test_context_outside_span(self):
        context = ErrorContext.from_current_span("fetch", "scripture", reference="John 3:16")
        assert context.trace_id is None
        assert context.reference == "John 3:16"


class TestClassifyError:
    def test_passthrough(self):
        error = DiscernValidationError("bad")
        assert classify_error(error) is error

    def test_mapping(self):
        assert isinstance(classify_error(asyncio.TimeoutError()), DiscernTimeoutError)
        assert isinstance(classify_error(ConnectionError("x")), DiscernIntegrationError)

    def test_value_error_is_not_a_client_error(self):
        error = classify_error(ValueError("bad state"))
        assert type(error) is DiscernError
        assert not isinstance(error, DiscernValidationError)

    def test_unknown_becomes_base_error(self):
        error = classify_error(KeyError("x"))
        assert type(error) is DiscernError
        assert isinstance(error.cause, KeyError)
