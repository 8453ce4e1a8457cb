"""
Unit tests for StepResult, Success, Failure and RunState.
"""

import pytest

from fulfillment.models.errors import FailureKind, OrderProcessingError
from fulfillment.orchestrator.pipeline.result import Failure, RunState, StepResult, Success


class TestStepResult:
    """Tests for StepResult factory methods."""

    def test_ok(self):
        result = StepResult.ok("john", "fetch_user", 12.5)

        assert result.success is True
        assert result.output == "john"
        assert result.error is None
        assert result.failure_kind is None
        assert result.stage_name == "fetch_user"
        assert result.execution_time_ms == 12.5

    def test_fail_defaults_to_unexpected(self):
        result = StepResult.fail("boom", "ship")

        assert result.success is False
        assert result.output is None
        assert result.error == "boom"
        assert result.failure_kind == FailureKind.UNEXPECTED

    def test_fail_with_kind(self):
        result = StepResult.fail("Payment processing failed", "charge", FailureKind.PAYMENT, 3.0)

        assert result.failure_kind == FailureKind.PAYMENT
        assert result.execution_time_ms == 3.0


class TestOutcome:
    """Tests for Success and Failure outcomes."""

    def test_success(self):
        outcome = Success("done")

        assert outcome.is_success is True
        assert outcome.unwrap() == "done"

    def test_failure_fields(self):
        failure = Failure(
            step_name="check_stock",
            step_index=3,
            kind=FailureKind.BUSINESS_RULE,
            reason="out of stock",
        )

        assert failure.is_success is False
        assert failure.describe() == "check_stock failed (BUSINESS_RULE): out of stock"

    def test_failure_to_error(self):
        """Test a Failure converts to a tagged OrderProcessingError."""
        failure = Failure("ship", 6, FailureKind.SHIPPING, "Shipping service unavailable")

        error = failure.to_error()

        assert isinstance(error, OrderProcessingError)
        assert error.kind == FailureKind.SHIPPING
        assert error.message == "Shipping service unavailable"
        assert error.step_name == "ship"

    def test_failure_unwrap_raises(self):
        failure = Failure("charge", 4, FailureKind.PAYMENT, "Payment processing failed")

        with pytest.raises(OrderProcessingError) as exc_info:
            failure.unwrap()

        assert exc_info.value.kind == FailureKind.PAYMENT

    def test_outcomes_are_immutable(self):
        failure = Failure("charge", 4, FailureKind.PAYMENT, "declined")

        with pytest.raises(AttributeError):
            failure.reason = "other"


class TestRunState:
    """Tests for RunState."""

    @pytest.mark.parametrize(
        "state,terminal",
        [
            (RunState.NOT_STARTED, False),
            (RunState.RUNNING, False),
            (RunState.SUCCEEDED, True),
            (RunState.FAILED, True),
        ],
    )
    def test_is_terminal(self, state, terminal):
        assert state.is_terminal is terminal
