"""Tests for logging_utils.py and the exception payloads it reports."""
from __future__ import annotations

import logging

import pytest

from dao_planner.config import LoggingConfig
from dao_planner.exceptions import (
    ConfigurationError,
    ExternalReadFailure,
    NotYetPredictedError,
    PlannerException,
    UnsupportedVariantError,
)
from dao_planner.logging_utils import OperationType, PlannerLogger, mask_address, setup_logging
from dao_planner.models import AtomicCall

from conftest import address

TARGET = address(0xBEEF)


class TestMaskAddress:
    def test_masks_middle(self):
        assert mask_address(TARGET) == f"{TARGET[:6]}...{TARGET[-4:]}"

    def test_short_values_unchanged(self):
        assert mask_address("0x12") == "0x12"


class TestPlannerLogger:
    def test_call_log_carries_position(self, caplog):
        planner_logger = PlannerLogger(config=LoggingConfig(call_level="INFO"))
        with caplog.at_level(logging.INFO, logger="dao_planner"):
            planner_logger.log_call("outer", 0, "deploy.strategy", AtomicCall(to=TARGET))
            planner_logger.log_call("inner", 3, "safe.enableModule", AtomicCall(to=TARGET))

        assert "[outer#0] deploy.strategy" in caplog.text
        assert "[inner#3] safe.enableModule" in caplog.text

    def test_plan_summary_uses_given_labels(self, caplog):
        planner_logger = PlannerLogger(config=LoggingConfig(plan_level="INFO"))
        with caplog.at_level(logging.INFO, logger="dao_planner"):
            planner_logger.log_plan_summary(
                TARGET, ["deploy.strategy", "deploy.governance"], ["safe.enableModule"], {"safe": TARGET}
            )

        (record,) = [r for r in caplog.records if hasattr(r, "plan")]
        assert "2 outer calls, 1 inner calls" in record.getMessage()
        assert record.plan["inner"] == ["safe.enableModule"]

    def test_masked_call_log(self, caplog):
        planner_logger = PlannerLogger(config=LoggingConfig(mask_addresses=True, call_level="INFO"))
        with caplog.at_level(logging.INFO, logger="dao_planner"):
            planner_logger.log_call("outer", 0, "deploy.token", AtomicCall(to=TARGET, data=b"\x01"))

        assert mask_address(TARGET) in caplog.text
        assert TARGET not in caplog.text

    def test_operation_context_success(self):
        planner_logger = PlannerLogger()
        with planner_logger.operation_context(OperationType.PLAN_ASSEMBLY, TARGET) as ctx:
            ctx.metadata["outer_calls"] = 3

        assert ctx.success is True
        assert ctx.duration_ms is not None
        assert ctx.as_log_extra()["operation"]["outer_calls"] == 3

    def test_operation_context_failure_reraises(self):
        planner_logger = PlannerLogger()
        with pytest.raises(ConfigurationError):
            with planner_logger.operation_context(OperationType.PLAN_ASSEMBLY, TARGET) as ctx:
                raise ConfigurationError("missing freeze parameters", field="freeze")

        assert ctx.success is False
        assert ctx.error == "missing freeze parameters"

    @pytest.mark.asyncio
    async def test_async_operation_context_failure(self):
        planner_logger = PlannerLogger()
        with pytest.raises(ExternalReadFailure):
            async with planner_logger.async_operation_context(OperationType.CONSTANT_READ, TARGET) as ctx:
                raise ExternalReadFailure("rpc down")

        assert ctx.success is False
        assert ctx.operation_type == OperationType.CONSTANT_READ


class TestSetupLogging:
    def test_configures_package_logger(self):
        package_logger = logging.getLogger("dao_planner")
        saved_handlers, saved_level = list(package_logger.handlers), package_logger.level
        try:
            planner_logger = setup_logging("debug", LoggingConfig(mask_addresses=True))
            assert isinstance(planner_logger, PlannerLogger)
            assert package_logger.level == logging.DEBUG
            assert package_logger.handlers
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            package_logger.handlers = saved_handlers
            package_logger.setLevel(saved_level)

    def test_rejects_unknown_level(self):
        with pytest.raises(ValueError):
            setup_logging("chatty")


class TestExceptionPayloads:
    def test_base_payload(self):
        exc = PlannerException("boom")
        assert exc.to_dict() == {"error": "PLANNER_ERROR", "message": "boom"}

    def test_configuration_error_field(self):
        exc = ConfigurationError("missing", field="freeze")
        assert exc.to_dict() == {
            "error": "CONFIGURATION_ERROR",
            "message": "missing",
            "details": {"field": "freeze"},
        }

    def test_not_yet_predicted_is_configuration_error(self):
        exc = NotYetPredictedError("strategy", "predicted", "payload_ready")
        assert isinstance(exc, ConfigurationError)
        assert exc.error_code == "NOT_YET_PREDICTED"

    def test_unsupported_variant(self):
        exc = UnsupportedVariantError("voting strategy type", "quadratic")
        assert exc.details == {"kind": "voting strategy type", "value": "quadratic"}
        assert "quadratic" in str(exc)
