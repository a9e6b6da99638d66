"""
Structured logging for deployment planning.

Features:
- Timed operations (plan assembly, constant reads)
- Per-call log entries as calls are appended to a batch
- Plan summaries
- Optional address masking

The logger holds no per-plan state; call labels live on the plan itself.
"""
from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager, contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence

from .config import LoggingConfig
from .models import AtomicCall

logger = logging.getLogger(__name__)


class OperationType(str, Enum):
    """Types of planning operations."""
    PLAN_ASSEMBLY = "plan_assembly"
    CONSTANT_READ = "constant_read"


@dataclass
class OperationContext:
    """A timed planning operation; ``metadata`` is filled in by the caller."""
    operation_type: OperationType
    subject: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    success: bool = False
    error: Optional[str] = None
    duration_ms: Optional[float] = None
    _started: float = field(default_factory=time.monotonic, repr=False)

    def finish(self, error: Optional[BaseException] = None) -> None:
        self.duration_ms = (time.monotonic() - self._started) * 1000
        self.success = error is None
        self.error = str(error) if error is not None else None

    def as_log_extra(self) -> Dict[str, Any]:
        entry = {"type": self.operation_type.value, "subject": self.subject, **self.metadata}
        if self.duration_ms is not None:
            entry["duration_ms"] = round(self.duration_ms, 1)
        if self.error:
            entry["error"] = self.error
        return {"operation": entry}


def mask_address(address: str) -> str:
    """Mask middle portion of address for privacy."""
    if len(address) < 10:
        return address
    return f"{address[:6]}...{address[-4:]}"


class PlannerLogger:
    """
    Structured logger for plan construction.

    Safe to share between concurrent plans: every per-plan value is passed in
    by the caller.
    """

    def __init__(
        self,
        name: str = "dao_planner",
        config: Optional[LoggingConfig] = None,
    ):
        self._logger = logging.getLogger(name)
        self._config = config or LoggingConfig()

    def _get_level(self, level_str: str) -> int:
        """Convert level string to logging level."""
        return getattr(logging, level_str.upper(), logging.INFO)

    def _fmt_address(self, address: str) -> str:
        return mask_address(address) if self._config.mask_addresses else address

    def _start(self, operation_type: OperationType, subject: str, metadata: dict) -> OperationContext:
        ctx = OperationContext(operation_type=operation_type, subject=subject, metadata=metadata)
        self._logger.debug(f"Starting {operation_type.value} for {subject}", extra=ctx.as_log_extra())
        return ctx

    def _finish(self, ctx: OperationContext, level: str) -> None:
        self._logger.log(
            self._get_level(level) if ctx.success else logging.ERROR,
            f"Completed {ctx.operation_type.value} for {ctx.subject} in {ctx.duration_ms:.0f}ms "
            f"(success={ctx.success})",
            extra=ctx.as_log_extra(),
        )

    @contextmanager
    def operation_context(self, operation_type: OperationType, subject: str, **metadata):
        """
        Context manager for tracking a synchronous operation.

        Usage:
            with planner_logger.operation_context(OperationType.PLAN_ASSEMBLY, safe) as ctx:
                ctx.metadata["outer_calls"] = len(calls)
        """
        ctx = self._start(operation_type, subject, metadata)
        try:
            yield ctx
            ctx.finish()
        except Exception as e:
            ctx.finish(e)
            raise
        finally:
            self._finish(ctx, self._config.plan_level)

    @asynccontextmanager
    async def async_operation_context(self, operation_type: OperationType, subject: str, **metadata):
        """Async variant of operation_context, used around network reads."""
        ctx = self._start(operation_type, subject, metadata)
        try:
            yield ctx
            ctx.finish()
        except Exception as e:
            ctx.finish(e)
            raise
        finally:
            self._finish(ctx, self._config.read_level)

    def log_call(self, batch: str, index: int, label: str, call: AtomicCall) -> None:
        """Log the call appended at position ``index`` of ``batch``."""
        self._logger.log(
            self._get_level(self._config.call_level),
            f"[{batch}#{index}] {label} -> {self._fmt_address(call.to)} "
            f"(op={int(call.operation)}, {len(call.data)} bytes)",
        )

    def log_prediction(self, role: str, address: str) -> None:
        self._logger.debug(f"Predicted {role} at {self._fmt_address(address)}")

    def log_plan_summary(
        self,
        safe_address: str,
        outer_labels: Sequence[str],
        inner_labels: Sequence[str],
        predicted: Dict[str, str],
    ) -> None:
        """Log the final shape of a plan."""
        self._logger.log(
            self._get_level(self._config.plan_level),
            f"Plan for {self._fmt_address(safe_address)}: "
            f"{len(outer_labels)} outer calls, {len(inner_labels)} inner calls",
            extra={
                "plan": {
                    "outer": list(outer_labels),
                    "inner": list(inner_labels),
                    "predicted": {k: self._fmt_address(v) for k, v in predicted.items()},
                }
            },
        )


def setup_logging(level: str = "INFO", config: Optional[LoggingConfig] = None) -> PlannerLogger:
    """
    Configure the "dao_planner" logger hierarchy for command-line use.

    Per-call entries are emitted at ``config.call_level`` and only show up
    when ``level`` is at least as verbose. Returns a PlannerLogger bound to
    the same config.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    root = logging.getLogger("dao_planner")
    root.setLevel(numeric_level)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s"))
        root.addHandler(handler)

    # One eth_call per plan; transport chatter is noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return PlannerLogger(config=config)


__all__ = [
    "OperationType",
    "OperationContext",
    "PlannerLogger",
    "mask_address",
    "setup_logging",
]
