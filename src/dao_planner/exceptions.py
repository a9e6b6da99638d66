"""Exception hierarchy for dao-planner.

All planner exceptions inherit from PlannerException, which carries:
- error_code: Machine-readable error code (e.g., "CONFIGURATION_ERROR")
- message: Human-readable error message
- details: Optional additional context dictionary
- to_dict(): Convert to a structured error payload

Planning failures are never recovered inside the planner. A ConfigurationError
means the plan was assembled in the wrong order or with missing inputs; an
ExternalReadFailure means the single on-chain read failed and the caller may
rebuild the whole plan from scratch.
"""
from __future__ import annotations

from typing import Any, Optional


class PlannerException(Exception):
    """Base exception for all planner errors."""

    error_code: str = "PLANNER_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a structured error payload."""
        result = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(PlannerException):
    """A required address or parameter is missing, or a builder was used out of order."""

    error_code = "CONFIGURATION_ERROR"

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details=details)


class NotYetPredictedError(ConfigurationError):
    """A deployment slot was read before reaching the required state."""

    error_code = "NOT_YET_PREDICTED"

    def __init__(
        self,
        slot: str,
        required_state: str,
        current_state: str,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["slot"] = slot
        details["required_state"] = required_state
        details["current_state"] = current_state
        super().__init__(
            f"Slot '{slot}' is {current_state}, needs to be {required_state}",
            details=details,
        )


class MissingTemplateError(ConfigurationError):
    """A template contract address required by the chosen branch is not configured."""

    error_code = "TEMPLATE_NOT_CONFIGURED"

    def __init__(self, template: str, details: Optional[dict[str, Any]] = None) -> None:
        details = details or {}
        details["template"] = template
        super().__init__(f"Template address '{template}' is not configured", details=details)


class OverAllocationError(ConfigurationError):
    """Token allocations add up to more than the token supply."""

    error_code = "OVER_ALLOCATION"

    def __init__(
        self,
        total_supply: int,
        allocated: int,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["total_supply"] = str(total_supply)
        details["allocated"] = str(allocated)
        super().__init__(
            f"Token allocations ({allocated}) exceed total supply ({total_supply})",
            details=details,
        )


# =============================================================================
# External Read Errors
# =============================================================================

class ExternalReadFailure(PlannerException):
    """The on-chain constant read failed."""

    error_code = "EXTERNAL_READ_FAILURE"

    def __init__(
        self,
        message: str,
        contract: Optional[str] = None,
        function: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if contract:
            details["contract"] = contract
        if function:
            details["function"] = function
        super().__init__(message, details=details)


# =============================================================================
# Variant Errors
# =============================================================================

class UnsupportedVariantError(PlannerException):
    """An organization descriptor names a strategy or freeze kind the planner cannot build."""

    error_code = "UNSUPPORTED_VARIANT"

    def __init__(
        self,
        kind: str,
        value: Any,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["kind"] = kind
        details["value"] = str(value)
        super().__init__(f"Unsupported {kind}: {value}", details=details)


__all__ = [
    "PlannerException",
    "ConfigurationError",
    "NotYetPredictedError",
    "MissingTemplateError",
    "OverAllocationError",
    "ExternalReadFailure",
    "UnsupportedVariantError",
]
