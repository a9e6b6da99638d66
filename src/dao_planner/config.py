"""
Configuration for dao-planner.

Provides:
- Deployment constants (template contracts, factories, relay) per chain
- RPC endpoint used for the single on-chain constant read
- Logging configuration

Values load from environment variables with prefix DAO_PLANNER_, nested
fields separated by a double underscore, e.g.
DAO_PLANNER_CONTRACTS__ZODIAC_MODULE_PROXY_FACTORY=0x...
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from eth_utils import is_address, to_checksum_address
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from .exceptions import MissingTemplateError

logger = logging.getLogger(__name__)


class ContractAddresses(BaseModel):
    """Organization-wide deployment constants. Never mutated after load."""

    # Factories and relays
    zodiac_module_proxy_factory: Optional[str] = None
    multisend_call_only: Optional[str] = None
    key_value_pairs: Optional[str] = None
    safe_proxy_factory: Optional[str] = None
    safe_singleton: Optional[str] = None
    safe_fallback_handler: Optional[str] = None

    # Governance templates
    azorius_master_copy: Optional[str] = None
    linear_voting_erc20_master_copy: Optional[str] = None
    linear_voting_erc721_master_copy: Optional[str] = None
    votes_erc20_master_copy: Optional[str] = None
    votes_erc20_lockable_master_copy: Optional[str] = None
    claim_erc20_master_copy: Optional[str] = None

    # Sub-organization templates
    fractal_module_master_copy: Optional[str] = None
    freeze_guard_azorius_master_copy: Optional[str] = None
    freeze_guard_multisig_master_copy: Optional[str] = None
    freeze_voting_erc20_master_copy: Optional[str] = None
    freeze_voting_erc721_master_copy: Optional[str] = None
    freeze_voting_multisig_master_copy: Optional[str] = None

    model_config = {"frozen": True}

    @field_validator("*", mode="before")
    @classmethod
    def checksum_address(cls, v):
        """Reject malformed addresses and normalise to checksum form."""
        if v is None or v == "":
            return None
        if not is_address(v):
            raise ValueError(f"Invalid address: {v}")
        return to_checksum_address(v)

    def require(self, name: str) -> str:
        """Return the configured address for ``name`` or raise MissingTemplateError."""
        value = getattr(self, name)
        if not value:
            raise MissingTemplateError(name)
        return value


@dataclass
class LoggingConfig:
    """Configuration for planner logging."""
    # Log levels for different operations
    call_level: str = "DEBUG"
    plan_level: str = "INFO"
    read_level: str = "INFO"

    # Partial masking of addresses in log output
    mask_addresses: bool = False


class PlannerSettings(BaseSettings):
    """Main planner configuration."""

    contracts: ContractAddresses = Field(default_factory=ContractAddresses)

    # JSON-RPC endpoint for the quorum denominator read
    rpc_url: str = "https://sepolia.base.org"
    rpc_timeout_seconds: float = 30.0

    # SafeProxyFactory.proxyCreationCode(), hex; only needed when the planner creates the Safe
    safe_proxy_creation_code: str = ""

    mask_addresses_in_logs: bool = False

    class Config:
        env_prefix = "DAO_PLANNER_"
        env_nested_delimiter = "__"
        env_file = ".env"
        extra = "ignore"

    @field_validator("rpc_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("rpc_timeout_seconds must be positive")
        return v

    @field_validator("safe_proxy_creation_code")
    @classmethod
    def validate_creation_code(cls, v: str) -> str:
        code = v[2:] if v.startswith("0x") else v
        try:
            bytes.fromhex(code)
        except ValueError:
            raise ValueError("safe_proxy_creation_code must be hex") from None
        return code

    @property
    def proxy_creation_code(self) -> bytes:
        return bytes.fromhex(self.safe_proxy_creation_code)

    @property
    def logging(self) -> LoggingConfig:
        return LoggingConfig(mask_addresses=self.mask_addresses_in_logs)


@lru_cache
def load_settings(env_file: str | None = None) -> PlannerSettings:
    """Load PlannerSettings once per process."""
    env_path = Path(env_file) if env_file else None
    settings = PlannerSettings(_env_file=env_path)
    logger.debug(f"Loaded planner settings (rpc_url={settings.rpc_url})")
    return settings


__all__ = [
    "ContractAddresses",
    "LoggingConfig",
    "PlannerSettings",
    "load_settings",
]
