"""
Deployment slots shared by every module builder.

A slot is one proxy clone the plan will deploy through the module proxy
factory. It moves through a fixed set of states and each accessor checks the
state it needs:

    UNINITIALIZED -> PAYLOAD_READY -> PREDICTED -> CONFIGURED

The initializer and the predicted address are write-once.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from ..abi import DEPLOY_MODULE, encode_call
from ..exceptions import ConfigurationError, NotYetPredictedError
from ..models import AtomicCall
from ..prediction import AddressPredictor

logger = logging.getLogger(__name__)


class SlotState(str, Enum):
    """Readiness of a deployment slot."""
    UNINITIALIZED = "uninitialized"
    PAYLOAD_READY = "payload_ready"
    PREDICTED = "predicted"
    CONFIGURED = "configured"


_STATE_ORDER = {
    SlotState.UNINITIALIZED: 0,
    SlotState.PAYLOAD_READY: 1,
    SlotState.PREDICTED: 2,
    SlotState.CONFIGURED: 3,
}


class ModuleSlot:
    """One clone deployment: template, initializer, nonce and predicted address."""

    def __init__(
        self,
        name: str,
        predictor: AddressPredictor,
        template: str,
        nonce: int,
    ):
        self.name = name
        self.template = template
        self.nonce = nonce
        self._predictor = predictor
        self._state = SlotState.UNINITIALIZED
        self._initializer: Optional[bytes] = None
        self._address: Optional[str] = None

    def __repr__(self) -> str:
        return f"ModuleSlot({self.name!r}, state={self._state.value})"

    @property
    def state(self) -> SlotState:
        return self._state

    def is_at_least(self, state: SlotState) -> bool:
        return _STATE_ORDER[self._state] >= _STATE_ORDER[state]

    def _require(self, state: SlotState) -> None:
        if not self.is_at_least(state):
            raise NotYetPredictedError(
                slot=self.name,
                required_state=state.value,
                current_state=self._state.value,
            )

    def set_initializer(self, initializer: bytes) -> None:
        if self._state is not SlotState.UNINITIALIZED:
            raise ConfigurationError(
                f"Initializer for '{self.name}' is already set",
                field=self.name,
            )
        self._initializer = bytes(initializer)
        self._state = SlotState.PAYLOAD_READY

    def predict(self) -> str:
        """Compute (once) and return the predicted clone address."""
        self._require(SlotState.PAYLOAD_READY)
        if self._address is None:
            self._address = self._predictor.predict(self.template, self._initializer, self.nonce)
            self._state = SlotState.PREDICTED
            logger.debug(f"Predicted {self.name} at {self._address}")
        return self._address

    def prepare(self, initializer: bytes) -> str:
        """Set the initializer and predict in one step."""
        self.set_initializer(initializer)
        return self.predict()

    def mark_configured(self) -> None:
        self._require(SlotState.PREDICTED)
        self._state = SlotState.CONFIGURED

    @property
    def initializer(self) -> bytes:
        self._require(SlotState.PAYLOAD_READY)
        return self._initializer

    @property
    def address(self) -> str:
        self._require(SlotState.PREDICTED)
        return self._address

    def deployment_call(self) -> AtomicCall:
        """factory.deployModule(template, initializer, nonce)."""
        self._require(SlotState.PAYLOAD_READY)
        return AtomicCall(
            to=self._predictor.factory,
            data=encode_call(DEPLOY_MODULE, [self.template, self._initializer, self.nonce]),
        )


class ModuleBuilder:
    """Base for builders that own a single deployment slot."""

    slot_name = "module"

    def __init__(self, predictor: AddressPredictor, template: str, nonce: int):
        self._slot = ModuleSlot(self.slot_name, predictor, template, nonce)

    @property
    def slot(self) -> ModuleSlot:
        return self._slot

    @property
    def address(self) -> str:
        """Predicted address; raises NotYetPredictedError before prediction."""
        return self._slot.address

    @property
    def initializer(self) -> bytes:
        return self._slot.initializer

    def build_deployment_call(self) -> AtomicCall:
        return self._slot.deployment_call()


__all__ = ["SlotState", "ModuleSlot", "ModuleBuilder"]
