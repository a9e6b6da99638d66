"""Salt nonce sources for deployment slots."""

from __future__ import annotations

import random
import secrets
from typing import Protocol


class EntropySource(Protocol):
    """Yields one 256-bit nonce per deployment slot."""

    def next_nonce(self) -> int:
        ...


class SecureEntropy:
    """Cryptographic nonces for production plans."""

    def next_nonce(self) -> int:
        return secrets.randbits(256)


class SeededEntropy:
    """Reproducible nonces for tests and dry runs. Not for production."""

    def __init__(self, seed: int = 0):
        self._rng = random.Random(seed)

    def next_nonce(self) -> int:
        return self._rng.getrandbits(256)


__all__ = ["EntropySource", "SecureEntropy", "SeededEntropy"]
