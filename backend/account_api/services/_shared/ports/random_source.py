from __future__ import annotations

import secrets
from collections.abc import Iterable, Iterator
from typing import Protocol

#: Bytes of entropy per generated token (256 bits).
TOKEN_BYTES = 32


class RandomSource(Protocol):
    """Port for generating opaque, URL-safe token strings."""

    def token(self) -> str: ...


class SecretsRandomSource(RandomSource):
    """Cryptographically secure tokens from :mod:`secrets`."""

    def __init__(self, nbytes: int = TOKEN_BYTES) -> None:
        self.nbytes = nbytes

    def token(self) -> str:
        return secrets.token_urlsafe(self.nbytes)


class SequenceRandomSource(RandomSource):
    """
    Replays a fixed sequence of tokens, then falls back to ``prefix-N``.

    Used by tests that need to know token strings in advance.
    """

    def __init__(self, values: Iterable[str] = (), *, prefix: str = "tok") -> None:
        self._values: Iterator[str] = iter(values)
        self._prefix = prefix
        self._seq = 0

    def token(self) -> str:
        self._seq += 1
        return next(self._values, f"{self._prefix}-{self._seq}")
