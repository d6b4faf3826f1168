"""
account_api.services._shared.ports
==================================

Collection of *ports* (hexagonal interfaces) that the token services depend
on, together with deterministic doubles used by the test-suite.

Modules
-------
- :mod:`token_provider`:
    Defines :class:`~.TokenProvider`: abstraction for signed access tokens.

- :mod:`clock`:
    Defines :class:`~.Clock`: the only source of "now" for ledger writes.

- :mod:`random_source`:
    Defines :class:`~.RandomSource`: generator for opaque token strings.

Design Notes
------------
Concrete adapters live under ``account_api.infra`` (JWT) or next to the port
when they only wrap the standard library (system clock, ``secrets``).
"""

from __future__ import annotations

from .clock import Clock, FrozenClock, SystemClock
from .random_source import RandomSource, SecretsRandomSource, SequenceRandomSource
from .token_provider import StubTokenProvider, TokenProvider

__all__ = [
    "Clock",
    "FrozenClock",
    "SystemClock",
    "RandomSource",
    "SecretsRandomSource",
    "SequenceRandomSource",
    "StubTokenProvider",
    "TokenProvider",
]
