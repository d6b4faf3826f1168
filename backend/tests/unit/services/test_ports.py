# tests/unit/services/test_ports.py
from __future__ import annotations

from datetime import UTC, datetime, timedelta

from account_api.services._shared.ports import (
    FrozenClock,
    SecretsRandomSource,
    SequenceRandomSource,
    StubTokenProvider,
    SystemClock,
)
from account_api.services.tokens import AuthTokenConfig
from tests.helpers.clock import NOW


def test_system_clock_is_aware_utc():
    assert SystemClock().now().tzinfo is UTC


def test_frozen_clock_advance_and_set():
    clock = FrozenClock(datetime(2024, 1, 1, 12, 0))  # naive is taken as UTC

    assert clock.now() == NOW
    assert clock.advance(timedelta(minutes=5)) == NOW + timedelta(minutes=5)
    clock.set(NOW)
    assert clock.now() == NOW


def test_secrets_random_source_is_url_safe_and_unique():
    source = SecretsRandomSource()
    tokens = {source.token() for _ in range(50)}

    assert len(tokens) == 50
    assert all(len(t) >= 43 for t in tokens)  # 32 bytes of entropy
    assert all(set(t) <= set("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_") for t in tokens)


def test_sequence_random_source_replays_then_counts():
    source = SequenceRandomSource(["a", "b"], prefix="rt")

    assert [source.token() for _ in range(4)] == ["a", "b", "rt-3", "rt-4"]


def test_stub_token_provider_round_trip():
    provider = StubTokenProvider(now=NOW)

    token = provider.create_access_token(
        identity="abc", additional_claims={"email": "a@example.com"}, expires_delta=timedelta(minutes=1)
    )

    assert provider.get_subject(token) == "abc"
    assert provider.decode(token)["email"] == "a@example.com"
    assert provider.get_expires_at(token) == NOW + timedelta(minutes=1)


def test_auth_token_config_from_mapping():
    cfg = AuthTokenConfig.from_mapping(
        {"JWT_ACCESS_TOKEN_EXPIRES": 300, "REFRESH_TOKEN_TTL_DAYS": "14"}
    )
    assert cfg.access_expires == timedelta(minutes=5)
    assert cfg.refresh_expires == timedelta(days=14)

    defaults = AuthTokenConfig.from_mapping({})
    assert defaults == AuthTokenConfig()
    assert defaults.access_expires == timedelta(minutes=15)
    assert defaults.refresh_expires == timedelta(days=7)
