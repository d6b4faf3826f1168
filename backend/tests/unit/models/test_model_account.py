"""Tests for the Account model."""

from __future__ import annotations

import pytest
from account_api.models.account import Account, AuthProvider
from sqlalchemy.exc import IntegrityError


class TestAccount:
    def test_password_hashing(self, session):
        a = Account(email="Test@Example.com")
        a.password = "secret123"
        session.add(a)
        session.commit()
        assert a.verify_password("secret123") is True
        assert a.verify_password("wrong") is False

    def test_password_is_write_only(self):
        a = Account(email="a@example.com")
        a.password = "x"
        with pytest.raises(AttributeError):
            _ = a.password

    def test_empty_password_rejected(self):
        a = Account(email="a@example.com")
        with pytest.raises(ValueError):
            a.password = ""

    def test_account_without_password_never_verifies(self):
        a = Account(email="oauth@example.com", provider=AuthProvider.GOOGLE)
        assert a.verify_password("") is False
        assert a.verify_password("anything") is False

    def test_defaults_after_insert(self, session):
        a = Account(email="defaults@example.com")
        a.password = "pw"
        session.add(a)
        session.commit()
        assert a.id is not None
        assert a.provider is AuthProvider.LOCAL
        assert a.is_active is True
        assert a.created_at.tzinfo is not None

    def test_email_normalized_and_unique_per_provider(self, session):
        a1 = Account(email="  Alice@Example.com ")
        a1.password = "pw"
        session.add(a1)
        session.commit()
        assert a1.email == "alice@example.com"

        a2 = Account(email="alice@example.com")
        a2.password = "pw"
        session.add(a2)
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()

    def test_same_email_allowed_across_providers(self, session):
        local = Account(email="shared@example.com")
        local.password = "pw"
        linked = Account(
            email="shared@example.com", provider=AuthProvider.GITHUB, provider_user_id="gh-1"
        )
        session.add_all([local, linked])
        session.commit()
        assert local.id != linked.id

    def test_provider_identity_unique(self, session):
        session.add(Account(email="x1@example.com", provider=AuthProvider.GOOGLE, provider_user_id="g-1"))
        session.commit()

        session.add(Account(email="x2@example.com", provider=AuthProvider.GOOGLE, provider_user_id="g-1"))
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()

    def test_basic_validations(self):
        with pytest.raises(ValueError):
            Account(email="")
        with pytest.raises(ValueError):
            Account(email="not-an-email")
