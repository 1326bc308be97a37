"""Tests for resolving external identities to local accounts."""

from unittest.mock import MagicMock

import pytest

from oidc_bridge.core.exceptions import (
    AmbiguousUserError,
    ClaimMissingError,
    ConfigurationError,
    ForbiddenBackendError,
    UserNotFoundError,
)
from oidc_bridge.core.services import AutoProvisioningService, UserLookupService
from oidc_bridge.core.types import Claims
from oidc_bridge.entities import IdentityRepository
from tests.fixtures import FakeAccount, InMemoryAccountStore, build_openid_config


@pytest.fixture
def identities(db_session) -> IdentityRepository:
    return IdentityRepository(db_session)


@pytest.fixture
def accounts() -> InMemoryAccountStore:
    return InMemoryAccountStore(
        FakeAccount("alice", email="alice@example.org"),
        FakeAccount("legacy-bob", email="bob@example.org", backend="LDAP"),
    )


@pytest.fixture
def make_service(accounts, identities, group_store, fetcher):
    def factory(store=None) -> UserLookupService:
        store = store if store is not None else accounts
        provisioning = AutoProvisioningService(store, group_store, fetcher)
        return UserLookupService(store, identities, provisioning)

    return factory


def email_mode(**extra):
    return build_openid_config({"mode": "email", "search-attribute": "email", **extra})


def userid_mode(**extra):
    return build_openid_config({"mode": "userid", "search-attribute": "sub", **extra})


class TestLookupPreconditions:
    def test_missing_configuration(self, make_service):
        with pytest.raises(ConfigurationError):
            make_service().lookup(Claims({"sub": "alice"}), None)

    @pytest.mark.parametrize("config", [email_mode(), userid_mode()])
    def test_missing_identity_claim_never_touches_store(self, make_service, config):
        store = MagicMock()

        with pytest.raises(ClaimMissingError):
            make_service(store).lookup(Claims({"name": "Alice"}), config)

        assert store.method_calls == []


class TestEmailMode:
    def test_single_match(self, make_service, accounts):
        account = make_service().lookup(Claims({"email": "ALICE@example.org"}), email_mode())
        assert account is accounts.accounts["alice"]

    def test_no_match_without_provisioning(self, make_service):
        with pytest.raises(UserNotFoundError):
            make_service().lookup(Claims({"email": "carol@example.org"}), email_mode())

    def test_ambiguous_match(self, make_service, accounts):
        accounts.accounts["alice2"] = FakeAccount("alice2", email="alice@example.org")

        with pytest.raises(AmbiguousUserError):
            make_service().lookup(Claims({"email": "alice@example.org"}), email_mode())

    def test_no_match_provisions(self, make_service, accounts):
        config = email_mode(**{"auto-provision": {"enabled": True}})

        account = make_service().lookup(Claims({"email": "carol@example.org"}), config)

        assert account.email == "carol@example.org"
        assert account.enabled
        assert account.uid in accounts.accounts


class TestUseridMode:
    def test_exact_username(self, make_service, accounts):
        account = make_service().lookup(Claims({"sub": "alice"}), userid_mode())
        assert account is accounts.accounts["alice"]

    def test_strip_domain(self, make_service, accounts):
        config = userid_mode(**{"auto-provision": {"strip-userid-domain": True}})
        account = make_service().lookup(Claims({"sub": "alice@example.org"}), config)
        assert account is accounts.accounts["alice"]

    def test_without_strip_domain_the_full_value_is_the_username(self, make_service):
        with pytest.raises(UserNotFoundError):
            make_service().lookup(Claims({"sub": "alice@example.org"}), userid_mode())

    def test_legacy_identity_mapping(self, make_service, accounts, identities):
        identities.add_identity("bob@idp.example.org", "legacy-bob", nickname="bob")

        account = make_service().lookup(Claims({"sub": "bob@idp.example.org"}), userid_mode())

        assert account is accounts.accounts["legacy-bob"]

    def test_mapping_to_missing_account(self, make_service, identities):
        identities.add_identity("ghost@idp.example.org", "ghost")

        with pytest.raises(UserNotFoundError):
            make_service().lookup(Claims({"sub": "ghost@idp.example.org"}), userid_mode())

    def test_not_found_provisions(self, make_service, accounts):
        config = userid_mode(**{"auto-provision": {"enabled": True}})

        account = make_service().lookup(Claims({"sub": "carol"}), config)

        assert account.uid == "carol"
        assert accounts.accounts["carol"].enabled


class TestBackendValidation:
    def test_allowed_backend(self, make_service):
        config = userid_mode(**{"allowed-user-backends": ["Database"]})
        assert make_service().lookup(Claims({"sub": "alice"}), config).uid == "alice"

    def test_forbidden_backend(self, make_service):
        config = email_mode(**{"allowed-user-backends": ["Database"]})
        with pytest.raises(ForbiddenBackendError):
            make_service().lookup(Claims({"email": "bob@example.org"}), config)

    def test_empty_allow_list_forbids_everything(self, make_service):
        config = userid_mode(**{"allowed-user-backends": []})
        with pytest.raises(ForbiddenBackendError):
            make_service().lookup(Claims({"sub": "alice"}), config)

    @pytest.mark.parametrize(
        "config, claims",
        [
            (userid_mode, {"sub": "carol"}),
            (email_mode, {"email": "carol@example.org"}),
        ],
    )
    def test_provisioned_account_skips_backend_check(
        self, make_service, accounts, config, claims
    ):
        """A new account is returned as created, even outside the allow-list."""
        config = config(
            **{"auto-provision": {"enabled": True}, "allowed-user-backends": ["LDAP"]}
        )

        account = make_service().lookup(Claims(claims), config)

        assert account.backend == "Database"
        assert accounts.accounts[account.uid].enabled

    def test_identity_mapping_account_is_checked(self, make_service, identities):
        identities.add_identity("bob@idp.example.org", "legacy-bob")
        config = userid_mode(**{"allowed-user-backends": ["Database"]})

        with pytest.raises(ForbiddenBackendError):
            make_service().lookup(Claims({"sub": "bob@idp.example.org"}), config)
