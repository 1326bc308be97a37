"""Tests for creating local accounts on first login."""

import httpx
import pytest

from oidc_bridge.core.exceptions import (
    AccountCreationError,
    ClaimMissingError,
    ClaimShapeError,
    ProvisioningDisabledError,
    ProvisioningNotAuthorizedError,
)
from oidc_bridge.core.services import AutoProvisioningService, strip_domain
from oidc_bridge.core.types import Claims
from tests.fixtures import FakeAccount, FakeFetcher, build_openid_config


def provisioning_config(mode: str = "userid", **auto_provision):
    return build_openid_config(
        {
            "mode": mode,
            "search-attribute": "sub" if mode == "userid" else "email",
            "auto-provision": {"enabled": True, **auto_provision},
        }
    )


@pytest.fixture
def service(account_store, group_store, fetcher) -> AutoProvisioningService:
    return AutoProvisioningService(account_store, group_store, fetcher)


class TestStripDomain:
    def test_strips_from_first_at(self):
        assert strip_domain("alice@example.org") == "alice"
        assert strip_domain("a@b@c") == "a"

    def test_without_domain(self):
        assert strip_domain("alice") == "alice"


class TestCreateAccount:
    def test_disabled(self, service, account_store):
        config = build_openid_config({"search-attribute": "sub"})

        with pytest.raises(ProvisioningDisabledError):
            service.create_account(Claims({"sub": "alice"}), config)
        assert account_store.accounts == {}

    def test_missing_identity_claim(self, service):
        with pytest.raises(ClaimMissingError):
            service.create_account(Claims({"email": "a@b"}), provisioning_config())

    def test_userid_mode_strips_domain(self, service, account_store):
        config = provisioning_config(**{"strip-userid-domain": True})

        account = service.create_account(Claims({"sub": "alice@example.org"}), config)

        assert account.uid == "alice"
        assert account.enabled
        assert account.email is None
        assert "alice" in account_store.accounts

    def test_userid_mode_with_email_claim(self, service):
        config = provisioning_config(**{"email-claim": "mail"})

        account = service.create_account(
            Claims({"sub": "alice", "mail": "alice@example.org"}), config
        )

        assert account.email == "alice@example.org"

    def test_email_mode_generates_opaque_username(self, service):
        config = provisioning_config(mode="email")

        account = service.create_account(Claims({"email": "alice@example.org"}), config)

        assert account.uid != "alice@example.org"
        assert account.uid.startswith("oidc-user-")
        assert account.email == "alice@example.org"

    def test_display_name_and_initial_groups(self, service, group_store):
        config = provisioning_config(
            **{"display-name-claim": "name", "groups": ["students", "missing"]}
        )

        account = service.create_account(Claims({"sub": "alice", "name": "Alice"}), config)

        assert account.display_name == "Alice"
        assert group_store.get("students").is_member(account)
        assert not group_store.exists("missing")

    def test_display_name_falls_back_to_auto_update(self, service):
        config = build_openid_config(
            {
                "search-attribute": "sub",
                "auto-provision": {"enabled": True},
                "auto-update": {"display-name-claim": "cn"},
            }
        )
        account = service.create_account(Claims({"sub": "alice", "cn": "A. L."}), config)
        assert account.display_name == "A. L."

    def test_provisioning_claim_grants(self, service):
        config = provisioning_config(
            **{"provisioning-claim": "cohorts", "provisioning-attribute": "staff"}
        )
        claims = Claims({"sub": "alice", "cohorts": ["students", "staff"]})

        assert service.create_account(claims, config).uid == "alice"

    @pytest.mark.parametrize(
        "cohorts",
        [["students"], "staff", None],
        ids=["without-attribute", "not-a-list", "absent"],
    )
    def test_provisioning_claim_denies(self, service, account_store, cohorts):
        config = provisioning_config(
            **{"provisioning-claim": "cohorts", "provisioning-attribute": "staff"}
        )

        with pytest.raises(ProvisioningNotAuthorizedError):
            service.create_account(Claims({"sub": "alice", "cohorts": cohorts}), config)
        assert account_store.accounts == {}

    def test_creation_rejected(self, service, account_store):
        account_store.accounts["alice"] = FakeAccount("alice")

        with pytest.raises(AccountCreationError):
            service.create_account(Claims({"sub": "alice"}), provisioning_config())

    def test_store_error_becomes_creation_error(self, service, account_store, monkeypatch):
        def explode(username, secret):
            raise RuntimeError("backend down")

        monkeypatch.setattr(account_store, "create", explode)
        with pytest.raises(AccountCreationError):
            service.create_account(Claims({"sub": "alice"}), provisioning_config())

    def test_avatar_is_downloaded(self, service, fetcher):
        config = provisioning_config(**{"picture-claim": "picture"})

        account = service.create_account(
            Claims({"sub": "alice", "picture": "https://img.test/a.png"}), config
        )

        assert fetcher.requested == ["https://img.test/a.png"]
        assert account.avatar == fetcher.content

    def test_avatar_failure_still_returns_account(self, account_store, group_store):
        fetcher = FakeFetcher(error=httpx.ConnectError("unreachable"))
        service = AutoProvisioningService(account_store, group_store, fetcher)
        config = provisioning_config(**{"picture-claim": "picture"})

        account = service.create_account(
            Claims({"sub": "alice", "picture": "https://img.test/a.png"}), config
        )

        assert account.uid == "alice"
        assert account.enabled
        assert account.avatar is None

    def test_malformed_display_name_creates_nothing(self, service, account_store):
        config = provisioning_config(**{"display-name-claim": "name"})

        with pytest.raises(ClaimShapeError):
            service.create_account(Claims({"sub": "alice", "name": ["A", "B"]}), config)
        assert account_store.accounts == {}
