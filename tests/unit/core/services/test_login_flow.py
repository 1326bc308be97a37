"""Tests for the login pipeline."""

import json
from datetime import datetime, timezone

import pytest

from oidc_bridge.core.exceptions import (
    ConfigurationError,
    IneligibleUserError,
    UserNotFoundError,
)
from oidc_bridge.core.services import (
    AutoProvisioningService,
    GroupSyncService,
    LoginFlowService,
    UserLookupService,
)
from oidc_bridge.core.types import Claims
from oidc_bridge.entities import GroupMappingRepository, IdentityRepository
from oidc_bridge.runtime.config import OpenIdConfigLoader, StaticConfigStore
from oidc_bridge.runtime.config.config_store import OPENID_CONFIG_KEY
from tests.fixtures import FakeAccount, InMemoryAccountStore, InMemoryGroupStore


@pytest.fixture
def system_config() -> dict:
    return {
        "mode": "userid",
        "search-attribute": "sub",
        "auto-provision": {
            "enabled": True,
            "email-claim": "email",
            "display-name-claim": "name",
            "strip-userid-domain": True,
        },
        "group-sync": {"enabled": True},
    }


@pytest.fixture
def store(system_config) -> StaticConfigStore:
    return StaticConfigStore(system={OPENID_CONFIG_KEY: system_config})


@pytest.fixture
def accounts() -> InMemoryAccountStore:
    return InMemoryAccountStore()


@pytest.fixture
def groups() -> InMemoryGroupStore:
    return InMemoryGroupStore("admin", "staff", "students")


@pytest.fixture
def identities(db_session) -> IdentityRepository:
    return IdentityRepository(db_session)


@pytest.fixture
def flow(store, accounts, groups, identities, db_session, fetcher) -> LoginFlowService:
    mappings = GroupMappingRepository(db_session)
    mappings.add_group_mapping("1234-uuid", "staff")
    mappings.add_group_mapping("5678-uuid", "students")
    provisioning = AutoProvisioningService(accounts, groups, fetcher)
    return LoginFlowService(
        config_loader=OpenIdConfigLoader(store),
        accounts=accounts,
        identities=identities,
        lookup=UserLookupService(accounts, identities, provisioning),
        group_sync=GroupSyncService(groups, mappings),
    )


class TestLoginFlow:
    def test_first_login_provisions_and_syncs(self, flow, user_claims, groups):
        result = flow.login(Claims(user_claims))

        assert result.account.uid == "alice"
        assert result.account.enabled
        assert result.account.email == "alice@example.org"
        assert result.added == {"staff", "students"}
        assert groups.get("staff").is_member(result.account)

    def test_second_login_changes_nothing(self, flow, user_claims, groups):
        flow.login(Claims(user_claims))
        operations = groups.operations

        result = flow.login(Claims(user_claims))

        assert result.added == set()
        assert result.removed == set()
        assert groups.operations == operations

    def test_missing_configuration(self, flow, store, user_claims):
        store._system.clear()
        with pytest.raises(ConfigurationError):
            flow.login(Claims(user_claims))

    def test_app_slot_takes_precedence(self, flow, store, system_config, user_claims):
        disabled = {**system_config, "auto-provision": {"enabled": False}}
        store._app[OPENID_CONFIG_KEY] = json.dumps(disabled)

        with pytest.raises(UserNotFoundError):
            flow.login(Claims(user_claims))

    def test_group_sync_disabled_is_skipped(
        self, flow, store, system_config, user_claims, groups
    ):
        system_config["group-sync"] = {"enabled": False}

        result = flow.login(Claims(user_claims))

        assert result.added == set()
        assert groups.operations == 0

    def test_ineligible_user_is_denied(self, flow, system_config, accounts, user_claims):
        system_config["eligible-timestamp-claim"] = "last_active"
        claims = Claims({**user_claims, "last_active": "2001-01-01"})

        with pytest.raises(IneligibleUserError):
            flow.login(claims)
        assert accounts.accounts == {}

    def test_auto_update_refreshes_attributes(
        self, flow, system_config, accounts, user_claims
    ):
        accounts.accounts["alice"] = FakeAccount("alice", email="old@example.org")
        system_config["auto-update"] = {"enabled": True}

        result = flow.login(Claims(user_claims))

        assert result.account.email == "alice@example.org"
        assert result.account.display_name == "Alice Liddell"

    def test_existing_account_is_not_updated_without_auto_update(
        self, flow, accounts, user_claims
    ):
        accounts.accounts["alice"] = FakeAccount("alice", email="old@example.org")

        result = flow.login(Claims(user_claims))

        assert result.account.email == "old@example.org"

    def test_login_records_last_seen(self, flow, identities, accounts, user_claims):
        accounts.accounts["legacy-alice"] = FakeAccount("legacy-alice")
        identities.add_identity(
            "alice@example.org",
            "legacy-alice",
            last_seen=datetime(2020, 1, 1, tzinfo=timezone.utc),
        )
        result = flow.login(Claims({**user_claims, "sub": "alice@example.org"}))

        identity = identities.get_identity_for_external_user("alice@example.org")
        assert identity.last_seen.year > 2020
        assert result.account.uid == "legacy-alice"
