"""Tests for the administration CLI."""

import json
from datetime import datetime, timezone

import pytest
from typer.testing import CliRunner

from oidc_bridge.cli import app
from oidc_bridge.cli.context import CliState
from oidc_bridge.entities import (
    AppValueRepository,
    GroupMappingRepository,
    IdentityRepository,
    SqlGroupStore,
)
from oidc_bridge.runtime.config.config_store import OPENID_CONFIG_KEY

runner = CliRunner()


@pytest.fixture
def invoke(config_data, database_service):
    state = CliState(config=config_data, database_service=database_service)

    def run(*args: str):
        return runner.invoke(app, list(args), obj=state)

    return run


class TestGroupCommands:
    def test_link_existing_group(self, invoke, db_session):
        SqlGroupStore(db_session).create("staff")

        result = invoke("groups", "link", "1234-uuid", "staff")

        assert result.exit_code == 0
        assert "Successfully linked" in result.stdout
        assert GroupMappingRepository(db_session).get_group_id("1234-uuid") == "staff"

    def test_link_missing_group(self, invoke, db_session):
        result = invoke("groups", "link", "1234-uuid", "staff")

        assert result.exit_code == 1
        assert "does not exist" in result.stdout
        assert GroupMappingRepository(db_session).get("1234-uuid") is None

    def test_link_creates_missing_group(self, invoke, db_session):
        result = invoke("groups", "link", "1234-uuid", "staff", "--create-missing")

        assert result.exit_code == 0
        assert SqlGroupStore(db_session).exists("staff")

    def test_link_twice(self, invoke):
        invoke("groups", "link", "1234-uuid", "staff", "--create-missing")

        result = invoke("groups", "link", "1234-uuid", "admin", "--create-missing")

        assert result.exit_code == 1
        assert "already linked" in result.stdout

    def test_unlink(self, invoke, db_session):
        invoke("groups", "link", "1234-uuid", "staff", "--create-missing")

        result = invoke("groups", "unlink", "1234-uuid")

        assert result.exit_code == 0
        assert "Successfully unlinked" in result.stdout
        assert GroupMappingRepository(db_session).get("1234-uuid") is None

        result = invoke("groups", "unlink", "1234-uuid")
        assert result.exit_code == 1

    def test_list(self, invoke):
        assert "No external groups are linked" in invoke("groups", "list").stdout

        invoke("groups", "link", "1234-uuid", "staff", "--create-missing")
        invoke("groups", "link", "5678-uuid", "staff")
        result = invoke("groups", "list", "--limit", "1")

        assert result.exit_code == 0
        assert "1234-uuid" in result.stdout
        assert "5678-uuid" not in result.stdout
        assert "Found 1 links" in result.stdout


class TestIdentityCommands:
    @pytest.fixture(autouse=True)
    def identities(self, db_session):
        repository = IdentityRepository(db_session)
        repository.add_identity(
            "ext-alice",
            "alice",
            nickname="Ally",
            last_seen=datetime(2020, 1, 1, tzinfo=timezone.utc),
        )
        repository.add_identity("ext-bob", "bob")

    def test_list(self, invoke):
        result = invoke("identities", "list")

        assert result.exit_code == 0
        assert "ext-alice" in result.stdout
        assert "ext-bob" in result.stdout
        assert "Found 2 identities" in result.stdout

    def test_list_by_nickname(self, invoke):
        result = invoke("identities", "list", "-n", "ally")

        assert "ext-alice" in result.stdout
        assert "ext-bob" not in result.stdout

    def test_expired(self, invoke):
        result = invoke("identities", "expired", "--before", "2021-01-01")

        assert result.exit_code == 0
        assert "alice" in result.stdout
        assert "bob" not in result.stdout
        assert "Found 1 expired accounts" in result.stdout

    def test_expired_unparseable_date(self, invoke):
        result = invoke("identities", "expired", "--before", "someday")

        assert result.exit_code == 1
        assert "Cannot parse date" in result.stdout


class TestConfigCommands:
    def test_set_get_delete(self, invoke, config_data, db_session):
        result = invoke("config", "set", json.dumps({"mode": "email"}))
        assert result.exit_code == 0

        stored = AppValueRepository(db_session).get_value(
            config_data.app.app_id, OPENID_CONFIG_KEY
        )
        assert json.loads(stored) == {"mode": "email"}
        assert '"mode": "email"' in invoke("config", "get").stdout

        assert invoke("config", "delete").exit_code == 0
        assert "No OpenID configuration is stored" in invoke("config", "get").stdout

    @pytest.mark.parametrize(
        "value", ["{broken", "[1, 2]", json.dumps({"auto-provision": "yes"})]
    )
    def test_set_rejects_invalid_values(self, invoke, value):
        result = invoke("config", "set", value)

        assert result.exit_code == 1
        assert "No OpenID configuration is stored" in invoke("config", "get").stdout
