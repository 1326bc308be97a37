"""Tests for the legacy identity mapping repository."""

from datetime import datetime, timezone

import pytest

from oidc_bridge.entities import IdentityRepository


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def repository(db_session) -> IdentityRepository:
    return IdentityRepository(db_session)


class TestIdentityRepository:
    def test_add_and_lookup(self, repository):
        repository.add_identity("ext-1", "alice", nickname="Ally")

        assert repository.get_local_user_id("ext-1") == "alice"
        assert repository.get_identity_for_local_user("alice").oidc_userid == "ext-1"
        assert repository.get_local_user_id("ext-2") is None
        assert repository.get_local_user_id(None) is None

    def test_duplicate_external_id(self, repository):
        repository.add_identity("ext-1", "alice")

        assert repository.add_identity("ext-1", "bob") is None
        assert repository.get_local_user_id("ext-1") == "alice"

    def test_empty_external_id(self, repository):
        assert repository.add_identity("", "alice") is None

    def test_multiple_identities_for_local_user(self, repository):
        repository.add_identity("ext-1", "alice")
        repository.add_identity("ext-2", "alice")

        assert repository.get_identity_for_local_user("alice") is None

    def test_find_by_nickname_ignores_case(self, repository):
        repository.add_identity("ext-1", "alice", nickname="Ally")
        repository.add_identity("ext-2", "bob", nickname="Bobby")

        found = repository.find_identities("ally")

        assert [i.local_userid for i in found] == ["alice"]
        assert len(repository.all_identities()) == 2

    def test_find_expired(self, repository):
        repository.add_identity("ext-1", "alice", last_seen=utc(2020, 1, 1))
        repository.add_identity("ext-2", "alice", last_seen=utc(2025, 1, 1))
        repository.add_identity("ext-3", "bob", last_seen=utc(2020, 6, 1))
        repository.add_identity("ext-4", "carol", last_seen=utc(2024, 1, 1))

        assert repository.find_expired(utc(2024, 1, 1)) == ["bob", "carol"]

    def test_touch(self, repository):
        repository.add_identity("ext-1", "alice", last_seen=utc(2020, 1, 1))

        assert repository.touch("ext-1", when=utc(2025, 5, 5))
        assert not repository.touch("ext-2")
        identity = repository.get_identity_for_external_user("ext-1")
        assert identity.last_seen.replace(tzinfo=None) == datetime(2025, 5, 5)
