"""Reconciliation of local group membership against entitlement claims.

Entitlements arrive as URNs shaped ``urn:<namespace>:<realm>:group:<uuid>``,
optionally followed by RFC 8141 components (``?=...``, ``#...``). Only URNs
in the configured namespace and realm are considered; the group UUID is
translated to a local group through the external group mapping table.

Reconciliation runs in two phases. ``decide`` computes the memberships to add
and remove without touching any store; ``GroupSyncService.apply`` performs
them. Protected groups are never added or removed by either phase.
"""

from collections.abc import Collection, Mapping
from dataclasses import dataclass, field
from typing import Protocol

from loguru import logger

from oidc_bridge.core.exceptions import (
    ClaimShapeError,
    ConfigurationError,
    GroupSyncDisabledError,
    LoginError,
    UrnParseError,
)
from oidc_bridge.core.interfaces import Account, GroupStore
from oidc_bridge.core.types.claims import Claims
from oidc_bridge.core.urn import parse_claim_urn
from oidc_bridge.entities.group_mapping import GroupMappingRepository
from oidc_bridge.runtime.config.config_data import GroupSyncConfig, OpenIdConfig

GROUP_PREFIX = "group:"


class GroupDirectory(Protocol):
    """Read-only view of group mappings and local groups."""

    def local_group_id(self, group_uuid: str) -> str | None: ...

    def group_exists(self, gid: str) -> bool: ...


@dataclass(frozen=True)
class StaticGroupDirectory:
    """Group directory backed by plain collections."""

    mappings: Mapping[str, str] = field(default_factory=dict)
    groups: Collection[str] = field(default_factory=frozenset)

    def local_group_id(self, group_uuid: str) -> str | None:
        return self.mappings.get(group_uuid)

    def group_exists(self, gid: str) -> bool:
        return gid in self.groups


class StoreGroupDirectory:
    """Group directory backed by the mapping table and the host group store."""

    def __init__(self, mappings: GroupMappingRepository, groups: GroupStore):
        self._mappings = mappings
        self._groups = groups

    def local_group_id(self, group_uuid: str) -> str | None:
        return self._mappings.get_group_id(group_uuid)

    def group_exists(self, gid: str) -> bool:
        return self._groups.exists(gid)


@dataclass(frozen=True)
class GroupChanges:
    """Outcome of the decision phase, in claim order."""

    to_add: tuple[str, ...] = ()
    to_remove: tuple[str, ...] = ()
    external_groups: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.to_add and not self.to_remove


@dataclass
class GroupSyncResult:
    added: set[str] = field(default_factory=set)
    removed: set[str] = field(default_factory=set)


def group_urns(claims: Claims, config: GroupSyncConfig) -> list[str]:
    """Return the entitlement URNs carried by ``claims``.

    Raises:
        ConfigurationError: when no groups claim is configured, or the claim
            is absent or not a list.
    """
    claim = config.groups_claim
    if not claim:
        raise ConfigurationError("Groups claim must be configured for group sync.")
    try:
        urns = claims.get_list(claim)
    except ClaimShapeError as e:
        raise ConfigurationError(f"Groups claim {claim} is not a list.") from e
    if urns is None:
        raise ConfigurationError(f"Groups claim {claim} is missing from the user info.")
    return urns


def extract_group_uuid(raw: str, config: GroupSyncConfig) -> str | None:
    """Return the external group UUID of one entitlement, or None to skip it."""
    try:
        urn = parse_claim_urn(raw)
    except UrnParseError as e:
        logger.warning("{} is not a valid RFC8141 URN: {}", raw, e)
        return None

    realm_prefix = f"{config.groups_realm}:"
    nss = urn.namespace_specific_string
    if urn.namespace.lower() != config.groups_namespace.lower() or not nss.startswith(
        realm_prefix
    ):
        logger.debug("Skipping group {}:{}", urn.namespace, nss)
        return None

    attribute = nss[len(realm_prefix):]
    if not attribute.startswith(GROUP_PREFIX):
        logger.debug("Skipping non-group entitlement {}", raw)
        return None

    group_uuid = attribute[len(GROUP_PREFIX):]
    if not group_uuid:
        logger.warning("Entitlement {} carries an empty group UUID. Skipping...", raw)
        return None

    logger.debug("Parsed group data: (NS: {} NSS: {})", urn.namespace, group_uuid)
    return group_uuid


def decide(
    claims: Claims,
    current_memberships: Collection[str],
    config: GroupSyncConfig,
    directory: GroupDirectory,
) -> GroupChanges:
    """Compute membership changes for one account. Performs no writes."""
    protected = set(config.protected_groups)
    current = set(current_memberships)

    external: list[str] = []
    to_add: list[str] = []
    for raw in group_urns(claims, config):
        group_uuid = extract_group_uuid(raw, config)
        if group_uuid is None:
            continue

        gid = directory.local_group_id(group_uuid)
        if gid is None:
            logger.warning("No local group mapped to {} ({}). Skipping...", group_uuid, raw)
            continue

        if gid in protected:
            logger.warning("Group: {} is PROTECTED. Not adding...", gid)
            continue

        if not directory.group_exists(gid):
            logger.warning("Group {} ({}) doesn't exist. Skipping...", gid, raw)
            continue

        if gid not in external:
            external.append(gid)
        if gid not in current and gid not in to_add:
            to_add.append(gid)

    to_remove: list[str] = []
    for gid in current_memberships:
        if gid in external or gid in to_remove:
            continue
        if gid in protected:
            logger.warning("Group: {} is PROTECTED. Not removing...", gid)
            continue
        to_remove.append(gid)

    return GroupChanges(
        to_add=tuple(to_add), to_remove=tuple(to_remove), external_groups=tuple(external)
    )


class GroupSyncService:
    """Keeps an account's local groups in line with its entitlement claim."""

    def __init__(self, groups: GroupStore, mappings: GroupMappingRepository):
        self._groups = groups
        self._directory = StoreGroupDirectory(mappings, groups)

    def reconcile(
        self, account: Account, claims: Claims, config: OpenIdConfig
    ) -> GroupSyncResult:
        """Synchronize group membership of ``account`` with ``claims``.

        Raises:
            GroupSyncDisabledError: when group sync is not enabled.
            ConfigurationError: when the groups claim is misconfigured.
        """
        if not config.group_sync.enabled:
            raise GroupSyncDisabledError("Group sync is disabled.")
        if account is None or claims is None:
            raise LoginError("User data is missing.")

        current = self._groups.list_member_group_ids(account)
        changes = decide(claims, current, config.group_sync, self._directory)
        return self.apply(account, changes)

    def apply(self, account: Account, changes: GroupChanges) -> GroupSyncResult:
        result = GroupSyncResult()

        for gid in changes.to_add:
            group = self._groups.get(gid)
            if group is None:
                logger.warning("Group {} disappeared before it could be joined", gid)
                continue
            if group.is_member(account):
                continue
            logger.info("Adding: {} to: {}", account.uid, gid)
            group.add_member(account)
            result.added.add(gid)

        for gid in changes.to_remove:
            group = self._groups.get(gid)
            if group is None:
                continue
            logger.info("Removing: {} from: {}", account.uid, gid)
            group.remove_member(account)
            result.removed.add(gid)

        return result
