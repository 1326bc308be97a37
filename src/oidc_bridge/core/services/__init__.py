"""Core services exports."""

from .auto_provisioning import AutoProvisioningService, strip_domain

# Database Service
from .database.db_session import DbSessionService
from .eligibility import check_eligible, parse_moment

# Group Services
from .group_sync import (
    GroupChanges,
    GroupDirectory,
    GroupSyncResult,
    GroupSyncService,
    StaticGroupDirectory,
    StoreGroupDirectory,
    decide,
    extract_group_uuid,
    group_urns,
)
from .http_fetch import HttpxFetcher
from .login_flow import LoginFlowService, LoginResult

# OIDC Services
from .token_source import AuthlibTokenSource, decode_jwt_payload, verify_nonce
from .user_lookup import UserLookupService

__all__ = [
    "AuthlibTokenSource",
    "AutoProvisioningService",
    "DbSessionService",
    "GroupChanges",
    "GroupDirectory",
    "GroupSyncResult",
    "GroupSyncService",
    "HttpxFetcher",
    "LoginFlowService",
    "LoginResult",
    "StaticGroupDirectory",
    "StoreGroupDirectory",
    "UserLookupService",
    "check_eligible",
    "decide",
    "decode_jwt_payload",
    "extract_group_uuid",
    "group_urns",
    "parse_moment",
    "strip_domain",
    "verify_nonce",
]
