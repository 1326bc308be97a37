"""OpenID Connect identity bridge.

Resolves identities asserted by an external OIDC provider to local accounts,
provisions missing accounts and keeps group membership in sync with the
entitlement claims issued by the provider.
"""

__version__ = "0.3.0"
