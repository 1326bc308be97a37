"""Exceptions raised by the identity bridge.

Everything deriving from ``LoginError`` denies the login that triggered it.
``ConfigurationError`` signals a deployment problem rather than a user one.
"""


class OidcBridgeError(Exception):
    """Base class for all identity bridge errors."""


class ConfigurationError(OidcBridgeError):
    """The OpenID configuration is missing or invalid."""


class LoginError(OidcBridgeError):
    """Base class for errors that abort a login flow."""


class ClaimMissingError(LoginError):
    """An expected claim is absent from the identity payload."""

    def __init__(self, claim: str):
        super().__init__(f"Configured attribute {claim} is not known.")
        self.claim = claim


class ClaimShapeError(LoginError):
    """A claim is present but its value does not have the expected shape."""

    def __init__(self, claim: str, expected: str):
        super().__init__(f"Claim {claim} is present but is not a {expected}.")
        self.claim = claim
        self.expected = expected


class ProvisioningDisabledError(LoginError):
    """Auto provisioning was requested but is disabled."""


class ProvisioningNotAuthorizedError(LoginError):
    """The identity lacks the attribute required for auto provisioning."""


class AccountCreationError(LoginError):
    """The account store rejected the creation of a new account."""


class UserNotFoundError(LoginError):
    """No local account matches the external identity."""


class AmbiguousUserError(LoginError):
    """More than one local account matches the external identity."""


class ForbiddenBackendError(LoginError):
    """The resolved account belongs to a backend that is not allowed."""


class IneligibleUserError(LoginError):
    """The identity is not eligible to log in."""


class GroupSyncDisabledError(LoginError):
    """Group synchronization was requested but is disabled."""


class UrnParseError(OidcBridgeError, ValueError):
    """A value is not a valid RFC 8141 URN."""
