from loguru import logger

from oidc_bridge.core.exceptions import (
    AmbiguousUserError,
    ConfigurationError,
    ForbiddenBackendError,
    UserNotFoundError,
)
from oidc_bridge.core.interfaces import Account, AccountStore
from oidc_bridge.core.services.auto_provisioning import (
    AutoProvisioningService,
    strip_domain,
)
from oidc_bridge.core.types.claims import Claims
from oidc_bridge.entities.identity import IdentityRepository
from oidc_bridge.runtime.config.config_data import OpenIdConfig


class UserLookupService:
    """Resolves a verified external identity to exactly one local account."""

    def __init__(
        self,
        accounts: AccountStore,
        identities: IdentityRepository,
        provisioning: AutoProvisioningService,
    ):
        self._accounts = accounts
        self._identities = identities
        self._provisioning = provisioning

    def lookup(self, claims: Claims, config: OpenIdConfig | None) -> Account:
        """Return the local account for ``claims``, provisioning it if allowed.

        Raises:
            ConfigurationError: no OpenID configuration is available.
            ClaimMissingError: the identity claim is absent from ``claims``.
            UserNotFoundError: no account matches and provisioning is disabled.
            AmbiguousUserError: more than one account shares the email.
            ForbiddenBackendError: an existing account uses a backend that is
                not allowed. Freshly provisioned accounts are not checked.
        """
        if config is None:
            raise ConfigurationError("Configuration issue in openidconnect app")

        identity = claims.require_str(config.identity_claim)

        if config.search_by_email:
            return self._lookup_by_email(identity, claims, config)
        return self._lookup_by_userid(identity, claims, config)

    def _lookup_by_email(
        self, email: str, claims: Claims, config: OpenIdConfig
    ) -> Account:
        accounts = self._accounts.find_by_email(email)
        if not accounts:
            return self._provision_or_fail(email, claims, config)
        if len(accounts) > 1:
            logger.error("Multiple accounts share the email {}", email)
            raise AmbiguousUserError(f"Email must be unique. {email} is not.")
        return self._matched(accounts[0], config)

    def _lookup_by_userid(
        self, user_id: str, claims: Claims, config: OpenIdConfig
    ) -> Account:
        username = (
            strip_domain(user_id)
            if config.auto_provision.strip_userid_domain
            else user_id
        )
        account = self._accounts.find_by_username(username)
        if account is not None:
            return self._matched(account, config)

        # Legacy identity mapping
        local_userid = self._identities.get_local_user_id(user_id)
        if local_userid:
            account = self._accounts.find_by_username(local_userid)
            if account is not None:
                logger.debug("Resolved {} through identity mapping", user_id)
                return self._matched(account, config)
            logger.warning(
                "Identity mapping for {} points to missing account {}",
                user_id,
                local_userid,
            )

        return self._provision_or_fail(user_id, claims, config)

    def _matched(self, account: Account, config: OpenIdConfig) -> Account:
        self.check_backend(account, config)
        return account

    def _provision_or_fail(
        self, identity: str, claims: Claims, config: OpenIdConfig
    ) -> Account:
        if not self._provisioning.enabled(config):
            raise UserNotFoundError(f"User {identity} not found.")
        return self._provisioning.create_account(claims, config)

    @staticmethod
    def check_backend(account: Account, config: OpenIdConfig) -> None:
        allowed = config.allowed_user_backends
        if allowed is None:
            return
        if account.backend not in allowed:
            logger.warning(
                "Account {} uses backend {} which is not allowed",
                account.uid,
                account.backend,
            )
            raise ForbiddenBackendError(
                f"User backend {account.backend} is not allowed."
            )
