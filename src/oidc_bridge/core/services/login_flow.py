"""Orchestration of a single login once the provider has vouched for the user."""

from dataclasses import dataclass, field

from loguru import logger

from oidc_bridge.core.exceptions import IneligibleUserError
from oidc_bridge.core.interfaces import Account, AccountStore
from oidc_bridge.core.services.eligibility import check_eligible
from oidc_bridge.core.services.group_sync import GroupSyncService
from oidc_bridge.core.services.user_lookup import UserLookupService
from oidc_bridge.core.types.claims import Claims
from oidc_bridge.entities.identity import IdentityRepository
from oidc_bridge.runtime.config import OpenIdConfig, OpenIdConfigLoader


@dataclass
class LoginResult:
    account: Account
    added: set[str] = field(default_factory=set)
    removed: set[str] = field(default_factory=set)


class LoginFlowService:
    """Binds verified claims to a local account and brings it up to date.

    The OpenID configuration is loaded once per call to ``login`` and handed
    to every step, so a changed configuration takes effect on the next login.
    """

    def __init__(
        self,
        config_loader: OpenIdConfigLoader,
        accounts: AccountStore,
        identities: IdentityRepository,
        lookup: UserLookupService,
        group_sync: GroupSyncService,
    ):
        self._config_loader = config_loader
        self._accounts = accounts
        self._identities = identities
        self._lookup = lookup
        self._group_sync = group_sync

    def login(self, claims: Claims) -> LoginResult:
        """Run the login pipeline for ``claims``.

        Raises:
            ConfigurationError: the configuration is missing or unusable.
            LoginError: the login must be denied.
        """
        config = self._config_loader.require()

        if not check_eligible(claims, config):
            raise IneligibleUserError("User is not eligible to log in.")

        account = self._lookup.lookup(claims, config)
        self._record_login(claims, config)

        if config.auto_update.enabled:
            self.update_attributes(account, claims, config)

        result = LoginResult(account=account)
        if config.group_sync.enabled:
            sync = self._group_sync.reconcile(account, claims, config)
            result.added, result.removed = sync.added, sync.removed
        else:
            logger.debug("Group sync is disabled, skipping for {}", account.uid)

        logger.info("User {} logged in", account.uid)
        return result

    def _record_login(self, claims: Claims, config: OpenIdConfig) -> None:
        external_id = claims.get_str(config.identity_claim)
        if external_id and self._identities.touch(external_id):
            logger.debug("Updated last seen for identity {}", external_id)

    def update_attributes(
        self, account: Account, claims: Claims, config: OpenIdConfig
    ) -> None:
        """Refresh email and display name from the configured claims."""
        email = claims.get_str(config.email_claim)
        if email and email != account.email:
            logger.info("Updating email of {}", account.uid)
            self._accounts.set_email(account, email)

        display_name = claims.get_str(config.display_name_claim)
        if display_name and display_name != account.display_name:
            logger.info("Updating display name of {}", account.uid)
            self._accounts.set_display_name(account, display_name)
