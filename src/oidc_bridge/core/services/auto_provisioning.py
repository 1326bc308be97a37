from loguru import logger

from oidc_bridge.core.exceptions import (
    AccountCreationError,
    ClaimShapeError,
    ProvisioningDisabledError,
    ProvisioningNotAuthorizedError,
)
from oidc_bridge.core.interfaces import Account, AccountStore, GroupStore, HttpFetcher
from oidc_bridge.core.security import generate_account_secret, generate_opaque_user_id
from oidc_bridge.core.types.claims import Claims
from oidc_bridge.runtime.config.config_data import OpenIdConfig


def strip_domain(user_id: str) -> str:
    """Drop everything from the first '@' onward."""
    return user_id.split("@", 1)[0]


class AutoProvisioningService:
    """Creates local accounts for identities seen for the first time."""

    def __init__(
        self,
        accounts: AccountStore,
        groups: GroupStore,
        http: HttpFetcher,
    ):
        self._accounts = accounts
        self._groups = groups
        self._http = http

    @staticmethod
    def enabled(config: OpenIdConfig) -> bool:
        return config.auto_provision.enabled

    def create_account(self, claims: Claims, config: OpenIdConfig) -> Account:
        """Create, enable and populate an account from ``claims``.

        Raises:
            ProvisioningDisabledError: auto provisioning is turned off.
            ClaimMissingError: the identity claim is absent.
            ProvisioningNotAuthorizedError: the provisioning gate rejects the user.
            AccountCreationError: the account store refuses the new account.
        """
        if not self.enabled(config):
            raise ProvisioningDisabledError("Auto provisioning is disabled.")

        provisioning = config.auto_provision
        email_or_user_id = claims.require_str(config.identity_claim)

        if provisioning.provisioning_claim:
            self._check_provisioning_claim(claims, config)

        if config.search_by_email:
            username = generate_opaque_user_id()
            email = email_or_user_id
        else:
            username = (
                strip_domain(email_or_user_id)
                if provisioning.strip_userid_domain
                else email_or_user_id
            )
            email = None

        # Optional claims are read before the account exists
        if email is None and config.email_claim:
            email = claims.get_str(config.email_claim)
        display_name = claims.get_str(config.display_name_claim)

        try:
            account = self._accounts.create(username, generate_account_secret())
        except Exception as e:
            raise AccountCreationError(f"Unable to create user {username}") from e
        if account is None:
            raise AccountCreationError(f"Unable to create user {username}")
        logger.info("Provisioned account {} for {}", account.uid, email_or_user_id)

        self._accounts.set_enabled(account, True)

        if email:
            self._accounts.set_email(account, email)
        if display_name:
            self._accounts.set_display_name(account, display_name)

        for gid in provisioning.groups:
            group = self._groups.get(gid)
            if group is not None:
                group.add_member(account)

        if config.picture_claim:
            self._set_avatar(account, claims, config.picture_claim)

        return account

    @staticmethod
    def _check_provisioning_claim(claims: Claims, config: OpenIdConfig) -> None:
        claim = config.auto_provision.provisioning_claim
        attribute = config.auto_provision.provisioning_attribute
        logger.debug("ProvisioningClaim {} is defined for auto-provision", claim)
        try:
            values = claims.get_list(claim)
        except ClaimShapeError:
            values = None
        if values is None or attribute not in values:
            raise ProvisioningNotAuthorizedError(
                "Required provisioning attribute is not found."
            )

    def _set_avatar(self, account: Account, claims: Claims, picture_claim: str) -> None:
        picture_url = claims.raw(picture_claim)
        if not picture_url:
            return
        try:
            data = self._http.get(str(picture_url))
            self._accounts.set_avatar(account, data)
        except Exception:
            # Avatar failures never abort provisioning
            logger.exception("Error setting profile picture {}", picture_url)
