"""Parsing of RFC 8141 URNs carried in entitlement claims.

Only the parts needed to route an entitlement are extracted: the namespace
identifier (NID), the namespace specific string (NSS), the r-, q- and
f-components. Equivalence rules and namespace registries are out of scope.
"""

import re
from dataclasses import dataclass

from oidc_bridge.core.exceptions import UrnParseError

_PCHAR = r"(?:[A-Za-z0-9\-._~!$&'()*+,;=:@]|%[0-9A-Fa-f]{2})"

_URN_RE = re.compile(
    rf"""
    ^urn:
    (?P<nid>[A-Za-z0-9][A-Za-z0-9-]{{0,30}}[A-Za-z0-9])
    :
    (?P<nss>{_PCHAR}(?:{_PCHAR}|/)*)
    (?:\?\+(?P<r>{_PCHAR}(?:(?!\?=)(?:{_PCHAR}|[/?]))*))?
    (?:\?=(?P<q>{_PCHAR}(?:{_PCHAR}|[/?])*))?
    (?:\#(?P<f>(?:{_PCHAR}|[/?])*))?
    $
    """,
    re.VERBOSE | re.IGNORECASE,
)

# Length of the scheme prefix every entitlement value is expected to carry.
CLAIM_PREFIX_LENGTH = 4


@dataclass(frozen=True)
class GroupURN:
    """A parsed URN: ``urn:<namespace>:<nss>[?+<r>][?=<q>][#<f>]``."""

    namespace: str
    namespace_specific_string: str
    r_component: str | None = None
    q_component: str | None = None
    fragment: str | None = None

    @property
    def resource_qualifier(self) -> str | None:
        return self.q_component

    def __str__(self) -> str:
        value = f"urn:{self.namespace}:{self.namespace_specific_string}"
        if self.r_component is not None:
            value += f"?+{self.r_component}"
        if self.q_component is not None:
            value += f"?={self.q_component}"
        if self.fragment is not None:
            value += f"#{self.fragment}"
        return value


def parse_urn(value: str) -> GroupURN:
    """Parse ``value`` as a URN.

    Raises:
        UrnParseError: if ``value`` does not follow the RFC 8141 syntax.
    """
    if not isinstance(value, str):
        raise UrnParseError(f"URN must be a string, got {type(value).__name__}")

    match = _URN_RE.match(value)
    if match is None:
        if value[:4].lower() != "urn:":
            raise UrnParseError(f"{value!r} does not start with 'urn:'")
        if ":" not in value[4:]:
            raise UrnParseError(f"{value!r} is missing a namespace identifier")
        raise UrnParseError(f"{value!r} is not a valid RFC 8141 URN")

    return GroupURN(
        namespace=match.group("nid"),
        namespace_specific_string=match.group("nss"),
        r_component=match.group("r"),
        q_component=match.group("q"),
        fragment=match.group("f"),
    )


def parse_claim_urn(raw: str) -> GroupURN:
    """Parse an entitlement claim value.

    The first ``CLAIM_PREFIX_LENGTH`` characters are replaced with a literal
    ``urn:`` before parsing, so values issued with an upper-case or otherwise
    non-canonical scheme still parse.
    """
    if not isinstance(raw, str):
        raise UrnParseError(f"URN must be a string, got {type(raw).__name__}")
    return parse_urn("urn:" + raw[CLAIM_PREFIX_LENGTH:])
