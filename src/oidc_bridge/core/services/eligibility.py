"""Login eligibility based on a timestamp claim.

A user is eligible when no timestamp claim is configured, when the claim's
timestamp is not older than ``eligible-expiry``, or when the user holds the
``eligible-exception-urn`` entitlement. Timestamps and the expiry accept
absolute dates ("2024-05-01", "2024-05-01T10:00:00Z"), epoch seconds and
relative expressions such as "-1 year", "+2 weeks 3 days", "now" or
"yesterday".
"""

import re
from datetime import datetime, timezone

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta
from loguru import logger

from oidc_bridge.core.exceptions import ConfigurationError
from oidc_bridge.core.services.group_sync import group_urns
from oidc_bridge.core.types.claims import Claims
from oidc_bridge.runtime.config.config_data import OpenIdConfig

_RELATIVE_PART = re.compile(
    r"([+-]?\s*\d+)\s*(second|sec|minute|min|hour|day|week|fortnight|month|year)s?",
    re.IGNORECASE,
)
_RELATIVE_EXPRESSION = re.compile(
    rf"^(?:\s*{_RELATIVE_PART.pattern})+\s*(?:ago)?\s*$", re.IGNORECASE
)

_UNIT_TO_DELTA = {
    "second": lambda n: relativedelta(seconds=n),
    "sec": lambda n: relativedelta(seconds=n),
    "minute": lambda n: relativedelta(minutes=n),
    "min": lambda n: relativedelta(minutes=n),
    "hour": lambda n: relativedelta(hours=n),
    "day": lambda n: relativedelta(days=n),
    "week": lambda n: relativedelta(weeks=n),
    "fortnight": lambda n: relativedelta(weeks=2 * n),
    "month": lambda n: relativedelta(months=n),
    "year": lambda n: relativedelta(years=n),
}

_DAY_KEYWORDS = {"today": 0, "yesterday": -1, "tomorrow": 1}


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _from_epoch(seconds: float) -> datetime | None:
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def parse_moment(value: str | int | float, now: datetime | None = None) -> datetime | None:
    """Parse an absolute or relative point in time, or return None."""
    now = _as_utc(now or datetime.now(timezone.utc))

    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _from_epoch(value)

    text = value.strip()
    if not text:
        return None

    lowered = text.lower()
    if lowered == "now":
        return now
    if lowered in _DAY_KEYWORDS:
        midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
        return midnight + relativedelta(days=_DAY_KEYWORDS[lowered])

    # Long digit strings are epoch seconds, short ones compact dates
    if re.fullmatch(r"[+-]?\d+(\.\d+)?", text) and len(text.lstrip("+-")) > 8:
        return _from_epoch(float(text))

    if _RELATIVE_EXPRESSION.match(text):
        sign = -1 if lowered.rstrip().endswith("ago") else 1
        moment = now
        for amount, unit in _RELATIVE_PART.findall(text):
            moment += _UNIT_TO_DELTA[unit.lower()](sign * int(amount.replace(" ", "")))
        return moment

    try:
        return _as_utc(date_parser.parse(text))
    except (ValueError, OverflowError):
        return None


def check_eligible(
    claims: Claims, config: OpenIdConfig, now: datetime | None = None
) -> bool:
    """Return True when the user described by ``claims`` may log in.

    Raises:
        ConfigurationError: ``eligible-expiry`` cannot be parsed.
    """
    claim = config.eligible_timestamp_claim
    if not claim:
        return True

    expiry = parse_moment(config.eligible_expiry, now=now)
    if expiry is None:
        raise ConfigurationError(
            f"eligible-expiry {config.eligible_expiry!r} is not a valid date."
        )

    raw = claims.raw(claim)
    timestamp = parse_moment(raw, now=now) if isinstance(raw, (str, int, float)) else None
    if timestamp is not None and timestamp >= expiry:
        return True

    logger.debug("Eligibility timestamp {} of claim {} is expired or missing", raw, claim)

    exception_urn = config.eligible_exception_urn
    if not exception_urn:
        return False

    try:
        urns = group_urns(claims, config.group_sync)
    except ConfigurationError as e:
        logger.warning("Cannot check eligibility exception {}: {}", exception_urn, e)
        return False
    return exception_urn in urns
