from collections.abc import Iterator
from typing import Any, Union

from pydantic import ConfigDict, RootModel

from oidc_bridge.core.exceptions import ClaimMissingError, ClaimShapeError

ClaimValue = Union[str, int, float, bool, list[str], None]


class Claims(RootModel[dict[str, Any]]):
    """Verified attributes of the authenticated subject ("userInfo").

    Claim names come from configuration at runtime, so every read goes through
    one of the typed accessors below. A claim counts as *present* when its key
    exists and its value is not null; anything else is *missing*. A present
    claim whose value has the wrong shape raises ``ClaimShapeError`` instead
    of being silently coerced.

    Fallback chains (``first_str``) return the first present claim in the
    order given and ``None`` when none of them is present.
    """

    model_config = ConfigDict(frozen=True)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.root.get(name) is not None

    def __getitem__(self, name: str) -> Any:
        return self.root[name]

    def __iter__(self) -> Iterator[str]:  # type: ignore[override]
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def has(self, name: str | None) -> bool:
        return bool(name) and name in self

    def raw(self, name: str) -> Any:
        """Return the value as issued by the provider, or None."""
        return self.root.get(name)

    def get_str(self, name: str | None) -> str | None:
        if not name or name not in self:
            return None
        value = self.root[name]
        # Numbers are accepted and rendered, booleans and containers are not.
        if isinstance(value, (bool, list, tuple, dict)):
            raise ClaimShapeError(name, "string")
        return str(value)

    def require_str(self, name: str) -> str:
        """Return a non-empty string claim or raise ``ClaimMissingError``."""
        value = self.get_str(name)
        if not value:
            raise ClaimMissingError(name)
        return value

    def get_list(self, name: str | None) -> list[str] | None:
        if not name or name not in self:
            return None
        value = self.root[name]
        if not isinstance(value, (list, tuple)):
            raise ClaimShapeError(name, "list")
        return [str(item) for item in value]

    def first_str(self, *names: str | None) -> str | None:
        for name in names:
            if self.has(name):
                return self.get_str(name)
        return None

    def to_dict(self) -> dict[str, Any]:
        return dict(self.root)
