import httpx

DEFAULT_TIMEOUT = 10.0
MAX_AVATAR_BYTES = 5 * 1024 * 1024


class HttpxFetcher:
    """Downloads remote resources such as profile pictures."""

    def __init__(
        self,
        client: httpx.Client | None = None,
        max_bytes: int = MAX_AVATAR_BYTES,
        verify: bool = True,
    ):
        self._client = client or httpx.Client(
            timeout=DEFAULT_TIMEOUT, follow_redirects=True, verify=verify
        )
        self._max_bytes = max_bytes

    def get(self, url: str) -> bytes:
        response = self._client.get(url)
        response.raise_for_status()
        if len(response.content) > self._max_bytes:
            raise ValueError(f"Response from {url} exceeds {self._max_bytes} bytes")
        return response.content

    def close(self) -> None:
        self._client.close()
