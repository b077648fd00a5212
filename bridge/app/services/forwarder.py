"""Upstream forwarding to the backend data API.

Rewrites the inbound path, injects the public API key, sends the request
over the shared HTTP client and hands back the backend status, headers
and body for relaying.

Headers travel as raw bytes in both directions so values outside ASCII
cross the proxy byte for byte.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple, Union

import httpx
from starlette.requests import Request

from bridge.app.core.logging import get_logger
from bridge.app.exceptions import ForwardError

logger = get_logger(__name__)

RawHeaders = List[Tuple[bytes, bytes]]

# Methods whose body is never forwarded
BODYLESS_METHODS = frozenset({"GET", "HEAD"})

# Connection-scoped headers that must not cross the proxy (RFC 9110 7.6.1)
HOP_BY_HOP_HEADERS = frozenset(
    {
        b"connection",
        b"keep-alive",
        b"proxy-authenticate",
        b"proxy-authorization",
        b"proxy-connection",
        b"te",
        b"trailer",
        b"transfer-encoding",
        b"upgrade",
    }
)

# The HTTP client negotiates and decodes content encoding itself, so the
# relayed body is always identity-encoded and its length recomputed.
_REQUEST_SKIP_HEADERS = HOP_BY_HOP_HEADERS | {b"host", b"content-length", b"accept-encoding"}
_RESPONSE_SKIP_HEADERS = HOP_BY_HOP_HEADERS | {b"content-length", b"content-encoding"}

_API_KEY = b"apikey"
_AUTHORIZATION = b"authorization"


@dataclass
class ProxyTarget:
    """Outbound request derived from an inbound one."""
    method: str
    url: str
    headers: RawHeaders = field(default_factory=list)
    body: Optional[bytes] = None


@dataclass
class UpstreamResponse:
    """Backend response to relay to the caller.

    Header names are lowercased; values are the bytes the backend sent.
    """
    status_code: int
    reason_phrase: str
    headers: RawHeaders
    body: bytes


class UpstreamForwarder:
    """Relays requests to the backend.

    Every outbound request carries ``apikey: <anon key>``. Callers that send
    no ``Authorization`` header, or an empty one, are forwarded as
    anonymous-tier calls with ``Authorization: Bearer <anon key>``; any other
    caller-supplied ``Authorization`` header is passed through untouched.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        anon_key: str,
        strip_prefix: str = "/proxy",
    ):
        """Initialize the forwarder.

        Args:
            client: Shared HTTP client used for every outbound call
            base_url: Backend base URL without trailing slash
            anon_key: Public (anonymous-tier) backend key
            strip_prefix: Path prefix removed once before forwarding
        """
        self._client = client
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.strip_prefix = strip_prefix

    def rewrite_path(self, path: str) -> str:
        if self.strip_prefix and path.startswith(self.strip_prefix):
            return path[len(self.strip_prefix):]
        return path

    def build_url(self, path: str, query: str = "") -> str:
        url = f"{self.base_url}{self.rewrite_path(path)}"
        if query:
            url = f"{url}?{query}"
        return url

    def build_headers(self, inbound: Iterable[Tuple[Union[str, bytes], Union[str, bytes]]]) -> RawHeaders:
        """Outbound headers for ``inbound`` with backend credentials injected.

        Accepts ``str`` or ``bytes`` pairs; ``str`` is encoded as Latin-1, the
        same mapping the ASGI server used to decode it.
        """
        headers = []
        for name, value in inbound:
            name, value = _to_bytes(name).lower(), _to_bytes(value)
            if name in _REQUEST_SKIP_HEADERS or name == _API_KEY:
                continue
            # Blank authorization counts as none
            if name == _AUTHORIZATION and not value.strip():
                continue
            headers.append((name, value))

        anon_key = _to_bytes(self.anon_key)
        headers.append((_API_KEY, anon_key))
        if not any(name == _AUTHORIZATION for name, _ in headers):
            headers.append((_AUTHORIZATION, b"Bearer " + anon_key))
        return headers

    def build_target(
        self,
        method: str,
        path: str,
        query: str,
        headers: Iterable[Tuple[Union[str, bytes], Union[str, bytes]]],
        body: Optional[bytes] = None,
    ) -> ProxyTarget:
        method = method.upper()
        return ProxyTarget(
            method=method,
            url=self.build_url(path, query),
            headers=self.build_headers(headers),
            body=None if method in BODYLESS_METHODS else (body or b""),
        )

    async def send(self, target: ProxyTarget) -> UpstreamResponse:
        """Send ``target`` to the backend and read the full response.

        Raises:
            ForwardError: The backend is unconfigured, unreachable, timed out,
                the target URL is unusable, or the answer is not valid HTTP.
        """
        if not self.base_url:
            raise ForwardError("Backend base URL is not configured", kind=ForwardError.CONFIG)

        try:
            request = self._client.build_request(
                target.method,
                target.url,
                headers=target.headers,
                content=target.body,
            )
            response = await self._client.send(request)
        except httpx.TimeoutException as e:
            raise ForwardError(
                f"Backend request timed out: {type(e).__name__}",
                kind=ForwardError.TIMEOUT,
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ForwardError(str(e) or type(e).__name__) from e

        return UpstreamResponse(
            status_code=response.status_code,
            reason_phrase=response.reason_phrase,
            headers=_relay_headers(response.headers.raw, keep_length=target.method == "HEAD"),
            body=response.content,
        )

    async def forward(self, request: Request) -> UpstreamResponse:
        """Forward an inbound request and return the backend response."""
        body = None
        if request.method.upper() not in BODYLESS_METHODS:
            body = await request.body()

        target = self.build_target(
            request.method,
            _raw_path(request),
            request.scope.get("query_string", b"").decode("latin-1"),
            request.headers.raw,
            body,
        )
        logger.debug(f"Forwarding {target.method} {target.url}")
        return await self.send(target)


def _to_bytes(value: Union[str, bytes]) -> bytes:
    return value if isinstance(value, bytes) else value.encode("latin-1")


def _raw_path(request: Request) -> str:
    raw_path = request.scope.get("raw_path")
    if raw_path:
        # Some servers include the query string in raw_path
        return raw_path.split(b"?", 1)[0].decode("latin-1")
    return request.url.path


def _relay_headers(headers: Iterable[Tuple[bytes, bytes]], keep_length: bool = False) -> RawHeaders:
    """Backend headers safe to relay, names lowercased.

    A HEAD response has no body to measure, so its ``Content-Length`` is
    the backend's own and is kept when ``keep_length`` is set.
    """
    relayed = []
    for name, value in headers:
        name = name.lower()
        if name in _RESPONSE_SKIP_HEADERS and not (keep_length and name == b"content-length"):
            continue
        relayed.append((name, value))
    return relayed
