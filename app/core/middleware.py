from typing import Iterable, Mapping, Optional, Tuple

DEFAULT_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "no-referrer",
}

# Permission and rule payloads are per user/tenant; shared caches must not keep them.
NO_STORE_PREFIX = "/api/"


class SecurityHeadersMiddleware:
    """ASGI middleware appending fixed security headers to every HTTP response."""

    def __init__(self, app, headers: Optional[Mapping[str, str]] = None):
        self.app = app
        self.headers: Tuple[Tuple[bytes, bytes], ...] = tuple(
            (name.encode("latin-1"), value.encode("latin-1"))
            for name, value in (headers or DEFAULT_SECURITY_HEADERS).items()
        )

    def _extra_headers(self, path: str) -> Iterable[Tuple[bytes, bytes]]:
        yield from self.headers
        if path.startswith(NO_STORE_PREFIX):
            yield (b"Cache-Control", b"no-store")

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        extra = list(self._extra_headers(scope.get("path", "")))

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend(extra)
            await send(message)

        await self.app(scope, receive, send_wrapper)
