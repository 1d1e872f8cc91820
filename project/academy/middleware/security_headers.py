# academy/middleware/security_headers.py

# Заголовки как у helmet по умолчанию, без CSP и COEP
DEFAULT_HEADERS: dict[str, str] = {
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}


class SecurityHeadersMiddleware:
    """
    Добавляет защитные заголовки к каждому HTTP-ответу.
    Заголовок, уже выставленный обработчиком, не перезаписывается.
    """

    def __init__(self, app, headers: dict[str, str] | None = None):
        self.app = app
        source = DEFAULT_HEADERS if headers is None else headers
        self.headers = [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in source.items()]

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                present = {name.lower() for name, _ in headers}
                headers.extend((name, value) for name, value in self.headers if name not in present)
                message["headers"] = headers
            await send(message)

        await self.app(scope, receive, send_wrapper)
