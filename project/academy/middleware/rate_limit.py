# academy/middleware/rate_limit.py

import json
import time
from dataclasses import dataclass, field


@dataclass
class RateLimitRule:
    """Не больше `limit` запросов за `window` секунд с одного IP."""
    path: str                       # префикс пути
    limit: int
    window: int
    message: str
    method: str | None = None       # None — любой метод
    skip_successful: bool = False   # считать только ответы со статусом >= 400
    hits: dict = field(default_factory=dict)
    last_sweep: float = 0.0

    def matches(self, method: str, path: str) -> bool:
        if self.method and self.method != method:
            return False
        return path == self.path or path.startswith(self.path.rstrip("/") + "/")

    def sweep(self, now: float):
        """Удаляет IP, у которых окно уже истекло."""
        expired = [client for client, (start, _) in self.hits.items() if now - start >= self.window]
        for client in expired:
            del self.hits[client]
        self.last_sweep = now

    def current(self, client: str, now: float) -> tuple[float, int]:
        if now - self.last_sweep >= self.window:
            self.sweep(now)
        window_start, count = self.hits.get(client, (now, 0))
        if now - window_start >= self.window:
            window_start, count = now, 0
        self.hits[client] = (window_start, count)
        return window_start, count

    def exceeded(self, client: str, now: float) -> bool:
        return self.current(client, now)[1] >= self.limit

    def register(self, client: str, now: float):
        window_start, count = self.current(client, now)
        self.hits[client] = (window_start, count + 1)


def default_rules() -> list[RateLimitRule]:
    return [
        RateLimitRule("/api/", 500, 15 * 60, "Too many requests from this IP, please try again later."),
        RateLimitRule("/api/auth/login", 10, 15 * 60, "Too many login attempts, please try again later.",
                      method="POST", skip_successful=True),
        RateLimitRule("/api/leads", 10, 60, "Too many form submissions, please try again later.",
                      method="POST"),
    ]


class RateLimitMiddleware:
    """
    Ограничение частоты запросов в памяти процесса (fixed window по IP).
    При нескольких воркерах у каждого свой счётчик.
    """

    def __init__(self, app, rules: list[RateLimitRule] | None = None, enabled: bool = True):
        self.app = app
        self.rules = default_rules() if rules is None else rules
        self.enabled = enabled

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http" or not self.enabled:
            await self.app(scope, receive, send)
            return

        method = scope["method"]
        path = scope["path"]
        client = (scope.get("client") or ("unknown", 0))[0]
        now = time.monotonic()

        rules = [r for r in self.rules if r.matches(method, path)]
        for rule in rules:
            if rule.exceeded(client, now):
                await self.reject(send, rule.message)
                return

        for rule in rules:
            if not rule.skip_successful:
                rule.register(client, now)

        deferred = [r for r in rules if r.skip_successful]
        if not deferred:
            await self.app(scope, receive, send)
            return

        async def send_wrapper(message):
            if message["type"] == "http.response.start" and message["status"] >= 400:
                for rule in deferred:
                    rule.register(client, now)
            await send(message)

        await self.app(scope, receive, send_wrapper)

    @staticmethod
    async def reject(send, message: str):
        body = json.dumps({"error": message}).encode("utf-8")
        await send({
            "type": "http.response.start",
            "status": 429,
            "headers": [
                (b"content-type", b"application/json"),
                (b"content-length", str(len(body)).encode("ascii")),
            ],
        })
        await send({"type": "http.response.body", "body": body})
