"""Write Timeout Middleware — bounds every response send on an HTTP connection.

Invariants:
    - Each ASGI `send` call must finish within the write timeout
    - A timeout of 0 disables the bound (same as an unset server write timeout)
    - Non-HTTP scopes (lifespan) pass through untouched
"""

import asyncio


class WriteTimeoutMiddleware:
    """Pure ASGI middleware wrapping `send` in asyncio.wait_for."""

    def __init__(self, app, timeout: float):
        self.app = app
        self.timeout = timeout

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http" or not self.timeout:
            await self.app(scope, receive, send)
            return

        async def bounded_send(message):
            await asyncio.wait_for(send(message), timeout=self.timeout)

        await self.app(scope, receive, bounded_send)
