"""
FastAPI middleware for correlation ID tracking.
"""

from .context import RequestContext

REQUEST_ID_HEADER = b"x-request-id"


class CorrelationIdMiddleware:
    """
    Reuse the caller's X-Request-ID or mint one, and echo it back on the
    response. Log records emitted while the request runs carry the id.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = None
        for key, value in scope.get("headers", []):
            if key.lower() == REQUEST_ID_HEADER:
                request_id = value.decode("latin-1").strip() or None
                break

        with RequestContext(request_id=request_id) as ctx:

            async def send_with_id(message):
                if message["type"] == "http.response.start":
                    headers = list(message.get("headers", []))
                    headers.append((REQUEST_ID_HEADER, ctx.request_id.encode("latin-1")))
                    message = {**message, "headers": headers}
                await send(message)

            await self.app(scope, receive, send_with_id)
