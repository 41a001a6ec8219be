class LowercaseHeadersMiddleware:
    """ASGI middleware that lower-cases every outbound HTTP response header name."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_lowercase_headers(message):
            if message.get("type") == "http.response.start":
                message["headers"] = [(name.lower(), value) for name, value in message.get("headers", [])]
            await send(message)

        await self.app(scope, receive, send_with_lowercase_headers)
