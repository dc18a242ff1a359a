"""
ASGI application for the HTTP transports.

Wraps the FastMCP Starlette app with permissive CORS (browser-based MCP
clients call it cross-origin) and a bearer challenge that points clients
without credentials at the OAuth metadata.
"""

import logging

from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from matter_mcp import api
from matter_mcp.oauth.routes import base_url
from matter_mcp.server import MCP_PATH, mcp

logger = logging.getLogger(__name__)


class BearerChallengeMiddleware:
    """Reject MCP requests that carry no usable Matter credentials with a 401."""

    def __init__(self, app, paths=(MCP_PATH,)):
        self.app = app
        self.paths = tuple(paths)

    def _protected(self, path: str) -> bool:
        return any(path == p or path.startswith(p + "/") for p in self.paths)

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http" or scope.get("method") == "OPTIONS":
            await self.app(scope, receive, send)
            return
        if not self._protected(scope.get("path", "")):
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        if api.resolve_credentials(request) is not None:
            await self.app(scope, receive, send)
            return

        metadata_url = f"{base_url(request)}/.well-known/oauth-protected-resource"
        logger.info("Rejecting unauthenticated MCP request")
        response = JSONResponse(
            {"error": "unauthorized", "error_description": "Matter credentials required"},
            status_code=401,
            headers={"WWW-Authenticate": f'Bearer resource_metadata="{metadata_url}"'},
        )
        await response(scope, receive, send)


def build_http_app(transport: str = "streamable-http") -> Starlette:
    """Build the Starlette app for ``streamable-http`` or ``sse``."""
    if transport == "sse":
        app = mcp.sse_app()
        protected = ("/sse", "/messages")
    elif transport == "streamable-http":
        app = mcp.streamable_http_app()
        protected = (MCP_PATH,)
    else:
        raise ValueError(f"Unsupported HTTP transport: {transport}")

    app.add_middleware(BearerChallengeMiddleware, paths=protected)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["Mcp-Session-Id", "WWW-Authenticate"],
    )
    return app
