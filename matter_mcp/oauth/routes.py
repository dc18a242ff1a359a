"""
OAuth endpoints bridging Matter's QR login to the authorization-code flow.

MCP clients that speak OAuth (claude.ai and friends) discover these through
the well-known metadata documents, send the user to ``/oauth/authorize``, and
swap the returned code at ``/oauth/token``. The Matter tokens travel inside
the code and the bearer token, so nothing is stored once the login is done.
"""

import asyncio
import html
import json
import logging
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit
from uuid import uuid4

from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, Response

from matter_mcp.clients.matter import exchange_qr_token, refresh_credentials, trigger_qr_login
from matter_mcp.errors import AuthExpired, InvalidEnvelope, QRLoginError
from matter_mcp.models import Credentials
from matter_mcp.oauth.envelope import (
    open_authorization_code,
    seal_authorization_code,
    seal_bearer_token,
)
from matter_mcp.oauth.qr import MAX_POLL_ATTEMPTS, POLL_INTERVAL_SECONDS
from matter_mcp.oauth.store import SessionStore
from matter_mcp.server import MCP_PATH, mcp

logger = logging.getLogger(__name__)

SCOPES = ["read", "write"]

# Pending QR logins, keyed by an unguessable session id handed to the browser
pending_logins = SessionStore()


def base_url(request: Request) -> str:
    """Public base URL, honoring proxy headers."""
    proto = request.headers.get("x-forwarded-proto") or request.url.scheme
    host = request.headers.get("x-forwarded-host") or request.headers.get("host") or request.url.netloc
    return f"{proto}://{host}"


def _with_query(url: str, params: Dict[str, str]) -> str:
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k not in params]
    query.extend(params.items())
    return urlunsplit(parts._replace(query=urlencode(query)))


async def _read_params(request: Request) -> Dict[str, Any]:
    """Parse a JSON or form-encoded body into a dict."""
    body = await request.body()
    if not body:
        return {}
    content_type = request.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            data = json.loads(body)
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
    return dict(parse_qsl(body.decode("utf-8", errors="replace"), keep_blank_values=True))


async def _in_thread(func, *args):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func, *args)


def _oauth_error(error: str, description: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse({"error": error, "error_description": description}, status_code=status_code)


# --- Discovery ---


@mcp.custom_route("/.well-known/oauth-authorization-server", methods=["GET"])
async def authorization_server_metadata(request: Request) -> Response:
    """OAuth 2.0 Authorization Server Metadata (RFC 8414)."""
    base = base_url(request)
    return JSONResponse(
        {
            "issuer": base,
            "authorization_endpoint": f"{base}/oauth/authorize",
            "token_endpoint": f"{base}/oauth/token",
            "registration_endpoint": f"{base}/oauth/register",
            "response_types_supported": ["code"],
            "grant_types_supported": ["authorization_code", "refresh_token"],
            "code_challenge_methods_supported": ["S256", "plain"],
            "token_endpoint_auth_methods_supported": ["none", "client_secret_post"],
            "scopes_supported": SCOPES,
        }
    )


@mcp.custom_route("/.well-known/oauth-protected-resource", methods=["GET"])
async def protected_resource_metadata(request: Request) -> Response:
    """OAuth 2.0 Protected Resource Metadata (RFC 9728)."""
    base = base_url(request)
    return JSONResponse(
        {
            "resource": f"{base}{MCP_PATH}",
            "authorization_servers": [base],
            "bearer_methods_supported": ["header"],
            "scopes_supported": SCOPES,
        }
    )


# Some clients append the resource path to the well-known URL
mcp.custom_route(f"/.well-known/oauth-protected-resource{MCP_PATH}", methods=["GET"])(
    protected_resource_metadata
)


# --- Registration ---


@mcp.custom_route("/oauth/register", methods=["POST"])
async def register_client(request: Request) -> Response:
    """Dynamic Client Registration (RFC 7591).

    There is no client registry; every request gets a fresh client id.
    """
    body = await _read_params(request)
    return JSONResponse(
        {
            "client_id": str(uuid4()),
            "client_name": body.get("client_name") or "MCP Client",
            "redirect_uris": body.get("redirect_uris") or [],
            "grant_types": ["authorization_code", "refresh_token"],
            "response_types": ["code"],
            "token_endpoint_auth_method": "none",
        },
        status_code=201,
    )


# --- Authorization ---

_AUTHORIZE_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Connect to Matter</title>
  <style>
    body {{ font-family: -apple-system, sans-serif; text-align: center; padding: 3rem 1rem; }}
    img {{ width: 200px; height: 200px; }}
    .error {{ color: #b00020; }}
  </style>
</head>
<body>
  <h1>Connect to Matter</h1>
  <p>Scan this QR code with the Matter app on your phone.</p>
  <img src="{qr_code_url}" alt="QR Code">
  <p id="status">Waiting for you to scan...</p>
  <script>
    const sessionId = {session_id};
    async function poll() {{
      const status = document.getElementById("status");
      for (let i = 0; i < {attempts}; i++) {{
        try {{
          const response = await fetch("/oauth/exchange", {{
            method: "POST",
            headers: {{"Content-Type": "application/json"}},
            body: JSON.stringify({{session_id: sessionId}})
          }});
          const data = await response.json();
          if (data.status === "complete") {{
            status.textContent = "Connected! Redirecting...";
            window.location.href = data.redirect_to;
            return;
          }}
          if (response.status === 404) {{
            break;
          }}
        }} catch (e) {{
          console.error("Poll error:", e);
        }}
        await new Promise(r => setTimeout(r, {interval_ms}));
      }}
      status.textContent = "Timed out. Please refresh and try again.";
      status.className = "error";
    }}
    poll();
  </script>
</body>
</html>
"""


@mcp.custom_route("/oauth/authorize", methods=["GET"])
async def authorize(request: Request) -> Response:
    """Start a QR login and show the QR code to the user."""
    redirect_uri = request.query_params.get("redirect_uri")
    state = request.query_params.get("state") or ""

    if not redirect_uri:
        return JSONResponse({"error": "Missing redirect_uri"}, status_code=400)

    try:
        qr_session = await _in_thread(trigger_qr_login)
    except QRLoginError as e:
        logger.warning("QR login trigger failed: %s", e)
        return JSONResponse(
            {"error": "Failed to initiate Matter login", "details": str(e)}, status_code=502
        )

    pending_logins.purge_expired()
    session_id = pending_logins.create(
        {"qr_session": qr_session, "redirect_uri": redirect_uri, "state": state}
    )

    page = _AUTHORIZE_PAGE.format(
        qr_code_url=html.escape(qr_session.qr_code_url, quote=True),
        session_id=json.dumps(session_id),
        attempts=MAX_POLL_ATTEMPTS,
        interval_ms=int(POLL_INTERVAL_SECONDS * 1000),
    )
    return HTMLResponse(page)


@mcp.custom_route("/oauth/exchange", methods=["POST"])
async def exchange(request: Request) -> Response:
    """One poll of a pending QR login on behalf of the authorize page."""
    body = await _read_params(request)
    session_id = body.get("session_id")
    if not session_id:
        return JSONResponse({"error": "Missing session_id"}, status_code=400)

    pending = pending_logins.get(session_id)
    if pending is None:
        return JSONResponse({"status": "expired", "error": "Session not found"}, status_code=404)

    credentials: Optional[Credentials] = await _in_thread(
        exchange_qr_token, pending["qr_session"].session_token
    )
    if credentials is None:
        return JSONResponse({"status": "pending"})

    # Only the first completed poll gets the code
    if pending_logins.pop(session_id) is None:
        return JSONResponse({"status": "expired", "error": "Session not found"}, status_code=404)

    params = {"code": seal_authorization_code(credentials)}
    if pending["state"]:
        params["state"] = pending["state"]
    logger.info("QR login completed, redirecting to client")
    return JSONResponse(
        {"status": "complete", "redirect_to": _with_query(pending["redirect_uri"], params)}
    )


# --- Token ---


def _token_response(credentials: Credentials) -> JSONResponse:
    return JSONResponse(
        {
            "access_token": seal_bearer_token(credentials),
            "token_type": "Bearer",
            "refresh_token": credentials.refresh_token,
        },
        headers={"Cache-Control": "no-store"},
    )


@mcp.custom_route("/oauth/token", methods=["POST"])
async def token(request: Request) -> Response:
    """Swap an authorization code (or refresh token) for a bearer token."""
    params = await _read_params(request)
    grant_type = params.get("grant_type") or "authorization_code"

    if grant_type == "authorization_code":
        code = params.get("code")
        if not code:
            return _oauth_error("invalid_request", "Missing code parameter")
        try:
            credentials = open_authorization_code(code)
        except InvalidEnvelope:
            return _oauth_error("invalid_grant", "Invalid or expired authorization code")
        return _token_response(credentials)

    if grant_type == "refresh_token":
        refresh_token = params.get("refresh_token")
        if not refresh_token:
            return _oauth_error("invalid_request", "Missing refresh_token parameter")
        try:
            credentials = await _in_thread(
                refresh_credentials, Credentials(access_token="", refresh_token=refresh_token)
            )
        except AuthExpired as e:
            logger.info("Refresh grant rejected: %s", e)
            return _oauth_error("invalid_grant", "Refresh token rejected by Matter")
        return _token_response(credentials)

    return _oauth_error("unsupported_grant_type", f"Unsupported grant_type: {grant_type}")
