#!/usr/bin/env python3
"""
CLI entry point for Matter MCP Server.

Usage:
    # Log in by scanning a QR code with the Matter app (run once)
    matter-mcp --login

    # As MCP server over stdio (default)
    matter-mcp

    # As a remote MCP server with the OAuth bridge
    matter-mcp --transport streamable-http --host 0.0.0.0 --port 8000
"""

import argparse
import json
import logging
import os
import sys
import webbrowser
from importlib.metadata import version as pkg_version

from matter_mcp._style import box, error, header, note, step, success

try:
    _VERSION = pkg_version("matter-mcp")
except Exception:
    _VERSION = "dev"


def _configure_logging() -> None:
    # stdio transport owns stdout, so logs go to stderr
    logging.basicConfig(
        level=os.environ.get("MATTER_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _print_config_instructions(access_token: str, refresh_token: str) -> None:
    """Print ready-to-paste config for Claude Code and Claude Desktop."""
    print()
    print(step(3, "Add to your MCP client:"))
    print()

    code_lines = [
        "claude mcp add matter \\",
        f"  -e MATTER_ACCESS_TOKEN='{access_token}' \\",
        f"  -e MATTER_REFRESH_TOKEN='{refresh_token}' \\",
        "  -- uvx matter-mcp",
    ]
    print(box("Claude Code", code_lines))

    print()

    desktop_config = json.dumps(
        {
            "mcpServers": {
                "matter": {
                    "command": "uvx",
                    "args": ["matter-mcp"],
                    "env": {
                        "MATTER_ACCESS_TOKEN": access_token,
                        "MATTER_REFRESH_TOKEN": refresh_token,
                    },
                }
            }
        },
        indent=2,
    )
    desktop_lines = ["Add to claude_desktop_config.json:", ""] + desktop_config.splitlines()
    print(box("Claude Desktop", desktop_lines))


def _handle_login(quiet: bool = False) -> None:
    """QR login: show the code, wait for the scan, save and print the tokens."""
    from matter_mcp.api import save_token_file
    from matter_mcp.errors import QRLoginError, QRLoginTimeout
    from matter_mcp.oauth.qr import QRLoginBridge

    bridge = QRLoginBridge()
    # Progress goes to stderr in quiet mode so stdout is only the token JSON
    out = sys.stderr if quiet else sys.stdout

    try:
        if not quiet:
            print(header(_VERSION))
            print()
        qr_session = bridge.start()

        print(step(1, "Scan this QR code with the Matter app on your phone:", out), file=out)
        print(note(qr_session.qr_code_url, out), file=out)
        try:
            webbrowser.open(qr_session.qr_code_url)
        except Exception:
            logging.getLogger(__name__).debug("Could not open a browser", exc_info=True)
        print(file=out)
        print(step(2, "Waiting for you to scan...", out), file=out)

        credentials = bridge.wait_for_credentials(qr_session)
    except KeyboardInterrupt:
        print("\nLogin cancelled.", file=sys.stderr)
        sys.exit(0)
    except QRLoginTimeout as e:
        print(error(str(e)), file=sys.stderr)
        sys.exit(1)
    except QRLoginError as e:
        print(error(f"Login failed: {e}"), file=sys.stderr)
        sys.exit(1)

    token_file = save_token_file(credentials)

    if quiet:
        print(
            json.dumps(
                {
                    "access_token": credentials.access_token,
                    "refresh_token": credentials.refresh_token,
                }
            )
        )
        return

    print(success(f"Logged in! Tokens saved to {token_file}"))
    _print_config_instructions(credentials.access_token, credentials.refresh_token)


def main():
    """Main entry point - handle CLI args or run MCP server."""
    parser = argparse.ArgumentParser(
        description="Matter MCP Server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Log in with a QR code (run once)
  uvx matter-mcp --login

  # Run as MCP server over stdio
  uvx matter-mcp

  # Run with tokens from environment
  MATTER_ACCESS_TOKEN=... MATTER_REFRESH_TOKEN=... uvx matter-mcp

  # Run as remote server (OAuth bridge for claude.ai)
  uvx matter-mcp --transport streamable-http --port 8000
""",
    )
    parser.add_argument(
        "--login",
        action="store_true",
        help="Log in by scanning a QR code with the Matter app and print the tokens",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="With --login: output only the raw token JSON (for scripting)",
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "sse", "streamable-http"],
        default=os.environ.get("MATTER_TRANSPORT", "stdio"),
        help=(
            "MCP transport (default: stdio). HTTP transports only use credentials sent "
            "with each request unless MATTER_HTTP_LOCAL_CREDENTIALS=1"
        ),
    )
    parser.add_argument("--host", default="127.0.0.1", help="Bind address for HTTP transports")
    parser.add_argument("--port", type=int, default=8000, help="Port for HTTP transports")

    args = parser.parse_args()
    _configure_logging()

    if args.login:
        _handle_login(quiet=args.quiet)
    else:
        # MCP server mode - only now import the full server
        from matter_mcp.server import run

        run(transport=args.transport, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
