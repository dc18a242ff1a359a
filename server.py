#!/usr/bin/env python3
"""
Matter MCP Server

An MCP server that provides access to a Matter reading list through the Matter API.

Usage:
    # As MCP server (default)
    python server.py

    # Log in with a QR code and print the tokens (run once)
    python server.py --login

This is a backwards-compatible entry point. The actual CLI is in matter_mcp/cli.py.
"""

from matter_mcp.cli import main

if __name__ == "__main__":
    main()
