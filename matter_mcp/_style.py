"""Terminal styling for the login flow. Plain text when the stream is not a TTY."""

import sys


def _ansi(code: str, stream=None) -> str:
    stream = stream or sys.stdout
    if hasattr(stream, "isatty") and stream.isatty():
        return f"\033[{code}m"
    return ""


def _wrap(text: str, code: str, stream=None) -> str:
    return f"{_ansi(code, stream)}{text}{_ansi('0', stream)}"


def header(version: str) -> str:
    """Return the branded header line."""
    return f"{_wrap('matter-mcp', '1')} {_wrap('v' + version, '2')} · Matter MCP Server"


def step(n: int, text: str, stream=None) -> str:
    """Format a numbered step, e.g. '  [1] Scan the code'."""
    return f"  {_wrap(f'[{n}]', '1', stream)} {text}"


def note(text: str, stream=None) -> str:
    """Indented, dimmed detail line under a step."""
    return f"      {_wrap(text, '2', stream)}"


def success(text: str) -> str:
    return f"  {_wrap('✓', '32')} {text}"


def error(text: str) -> str:
    return f"  {_wrap('✗', '31', sys.stderr)} {text}"


def box(title: str, lines: list[str]) -> str:
    """Render lines inside a titled frame for copy-paste snippets."""
    inner = max([len(line) for line in lines] + [len(title) + 2])
    top = f"  ╭─ {title} " + "─" * (inner - len(title) - 1) + "╮"
    body = [f"  │ {line.ljust(inner)} │" for line in lines]
    bottom = "  ╰" + "─" * (inner + 2) + "╯"
    return "\n".join([top, *body, bottom])
