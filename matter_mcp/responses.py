"""
Response helpers for MCP tools.
"""

import json
import os
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class MatterEncoder(json.JSONEncoder):
    """JSON encoder that handles datetimes and enums."""

    def default(self, obj):
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.name
        return super().default(obj)


def is_compact(compact_output: bool = False) -> bool:
    """Compact mode is on if requested per call or via MATTER_COMPACT."""
    if compact_output:
        return True
    return os.environ.get("MATTER_COMPACT", "").lower() in ("1", "true", "yes")


def make_response(data: Dict[str, Any], hint: str, compact: bool = False) -> str:
    """Create a JSON response with a hint for the model."""
    if not compact:
        data["_hint"] = hint
    return json.dumps(data, indent=2, cls=MatterEncoder)


def make_error(
    error_type: str,
    message: str,
    suggestion: str,
    details: Optional[Any] = None,
    compact: bool = False,
) -> str:
    """Create an educational error response."""
    error_body: Dict[str, Any] = {"type": error_type, "message": message}
    if not compact:
        error_body["suggestion"] = suggestion
        if details is not None:
            error_body["details"] = details
    error: Dict[str, Any] = {"_error": error_body}
    return json.dumps(error, indent=2, cls=MatterEncoder)
