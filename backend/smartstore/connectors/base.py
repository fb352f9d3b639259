"""
Shared helpers for third-party connectors
"""
from typing import Any, Dict, Optional

from smartstore.core.config import settings


def connection_result(success: bool, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Shape returned by every connector's test_connection()"""
    return {"success": success, "message": message, "details": details or {}}


def default_timeout() -> float:
    return float(settings.INTEGRATION_TIMEOUT_SECONDS)


def error_text(response) -> str:
    """Best-effort error message from a vendor error response"""
    try:
        body = response.json()
    except ValueError:
        return (response.text or "")[:200]

    if isinstance(body, dict):
        error = body.get("error") or body.get("errors") or body.get("message")
        if isinstance(error, dict):
            return str(error.get("message") or error)
        if isinstance(error, list) and error:
            first = error[0]
            return str(first.get("message") if isinstance(first, dict) else first)
        if error:
            return str(error)
    return str(body)[:200]


def json_object(response) -> Optional[Dict[str, Any]]:
    """Response body as a dict, or None when it is not a JSON object"""
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None
