"""
Application exceptions

Services raise these; main.py renders them as JSON error envelopes with the
status code carried by the exception class.
"""
from typing import Any, Dict, Optional


class SmartStoreError(Exception):
    """Base class for every error the API reports to clients"""

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "status": "error",
            "code": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(SmartStoreError):
    status_code = 404

    def __init__(self, entity: str, entity_id: Any = None):
        message = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        super().__init__(message, {"entity": entity, "id": entity_id})


class ValidationError(SmartStoreError):
    status_code = 400


class ConflictError(SmartStoreError):
    status_code = 409


class PermissionDeniedError(SmartStoreError):
    status_code = 403


class IntegrationError(SmartStoreError):
    status_code = 502

    def __init__(self, provider: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, {"provider": provider, **(details or {})})
        self.provider = provider


class UsageLimitExceededError(SmartStoreError):
    status_code = 429


class WorkflowError(SmartStoreError):
    status_code = 422


class AuthenticationError(SmartStoreError):
    status_code = 401
