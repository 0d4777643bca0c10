"""Errors that surface to dashboard clients."""

from typing import Any, Dict, Optional


class DashboardException(Exception):
    """Base error carrying an HTTP status and a JSON body."""

    status_code = 500

    def __init__(self, error: str):
        super().__init__(error)
        self.error = error

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error}


class ValidationRejected(DashboardException):
    """Describe request outside the allow-lists or with a malformed path."""

    status_code = 400


class DescribeFailed(DashboardException):
    """The primary describe query failed."""

    def __init__(self, error: str, details: str, command: str):
        super().__init__(error)
        self.details = details
        self.command = command

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error, "details": self.details, "command": self.command}


class SnapshotFailed(DashboardException):
    """A snapshot could not be assembled at all."""

    def __init__(self, error: str, cause: Optional[BaseException] = None):
        super().__init__(error)
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error, "deploymentType": "unknown", "clusters": {}}
