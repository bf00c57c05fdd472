"""
Error hierarchy for the K-map game engine and its collaborators.

Every error carries a machine-readable ``code`` so the HTTP layer can map it
to a status and the client can show a stable message.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class KMapError(Exception):
    """Base exception for all engine errors."""
    code: str = "KMAP_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ConfigurationError(KMapError):
    """Unsupported game configuration, e.g. too many variables."""
    code: str = "CONFIGURATION_ERROR"


class ValidationError(KMapError):
    """A grouping selection (or other request) breaks a game invariant.

    Attributes:
        reason: short tag naming the violated rule, e.g. ``"not_rectangle"``
    """
    code: str = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        reason: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, context=context)
        self.reason = reason
        self.context["reason"] = reason


class NotFoundError(KMapError):
    """Unknown game id. Raised by the persistence layer, never by the engine."""
    code: str = "NOT_FOUND"

    def __init__(
        self,
        message: str,
        game_id: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, context=context)
        self.game_id = game_id
        if game_id is not None:
            self.context["game_id"] = game_id


class InvalidStateError(KMapError):
    """A stored record or in-memory model is inconsistent."""
    code: str = "INVALID_STATE"
