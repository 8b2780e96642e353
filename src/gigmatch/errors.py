"""Error taxonomy shared by the catalog, matching and adapter layers."""

from __future__ import annotations


class GigMatchError(Exception):
    """Base class for domain errors surfaced to callers."""


class NotFoundError(GigMatchError, LookupError):
    """Raised when a referenced record id does not exist."""

    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind} not found: {record_id!r}")
        self.kind = kind
        self.record_id = record_id


class UnauthorizedError(GigMatchError):
    """Raised when a mutating call has no authenticated identity."""


class ValidationError(GigMatchError, ValueError):
    """Raised on malformed input (missing fields, bad radius, bad coordinates)."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []

    def __str__(self) -> str:  # pragma: no cover - trivial
        if not self.errors:
            return self.args[0]
        return f"{self.args[0]}: {'; '.join(self.errors)}"


class UpstreamUnavailableError(GigMatchError):
    """Raised when geocoding or storage I/O fails."""

    def __init__(self, service: str, detail: str):
        super().__init__(f"{service} unavailable: {detail}")
        self.service = service
        self.detail = detail


def from_pydantic(message: str, exc: Exception) -> ValidationError:
    """Convert a pydantic ValidationError into the domain ValidationError."""
    details: list[str] = []
    for item in getattr(exc, "errors", lambda: [])():
        loc = ".".join(str(part) for part in item.get("loc", ()))
        details.append(f"{loc}: {item.get('msg')}" if loc else str(item.get("msg")))
    return ValidationError(message, details)


__all__ = [
    "GigMatchError",
    "NotFoundError",
    "UnauthorizedError",
    "ValidationError",
    "UpstreamUnavailableError",
    "from_pydantic",
]
