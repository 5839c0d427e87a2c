"""
websession HTTP data models.

These models define the request and response bodies of the session API.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

# Request Models (API Input)


class SetValueRequest(BaseModel):
    """Request to store a value under a session key."""

    value: Any = Field(..., description="JSON value to store")


class RestoreSessionRequest(BaseModel):
    """Request to restore a session from a snapshot."""

    snapshot: str = Field(..., description="Snapshot returned by a previous destroy", min_length=1)

    @field_validator("snapshot")
    @classmethod
    def validate_snapshot(cls, v):
        """Reject whitespace-only snapshots before they reach the session."""
        if not v.strip():
            raise ValueError("Snapshot must not be blank")
        return v


# Response Models (API Output)


class SessionResponse(BaseModel):
    """Full contents of the caller's session."""

    name: str = Field(..., description="Session fingerprint name")
    id: str = Field(..., description="Session identifier in the store")
    data: Dict[str, Any] = Field(default_factory=dict, description="Deserialized session data")


class ValueResponse(BaseModel):
    """A single session value."""

    key: str
    value: Any


class StoreResponse(BaseModel):
    """Result of a set operation."""

    key: str
    stored: bool


class DestroyResponse(BaseModel):
    """Snapshot of a destroyed session."""

    snapshot: str = Field(..., description="Opaque snapshot accepted by /session/restore")


class RestoreResponse(BaseModel):
    """Result of a restore operation."""

    restored: bool


class GarbageCollectionResponse(BaseModel):
    """Result of an expired-session sweep."""

    removed: int = Field(..., ge=0)
    max_lifetime_seconds: int


class ErrorResponse(BaseModel):
    """Error body returned by exception handlers."""

    error: str
    detail: Optional[str] = None
