"""
API Module - Black Box Interface

Purpose: HTTP request and response models for the session API
Interface: Pydantic models
Hidden: Validation rules

The API module only describes payloads - it contains no session logic.
"""

from .models import (
    DestroyResponse,
    ErrorResponse,
    GarbageCollectionResponse,
    RestoreResponse,
    RestoreSessionRequest,
    SessionResponse,
    SetValueRequest,
    StoreResponse,
    ValueResponse,
)

__all__ = [
    "SetValueRequest",
    "RestoreSessionRequest",
    "SessionResponse",
    "ValueResponse",
    "StoreResponse",
    "DestroyResponse",
    "RestoreResponse",
    "GarbageCollectionResponse",
    "ErrorResponse",
]
