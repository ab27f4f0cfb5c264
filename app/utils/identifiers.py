"""Identifier generation for persisted entities."""

import uuid


def new_id() -> str:
    """Return a new opaque 32-character hex identifier."""
    return uuid.uuid4().hex
