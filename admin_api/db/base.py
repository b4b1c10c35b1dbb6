"""Declarative base shared by all models."""

import uuid
from typing import Optional

from sqlalchemy.orm import declarative_base

Base = declarative_base()


def generate_uuid() -> str:
    return str(uuid.uuid4())


def normalize_id(value) -> Optional[str]:
    """Canonical UUID string for ``value``, or None when it is not a UUID."""
    try:
        return str(uuid.UUID(str(value)))
    except (ValueError, TypeError, AttributeError):
        return None
