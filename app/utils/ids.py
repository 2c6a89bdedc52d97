"""Identifier helpers."""
from bson import ObjectId
from bson.errors import InvalidId

from app.services.errors import NotFound


def to_object_id(value: str, what: str = "Document") -> ObjectId:
    """
    Parse a string id into an ObjectId.

    A malformed id cannot match anything, so it is reported the same way
    as a missing document.

    Raises:
        NotFound: If ``value`` is not a valid ObjectId
    """
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise NotFound(f"{what} not found")
