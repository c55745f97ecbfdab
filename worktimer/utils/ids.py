"""ObjectId helpers."""
from bson import ObjectId
from bson.errors import InvalidId

from worktimer.exceptions import NotFoundError


def parse_object_id(value: str, what: str = "Resource") -> ObjectId:
    """
    Parse a path id into an ObjectId.

    A malformed id can never match a document, so it is reported the same
    way as a missing one.

    Raises:
        NotFoundError: If value is not a valid ObjectId
    """
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise NotFoundError(f"{what} not found")
