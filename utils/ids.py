from bson import ObjectId
from bson.errors import InvalidId
from core.exceptions import ValidationFailed

def parse_object_id(value, label: str = "id") -> ObjectId:
    """Turn a path/body id into an ObjectId, or fail with VALIDATION_ERROR."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise ValidationFailed(f"Invalid {label}: {value}")

def iso(value):
    return value.isoformat() if value else None
