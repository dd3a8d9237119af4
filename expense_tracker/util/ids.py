import uuid


def new_id() -> str:
    """Opaque record identifier (32 hex chars)."""
    return uuid.uuid4().hex
