import uuid


def new_id() -> str:
    """Generate a primary key for a new row (UUID4 in canonical text form)."""
    return str(uuid.uuid4())
