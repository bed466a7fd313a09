import uuid


def generate_short_id() -> str:
    """Generate an 8 character document id."""
    return str(uuid.uuid4())[:8]
