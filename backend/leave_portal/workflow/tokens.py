import uuid


def new_stage_token() -> str:
    """Opaque stage token: a random (version 4) UUID in canonical form."""
    return str(uuid.uuid4())
