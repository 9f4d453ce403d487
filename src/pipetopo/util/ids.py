"""ID generation utilities."""

from secrets import token_hex


def new_resource_suffix() -> str:
    """Create a short random suffix for generated resource names: <6 hex chars>."""
    return token_hex(3)
