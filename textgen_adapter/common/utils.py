"""
Common Utility Functions
"""

import uuid


def generate_id() -> str:
    """Return a fresh 16-character id for a stream block."""
    return uuid.uuid4().hex[:16]
