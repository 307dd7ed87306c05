"""
Identifier generation for saved configurations and deployment runs.
"""

import random
import string
from datetime import datetime


def _new_id(prefix: str) -> str:
    now = datetime.now()
    random_suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=4))
    return f"{prefix}-{now.strftime('%Y%m%d')}-{now.strftime('%H%M%S')}-{random_suffix}"


def new_config_id() -> str:
    """
    Generate a saved-config ID in format: c-YYYYMMDD-hhmmss-XXXX

    Returns:
        str: Unique config ID
    """
    return _new_id("c")


def new_run_id() -> str:
    """Deployment run ID in format: d-YYYYMMDD-hhmmss-XXXX"""
    return _new_id("d")


def is_valid_id(value: str, prefix: str) -> bool:
    """
    Validate ID format.

    Args:
        value: ID to validate
        prefix: Expected prefix ("c" or "d")

    Returns:
        bool: True if valid format
    """
    parts = value.split("-")
    if len(parts) != 4 or parts[0] != prefix:
        return False

    # Check date format (YYYYMMDD)
    if len(parts[1]) != 8 or not parts[1].isdigit():
        return False

    # Check time format (HHMMSS)
    if len(parts[2]) != 6 or not parts[2].isdigit():
        return False

    # Check random suffix (4 alphanumeric)
    return len(parts[3]) == 4 and parts[3].isalnum()
