#!/usr/bin/env python3
"""
Utility functions for reading environment variables with cross-platform support.

Handles Windows CRLF line endings and other whitespace issues that can occur
when .env files are edited on different operating systems.
"""

import os
import logging
from typing import Optional

logger = logging.getLogger(__name__)


def getenv_clean(key: str, default: Optional[str] = None) -> Optional[str]:
    """Get environment variable with line endings and surrounding whitespace removed.

    Args:
        key: Environment variable name
        default: Default value if variable is not set

    Returns:
        Cleaned environment variable value, or default if not set
    """
    raw_value = os.getenv(key, default)

    if raw_value is None:
        return None

    cleaned = raw_value.strip().rstrip("\r\n")

    if raw_value != cleaned:
        logger.warning(
            f"Environment variable {key} had trailing whitespace/line endings: "
            f"raw={repr(raw_value)}, cleaned={repr(cleaned)}"
        )

    return cleaned


def getenv_int(key: str, default: int, minimum: Optional[int] = None) -> int:
    """Get environment variable as integer.

    Invalid values, and values below ``minimum`` when given, fall back to the default.

    Example:
        >>> # .env file has: SOAP_NAMESPACE_SEARCH_DEPTH=5\r\n
        >>> getenv_int("SOAP_NAMESPACE_SEARCH_DEPTH", 3)
        5
    """
    raw_value = getenv_clean(key, None)

    if raw_value is None or raw_value == "":
        return default

    try:
        value = int(raw_value)
    except ValueError:
        logger.warning(
            f"Environment variable {key} is not a valid integer: {repr(raw_value)}. "
            f"Using default: {default}"
        )
        return default

    if minimum is not None and value < minimum:
        logger.warning(
            f"Environment variable {key}={value} is below the minimum of {minimum}. "
            f"Using default: {default}"
        )
        return default

    return value


def getenv_bool(key: str, default: bool = False) -> bool:
    """Get environment variable as boolean.

    "true", "1", "yes" and "on" (any case) are True; "false", "0", "no", "off"
    and the empty string are False; anything else yields the default.
    """
    raw_value = getenv_clean(key, None)

    if raw_value is None:
        return default

    cleaned_lower = raw_value.lower()
    if cleaned_lower in ("true", "1", "yes", "on"):
        return True
    elif cleaned_lower in ("false", "0", "no", "off", ""):
        return False
    else:
        logger.warning(
            f"Environment variable {key} has unexpected boolean value: {repr(raw_value)}. "
            f"Using default: {default}"
        )
        return default
