"""
Encoding and decoding utilities for the Guardian SDK.
Provides Base64URL (JWK parts), JSON and masking helpers.
"""

import base64
import binascii
import json
from typing import Any, Optional, Union


class EncodingError(ValueError):
    """Raised when data cannot be encoded or decoded."""


def url_safe_encode(data: Union[str, bytes]) -> str:
    """Encode data to URL-safe base64 string without padding."""
    if isinstance(data, str):
        data = data.encode('utf-8')

    return base64.urlsafe_b64encode(data).decode('ascii').rstrip('=')


def url_safe_decode(encoded: str) -> bytes:
    """Decode URL-safe base64 string (padding optional) to bytes."""
    # Add padding if needed
    padding = 4 - (len(encoded) % 4)
    if padding != 4:
        encoded += '=' * padding

    try:
        return base64.urlsafe_b64decode(encoded)
    except (binascii.Error, ValueError) as e:
        raise EncodingError(f"Invalid URL-safe base64 data: {e}")


def int_to_base64url(value: int) -> str:
    """Encode a non-negative integer as unsigned big-endian Base64URL."""
    if value < 0:
        raise EncodingError("Only non-negative integers can be encoded")
    length = max(1, (value.bit_length() + 7) // 8)
    return url_safe_encode(value.to_bytes(length, 'big'))


def base64url_to_int(encoded: str) -> int:
    """Decode an unsigned big-endian Base64URL integer."""
    return int.from_bytes(url_safe_decode(encoded), 'big')


def safe_json_encode(data: Any) -> str:
    """
    Encode data to a compact JSON string.
    Datetimes are rendered in ISO format.
    """
    def json_serializer(obj):
        if hasattr(obj, 'isoformat'):  # datetime objects
            return obj.isoformat()
        raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")

    try:
        return json.dumps(data, default=json_serializer,
                          separators=(',', ':'), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise EncodingError(f"Failed to encode JSON: {e}")


def safe_json_decode(json_str: Any, default: Any = None) -> Any:
    """
    Safely decode JSON string to Python object.
    Returns default value if decoding fails.
    """
    if not isinstance(json_str, str):
        return default

    try:
        return json.loads(json_str)
    except (json.JSONDecodeError, ValueError):
        return default


def mask_sensitive_data(data: Optional[str], mask_char: str = '*',
                        show_first: int = 2, show_last: int = 2) -> str:
    """
    Mask sensitive data leaving only first and last characters visible.
    """
    if not isinstance(data, str) or len(data) <= (show_first + show_last):
        return mask_char * len(data) if data else ""

    first_part = data[:show_first]
    last_part = data[-show_last:] if show_last > 0 else ""
    middle_length = len(data) - show_first - show_last

    return first_part + (mask_char * middle_length) + last_part
