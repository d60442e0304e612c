# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Utility package for the Guardian SDK: encodings, environment configuration
and base URL handling.
"""

from .encoding import (
    EncodingError, url_safe_encode, url_safe_decode, int_to_base64url,
    base64url_to_int, safe_json_encode, safe_json_decode, mask_sensitive_data
)
from .config import (
    get_config_value, get_bool_config, get_float_config, get_list_config
)
from .url import (
    DEFAULT_PATH_SEGMENT, DEFAULT_FIRST_PARTY_HOST_PATTERNS, validate_url,
    is_normalized, normalize_base_url, url_from_domain, join_path
)

__all__ = [
    # Encoding
    "EncodingError", "url_safe_encode", "url_safe_decode", "int_to_base64url",
    "base64url_to_int", "safe_json_encode", "safe_json_decode", "mask_sensitive_data",

    # Configuration
    "get_config_value", "get_bool_config", "get_float_config", "get_list_config",

    # URLs
    "DEFAULT_PATH_SEGMENT", "DEFAULT_FIRST_PARTY_HOST_PATTERNS", "validate_url",
    "is_normalized", "normalize_base_url", "url_from_domain", "join_path",
]
