# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Error types of the Guardian SDK.
"""

from .errors import (
    ErrorKind,
    GuardianException,
    TransportError,
    InvalidResponseError,
    ValidationError,
    InvalidArgumentError,
    SigningError,
    CancelledRequestError,
    is_invalid_otp,
    is_invalid_token,
    is_enrollment_not_found,
    is_enrollment_transaction_not_found,
    is_login_transaction_not_found,
    is_resource_not_found,
)

__all__ = [
    "ErrorKind",
    "GuardianException",
    "TransportError",
    "InvalidResponseError",
    "ValidationError",
    "InvalidArgumentError",
    "SigningError",
    "CancelledRequestError",
    "is_invalid_otp",
    "is_invalid_token",
    "is_enrollment_not_found",
    "is_enrollment_transaction_not_found",
    "is_login_transaction_not_found",
    "is_resource_not_found",
]
