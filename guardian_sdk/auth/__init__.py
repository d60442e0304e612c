# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Signed assertions of the Guardian protocol: RS256 JWTs and RSA JWKs.
"""

from .jwk import create_jwk, public_key_from_jwk
from .jwt import (
    JWTConfig,
    sign,
    create_basic_jwt,
    create_access_approval_jwt,
    create_proof_of_possession_jwt,
    token_hash,
)

__all__ = [
    "create_jwk",
    "public_key_from_jwk",
    "JWTConfig",
    "sign",
    "create_basic_jwt",
    "create_access_approval_jwt",
    "create_proof_of_possession_jwt",
    "token_hash",
]
