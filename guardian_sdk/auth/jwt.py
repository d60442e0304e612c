"""
JWT construction and RS256 signing for the Guardian protocol.

Three assertion shapes are produced:
- basic JWT: authenticates device-account management calls
- access-approval JWT: the signed ``challenge_response`` that allows or
  rejects a login transaction
- proof-of-possession JWT: binds a rich-consents request to the device key
"""

import hashlib
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import jwt
from cryptography.hazmat.primitives.asymmetric import rsa

from ..types.errors import SigningError
from ..util.encoding import url_safe_encode
from .jwk import create_jwk

logger = logging.getLogger(__name__)


ALGORITHM = "RS256"
BASIC_JWT_EXP_SECS = 2 * 60 * 60
ACCESS_APPROVAL_JWT_EXP_SECS = 30
GUARDIAN_METHOD_PUSH = "push"
DPOP_JWT_TYPE = "dpop+jwt"


@dataclass(frozen=True)
class JWTConfig:
    """Lifetimes of the signed assertions."""
    basic_expiration_secs: int = BASIC_JWT_EXP_SECS
    access_approval_expiration_secs: int = ACCESS_APPROVAL_JWT_EXP_SECS


DEFAULT_JWT_CONFIG = JWTConfig()


def _now(now: Optional[int]) -> int:
    return int(time.time()) if now is None else int(now)


def sign(private_key: Any, claims: Dict[str, Any],
         headers: Optional[Dict[str, Any]] = None) -> str:
    """
    Sign claims with RS256 and return the compact serialization.

    The header always carries ``alg: RS256`` and defaults to ``typ: JWT``.
    """
    if not isinstance(private_key, rsa.RSAPrivateKey):
        raise SigningError(
            f"Unable to generate the signed JWT: RSA private key required, got {type(private_key).__name__}")

    header = {'typ': 'JWT'}
    if headers:
        header.update(headers)

    try:
        token = jwt.encode(claims, private_key, algorithm=ALGORITHM, headers=header)
    except (jwt.PyJWTError, TypeError, ValueError, NotImplementedError) as e:
        logger.error(f"JWT signing failed: {e}")
        raise SigningError("Unable to generate the signed JWT", cause=e)

    if isinstance(token, bytes):
        token = token.decode('utf-8')
    return token


def create_basic_jwt(private_key: Any, audience: str, issuer: str, subject: str,
                     now: Optional[int] = None,
                     config: JWTConfig = DEFAULT_JWT_CONFIG) -> str:
    """JWT used as bearer token for device-account calls."""
    issued_at = _now(now)
    claims = {
        'iat': issued_at,
        'exp': issued_at + config.basic_expiration_secs,
        'aud': audience,
        'iss': issuer,
        'sub': subject,
    }
    return sign(private_key, claims)


def create_access_approval_jwt(private_key: Any, audience: str, device_identifier: str,
                               challenge: str, accepted: bool, reason: Optional[str] = None,
                               now: Optional[int] = None,
                               config: JWTConfig = DEFAULT_JWT_CONFIG) -> str:
    """JWT answering a login challenge."""
    issued_at = _now(now)
    claims = {
        'iat': issued_at,
        'exp': issued_at + config.access_approval_expiration_secs,
        'aud': audience,
        'iss': device_identifier,
        'sub': challenge,
        'auth0_guardian_method': GUARDIAN_METHOD_PUSH,
        'auth0_guardian_accepted': bool(accepted),
    }
    if reason is not None:
        claims['auth0_guardian_reason'] = reason
    return sign(private_key, claims)


def token_hash(token: str) -> str:
    """Base64URL SHA-256 of an access token, used as the ``ath`` claim."""
    return url_safe_encode(hashlib.sha256(token.encode('utf-8')).digest())


def create_proof_of_possession_jwt(private_key: Any, public_key: Any, url: str, method: str,
                                   access_token: str, now: Optional[int] = None) -> str:
    """DPoP-style proof binding method, URL and token to the device key."""
    claims = {
        'htu': url,
        'htm': method.upper(),
        'ath': token_hash(access_token),
        'jti': secrets.token_urlsafe(16),
        'iat': _now(now),
    }
    headers = {
        'typ': DPOP_JWT_TYPE,
        'jwk': create_jwk(public_key),
    }
    return sign(private_key, claims, headers)
