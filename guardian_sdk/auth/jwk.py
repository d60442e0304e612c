"""
JSON Web Key export/import for RSA public keys.
"""

from typing import Any, Dict

from cryptography.hazmat.primitives.asymmetric import rsa

from ..types.errors import InvalidArgumentError
from ..util.encoding import EncodingError, base64url_to_int, int_to_base64url


def create_jwk(public_key: Any) -> Dict[str, str]:
    """
    Export an RSA public key as a signing JWK.

    ``e`` and ``n`` are unsigned big-endian integers in Base64URL without
    padding.
    """
    if not isinstance(public_key, rsa.RSAPublicKey):
        raise InvalidArgumentError("Only RSA keys are supported")

    numbers = public_key.public_numbers()
    return {
        'kty': 'RSA',
        'alg': 'RS256',
        'use': 'sig',
        'e': int_to_base64url(numbers.e),
        'n': int_to_base64url(numbers.n),
    }


def public_key_from_jwk(jwk: Dict[str, Any]) -> rsa.RSAPublicKey:
    """Rebuild an RSA public key from a JWK produced by create_jwk."""
    if not isinstance(jwk, dict) or jwk.get('kty') != 'RSA':
        raise InvalidArgumentError("Only RSA JWKs are supported")

    try:
        numbers = rsa.RSAPublicNumbers(base64url_to_int(jwk['e']), base64url_to_int(jwk['n']))
        return numbers.public_key()
    except (KeyError, EncodingError, ValueError) as e:
        raise InvalidArgumentError(f"Invalid RSA JWK: {e}", cause=e)
