"""
Time-based one-time password generation (RFC 6238).
"""

import binascii
import hashlib
import time
from datetime import datetime, timezone
from typing import Callable, Optional

import pyotp

from ..types.errors import InvalidArgumentError


ALGORITHMS = {
    'sha1': hashlib.sha1,
    'sha256': hashlib.sha256,
    'sha512': hashlib.sha512,
}

MAX_DIGITS = 8

_SECRET_SEPARATORS = str.maketrans('', '', ' -\t\r\n')


def normalize_secret(secret: str) -> str:
    """Upper-case Base32 secret without grouping separators or padding."""
    if not isinstance(secret, str):
        raise InvalidArgumentError("TOTP secret must be a Base32 string")
    return secret.translate(_SECRET_SEPARATORS).upper().rstrip('=')


class TOTP:
    """RFC 6238 code generator bound to one Base32 secret."""

    def __init__(self, algorithm: str, secret: str, digits: int = 6, period: int = 30,
                 clock: Callable[[], float] = time.time):
        digest = ALGORITHMS.get((algorithm or '').lower())
        if digest is None:
            raise InvalidArgumentError(f"Unsupported algorithm: {algorithm}")
        if not isinstance(digits, int) or not 1 <= digits <= MAX_DIGITS:
            raise InvalidArgumentError(
                f"Unsupported amount of digits. It should be between 1 and {MAX_DIGITS} (was: {digits})")
        if not isinstance(period, int) or period <= 0:
            raise InvalidArgumentError(f"Period must be a positive number of seconds (was: {period})")

        key = normalize_secret(secret)
        if not key:
            raise InvalidArgumentError("TOTP secret is required")
        self._otp = pyotp.TOTP(key, digits=digits, digest=digest, interval=period)
        try:
            self._otp.byte_secret()
        except (binascii.Error, ValueError) as e:
            raise InvalidArgumentError(
                "Enrollment's secret is not a valid Base32 encoded TOTP secret", cause=e)

        self.digits = digits
        self.period = period
        self._clock = clock

    def generate(self) -> str:
        """Code for the current time."""
        return self.generate_at(self._clock())

    def generate_at(self, unix_time: float) -> str:
        """Code for the given unix time in seconds."""
        return self._otp.at(datetime.fromtimestamp(int(unix_time), tz=timezone.utc))

    def generate_for_counter(self, counter: int) -> str:
        """HOTP value for a time-step counter."""
        return self._otp.generate_otp(counter)

    def remaining_seconds(self, unix_time: Optional[float] = None) -> int:
        """Seconds until the current code rotates."""
        now = self._clock() if unix_time is None else unix_time
        return self.period - int(now) % self.period
