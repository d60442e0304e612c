"""
Core types and data structures for the Guardian SDK.

Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

from ..types.errors import ValidationError


DEFAULT_PUSH_SERVICE = "GCM"


@dataclass(frozen=True)
class TotpParams:
    """TOTP settings of an enrollment. Either all present or no TOTP at all."""
    secret: str
    algorithm: str
    digits: int
    period: int

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["TotpParams"]:
        """Build from the ``totp`` block of an enroll response."""
        if data is None:
            return None
        if not isinstance(data, dict):
            raise ValidationError("Invalid TOTP data: expected an object", field='totp')

        missing = [key for key in ('secret', 'algorithm', 'digits', 'period') if data.get(key) is None]
        if missing:
            raise ValidationError(f"Invalid TOTP data, missing fields: {', '.join(missing)}", field='totp')

        try:
            digits = _as_int(data['digits'])
            period = _as_int(data['period'])
        except (TypeError, ValueError) as e:
            raise ValidationError("Invalid TOTP data: digits and period must be integers",
                                  field='totp', cause=e)

        return cls(secret=str(data['secret']), algorithm=str(data['algorithm']),
                   digits=digits, period=period)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'secret': self.secret,
            'algorithm': self.algorithm,
            'digits': self.digits,
            'period': self.period,
        }


def _as_int(value: Any) -> int:
    # JSON numbers may arrive as 6.0
    if isinstance(value, bool):
        raise TypeError("boolean is not an integer")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{value} is not an integer")
        return int(value)
    return int(value)


@dataclass(frozen=True)
class CurrentDevice:
    """The local device being enrolled."""
    identifier: str
    name: str
    notification_token: Optional[str] = None


@dataclass(frozen=True)
class PushCredentials:
    """Push transport settings of a device account."""
    token: str
    service: str = DEFAULT_PUSH_SERVICE

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["PushCredentials"]:
        if not isinstance(data, dict) or not data.get('token'):
            return None
        return cls(token=data['token'], service=data.get('service') or DEFAULT_PUSH_SERVICE)

    def to_dict(self) -> Dict[str, str]:
        return {'service': self.service, 'token': self.token}


@dataclass(frozen=True)
class Device:
    """Device account data as stored by the Guardian server."""
    id: Optional[str] = None
    identifier: Optional[str] = None
    name: Optional[str] = None
    push_credentials: Optional[PushCredentials] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Device":
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError("Device account response must be an object")
        return cls(
            id=data.get('id'),
            identifier=data.get('identifier'),
            name=data.get('name'),
            push_credentials=PushCredentials.from_dict(data.get('push_credentials')),
        )


@dataclass(frozen=True)
class Enrollment:
    """
    A device enrolled as a Guardian second factor.

    The signing key is owned by the caller. It is never serialized and never
    shows up in ``repr``.
    """
    id: str
    user_id: str
    device_identifier: str
    device_name: str
    device_token: str
    signing_key: Any = field(repr=False, compare=False)
    notification_token: Optional[str] = None
    totp: Optional[TotpParams] = None
    url: Optional[str] = None
    issuer: Optional[str] = None
    recovery_code: Optional[str] = field(default=None, repr=False)

    @property
    def public_key(self) -> Any:
        return self.signing_key.public_key()

    # Flat TOTP accessors
    @property
    def secret(self) -> Optional[str]:
        return self.totp.secret if self.totp else None

    @property
    def algorithm(self) -> Optional[str]:
        return self.totp.algorithm if self.totp else None

    @property
    def digits(self) -> Optional[int]:
        return self.totp.digits if self.totp else None

    @property
    def period(self) -> Optional[int]:
        return self.totp.period if self.totp else None

    def with_device_token(self, device_token: str) -> "Enrollment":
        """Copy with the device token issued by a re-enrollment."""
        return replace(self, device_token=device_token)

    def with_notification_token(self, notification_token: Optional[str]) -> "Enrollment":
        """Copy with a refreshed push notification token."""
        return replace(self, notification_token=notification_token)

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form, without the signing key."""
        return {
            'id': self.id,
            'user_id': self.user_id,
            'device_identifier': self.device_identifier,
            'device_name': self.device_name,
            'device_token': self.device_token,
            'notification_token': self.notification_token,
            'totp': self.totp.to_dict() if self.totp else None,
            'url': self.url,
            'issuer': self.issuer,
            'recovery_code': self.recovery_code,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], signing_key: Any) -> "Enrollment":
        """Restore an enrollment saved with ``to_dict``; the key is stored by the caller."""
        missing = [key for key in ('id', 'user_id', 'device_identifier', 'device_name', 'device_token')
                   if not data.get(key)]
        if missing:
            raise ValidationError(f"Invalid enrollment data, missing fields: {', '.join(missing)}")
        return cls(
            id=data['id'],
            user_id=data['user_id'],
            device_identifier=data['device_identifier'],
            device_name=data['device_name'],
            device_token=data['device_token'],
            signing_key=signing_key,
            notification_token=data.get('notification_token'),
            totp=TotpParams.from_dict(data.get('totp')),
            url=data.get('url'),
            issuer=data.get('issuer'),
            recovery_code=data.get('recovery_code'),
        )
