"""
Rich consent records fetched for a login transaction.

Authorization details are free-form objects tagged with a ``type``. Callers
get typed access by decorating their own classes::

    @authorization_details_type("payment-intent")
    @dataclass
    class PaymentIntent:
        type: str
        amount: float
        currency: str

    consent.requested_details.filter_authorization_details_by_type(PaymentIntent)
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

from ..types.errors import GuardianException

logger = logging.getLogger(__name__)


T = TypeVar('T')

AUTHORIZATION_DETAILS_TYPE_ATTR = "__authorization_details_type__"


def authorization_details_type(type_name: str) -> Callable[[Type[T]], Type[T]]:
    """Class decorator registering the ``type`` tag a class represents."""
    if not type_name:
        raise ValueError("Authorization details type must not be empty")

    def decorator(cls: Type[T]) -> Type[T]:
        setattr(cls, AUTHORIZATION_DETAILS_TYPE_ATTR, type_name)
        return cls

    return decorator


def get_authorization_details_type(cls: type) -> Optional[str]:
    return cls.__dict__.get(AUTHORIZATION_DETAILS_TYPE_ATTR)


def _build(cls: Type[T], data: Dict[str, Any]) -> T:
    from_dict = getattr(cls, 'from_dict', None)
    if callable(from_dict):
        return from_dict(data)
    if dataclasses.is_dataclass(cls):
        names = {f.name for f in dataclasses.fields(cls) if f.init}
        return cls(**{key: value for key, value in data.items() if key in names})
    return cls(**data)


def _timestamp(value: Any) -> Optional[datetime]:
    # epoch seconds
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    return None


@dataclass(frozen=True)
class RichConsentRequestedDetails:
    """What the application asked the user to consent to."""
    audience: Optional[str] = None
    scope: List[str] = field(default_factory=list)
    binding_message: Optional[str] = None
    authorization_details: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RichConsentRequestedDetails":
        if not data:
            return cls()
        scope = data.get('scope') or []
        details = data.get('authorization_details') or []
        return cls(
            audience=data.get('audience'),
            scope=[str(s) for s in scope] if isinstance(scope, list) else [],
            binding_message=data.get('binding_message'),
            authorization_details=[d for d in details if isinstance(d, dict)]
            if isinstance(details, list) else [],
        )

    def filter_authorization_details_by_type(self, cls: Type[T]) -> List[T]:
        """
        Return the authorization details whose ``type`` matches ``cls``.

        Raises:
            GuardianException: if ``cls`` is not decorated with
                ``authorization_details_type`` or an entry cannot be built
        """
        type_name = get_authorization_details_type(cls)
        if type_name is None:
            raise GuardianException(
                f"{cls.__name__} is not decorated with @authorization_details_type")

        result = []
        for entry in self.authorization_details:
            if entry.get('type') != type_name:
                continue
            try:
                result.append(_build(cls, entry))
            except (TypeError, ValueError) as e:
                raise GuardianException(
                    f"Unable to build {cls.__name__} from authorization details", cause=e)
        return result


@dataclass(frozen=True)
class RichConsent:
    """A consent record of a login transaction."""
    id: str
    requested_details: RichConsentRequestedDetails
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RichConsent":
        if not isinstance(data, dict) or not data.get('id'):
            raise ValueError("Rich consent response must contain an 'id'")
        return cls(
            id=data['id'],
            requested_details=RichConsentRequestedDetails.from_dict(data.get('requested_details')),
            created_at=_timestamp(data.get('created_at')),
            expires_at=_timestamp(data.get('expires_at')),
        )
