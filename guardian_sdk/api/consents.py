"""
Rich consents API: the details of what a login transaction asks for.
"""

import logging
from typing import Any, Optional
from urllib.parse import quote

from ..auth.jwt import create_proof_of_possession_jwt
from ..consent.types import RichConsent
from ..networking.request import GuardianAPIRequest
from ..networking.serializer import JsonSerializer
from ..networking.transport import HttpTransport
from ..types.errors import ValidationError
from ..util.url import join_path

logger = logging.getLogger(__name__)


AUTHORIZATION_SCHEME = "MFA-DPoP"
PROOF_HEADER = "MFA-DPoP"


class RichConsentsAPIClient:
    """Fetches consent records with a proof-of-possession bound token."""

    def __init__(self, transport: HttpTransport, base_url: str,
                 serializer: Optional[JsonSerializer] = None):
        self.transport = transport
        self.serializer = serializer or JsonSerializer()
        self.base_url = join_path(base_url, "rich-consents") + "/"

    def consent_url(self, consent_id: str) -> str:
        return self.base_url + quote(consent_id, safe='')

    def fetch(self, consent_id: str, transaction_token: str,
              private_key: Any, public_key: Any) -> GuardianAPIRequest[RichConsent]:
        """
        Build the request for the consent ``consent_id``.

        Raises:
            ValidationError: when the consent id or the token is missing
            SigningError: when the proof cannot be signed
        """
        if not consent_id:
            raise ValidationError("Consent id is required", field='consent_id')
        if not transaction_token:
            raise ValidationError("Transaction token is required", field='transaction_token')

        url = self.consent_url(consent_id)
        proof = create_proof_of_possession_jwt(private_key, public_key, url, 'GET', transaction_token)

        logger.debug(f"Fetching rich consent {consent_id}")
        return GuardianAPIRequest(self.transport, 'GET', url, RichConsent.from_dict, self.serializer) \
            .set_header('Authorization', f"{AUTHORIZATION_SCHEME} {transaction_token}") \
            .set_header(PROOF_HEADER, proof)
