"""
Tests for enrollment ticket parsing.
"""

import pytest

from guardian_sdk.enrollment.ticket import EnrollmentTicket, extract_ticket_id
from guardian_sdk.types.errors import ErrorKind, ValidationError


BASE_URI = ("otpauth://totp/tenant:user@example.com?secret=JBSWY3DPEHPK3PXP"
            "&enrollment_tx_id=tx123&id=dev_abc&base_url=https%3A%2F%2Ftenant.guardian.auth0.com%2F")


def uri(**overrides):
    params = {
        "secret": "JBSWY3DPEHPK3PXP",
        "enrollment_tx_id": "tx123",
        "id": "dev_abc",
        "base_url": "https://tenant.guardian.auth0.com/",
    }
    label = overrides.pop("label", "tenant:user@example.com")
    for key, value in overrides.items():
        if value is None:
            params.pop(key, None)
        else:
            params[key] = value
    query = "&".join(f"{key}={value}" for key, value in params.items())
    return f"otpauth://totp/{label}?{query}"


class TestEnrollmentTicketParse:
    """Test strict parsing of enrollment URIs"""

    def test_full_uri(self):
        """Test every field of a well formed URI"""
        ticket = EnrollmentTicket.parse(BASE_URI)

        assert ticket.enrollment_transaction_id == "tx123"
        assert ticket.device_id == "dev_abc"
        assert ticket.base_url == "https://tenant.guardian.auth0.com/"
        assert ticket.user == "user@example.com"
        assert ticket.issuer == "tenant"
        assert ticket.secret == "JBSWY3DPEHPK3PXP"

    def test_defaults(self):
        """Test default algorithm, digits and period"""
        ticket = EnrollmentTicket.parse(BASE_URI)
        assert (ticket.algorithm, ticket.digits, ticket.period) == ("SHA1", 6, 30)

    def test_explicit_totp_parameters(self):
        """Test algorithm, digits and period from the query"""
        ticket = EnrollmentTicket.parse(uri(algorithm="SHA256", digits="8", period="60"))
        assert (ticket.algorithm, ticket.digits, ticket.period) == ("SHA256", 8, 60)
        assert isinstance(ticket.digits, int)

    def test_idempotent(self):
        """Test parsing twice gives equal tickets"""
        assert EnrollmentTicket.parse(BASE_URI) == EnrollmentTicket.parse(BASE_URI)

    def test_issuer_from_query_only(self):
        """Test a label without issuer prefix"""
        ticket = EnrollmentTicket.parse(uri(label="user", issuer="tenant"))
        assert ticket.user == "user"
        assert ticket.issuer == "tenant"

    def test_matching_issuers(self):
        """Test equal prefix and query issuer"""
        assert EnrollmentTicket.parse(uri(issuer="tenant")).issuer == "tenant"

    def test_conflicting_issuers(self):
        """Test a prefix disagreeing with the query issuer"""
        with pytest.raises(ValidationError) as exc_info:
            EnrollmentTicket.parse(uri(issuer="other"))
        assert exc_info.value.field == "issuer"

    def test_missing_issuer(self):
        """Test a URI without any issuer"""
        with pytest.raises(ValidationError):
            EnrollmentTicket.parse(uri(label="user"))

    @pytest.mark.parametrize("missing", ["secret", "enrollment_tx_id", "id", "base_url"])
    def test_missing_required_parameter(self, missing):
        """Test each required query parameter"""
        with pytest.raises(ValidationError) as exc_info:
            EnrollmentTicket.parse(uri(**{missing: None}))
        assert exc_info.value.kind == ErrorKind.VALIDATION
        assert exc_info.value.field == missing

    def test_invalid_base_url(self):
        """Test a base_url that is not an absolute URL"""
        with pytest.raises(ValidationError):
            EnrollmentTicket.parse(uri(base_url="not-a-url"))

    @pytest.mark.parametrize("name,value", [
        ("digits", "6.5"),
        ("digits", "6.0"),
        ("period", "30.5"),
        ("period", "abc"),
    ])
    def test_fractional_numbers_rejected(self, name, value):
        """Test digits and period must be plain integers"""
        with pytest.raises(ValidationError):
            EnrollmentTicket.parse(uri(**{name: value}))

    @pytest.mark.parametrize("raw", [
        "otpauth://hotp/tenant:user?secret=ABC&enrollment_tx_id=tx&id=d&base_url=https://x.com",
        "http://totp/tenant:user?secret=ABC",
        "otpauth://totp/?secret=ABC&enrollment_tx_id=tx&id=d&base_url=https://x.com",
        "",
    ])
    def test_not_an_enrollment_uri(self, raw):
        """Test wrong scheme, authority and empty label"""
        with pytest.raises(ValidationError):
            EnrollmentTicket.parse(raw)


class TestTryParse:
    """Test lenient detection of enrollment URIs"""

    def test_bare_ticket(self):
        """Test a ticket id is not a URI"""
        assert EnrollmentTicket.try_parse("ticket123") is None

    def test_uri_without_transaction(self):
        """Test a plain TOTP URI"""
        assert EnrollmentTicket.try_parse("otpauth://totp/user?secret=ABC") is None

    def test_full_uri(self):
        """Test a full enrollment URI"""
        assert EnrollmentTicket.try_parse(BASE_URI).device_id == "dev_abc"

    def test_malformed_full_uri_raises(self):
        """Test a full URI missing its secret"""
        with pytest.raises(ValidationError):
            EnrollmentTicket.try_parse(uri(secret=None))


class TestExtractTicketId:
    """Test ticket id extraction used by enrollment"""

    def test_bare_ticket(self):
        """Test the whole input is the ticket"""
        assert extract_ticket_id("T1") == "T1"

    def test_from_uri(self):
        """Test the enrollment_tx_id of a URI"""
        assert extract_ticket_id(BASE_URI) == "tx123"

    def test_other_scheme_is_verbatim(self):
        """Test non otpauth input"""
        raw = "https://example.com/?enrollment_tx_id=tx"
        assert extract_ticket_id(raw) == raw

    def test_uri_without_transaction_is_verbatim(self):
        """Test an otpauth URI without enrollment_tx_id"""
        raw = "otpauth://totp/user?secret=ABC"
        assert extract_ticket_id(raw) == raw
