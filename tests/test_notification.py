"""
Tests for push notification decoding.
"""

import json
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from guardian_sdk.notification.notification import Notification, find_enrollment, parse_date


@pytest.fixture
def payload():
    """A complete Guardian push payload"""
    return {
        "d": "2016-06-07T15:59:08.123Z",
        "dai": "dev_123",
        "txtkn": "tx-token",
        "c": "the-challenge",
        "sh": "tenant.guardian.auth0.com",
        "s": json.dumps({"b": {"n": "Chrome", "v": "50.0"}, "os": {"n": "Mac OS", "v": "10.11"}}),
        "l": json.dumps({"n": "Buenos Aires", "lat": "-34.6", "long": -58.4}),
    }


class TestNotificationParse:
    """Test decoding of valid payloads"""

    def test_required_fields(self, payload):
        """Test identifiers, challenge and date"""
        notification = Notification.parse(payload)

        assert notification.enrollment_id == "dev_123"
        assert notification.transaction_token == "tx-token"
        assert notification.challenge == "the-challenge"
        assert notification.date == datetime(2016, 6, 7, 15, 59, 8, 123000, tzinfo=timezone.utc)

    def test_hostname_coerced_to_https(self, payload):
        """Test a bare hostname becomes an https URL"""
        assert Notification.parse(payload).url == "https://tenant.guardian.auth0.com/"

    def test_hostname_with_scheme_kept(self, payload):
        """Test an explicit scheme is kept"""
        payload["sh"] = "http://localhost:8080"
        assert Notification.parse(payload).url == "http://localhost:8080/"

    def test_source(self, payload):
        """Test browser and OS descriptors"""
        notification = Notification.parse(payload)
        assert notification.browser_name == "Chrome"
        assert notification.browser_version == "50.0"
        assert notification.os_name == "Mac OS"
        assert notification.os_version == "10.11"

    def test_location(self, payload):
        """Test location name and coordinates as strings or numbers"""
        notification = Notification.parse(payload)
        assert notification.location == "Buenos Aires"
        assert notification.latitude == pytest.approx(-34.6)
        assert notification.longitude == pytest.approx(-58.4)

    def test_transaction_linking_id(self, payload):
        """Test the consent id"""
        assert Notification.parse(payload).transaction_linking_id is None
        payload["txlnkid"] = "cns_1"
        assert Notification.parse(payload).transaction_linking_id == "cns_1"

    def test_malformed_source_and_location(self, payload):
        """Test broken nested JSON degrades to absent fields"""
        payload["s"] = "{not json"
        payload["l"] = "[1, 2"
        notification = Notification.parse(payload)

        assert notification is not None
        assert notification.browser_name is None
        assert notification.os_name is None
        assert notification.location is None
        assert notification.latitude is None

    def test_optional_fields_absent(self, payload):
        """Test a payload without source and location"""
        del payload["s"]
        del payload["l"]
        notification = Notification.parse(payload)
        assert notification.browser_name is None
        assert notification.location is None


class TestNotificationRejected:
    """Test payloads that are not notifications"""

    @pytest.mark.parametrize("key", ["sh", "dai", "txtkn", "c", "d"])
    def test_missing_required_key(self, payload, key):
        """Test each required key"""
        del payload[key]
        assert Notification.parse(payload) is None

    @pytest.mark.parametrize("date", [
        "2016-06-07T15:59:08Z",
        "2016-06-07 15:59:08.123Z",
        "2016-13-07T15:59:08.123Z",
        "yesterday",
    ])
    def test_unparsable_date(self, payload, date):
        """Test dates outside the strict format"""
        payload["d"] = date
        assert Notification.parse(payload) is None

    def test_not_a_mapping(self):
        """Test arbitrary input"""
        assert Notification.parse(None) is None
        assert Notification.parse("payload") is None

    def test_parse_date(self):
        """Test the date helper"""
        assert parse_date("2020-01-01T00:00:00.000Z").tzinfo == timezone.utc
        assert parse_date(None) is None


class TestEnrollmentMatching:
    """Test matching notifications to enrollments"""

    def test_find_enrollment(self, payload):
        """Test picking the enrollment with the notified id"""
        notification = Notification.parse(payload)
        first = SimpleNamespace(id="dev_1")
        second = SimpleNamespace(id="dev_123")

        assert notification.matches(second)
        assert not notification.matches(first)
        assert find_enrollment(notification, [first, second]) is second
        assert find_enrollment(notification, [first]) is None
