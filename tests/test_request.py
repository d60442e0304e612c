"""
Tests for the request execution engine against a local server.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from guardian_sdk.consent.types import RichConsent
from guardian_sdk.networking.request import (
    Callback,
    FunctionCallback,
    GuardianAPIRequest,
    map_request,
    run_async,
    run_blocking,
)
from guardian_sdk.networking.transport import HttpTransport
from guardian_sdk.types.errors import (
    CancelledRequestError,
    ErrorKind,
    GuardianException,
    InvalidResponseError,
    TransportError,
    ValidationError,
)
from guardian_sdk.util.encoding import safe_json_decode, url_safe_decode


class RecordingCallback(Callback):
    """Counts deliveries and remembers the delivering thread"""

    def __init__(self):
        self.successes = []
        self.failures = []
        self.threads = []
        self.delivered = threading.Event()

    def on_success(self, value):
        self.successes.append(value)
        self.threads.append(threading.current_thread())
        self.delivered.set()

    def on_failure(self, error):
        self.failures.append(error)
        self.threads.append(threading.current_thread())
        self.delivered.set()

    def wait(self, timeout=5.0):
        assert self.delivered.wait(timeout)
        # leave room for a second, wrong delivery
        time.sleep(0.05)
        assert len(self.successes) + len(self.failures) == 1


def make_request(transport, service, method="GET", path="resource", parser=lambda data: data):
    return GuardianAPIRequest(transport, method, service.url + path, parser)


DEEPLY_NESTED = "[" * 100000 + "]" * 100000


class TestBlocking:
    """Test run_blocking"""

    def test_success(self, transport, mock_service):
        """Test a JSON response becomes the value"""
        mock_service.enqueue_json({"hello": "world"})
        assert run_blocking(make_request(transport, mock_service)) == {"hello": "world"}

    def test_default_headers(self, transport, mock_service):
        """Test client identification headers"""
        mock_service.enqueue_json({})
        run_blocking(make_request(transport, mock_service))
        recorded = mock_service.take_request()

        assert recorded.header("Accept-Language") == "en-US"
        assert recorded.header("User-Agent").startswith("GuardianSDK/")
        client = safe_json_decode(url_safe_decode(recorded.header("Auth0-Client")).decode("utf-8"))
        assert client["name"] == "Guardian.Python"
        assert "env" not in client

    def test_body_and_query(self, transport, mock_service):
        """Test parameters, query and bearer"""
        mock_service.enqueue_json({})
        request = make_request(transport, mock_service, "POST") \
            .set_parameter("a", 1) \
            .set_parameter("b", "two") \
            .set_query_parameter("q", "x") \
            .set_bearer("token")
        request.execute()
        recorded = mock_service.take_request()

        assert recorded.method == "POST"
        assert recorded.path == "/resource"
        assert recorded.query == {"q": "x"}
        assert recorded.json() == {"a": 1, "b": "two"}
        assert recorded.header("Authorization") == "Bearer token"
        assert recorded.header("Content-Type").startswith("application/json")

    def test_empty_body(self, transport, mock_service):
        """Test an empty success response"""
        mock_service.enqueue_empty()
        assert run_blocking(make_request(transport, mock_service, "DELETE", parser=lambda _: None)) is None

    def test_structured_error(self, transport, mock_service):
        """Test an error body is classified"""
        mock_service.enqueue_json({"errorCode": "invalid_token", "error": "Unauthorized"}, status=401)
        with pytest.raises(GuardianException) as exc_info:
            run_blocking(make_request(transport, mock_service))

        assert exc_info.value.is_invalid_token()
        assert exc_info.value.status_code == 401
        assert exc_info.value.kind == ErrorKind.PROTOCOL

    def test_unparseable_error(self, transport, mock_service):
        """Test a non JSON error keeps status and body"""
        mock_service.enqueue_text("Bad Gateway", status=502)
        with pytest.raises(GuardianException) as exc_info:
            run_blocking(make_request(transport, mock_service))

        assert exc_info.value.kind == ErrorKind.PROTOCOL_UNPARSEABLE
        assert exc_info.value.status_code == 502
        assert exc_info.value.error_body == "Bad Gateway"

    def test_redirect_status_is_error(self, transport, mock_service):
        """Test statuses outside 2xx"""
        mock_service.enqueue_json({"message": "moved"}, status=300)
        with pytest.raises(GuardianException) as exc_info:
            run_blocking(make_request(transport, mock_service))
        assert exc_info.value.status_code == 300

    def test_invalid_json(self, transport, mock_service):
        """Test a success response that is not JSON"""
        mock_service.enqueue_text("not json")
        with pytest.raises(InvalidResponseError):
            run_blocking(make_request(transport, mock_service))

    def test_parser_failure(self, transport, mock_service):
        """Test a response missing what the parser needs"""
        mock_service.enqueue_json({})
        with pytest.raises(InvalidResponseError):
            run_blocking(make_request(transport, mock_service, parser=lambda data: data["id"]))

    def test_out_of_range_value(self, transport, mock_service):
        """Test a value the parser cannot represent becomes InvalidResponseError"""
        mock_service.enqueue_json({"id": "c1", "created_at": 1e300})
        with pytest.raises(InvalidResponseError) as exc_info:
            run_blocking(make_request(transport, mock_service, parser=RichConsent.from_dict))
        assert isinstance(exc_info.value.__cause__, (OverflowError, ValueError, OSError))

    def test_deeply_nested_error_body(self, transport, mock_service):
        """Test an error body too deep to decode is unparseable"""
        mock_service.enqueue_text(DEEPLY_NESTED, status=500)
        with pytest.raises(GuardianException) as exc_info:
            run_blocking(make_request(transport, mock_service))

        assert exc_info.value.kind == ErrorKind.PROTOCOL_UNPARSEABLE
        assert exc_info.value.status_code == 500

    def test_deeply_nested_success_body(self, transport, mock_service):
        """Test a success body too deep to decode"""
        mock_service.enqueue_text(DEEPLY_NESTED)
        with pytest.raises(InvalidResponseError):
            run_blocking(make_request(transport, mock_service))

    def test_transport_error(self):
        """Test a connection failure"""
        with HttpTransport(timeout=5) as transport:
            request = GuardianAPIRequest(transport, "GET", "http://127.0.0.1:1/", lambda data: data)
            with pytest.raises(TransportError) as exc_info:
                run_blocking(request)
        assert exc_info.value.__cause__ is not None

    def test_closed_transport(self, mock_service):
        """Test using a closed transport"""
        transport = HttpTransport()
        transport.close()
        transport.close()
        with pytest.raises(RuntimeError):
            run_blocking(make_request(transport, mock_service))


class TestBodyRules:
    """Test request body validation"""

    def test_get_with_body(self, transport, mock_service):
        """Test GET cannot carry a body"""
        request = make_request(transport, mock_service).set_parameter("a", 1)
        with pytest.raises(ValidationError):
            request.build_call()

    @pytest.mark.parametrize("method", ["POST", "PUT", "PATCH"])
    def test_body_required(self, transport, mock_service, method):
        """Test methods needing a body"""
        with pytest.raises(ValidationError):
            make_request(transport, mock_service, method).build_call()
        with pytest.raises(ValidationError):
            make_request(transport, mock_service, method).set_body({}).build_call()

    def test_delete_without_body(self, transport, mock_service):
        """Test DELETE needs no body"""
        assert make_request(transport, mock_service, "DELETE").build_call().body is None

    def test_body_and_parameters_exclusive(self, transport, mock_service):
        """Test explicit body and parameters cannot be combined"""
        with pytest.raises(ValidationError):
            make_request(transport, mock_service, "POST").set_body({"a": 1}).set_parameter("b", 2)
        with pytest.raises(ValidationError):
            make_request(transport, mock_service, "POST").set_parameter("b", 2).set_body({"a": 1})

    def test_explicit_body(self, transport, mock_service):
        """Test an explicit body object"""
        call = make_request(transport, mock_service, "PUT").set_body([1, 2]).build_call()
        assert call.body == b"[1,2]"


class TestAsync:
    """Test run_async delivery"""

    def test_success_delivered_once(self, transport, mock_service):
        """Test on_success fires exactly once on the transport thread"""
        mock_service.enqueue_json({"ok": True})
        callback = RecordingCallback()
        pending = run_async(make_request(transport, mock_service), callback)

        callback.wait()
        assert callback.successes == [{"ok": True}]
        assert callback.threads[0].name == "guardian-transport"
        assert pending.result(5) == {"ok": True}
        assert pending.done()

    def test_failure_delivered_once(self, transport, mock_service):
        """Test on_failure fires exactly once"""
        mock_service.enqueue_json({"errorCode": "invalid_otp"}, status=400)
        callback = RecordingCallback()
        pending = run_async(make_request(transport, mock_service), callback)

        callback.wait()
        assert callback.failures[0].is_invalid_otp()
        assert pending.exception(5) is callback.failures[0]

    def test_parse_failure_delivered_once(self, transport, mock_service):
        """Test parsing errors reach on_failure"""
        mock_service.enqueue_json([])
        callback = RecordingCallback()
        run_async(make_request(transport, mock_service, parser=lambda data: data["id"]), callback)

        callback.wait()
        assert isinstance(callback.failures[0], InvalidResponseError)

    def test_out_of_range_value_delivered_once(self, transport, mock_service):
        """Test any parser error reaches on_failure"""
        mock_service.enqueue_json({"id": "c1", "created_at": 1e300})
        callback = RecordingCallback()
        pending = run_async(make_request(transport, mock_service, parser=RichConsent.from_dict), callback)

        callback.wait()
        assert isinstance(callback.failures[0], InvalidResponseError)
        assert pending.done()
        with pytest.raises(InvalidResponseError):
            pending.result(5)

    def test_deeply_nested_error_delivered_once(self, transport, mock_service):
        """Test an undecodable error body reaches on_failure"""
        mock_service.enqueue_text(DEEPLY_NESTED, status=500)
        callback = RecordingCallback()
        pending = run_async(make_request(transport, mock_service), callback)

        callback.wait()
        assert callback.failures[0].kind == ErrorKind.PROTOCOL_UNPARSEABLE
        assert pending.exception(5) is callback.failures[0]

    def test_unexpected_parser_error_delivered_once(self, transport, mock_service):
        """Test errors outside the usual parsing ones"""
        mock_service.enqueue_json({})

        def parser(data):
            raise LookupError("unexpected")

        callback = RecordingCallback()
        run_async(make_request(transport, mock_service, parser=parser), callback)
        callback.wait()
        assert isinstance(callback.failures[0], InvalidResponseError)

    def test_transport_failure_delivered_once(self):
        """Test connection errors reach on_failure"""
        with HttpTransport(timeout=5) as transport:
            callback = RecordingCallback()
            request = GuardianAPIRequest(transport, "GET", "http://127.0.0.1:1/", lambda data: data)
            run_async(request, callback)
            callback.wait()
        assert isinstance(callback.failures[0], TransportError)

    def test_executor(self, transport, mock_service):
        """Test callbacks run on the given executor"""
        mock_service.enqueue_json({})
        callback = RecordingCallback()
        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="ui") as executor:
            run_async(make_request(transport, mock_service), callback, executor)
            callback.wait()
        assert callback.threads[0].name.startswith("ui")

    def test_function_callback(self, transport, mock_service):
        """Test plain function callbacks"""
        mock_service.enqueue_json({"a": 1})
        received = []
        done = threading.Event()

        def on_success(value):
            received.append(value)
            done.set()

        run_async(make_request(transport, mock_service), FunctionCallback(on_success=on_success))
        assert done.wait(5)
        assert received == [{"a": 1}]

    def test_no_callback(self, transport, mock_service):
        """Test waiting on the pending request only"""
        mock_service.enqueue_json({"a": 1})
        assert make_request(transport, mock_service).start().result(5) == {"a": 1}

    def test_cancel(self, transport, mock_service):
        """Test cancellation delivers one CancelledRequestError"""
        mock_service.enqueue_json({"late": True}, delay=1.0)
        callback = RecordingCallback()
        pending = run_async(make_request(transport, mock_service), callback)

        assert pending.cancel()
        callback.wait()
        assert isinstance(callback.failures[0], CancelledRequestError)
        assert pending.cancelled()
        with pytest.raises(CancelledRequestError):
            pending.result(5)
        assert not pending.cancel()

    def test_cancel_after_completion(self, transport, mock_service):
        """Test cancelling a finished request"""
        mock_service.enqueue_json({})
        callback = RecordingCallback()
        pending = run_async(make_request(transport, mock_service), callback)
        callback.wait()

        assert not pending.cancel()
        assert not pending.cancelled()
        assert callback.failures == []

    def test_callback_error_does_not_redeliver(self, transport, mock_service):
        """Test an exception in on_success does not trigger on_failure"""
        mock_service.enqueue_json({})
        calls = []
        done = threading.Event()

        def on_success(value):
            calls.append("success")
            done.set()
            raise RuntimeError("boom")

        run_async(make_request(transport, mock_service),
                  FunctionCallback(on_success=on_success, on_failure=lambda e: calls.append("failure")))
        assert done.wait(5)
        time.sleep(0.05)
        assert calls == ["success"]

    def test_blocking_on_transport_thread(self, transport, mock_service):
        """Test blocking from a callback is refused"""
        mock_service.enqueue_json({})
        errors = []
        done = threading.Event()

        def on_success(value):
            try:
                run_blocking(make_request(transport, mock_service))
            except RuntimeError as e:
                errors.append(e)
            done.set()

        run_async(make_request(transport, mock_service), FunctionCallback(on_success=on_success))
        assert done.wait(5)
        assert len(errors) == 1


class TestMapRequest:
    """Test composing post-processing steps"""

    def test_map(self, transport, mock_service):
        """Test the mapped value"""
        mock_service.enqueue_json({"id": "E1"})
        request = map_request(make_request(transport, mock_service), lambda data: data["id"])
        assert run_blocking(request) == "E1"

    def test_map_failure(self, transport, mock_service):
        """Test a failing step fails the request once"""
        mock_service.enqueue_json({})

        def fail(data):
            raise ValidationError("missing id")

        callback = RecordingCallback()
        run_async(map_request(make_request(transport, mock_service), fail), callback)
        callback.wait()
        assert isinstance(callback.failures[0], ValidationError)

    def test_source_request_unchanged(self, transport, mock_service):
        """Test mapping copies the request"""
        source = make_request(transport, mock_service).set_header("X-Test", "1")
        mapped = map_request(source, str)
        mapped.set_header("X-Other", "2")
        assert "X-Other" not in source.headers
        assert mapped.headers["X-Test"] == "1"
