import base64
import random

import httpx
import pytest

from adapters.resilient_caller import ResilientCaller
from core.domain.errors import ConfigError, TransportError
from core.domain.models import BasicAuthCredentials, CallConfig

ENDPOINT = "http://soap.example.test/Service.asmx"
BODY = b"<Envelope><Body><Ping/></Body></Envelope>"


def ok_handler(requests):
    def handler(request):
        requests.append(request)
        return httpx.Response(200, content=b"<ok/>")

    return handler


class _BrokenStream(httpx.SyncByteStream):
    def __iter__(self):
        yield b"<partial"
        raise httpx.ReadError("connection reset by peer")


class TestRequestShape:
    """Pruebas de headers y body del POST SOAP"""

    def test_fixed_headers(self, make_caller):
        requests = []
        caller = make_caller(ok_handler(requests))
        caller.call(CallConfig(endpoint=ENDPOINT, soap_action="urn:Ping"), BODY)

        (request,) = requests
        assert request.method == "POST"
        assert request.content == BODY
        assert request.headers["Content-Type"] == "text/xml;charset=UTF-8"
        assert request.headers["SOAPAction"] == '"urn:Ping"'
        assert request.headers["Content-Length"] == str(len(BODY))
        assert request.headers["Accept-Encoding"] == ""
        assert request.headers["Host"] == "soap.example.test"
        assert request.headers["Connection"] == "Keep-Alive"
        assert "Authorization" not in request.headers

    def test_empty_soap_action_is_still_quoted(self, make_caller):
        requests = []
        make_caller(ok_handler(requests)).call(CallConfig(endpoint=ENDPOINT), BODY)
        assert requests[0].headers["SOAPAction"] == '""'

    def test_host_header_keeps_explicit_port(self, make_caller):
        requests = []
        config = CallConfig(endpoint="http://soap.example.test:8080/svc")
        make_caller(ok_handler(requests)).call(config, BODY)
        assert requests[0].headers["Host"] == "soap.example.test:8080"

    def test_basic_auth_header(self, make_caller):
        requests = []
        config = CallConfig(
            endpoint=ENDPOINT,
            auth=BasicAuthCredentials(username="alice", password="s3cret"),
        )
        make_caller(ok_handler(requests)).call(config, BODY)
        expected = "Basic " + base64.b64encode(b"alice:s3cret").decode("ascii")
        assert requests[0].headers["Authorization"] == expected


class TestRetryPolicy:
    """Pruebas de reintentos y backoff"""

    def test_first_attempt_success_has_empty_retry_log(self, make_caller, sleeps):
        requests = []
        result = make_caller(ok_handler(requests)).call(CallConfig(endpoint=ENDPOINT), BODY)

        assert result.attempts == 1
        assert result.retry_log == ()
        assert result.raw == b"<ok/>"
        assert result.response.status_code == 200
        assert len(requests) == 1
        assert sleeps == []

    def test_transient_failures_are_retried(self, make_caller, sleeps):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) < 3:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, content=b"<ok/>")

        result = make_caller(handler).call(CallConfig(endpoint=ENDPOINT), BODY)

        assert result.attempts == 3
        assert [entry.attempt for entry in result.retry_log] == [1, 2]
        assert all("ConnectError" in entry.error for entry in result.retry_log)
        assert len(sleeps) == 2
        assert [entry.delay for entry in result.retry_log] == sleeps

    def test_gives_up_after_max_attempts(self, make_caller, sleeps):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(TransportError) as exc_info:
            make_caller(handler).call(CallConfig(endpoint=ENDPOINT), BODY)

        err = exc_info.value
        assert len(calls) == 10
        assert len(err.retry_log) == 10
        assert err.retry_log[-1].delay is None
        assert len(sleeps) == 9
        assert err.response is None
        assert isinstance(err.__cause__, httpx.ConnectTimeout)
        assert str(err).startswith("transport: request failed after 10 attempts")

    def test_attempt_limit_comes_from_settings(self, make_caller, sleeps):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(TransportError):
            make_caller(handler, retry_max_attempts=3).call(CallConfig(endpoint=ENDPOINT), BODY)
        assert len(calls) == 3

    def test_error_status_is_not_retried(self, make_caller, sleeps):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500, content=b"<Fault/>")

        result = make_caller(handler).call(CallConfig(endpoint=ENDPOINT), BODY)

        assert len(calls) == 1
        assert result.response.status_code == 500
        assert not result.response.is_success
        assert result.raw == b"<Fault/>"
        assert result.retry_log == ()

    def test_backoff_doubles_and_is_capped(self, settings):
        caller = ResilientCaller(
            settings.model_copy(update={"retry_jitter": 0.0, "retry_max_delay": 5.0}),
            rng=random.Random(0),
        )
        delays = [caller.backoff_delay(n) for n in range(1, 8)]
        assert delays == [0.5, 1.0, 2.0, 4.0, 5.0, 5.0, 5.0]

    def test_backoff_is_non_decreasing_with_jitter(self, settings):
        caller = ResilientCaller(settings, rng=random.Random(99))
        delays = [caller.backoff_delay(n) for n in range(1, 10)]
        assert delays == sorted(delays)
        assert max(delays) <= settings.retry_max_delay


class TestFailureModes:
    """Pruebas de errores de configuración y de lectura del body"""

    @pytest.mark.parametrize(
        "endpoint",
        ["not a url", "ftp://soap.example.test/svc", "http://", "soap.example.test/svc"],
    )
    def test_malformed_endpoint_fails_before_network(self, make_caller, endpoint):
        requests = []
        with pytest.raises(ConfigError) as exc_info:
            make_caller(ok_handler(requests)).call(CallConfig(endpoint=endpoint), BODY)
        assert requests == []
        assert str(exc_info.value).startswith("config: ")

    def test_body_read_failure_keeps_response_metadata(self, make_caller, sleeps):
        def handler(request):
            return httpx.Response(200, headers={"X-Trace": "abc"}, stream=_BrokenStream())

        with pytest.raises(TransportError) as exc_info:
            make_caller(handler).call(CallConfig(endpoint=ENDPOINT), BODY)

        err = exc_info.value
        assert err.response is not None
        assert err.response.status_code == 200
        assert err.response.header("x-trace") == "abc"
        assert "reading response body failed" in str(err)
        assert sleeps == []

    def test_redirect_is_returned_not_followed(self, make_caller, sleeps):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(302, headers={"Location": "http://soap.example.test/loop"})

        result = make_caller(handler).call(CallConfig(endpoint=ENDPOINT), BODY)

        assert len(calls) == 1
        assert calls[0].method == "POST"
        assert str(calls[0].url) == ENDPOINT
        assert result.response.status_code == 302
        assert result.response.header("location") == "http://soap.example.test/loop"
        assert result.retry_log == ()
        assert sleeps == []

    def test_non_transport_http_error_is_wrapped_without_retry(self, make_caller, sleeps):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.TooManyRedirects("Exceeded maximum allowed redirects.", request=request)

        with pytest.raises(TransportError) as exc_info:
            make_caller(handler).call(CallConfig(endpoint=ENDPOINT), BODY)

        err = exc_info.value
        assert len(calls) == 1
        assert sleeps == []
        assert len(err.retry_log) == 1
        assert err.retry_log[0].delay is None
        assert isinstance(err.__cause__, httpx.TooManyRedirects)
        assert str(err).startswith("transport: request failed")
