"""Tests for the fixture-backed mock client.

This module tests teapot/mock.py. The tests verify:

1. Fixture resolution:
   - The default fixture answers requests
   - Missing and invalid fixtures produce mock-file errors
   - An empty default name falls back to the endpoint name

2. Status simulation:
   - The configured status is reported for non-overridden endpoints
   - Overridden endpoints always answer 200

3. Header expectations:
   - Expected headers must be present with exact values
   - Extra headers are allowed
   - Overridden endpoints are exempt

4. Delivery and cancellation behave as for live requests.

Fixtures live in tests/fixtures/mocks/.
"""

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor
from http import HTTPStatus

import pytest

from teapot import (
    ExecutorDelivery,
    Failure,
    FixtureRegistry,
    FixtureTransport,
    IncorrectHeadersError,
    InvalidMockFileError,
    InvalidResponseStatusError,
    MissingMockFileError,
    MockTeapot,
    Success,
)
from teapot._request import build_request
from teapot.mock import MOCK_BASE_URL, headers_satisfy
from tests.fixtures.teapot import MOCKS_DIR, QueuedDelivery, ResultCollector


EXPECTED_HEADERS = {
    "foo": "bar",
    "baz": "foo2",
}


# =============================================================================
# FixtureRegistry Tests
# =============================================================================

class TestFixtureRegistry:
    """Tests for the mutable routing state of a mock."""

    def test_default_fixture_used_without_override(self) -> None:
        registry = FixtureRegistry("get")
        assert registry.fixture_name_for("anything") == "get"
        assert registry.is_overridden("anything") is False

    def test_override_routes_endpoint(self) -> None:
        registry = FixtureRegistry("get")
        registry.override_endpoint("auth", "auth_ok")

        assert registry.is_overridden("auth")
        assert registry.fixture_name_for("auth") == "auth_ok"
        assert registry.fixture_name_for("data") == "get"

    def test_override_name_ignores_slashes(self) -> None:
        """Overriding "/auth" routes the "auth" endpoint."""
        registry = FixtureRegistry("get")
        registry.override_endpoint("/auth", "auth_ok")
        assert registry.is_overridden("auth")

    def test_empty_default_falls_back_to_endpoint_name(self) -> None:
        registry = FixtureRegistry("")
        assert registry.fixture_name_for("items") == "items"

    def test_reset_clears_everything(self) -> None:
        registry = FixtureRegistry("get")
        registry.override_endpoint("auth", "auth_ok")
        registry.set_expected_headers({"foo": "bar"})

        registry.reset()

        assert registry.overrides == {}
        assert registry.expected_headers == {}
        assert registry.default_fixture_name == "get"


class TestHeadersSatisfy:
    """Tests for the header superset check."""

    def test_exact_match(self) -> None:
        assert headers_satisfy(EXPECTED_HEADERS, dict(EXPECTED_HEADERS))

    def test_extra_headers_allowed(self) -> None:
        assert headers_satisfy(EXPECTED_HEADERS, {**EXPECTED_HEADERS, "extra": "lol"})

    def test_missing_header_fails(self) -> None:
        assert not headers_satisfy(EXPECTED_HEADERS, {"foo": "bar"})

    def test_wrong_value_fails(self) -> None:
        assert not headers_satisfy(EXPECTED_HEADERS, {"foo": "bar", "baz": "nope"})

    def test_names_compare_case_insensitively(self) -> None:
        assert headers_satisfy({"Authorization": "Bearer t"}, {"authorization": "Bearer t"})

    def test_values_compare_exactly(self) -> None:
        assert not headers_satisfy({"Authorization": "Bearer t"}, {"Authorization": "bearer t"})


# =============================================================================
# FixtureTransport Tests
# =============================================================================

class TestFixtureTransport:
    """Tests for outcome synthesis by the fixture transport."""

    def _request(self, path: str, headers: dict[str, str] | None = None):
        return build_request(MOCK_BASE_URL, "GET", path, headers=headers)

    def test_outcome_carries_fixture_body_and_status(self) -> None:
        transport = FixtureTransport(MOCKS_DIR, "get", status_code=201)
        outcome = transport.resolve(self._request("/get"))

        assert outcome.status == 201
        assert outcome.error is None
        assert b'"key"' in outcome.body

    def test_string_root_is_accepted(self) -> None:
        transport = FixtureTransport(str(MOCKS_DIR), "get")
        outcome = transport.resolve(self._request("/get"))
        assert outcome.status == 200

    def test_missing_fixture(self) -> None:
        transport = FixtureTransport(MOCKS_DIR, "missing")
        outcome = transport.resolve(self._request("/missing"))

        assert outcome.status == 400
        assert outcome.error == MissingMockFileError("missing")

    def test_invalid_fixture(self) -> None:
        transport = FixtureTransport(MOCKS_DIR, "invalid")
        outcome = transport.resolve(self._request("/invalid"))

        assert isinstance(outcome.error, InvalidMockFileError)
        assert outcome.error.file_name == "invalid"

    def test_top_level_array_fixture_is_invalid(self) -> None:
        """Fixtures must be a single JSON object, unlike live responses."""
        transport = FixtureTransport(MOCKS_DIR, "array")
        outcome = transport.resolve(self._request("/array"))
        assert outcome.error == InvalidMockFileError("array")

    def test_load_fixture_returns_object(self) -> None:
        transport = FixtureTransport(MOCKS_DIR, "get")
        assert transport.load_fixture("items")["count"] == 2

    def test_header_mismatch_skips_fixture_lookup(self) -> None:
        """A header mismatch is reported even when the fixture is missing."""
        transport = FixtureTransport(MOCKS_DIR, "missing")
        transport.registry.set_expected_headers(EXPECTED_HEADERS)

        outcome = transport.resolve(self._request("/missing"))

        assert outcome.status == 400
        assert outcome.error == IncorrectHeadersError(EXPECTED_HEADERS, None)

    async def test_send_matches_resolve(self) -> None:
        transport = FixtureTransport(MOCKS_DIR, "get")
        request = self._request("/get")
        assert await transport.send(request) == transport.resolve(request)


# =============================================================================
# MockTeapot Tests: Fixture Resolution
# =============================================================================

class TestMockTeapot:
    """Tests for mocked requests through the public client surface."""

    async def test_mock(self, make_mock, collector: ResultCollector) -> None:
        """The default fixture answers with its JSON object."""
        mock = make_mock("get")
        mock.get("/get", collector)

        result = await collector.wait()

        assert isinstance(result, Success)
        assert result.status == 200
        assert result.payload.object["key"] == "value"

    async def test_missing_mock(self, make_mock, collector: ResultCollector) -> None:
        mock = make_mock("missing")
        mock.get("/missing", collector)

        result = await collector.wait()

        assert isinstance(result, Failure)
        assert result.error == MissingMockFileError("missing")
        assert result.error.file_name == "missing"
        assert result.error.message == "An error occurred: expected mockfile with name: missing.json"

    async def test_invalid_mock(self, make_mock, collector: ResultCollector) -> None:
        mock = make_mock("invalid")
        mock.get("/invalid", collector)

        result = await collector.wait()

        assert isinstance(result, Failure)
        assert isinstance(result.error, InvalidMockFileError)
        assert result.error.message == "An error occurred: invalid mockfile with name: invalid.json"

    async def test_no_content(self, make_mock, collector: ResultCollector) -> None:
        """A 2xx status other than 200 is still a success with a payload."""
        mock = make_mock("get", status_code=HTTPStatus.NO_CONTENT)
        mock.get("/get", collector)

        result = await collector.wait()

        assert isinstance(result, Success)
        assert result.status == 204
        assert result.payload is not None

    async def test_unauthorized_error(self, make_mock, collector: ResultCollector) -> None:
        mock = make_mock("get", status_code=HTTPStatus.UNAUTHORIZED)
        mock.get("/get", collector)

        result = await collector.wait()

        assert isinstance(result, Failure)
        assert result.status == 401
        assert result.error == InvalidResponseStatusError(401)
        # The fixture still decodes; a failure can carry a payload
        assert result.payload.object == {"key": "value"}

    async def test_empty_default_uses_endpoint_fixture(self, make_mock) -> None:
        mock = make_mock("")
        result = await mock.send("GET", "/items")

        assert isinstance(result, Success)
        assert result.payload.object["count"] == 2

    @pytest.mark.parametrize("verb", ["GET", "POST", "PUT", "DELETE"])
    async def test_every_verb_is_mocked(self, make_mock, verb: str) -> None:
        mock = make_mock("get")
        result = await mock.send(verb, "/anything", body={"ignored": True})

        assert isinstance(result, Success)
        assert result.payload.object["key"] == "value"

    async def test_query_does_not_change_endpoint(self, make_mock) -> None:
        mock = make_mock("")
        result = await mock.send("GET", "/items?page=2&q=a%26b")
        assert isinstance(result, Success)

    def test_status_code_property(self, make_mock) -> None:
        assert make_mock("get", status_code=503).status_code == 503


# =============================================================================
# MockTeapot Tests: Endpoint Overrides
# =============================================================================

class TestMockTeapotOverrides:
    """Tests for per-endpoint fixture overrides."""

    async def test_endpoint_overriding(self, make_mock, collector: ResultCollector) -> None:
        mock = make_mock("get")
        mock.override_endpoint("overridden", "overridden")
        mock.get("/overridden", collector)

        result = await collector.wait()

        assert isinstance(result, Success)
        assert result.payload.object["overridden"] == "value"

    async def test_override_succeeds_despite_failing_status(self, make_mock) -> None:
        mock = make_mock("get", status_code=HTTPStatus.SERVICE_UNAVAILABLE)
        mock.override_endpoint("overridden", "overridden")

        result = await mock.send("GET", "/overridden")

        assert isinstance(result, Success)
        assert result.status == 200

    async def test_override_then_primary_endpoint_fails(self, make_mock) -> None:
        """Endpoint X always works while endpoint Y fails with the configured status."""
        mock = make_mock("get", status_code=HTTPStatus.INTERNAL_SERVER_ERROR)
        mock.override_endpoint("auth", "auth_ok")

        auth = await mock.send("POST", "/auth")
        data = await mock.send("GET", "/data")

        assert isinstance(auth, Success)
        assert auth.status == 200
        assert auth.payload.object["token"] == "abc123"

        assert isinstance(data, Failure)
        assert data.status == 500
        assert data.error == InvalidResponseStatusError(500)

    async def test_chained_callbacks(self, make_mock) -> None:
        """A completion can issue the follow-up request."""
        mock = make_mock("get", status_code=HTTPStatus.INTERNAL_SERVER_ERROR)
        mock.override_endpoint("overridden", "overridden")
        secondary = ResultCollector()

        def on_initial(result) -> None:
            assert isinstance(result, Success)
            mock.get("/get", secondary)

        mock.get("/overridden", on_initial)

        result = await secondary.wait()
        assert isinstance(result, Failure)
        assert result.error.status == 500

    async def test_override_to_missing_fixture_fails(self, make_mock) -> None:
        mock = make_mock("get")
        mock.override_endpoint("auth", "nowhere")

        result = await mock.send("GET", "/auth")

        assert isinstance(result, Failure)
        assert result.error == MissingMockFileError("nowhere")

    async def test_clear_overrides(self, make_mock) -> None:
        mock = make_mock("get", status_code=500)
        mock.override_endpoint("overridden", "overridden")
        mock.clear_overrides()

        result = await mock.send("GET", "/overridden")

        assert isinstance(result, Failure)
        assert result.payload.object == {"key": "value"}


# =============================================================================
# MockTeapot Tests: Expected Headers
# =============================================================================

class TestMockTeapotHeaders:
    """Tests for header-expectation checks."""

    async def test_headers_which_are_there_succeed(self, make_mock) -> None:
        mock = make_mock("get")
        mock.set_expected_headers(EXPECTED_HEADERS)

        result = await mock.send("GET", "/get", headers=EXPECTED_HEADERS)

        assert isinstance(result, Success)
        assert result.payload.object["key"] == "value"

    async def test_headers_which_are_not_there_fail(self, make_mock) -> None:
        mock = make_mock("get")
        mock.set_expected_headers(EXPECTED_HEADERS)

        result = await mock.send("GET", "/get")

        assert isinstance(result, Failure)
        assert result.status == 400
        assert result.error == IncorrectHeadersError(EXPECTED_HEADERS, None)

    async def test_partial_headers_fail(self, make_mock) -> None:
        mock = make_mock("get")
        mock.set_expected_headers(EXPECTED_HEADERS)
        wrong_headers = {"foo": "bar"}

        result = await mock.send("GET", "/get", headers=wrong_headers)

        assert isinstance(result, Failure)
        assert result.status == 400
        assert result.error == IncorrectHeadersError(EXPECTED_HEADERS, wrong_headers)
        assert result.error.header_expectation.received == wrong_headers

    async def test_extra_headers_succeed(self, make_mock) -> None:
        mock = make_mock("get")
        mock.set_expected_headers(EXPECTED_HEADERS)

        result = await mock.send("GET", "/get", headers={**EXPECTED_HEADERS, "extra": "lol"})

        assert isinstance(result, Success)

    async def test_clearing_headers_works(self, make_mock) -> None:
        mock = make_mock("get")
        mock.set_expected_headers(EXPECTED_HEADERS)

        wrong = await mock.send("GET", "/get", headers={"foo": "bar"})
        assert isinstance(wrong, Failure)

        mock.clear_expected_headers()

        cleared = await mock.send("GET", "/get")
        assert isinstance(cleared, Success)
        assert cleared.payload.object["key"] == "value"

    async def test_overridden_endpoint_is_exempt_but_primary_is_checked(self, make_mock) -> None:
        mock = make_mock("get")
        mock.set_expected_headers(EXPECTED_HEADERS)
        mock.override_endpoint("overridden", "overridden")

        # Prerequisite call without headers still works
        first = await mock.send("GET", "/overridden")
        assert isinstance(first, Success)
        assert first.payload.object["overridden"] == "value"

        with_headers = await mock.send("GET", "/get", headers=EXPECTED_HEADERS)
        assert isinstance(with_headers, Success)

        without_headers = await mock.send("GET", "/get")
        assert isinstance(without_headers, Failure)
        assert without_headers.error == IncorrectHeadersError(EXPECTED_HEADERS, None)

    async def test_json_body_content_type_counts_as_received(self, make_mock) -> None:
        """Headers added by the request builder are visible to the check."""
        mock = make_mock("get")
        mock.set_expected_headers({"Content-Type": "application/json"})

        result = await mock.send("POST", "/get", body={"key": "value"})

        assert isinstance(result, Success)


# =============================================================================
# MockTeapot Tests: Delivery and Cancellation
# =============================================================================

class TestMockTeapotDelivery:
    """Mocked requests follow the same threading contract as live ones."""

    async def test_default_delivery_on_calling_loop(self, make_mock, collector: ResultCollector) -> None:
        mock = make_mock("get")
        mock.get("/get", collector)

        await collector.wait()

        assert collector.threads == [threading.main_thread().name]

    async def test_executor_delivery(self, make_mock, collector: ResultCollector) -> None:
        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="mock-delivery") as executor:
            mock = make_mock("get", delivery=ExecutorDelivery(executor))
            mock.get("/get", collector)

            await collector.wait()

        assert collector.threads[0].startswith("mock-delivery")

    async def test_cancel_before_start_suppresses_completion(self, make_mock, collector: ResultCollector) -> None:
        mock = make_mock("get")
        handle = mock.get("/get", collector)
        handle.cancel()

        assert await handle is None
        await collector.settle()

        assert handle.cancelled
        assert not collector.called

    async def test_cancel_after_outcome_suppresses_completion(self, make_mock, collector: ResultCollector) -> None:
        """Cancelling while the result waits on the delivery context still suppresses it."""
        delivery = QueuedDelivery()
        mock = make_mock("get")
        handle = mock.get("/get", collector, delivery=delivery)

        result = await handle
        assert isinstance(result, Success)
        assert len(delivery.pending) == 1

        handle.cancel()
        delivery.flush()

        assert not collector.called

    async def test_completion_called_exactly_once(self, make_mock, collector: ResultCollector) -> None:
        mock = make_mock("get")
        mock.get("/get", collector)

        await collector.wait()
        await asyncio.sleep(0.01)

        assert len(collector.results) == 1


class TestMockTeapotConstruction:
    def test_base_url_defaults_to_mock_url(self) -> None:
        mock = MockTeapot(MOCKS_DIR, "get")
        assert mock.base_url == MOCK_BASE_URL
        assert mock.transport is mock.fixtures

    def test_registry_is_shared_with_transport(self) -> None:
        mock = MockTeapot(MOCKS_DIR, "get")
        mock.override_endpoint("auth", "auth_ok")
        assert mock.fixtures.registry.overrides == {"auth": "auth_ok"}
