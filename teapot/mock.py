"""Fixture-backed mock client for tests.

``MockTeapot`` behaves like ``Teapot`` but answers every request from
JSON fixture files instead of the network. Results go through the same
classification and delivery as live results, so code under test cannot
tell the two apart.

Routing rules:

- The endpoint name is the last path segment of the request URL.
- An endpoint with an override is answered from its override fixture
  with status 200, and is exempt from header checks.
- Any other endpoint is answered from the default fixture with the
  configured status code, after its headers are checked against the
  expected headers (if any were set).

This lets one mock say "the auth call always works, the data call
currently fails with 500".

Example:
    Simulating a failing endpoint behind a working login::

        mock = MockTeapot(FIXTURES, "items", status_code=HTTPStatus.INTERNAL_SERVER_ERROR)
        mock.override_endpoint("login", "login_ok")
        mock.set_expected_headers({"Authorization": "Bearer token"})

        await mock.send("POST", "/login")           # Success, login_ok.json, 200
        await mock.send("GET", "/items", headers={"Authorization": "Bearer token"})
        # Failure, InvalidResponseStatusError(500)

The registry is meant to be changed from test setup and teardown only,
never while mocked requests are in flight.
"""

import json
import logging
from dataclasses import dataclass, field
from http import HTTPStatus
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any, Mapping

from teapot.client import Teapot
from teapot.delivery import DeliveryContext
from teapot.exceptions import (
    IncorrectHeadersError,
    InvalidMockFileError,
    MissingMockFileError,
)
from teapot.models import Outcome, RequestDescriptor
from teapot.wire_log import WireLogger

logger = logging.getLogger(__name__)

MOCK_BASE_URL = "https://mock.base.url.com"

FIXTURE_SUFFIX = ".json"

# Status for requests the fixture engine rejects before lookup
MOCK_ERROR_STATUS = 400

FixtureRoot = Path | Traversable | str


@dataclass
class FixtureRegistry:
    """Mutable routing state of a mock: default fixture, overrides, headers.

    Attributes:
        default_fixture_name: Fixture for endpoints without an override.
            When empty, the endpoint name itself is used.
        overrides: Endpoint name to fixture name.
        expected_headers: Headers every non-overridden request must carry.
    """

    default_fixture_name: str = ""
    overrides: dict[str, str] = field(default_factory=dict)
    expected_headers: dict[str, str] = field(default_factory=dict)

    def override_endpoint(self, endpoint_name: str, fixture_name: str) -> None:
        """Answer ``endpoint_name`` from ``fixture_name`` with status 200."""
        self.overrides[endpoint_name.strip("/")] = fixture_name

    def set_expected_headers(self, headers: Mapping[str, str]) -> None:
        self.expected_headers = {str(k): str(v) for k, v in headers.items()}

    def clear_expected_headers(self) -> None:
        self.expected_headers = {}

    def clear_overrides(self) -> None:
        self.overrides = {}

    def reset(self) -> None:
        """Drop all overrides and expected headers."""
        self.clear_overrides()
        self.clear_expected_headers()

    def is_overridden(self, endpoint_name: str) -> bool:
        return endpoint_name in self.overrides

    def fixture_name_for(self, endpoint_name: str) -> str:
        if endpoint_name in self.overrides:
            return self.overrides[endpoint_name]
        return self.default_fixture_name or endpoint_name


def headers_satisfy(expected: Mapping[str, str], received: Mapping[str, str]) -> bool:
    """Whether ``received`` carries every expected header with its exact value.

    Header names compare case-insensitively; extra headers are allowed.
    """
    lowered = {key.lower(): value for key, value in received.items()}
    return all(lowered.get(key.lower()) == value for key, value in expected.items())


class FixtureTransport:
    """Transport that answers requests from ``<name>.json`` fixture files.

    Attributes:
        fixture_root: Directory (or importlib.resources traversable)
            holding the fixtures.
        status_code: Status reported for non-overridden endpoints.
        registry: Routing state.
    """

    def __init__(
        self,
        fixture_root: FixtureRoot,
        default_fixture_name: str = "",
        status_code: int = HTTPStatus.OK,
        registry: FixtureRegistry | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            fixture_root: Where fixture files live.
            default_fixture_name: Fixture for endpoints without an override.
            status_code: Status reported for non-overridden endpoints.
            registry: Shared routing state. A new one is created if omitted.
        """
        self.fixture_root: Path | Traversable = (
            Path(fixture_root) if isinstance(fixture_root, str) else fixture_root
        )
        self.status_code = int(status_code)
        self.registry = registry if registry is not None else FixtureRegistry(default_fixture_name)

    async def close(self) -> None:
        pass

    async def send(self, request: RequestDescriptor) -> Outcome:
        return self.resolve(request)

    def resolve(self, request: RequestDescriptor) -> Outcome:
        """Answer a request from the fixtures without any I/O beyond file reads."""
        endpoint_name = request.endpoint_name
        overridden = self.registry.is_overridden(endpoint_name)
        expected = self.registry.expected_headers

        if expected and not overridden and not headers_satisfy(expected, request.headers):
            received = dict(request.headers) or None
            logger.debug("Mocked %s rejected: headers %s, expected %s", endpoint_name, received, expected)
            return Outcome(
                status=MOCK_ERROR_STATUS,
                error=IncorrectHeadersError(expected, received, status=MOCK_ERROR_STATUS),
            )

        fixture_name = self.registry.fixture_name_for(endpoint_name)
        try:
            fixture = self.load_fixture(fixture_name)
        except (MissingMockFileError, InvalidMockFileError) as e:
            logger.debug("Mocked %s failed: %s", endpoint_name, e)
            return Outcome(status=MOCK_ERROR_STATUS, error=e)

        status = HTTPStatus.OK if overridden else self.status_code
        return Outcome(
            status=int(status),
            headers={"Content-Type": "application/json"},
            body=json.dumps(fixture).encode("utf-8"),
        )

    def load_fixture(self, fixture_name: str) -> dict[str, Any]:
        """Read and decode one fixture.

        Raises:
            MissingMockFileError: If ``<fixture_name>.json`` does not exist.
            InvalidMockFileError: If it does not hold a single JSON object.
        """
        fixture_file = self.fixture_root.joinpath(f"{fixture_name}{FIXTURE_SUFFIX}")
        if not fixture_name or not fixture_file.is_file():
            raise MissingMockFileError(fixture_name, status=MOCK_ERROR_STATUS)

        try:
            decoded = json.loads(fixture_file.read_bytes())
        except (OSError, ValueError) as e:
            raise InvalidMockFileError(fixture_name, status=MOCK_ERROR_STATUS, underlying=e) from e
        if not isinstance(decoded, dict):
            raise InvalidMockFileError(fixture_name, status=MOCK_ERROR_STATUS)
        return decoded


class MockTeapot(Teapot):
    """A ``Teapot`` whose requests are answered from fixture files.

    Attributes:
        fixtures: The fixture transport answering requests.
    """

    def __init__(
        self,
        fixture_root: FixtureRoot,
        default_fixture_name: str = "",
        status_code: int = HTTPStatus.OK,
        *,
        base_url: str = MOCK_BASE_URL,
        delivery: DeliveryContext | None = None,
        wire_logger: WireLogger | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the mock client.

        Args:
            fixture_root: Directory (or traversable) holding ``<name>.json`` files.
            default_fixture_name: Fixture for endpoints without an override.
                When empty, each endpoint is answered from the fixture named
                after it.
            status_code: Status reported for non-overridden endpoints.
            base_url: Base URL requests are resolved against.
            delivery: Where completions run. Defaults to the calling loop.
            wire_logger: Traffic logger.
            **kwargs: Passed through to ``Teapot``.
        """
        self.fixtures = FixtureTransport(fixture_root, default_fixture_name, status_code)
        super().__init__(
            base_url,
            delivery=delivery,
            transport=self.fixtures,
            wire_logger=wire_logger,
            **kwargs,
        )

    @property
    def registry(self) -> FixtureRegistry:
        return self.fixtures.registry

    @property
    def status_code(self) -> int:
        return self.fixtures.status_code

    def override_endpoint(self, endpoint_name: str, fixture_name: str) -> None:
        """Answer ``endpoint_name`` from ``fixture_name``, always with 200.

        Overridden endpoints are not checked against the expected headers.
        """
        self.registry.override_endpoint(endpoint_name, fixture_name)

    def set_expected_headers(self, headers: Mapping[str, str]) -> None:
        """Require these headers on every non-overridden request."""
        self.registry.set_expected_headers(headers)

    def clear_expected_headers(self) -> None:
        self.registry.clear_expected_headers()

    def clear_overrides(self) -> None:
        self.registry.clear_overrides()
