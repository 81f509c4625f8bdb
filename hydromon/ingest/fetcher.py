"""Telemetry fetcher for the Antares oneM2M platform.

Every public fetch method returns instead of raising: failures are logged
and reported as None / an empty iterator. The *_result variants carry the
failure kind for callers that need to tell a timeout from a bad envelope.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, Optional

import aiohttp

from hydromon.decoder.content_parser import parse
from hydromon.decoder.profiles import DeviceProfile
from hydromon.shared.exceptions import (
    FetchTimeout,
    InvalidHex,
    MalformedEnvelope,
    TelemetryError,
    TransportError,
    UpstreamError,
)
from hydromon.shared.models import DecodedReading

from .config import AntaresConfig
from .demo import DemoTelemetrySource

logger = logging.getLogger(__name__)


class FailureKind(Enum):
    """Why an ingestion attempt produced no reading."""
    INVALID_HEX = "invalid_hex"
    MALFORMED_ENVELOPE = "malformed_envelope"
    UPSTREAM_ERROR = "upstream_error"
    TIMEOUT = "timeout"
    TRANSPORT_ERROR = "transport_error"
    UNPARSEABLE_CONTENT = "unparseable_content"
    STORE_ERROR = "store_error"
    UNEXPECTED = "unexpected"


_FAILURE_KINDS = (
    (InvalidHex, FailureKind.INVALID_HEX),
    (MalformedEnvelope, FailureKind.MALFORMED_ENVELOPE),
    (UpstreamError, FailureKind.UPSTREAM_ERROR),
    (FetchTimeout, FailureKind.TIMEOUT),
    (TransportError, FailureKind.TRANSPORT_ERROR),
)


def _failure_kind(error: TelemetryError) -> FailureKind:
    for error_type, kind in _FAILURE_KINDS:
        if isinstance(error, error_type):
            return kind
    return FailureKind.UNEXPECTED


@dataclass
class FetchResult:
    """Outcome of one fetch: a value or a failure kind, never both."""
    value: Any = None
    failure: Optional[FailureKind] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.failure is None


def extract_latest_content(data: Any) -> Any:
    """Pull `con` out of a `/la` response.

    Raises:
        MalformedEnvelope: If the m2m:cin wrapper or its content is missing.
    """
    if not isinstance(data, dict):
        raise MalformedEnvelope("Response body is not a JSON object")
    instance = data.get("m2m:cin")
    if not isinstance(instance, dict):
        raise MalformedEnvelope("Response has no m2m:cin content instance")
    content = instance.get("con")
    if content is None or content == "":
        raise MalformedEnvelope("Content instance has no con field")
    return content


def extract_history_instances(data: Any) -> list:
    """Pull the content instance list out of an `rcn=4` response.

    Raises:
        MalformedEnvelope: If the m2m:cnt container is missing.
    """
    if not isinstance(data, dict):
        raise MalformedEnvelope("Response body is not a JSON object")
    container = data.get("m2m:cnt")
    if not isinstance(container, dict):
        raise MalformedEnvelope("Response has no m2m:cnt container")
    instances = container.get("m2m:cin") or []
    if not isinstance(instances, list):
        raise MalformedEnvelope("m2m:cin in container is not a list")
    return instances


class TelemetryFetcher:
    """Fetches and decodes readings of one device."""

    def __init__(
        self,
        config: AntaresConfig,
        profile: DeviceProfile,
        demo: Optional[DemoTelemetrySource] = None,
    ):
        self.config = config
        self.profile = profile
        self.demo = None
        if not config.has_credentials:
            self.demo = demo or DemoTelemetrySource()

    @property
    def demo_mode(self) -> bool:
        return self.demo is not None

    @property
    def container_url(self) -> str:
        return f"{self.config.base_url}/{self.config.application_id}/{self.config.device_id}"

    @property
    def headers(self) -> dict:
        return {
            "X-M2M-Origin": self.config.api_key or "",
            "Content-Type": "application/json;ty=4",
            "Accept": "application/json",
        }

    async def _get_json(self, url: str, params: Optional[dict] = None) -> Any:
        """GET a URL and decode the JSON body.

        Raises:
            FetchTimeout: If the request exceeded the configured timeout.
            UpstreamError: On a non-2xx status.
            MalformedEnvelope: If the body is not JSON.
            TransportError: On any other client failure.
        """
        timeout = aiohttp.ClientTimeout(total=self.config.timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url, headers=self.headers, params=params) as response:
                    if not 200 <= response.status < 300:
                        body = await response.text()
                        raise UpstreamError(response.status, body)
                    try:
                        return await response.json(content_type=None)
                    except (json.JSONDecodeError, ValueError) as e:
                        raise MalformedEnvelope(f"Response is not JSON: {e}") from e
        except asyncio.TimeoutError as e:
            raise FetchTimeout(
                f"No response from {url} within {self.config.timeout}s"
            ) from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Request to {url} failed: {e}") from e

    def _failed(self, what: str, error: Exception) -> FetchResult:
        if isinstance(error, TelemetryError):
            kind = _failure_kind(error)
            logger.warning(f"Fetching {what} failed ({kind.value}): {error}")
        else:
            kind = FailureKind.UNEXPECTED
            logger.error(f"Unexpected error fetching {what}: {error}")
        return FetchResult(failure=kind, detail=str(error))

    async def fetch_latest_result(self) -> FetchResult:
        """Fetch the latest content instance, keeping the failure kind."""
        if self.demo is not None:
            return FetchResult(value=self.demo.next_reading())

        try:
            data = await self._get_json(f"{self.container_url}/la")
            content = extract_latest_content(data)
            reading = parse(content, self.profile.device_code)
        except Exception as e:
            return self._failed("latest reading", e)

        if reading is None:
            logger.warning("Latest content instance could not be parsed")
            return FetchResult(
                failure=FailureKind.UNPARSEABLE_CONTENT,
                detail=f"unparseable content of type {type(content).__name__}",
            )
        return FetchResult(value=reading)

    async def fetch_latest(self) -> Optional[DecodedReading]:
        """Fetch the latest reading, or None on any failure."""
        result = await self.fetch_latest_result()
        return result.value

    def _iter_history(self, instances: Iterable[Any]) -> Iterator[DecodedReading]:
        for instance in instances:
            if not isinstance(instance, dict) or instance.get("con") is None:
                logger.debug("Skipping content instance without con")
                continue
            try:
                reading = parse(instance["con"], self.profile.device_code)
            except Exception as e:
                logger.warning(f"Skipping content instance that failed to parse: {e}")
                continue
            if reading is not None:
                yield reading

    def _iter_demo(self, limit: int) -> Iterator[DecodedReading]:
        for _ in range(limit):
            yield self.demo.next_reading()

    async def fetch_history_result(self, limit: int = 100) -> FetchResult:
        """Fetch up to `limit` readings, oldest first.

        The value is a one-shot iterator; instances are parsed as it is
        consumed and unparseable ones are skipped.
        """
        if limit <= 0:
            return FetchResult(value=iter(()))
        if self.demo is not None:
            return FetchResult(value=self._iter_demo(limit))

        try:
            data = await self._get_json(
                self.container_url, params={"rcn": "4", "lim": str(limit)}
            )
            instances = extract_history_instances(data)
        except Exception as e:
            return self._failed("history", e)

        # Upstream lists newest first
        chronological = list(reversed(instances[:limit]))
        return FetchResult(value=self._iter_history(chronological))

    async def fetch_history(self, limit: int = 100) -> Iterator[DecodedReading]:
        """Fetch history as an iterator; empty on any failure."""
        result = await self.fetch_history_result(limit)
        return result.value if result.ok else iter(())
