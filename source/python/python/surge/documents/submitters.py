"""
Submitters sending documents to the remote service.

Environment Variables:
- SURGE_SERVICE_URL: Base URL of the document service (default: http://localhost:3000)

Retries are disabled on purpose: failure counts must reflect first attempt
outcomes.
"""

import asyncio
import os
import random
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from surge.load.errors import ConfigurationError, SubmitError
from surge.load.work import WorkItem
from surge.logs import get_logger

DEFAULT_SERVICE_URL = "http://localhost:3000"
DOCUMENTS_PATH = "/v1/documents"


def get_service_url() -> str:
  return os.environ.get("SURGE_SERVICE_URL") or DEFAULT_SERVICE_URL


@dataclass(frozen=True)
class HttpSubmitterSettings:
  """Request settings for HttpDocumentSubmitter."""

  # Time allowed to establish a connection (seconds)
  connect_timeout: float = 60.0

  # Time allowed for the rest of the request (seconds)
  timeout: float = 30.0

  # Maximum number of pooled connections, None for no limit
  max_connections: Optional[int] = None

  def __post_init__(self):
    if self.connect_timeout <= 0:
      raise ConfigurationError("connect_timeout", self.connect_timeout, "must be positive")
    if self.timeout <= 0:
      raise ConfigurationError("timeout", self.timeout, "must be positive")
    if self.max_connections is not None and self.max_connections <= 0:
      raise ConfigurationError("max_connections", self.max_connections, "must be positive")


class HttpDocumentSubmitter:
  """
  Posts signed documents to the document service.

  Usage:
      async with HttpDocumentSubmitter("http://localhost:3000") as submitter:
        ack = await submitter.submit(item)
  """

  def __init__(
    self,
    base_url: Optional[str] = None,
    settings: Optional[HttpSubmitterSettings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
  ):
    self.base_url = (base_url or get_service_url()).rstrip("/")
    self.settings = settings or HttpSubmitterSettings()
    self.logger = get_logger("submitter")

    if transport is None:
      transport = httpx.AsyncHTTPTransport(
        retries=0,
        limits=httpx.Limits(max_connections=self.settings.max_connections),
      )

    self._client = httpx.AsyncClient(
      base_url=self.base_url,
      timeout=httpx.Timeout(self.settings.timeout, connect=self.settings.connect_timeout),
      transport=transport,
    )

  async def submit(self, item: WorkItem) -> Any:
    """
    Post a document.

    :param item: The signed document
    :return: The decoded JSON acknowledgement, or an empty dict
    :raises SubmitError: If the service rejects the document or cannot be reached
    """
    try:
      response = await self._client.post(DOCUMENTS_PATH, json=item.payload)
    except httpx.HTTPError as e:
      raise SubmitError(f"{type(e).__name__}: {e}", item_id=item.id)

    if not response.is_success:
      detail = response.text[:200] if response.text else response.reason_phrase
      raise SubmitError(f"Rejected by service: {detail}", item_id=item.id, status_code=response.status_code)

    if not response.content:
      return {}
    try:
      return response.json()
    except ValueError:
      return {}

  async def close(self) -> None:
    await self._client.aclose()

  async def __aenter__(self) -> "HttpDocumentSubmitter":
    return self

  async def __aexit__(self, exc_type, exc, tb) -> None:
    await self.close()


@dataclass(frozen=True)
class MockSubmitterConfig:
  """Behaviour of MockSubmitter."""

  # Mean simulated latency (milliseconds)
  latency_ms: float = 50.0

  # Latency varies uniformly by up to this much (milliseconds)
  latency_jitter_ms: float = 20.0

  # Probability that a submission is rejected
  failure_rate: float = 0.0

  def __post_init__(self):
    if self.latency_ms < 0 or self.latency_jitter_ms < 0:
      raise ConfigurationError("mock latency", self.latency_ms, "must not be negative")
    if not 0.0 <= self.failure_rate <= 1.0:
      raise ConfigurationError("mock failure rate", self.failure_rate, "must be between 0 and 1")


class MockSubmitter:
  """
  In-process stand-in for the document service.

  Simulates latency and rejections, and records what it received so tests can
  inspect concurrency and ordering.
  """

  def __init__(self, config: Optional[MockSubmitterConfig] = None, rng: Optional[random.Random] = None):
    self.config = config or MockSubmitterConfig()
    self._rng = rng or random.Random()
    self.in_flight = 0
    self.peak_in_flight = 0
    self.received: list[str] = []
    self.rejected: list[str] = []

  async def submit(self, item: WorkItem) -> Any:
    self.in_flight += 1
    self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
    try:
      latency = self.config.latency_ms + self._rng.uniform(-self.config.latency_jitter_ms, self.config.latency_jitter_ms)
      await asyncio.sleep(max(0.0, latency / 1000.0))

      self.received.append(item.id)
      if self.config.failure_rate and self._rng.random() < self.config.failure_rate:
        self.rejected.append(item.id)
        raise SubmitError("Rejected by mock service", item_id=item.id, status_code=400)

      return {"id": item.id, "status": "accepted"}
    finally:
      self.in_flight -= 1
