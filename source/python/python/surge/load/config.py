"""
Configuration for a single load test run.

Environment Variables (read by the CLI as flag defaults):
- SURGE_CONNECTIONS: Number of requests in flight at the same time
- SURGE_TIME: Duration of the run in seconds
- SURGE_RATE: Documents per second, 0 for unbounded (default: 0)
- SURGE_REPORT_INTERVAL: Seconds between progress lines (default: 1)
"""

import math
import os
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError

DEFAULT_REPORT_INTERVAL = 1.0


@dataclass(frozen=True)
class LoadTestConfig:
  """Settings of a load test run. Immutable once the run starts."""

  # Maximum number of simultaneous in-flight requests
  concurrency: int

  # Duration of the run in seconds
  duration: float

  # Documents per second, None for unbounded
  target_rate: Optional[float] = None

  # Seconds between progress lines
  report_interval: float = DEFAULT_REPORT_INTERVAL

  def __post_init__(self):
    if isinstance(self.concurrency, bool) or not isinstance(self.concurrency, int):
      raise ConfigurationError("concurrency", self.concurrency, "must be an integer")
    if self.concurrency <= 0:
      raise ConfigurationError("concurrency", self.concurrency, "must be positive")

    if not _is_number(self.duration) or not math.isfinite(self.duration):
      raise ConfigurationError("duration", self.duration, "must be a finite number of seconds")
    if self.duration < 0:
      raise ConfigurationError("duration", self.duration, "must not be negative")

    if self.target_rate is not None:
      if not _is_number(self.target_rate) or not math.isfinite(self.target_rate):
        raise ConfigurationError("target_rate", self.target_rate, "must be a finite number")
      if self.target_rate <= 0:
        raise ConfigurationError("target_rate", self.target_rate, "must be positive, use None for unbounded")

    if not _is_number(self.report_interval) or self.report_interval <= 0:
      raise ConfigurationError("report_interval", self.report_interval, "must be a positive number of seconds")

  @classmethod
  def create(
    cls,
    concurrency: int,
    duration: float,
    rate: Optional[float] = 0,
    report_interval: float = DEFAULT_REPORT_INTERVAL,
  ) -> "LoadTestConfig":
    """
    Build a config from command line style values.

    :param concurrency: Number of simultaneous in-flight requests
    :param duration: Duration in seconds
    :param rate: Documents per second, 0 or None for unbounded
    :param report_interval: Seconds between progress lines
    :return: Validated config
    :raises ConfigurationError: If a value is invalid
    """
    target_rate = None if rate is None or rate == 0 else rate
    return cls(
      concurrency=concurrency,
      duration=duration,
      target_rate=target_rate,
      report_interval=report_interval,
    )

  @property
  def is_rate_limited(self) -> bool:
    return self.target_rate is not None

  def describe_rate(self) -> str:
    if self.target_rate is None:
      return "unbounded"
    return f"{self.target_rate:g}"


def env_int(name: str) -> Optional[int]:
  value = os.environ.get(name)
  if value is None or not value.strip():
    return None
  try:
    return int(value)
  except ValueError:
    raise ConfigurationError(name, value, "must be an integer")


def env_float(name: str) -> Optional[float]:
  value = os.environ.get(name)
  if value is None or not value.strip():
    return None
  try:
    return float(value)
  except ValueError:
    raise ConfigurationError(name, value, "must be a number")


def _is_number(value) -> bool:
  return not isinstance(value, bool) and isinstance(value, (int, float))
