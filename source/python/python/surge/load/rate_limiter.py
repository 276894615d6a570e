"""
Token bucket rate limiter for document broadcasts.

The bucket refills at the target rate and holds at most one second worth of
tokens, so bursts never exceed the per second rate. Without a target rate
every request proceeds immediately.

Waiting for a token can be raced against a cancellation signal: a caller that
is still waiting when the run is cancelled gives up without taking a token.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Optional

from surge.logs import get_logger

from .cancellation import CancellationSignal


@dataclass
class RateLimiterStats:
  """Statistics for rate limiter monitoring."""

  rate: Optional[float]
  capacity: Optional[float]
  tokens_available: Optional[float]
  granted: int
  abandoned: int


class TokenBucketRateLimiter:
  """
  Token bucket limiter shared by all workers of a run.

  Usage:
      limiter = TokenBucketRateLimiter(rate=100.0)

      if not await limiter.acquire(cancel=signal):
          return  # run was cancelled while waiting

      await submit(document)
  """

  def __init__(self, rate: Optional[float] = None):
    """
    Initialize the limiter.

    :param rate: Tokens per second, None for unlimited
    """
    if rate is not None and rate <= 0:
      raise ValueError("rate must be positive, use None for unlimited")

    self.rate = rate
    self.logger = get_logger("rate_limiter")

    # Bucket holds one second worth of tokens, but at least 1 token
    self.capacity: Optional[float] = max(1.0, rate) if rate is not None else None

    # Start with a full bucket
    self._tokens = self.capacity or 0.0
    self._last_refill = time.monotonic()

    self._granted = 0
    self._abandoned = 0

    self._lock = asyncio.Lock()

    self.logger.debug(f"Initialized rate limiter: rate={rate if rate is not None else 'unlimited'}")

  @property
  def unlimited(self) -> bool:
    return self.rate is None

  async def acquire(self, cancel: Optional[CancellationSignal] = None) -> bool:
    """
    Wait for a token.

    Cancellation is checked before every attempt to take a token, so when a
    token and the cancellation become ready together, cancellation wins.

    :param cancel: Optional signal that abandons the wait when set
    :return: True if a token was taken, False if cancelled first
    """
    while True:
      if cancel is not None and cancel.is_set():
        self._abandoned += 1
        return False

      if self.rate is None:
        self._granted += 1
        return True

      async with self._lock:
        self._refill_tokens()

        if self._tokens >= 1.0:
          self._tokens -= 1.0
          self._granted += 1
          return True

        # Calculate wait time for next token
        tokens_needed = 1.0 - self._tokens
        wait_time = tokens_needed / self.rate

      # Wait outside the lock so other callers are not blocked
      if cancel is None:
        await asyncio.sleep(wait_time)
      elif await cancel.wait(timeout=wait_time):
        self._abandoned += 1
        return False

  def _refill_tokens(self) -> None:
    """Refill tokens based on elapsed time."""
    now = time.monotonic()
    elapsed = now - self._last_refill
    self._last_refill = now

    tokens_to_add = elapsed * self.rate
    self._tokens = min(self._tokens + tokens_to_add, self.capacity)

  @property
  def stats(self) -> RateLimiterStats:
    """Get current statistics."""
    return RateLimiterStats(
      rate=self.rate,
      capacity=self.capacity,
      tokens_available=None if self.rate is None else self._tokens,
      granted=self._granted,
      abandoned=self._abandoned,
    )
