"""
One-shot cancellation signal and the timer that ends a run.

The signal has two producers, the duration timer and an external stop
request, and many consumers: the dispatcher loop and every worker waiting
for a rate limit token.
"""

import asyncio
import time
from typing import Optional

from surge.logs import get_logger

DURATION_ELAPSED = "duration elapsed"
STOP_REQUESTED = "stop requested"


class CancellationSignal:
  """
  A flag that can be set once and awaited by many tasks.

  Setting it again has no effect; the first reason is kept.
  """

  def __init__(self):
    self._event = asyncio.Event()
    self._reason: Optional[str] = None
    self._set_at: Optional[float] = None

  def set(self, reason: str = STOP_REQUESTED) -> bool:
    """
    Set the signal.

    :param reason: Why the run is being cancelled
    :return: True if this call set the signal, False if it was already set
    """
    if self._event.is_set():
      return False
    self._reason = reason
    self._set_at = time.monotonic()
    self._event.set()
    return True

  def is_set(self) -> bool:
    return self._event.is_set()

  @property
  def reason(self) -> Optional[str]:
    return self._reason

  @property
  def set_at(self) -> Optional[float]:
    """Monotonic time at which the signal was set."""
    return self._set_at

  async def wait(self, timeout: Optional[float] = None) -> bool:
    """
    Wait for the signal.

    :param timeout: Maximum time to wait (seconds), None to wait forever
    :return: True if the signal is set, False if the timeout expired first
    """
    if self._event.is_set():
      return True
    if timeout is None:
      await self._event.wait()
      return True
    if timeout <= 0:
      return False
    try:
      await asyncio.wait_for(self._event.wait(), timeout=timeout)
    except asyncio.TimeoutError:
      return self._event.is_set()
    return True


class DurationTimer:
  """
  Sets the cancellation signal once the run duration has elapsed.

  The timer returns early when the signal is set by someone else, so it never
  outlives the run.
  """

  def __init__(self, signal: CancellationSignal, duration: float, start_time: Optional[float] = None):
    self.signal = signal
    self.duration = duration
    self.start_time = start_time if start_time is not None else time.monotonic()
    self.logger = get_logger("timer")
    self._task: Optional[asyncio.Task] = None

  @property
  def deadline(self) -> float:
    return self.start_time + self.duration

  def start(self) -> asyncio.Task:
    if self._task is None:
      self._task = asyncio.create_task(self._run())
    return self._task

  async def _run(self) -> None:
    remaining = self.deadline - time.monotonic()
    if remaining > 0:
      cancelled_externally = await self.signal.wait(timeout=remaining)
      if cancelled_externally:
        self.logger.debug(f"Timer stopped early: {self.signal.reason}")
        return

    self.logger.info("cancelling the broadcast of random documents")
    self.signal.set(DURATION_ELAPSED)

  async def stop(self) -> None:
    """Cancel the timer task, if still running, and wait for it to finish."""
    if self._task is None:
      return
    if not self._task.done():
      self._task.cancel()
    try:
      await self._task
    except asyncio.CancelledError:
      pass

  @property
  def running(self) -> bool:
    return self._task is not None and not self._task.done()
