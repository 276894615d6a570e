"""
Outcome counters shared by all workers of a run, progress reporting and the
end of run summary.
"""

import threading
import time
from dataclasses import dataclass
from typing import Optional

from surge.logs import get_logger


class Counter:
  """
  Integer counter safe to update from the event loop and from threads.

  Reads do not take the lock; a read returns the last completed update.
  """

  __slots__ = ("_value", "_lock")

  def __init__(self, value: int = 0):
    self._value = value
    self._lock = threading.Lock()

  def increment(self, amount: int = 1) -> int:
    with self._lock:
      self._value += amount
      return self._value

  def decrement(self, amount: int = 1) -> int:
    with self._lock:
      self._value -= amount
      return self._value

  @property
  def value(self) -> int:
    return self._value

  def __repr__(self) -> str:
    return f"Counter({self._value})"


@dataclass(frozen=True)
class StatsSnapshot:
  pending: int
  succeeded: int
  failed: int

  @property
  def attempted(self) -> int:
    return self.succeeded + self.failed


@dataclass(frozen=True)
class LoadTestSummary:
  """Final result of a run."""

  attempted: int
  succeeded: int
  failed: int

  # Configured duration of the run (seconds)
  duration: float

  # Wall clock time from start until all workers drained (seconds)
  elapsed: float

  @property
  def throughput(self) -> float:
    """Attempted documents per second of elapsed time."""
    if self.elapsed <= 0:
      return 0.0
    return self.attempted / self.elapsed


class StatsCounters:
  """
  Counters of a single run.

  Progress is reported opportunistically by the workers themselves: any worker
  that notices a new reporting interval logs a snapshot. Workers racing on the
  same interval may log it twice or not at all, which is acceptable for a
  progress line.
  """

  def __init__(self, report_interval: float = 1.0, start_time: Optional[float] = None):
    self.pending = Counter()
    self.succeeded = Counter()
    self.failed = Counter()
    self.report_interval = report_interval
    self.start_time = start_time if start_time is not None else time.monotonic()
    self.last_reported = 0
    self.logger = get_logger("stats")

  def elapsed(self, now: Optional[float] = None) -> float:
    now = now if now is not None else time.monotonic()
    return max(now - self.start_time, 0.0)

  def snapshot(self) -> StatsSnapshot:
    return StatsSnapshot(
      pending=self.pending.value,
      succeeded=self.succeeded.value,
      failed=self.failed.value,
    )

  def maybe_report(self, now: Optional[float] = None) -> bool:
    """
    Log a progress line if a new reporting interval started since the last one.

    :param now: Current monotonic time, defaults to time.monotonic()
    :return: True if a line was logged
    """
    elapsed = self.elapsed(now)
    interval = int(elapsed // self.report_interval)
    if interval == 0 or interval == self.last_reported:
      return False

    self.last_reported = interval
    snapshot = self.snapshot()
    self.logger.info(
      f"{interval * self.report_interval:g} secs passed: {snapshot.pending} pending, "
      f"{snapshot.succeeded} successful, {snapshot.failed} failed"
    )
    return True

  def summary(self, duration: float, elapsed: Optional[float] = None) -> LoadTestSummary:
    succeeded = self.succeeded.value
    failed = self.failed.value
    return LoadTestSummary(
      attempted=succeeded + failed,
      succeeded=succeeded,
      failed=failed,
      duration=duration,
      elapsed=elapsed if elapsed is not None else self.elapsed(),
    )
