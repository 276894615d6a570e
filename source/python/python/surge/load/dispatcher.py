"""
Dispatcher driving a load test run.

While the run is not cancelled the dispatcher acquires a concurrency permit
and spawns a worker for it. Once the cancellation signal is set it stops
admitting new workers, waits for the spawned ones to finish and produces the
summary.

States:
  RUNNING -> DRAINING -> COMPLETED
"""

import asyncio
import itertools
import time
from enum import Enum
from typing import Any, Optional

from surge.logs import get_logger

from .cancellation import STOP_REQUESTED, CancellationSignal, DurationTimer
from .config import LoadTestConfig
from .errors import WorkItemBuildError
from .gate import ConcurrencyGate
from .rate_limiter import TokenBucketRateLimiter
from .stats import LoadTestSummary, StatsCounters
from .work import Submitter, WorkItemFactory
from .worker import RunContext, Worker


class DispatcherState(Enum):
  IDLE = "idle"
  RUNNING = "running"
  DRAINING = "draining"
  COMPLETED = "completed"


class Dispatcher:
  """
  Runs a single load test.

  Usage:
      config = LoadTestConfig.create(concurrency=10, duration=60, rate=100)
      dispatcher = Dispatcher(config, factory, submitter, identity)
      summary = await dispatcher.run()
  """

  def __init__(
    self,
    config: LoadTestConfig,
    factory: WorkItemFactory,
    submitter: Submitter,
    identity: Any = None,
    description: Optional[str] = None,
  ):
    """
    :param config: Run settings
    :param factory: Builds a signed work item per worker
    :param submitter: Sends work items to the remote service
    :param identity: Identity material passed to the factory
    :param description: Extra context for the start and summary lines
    """
    self.config = config
    self.factory = factory
    self.submitter = submitter
    self.identity = identity
    self.description = description
    self.logger = get_logger("dispatcher")

    self.signal = CancellationSignal()
    self.gate = ConcurrencyGate(config.concurrency)
    self.rate_limiter = TokenBucketRateLimiter(config.target_rate)
    self.stats: Optional[StatsCounters] = None
    self.state = DispatcherState.IDLE

    self._tasks: set[asyncio.Task] = set()
    self._spawned = 0
    self._build_errors = 0
    self._summary: Optional[LoadTestSummary] = None

  @property
  def spawned(self) -> int:
    """Number of workers spawned so far."""
    return self._spawned

  @property
  def build_errors(self) -> int:
    """Number of workers aborted because their work item could not be built."""
    return self._build_errors

  @property
  def outstanding(self) -> int:
    """Number of spawned workers that have not finished yet."""
    return len(self._tasks)

  @property
  def summary(self) -> Optional[LoadTestSummary]:
    return self._summary

  def stop(self, reason: str = STOP_REQUESTED) -> None:
    """Request the run to stop admitting workers and drain."""
    if self.signal.set(reason):
      self.logger.info(f"Stopping the broadcast: {reason}")

  async def run(self) -> LoadTestSummary:
    """
    Run the load test to completion.

    :return: Summary of the run
    """
    if self.state != DispatcherState.IDLE:
      raise RuntimeError(f"Dispatcher already {self.state.value}")

    self.state = DispatcherState.RUNNING
    start_time = time.monotonic()
    self.stats = StatsCounters(report_interval=self.config.report_interval, start_time=start_time)

    context = RunContext(
      factory=self.factory,
      submitter=self.submitter,
      identity=self.identity,
      rate_limiter=self.rate_limiter,
      signal=self.signal,
      stats=self.stats,
      created_at_ms=int(time.time() * 1000),
    )

    self.logger.info(
      f"{self._prefix()}broadcasting up to {self.config.describe_rate()} random documents per second "
      f"in {self.config.concurrency} parallel tasks for {self.config.duration:g} secs"
    )

    timer = DurationTimer(self.signal, self.config.duration, start_time)
    timer.start()

    worker_ids = itertools.count(start=1)
    try:
      while not self.signal.is_set():
        permit = await self.gate.acquire(cancel=self.signal)
        if permit is None:
          break

        worker = Worker(context, next(worker_ids))
        task = asyncio.create_task(worker.run(permit))
        self._spawned += 1
        self._tasks.add(task)
        task.add_done_callback(self._on_worker_done)
    finally:
      # Workers still waiting for a token must observe the end of the run
      self.signal.set(STOP_REQUESTED)
      self.state = DispatcherState.DRAINING
      self.logger.debug(f"Draining {len(self._tasks)} outstanding workers")
      if self._tasks:
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
      await timer.stop()

    elapsed = time.monotonic() - start_time
    self._summary = self.stats.summary(duration=self.config.duration, elapsed=elapsed)
    self.state = DispatcherState.COMPLETED

    summary = self._summary
    self.logger.info(
      f"{self._prefix()}broadcasting {summary.attempted} random documents during {summary.duration:g} secs. "
      f"successfully: {summary.succeeded}, failed: {summary.failed}, rate: {summary.throughput:.2f} docs/sec"
    )
    return summary

  def _on_worker_done(self, task: asyncio.Task) -> None:
    self._tasks.discard(task)
    if task.cancelled():
      return

    error = task.exception()
    if error is None:
      return
    if isinstance(error, WorkItemBuildError):
      self._build_errors += 1
      self.logger.error(f"Worker aborted: {error}")
    else:
      self.logger.error(f"Worker failed unexpectedly: {type(error).__name__}: {error}")

  def _prefix(self) -> str:
    return f"[{self.description}] " if self.description else ""
