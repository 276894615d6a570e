"""
A worker broadcasts a single document.

Steps, in order:
1. build and sign the work item
2. wait for a rate limit token, or give up if the run was cancelled
3. mark the request pending and report progress if due
4. submit once, without retries
5. record the outcome
6. release the concurrency permit, always last
"""

import random
from dataclasses import dataclass
from typing import Any, Optional

from surge.logs import get_logger, trace

from .cancellation import CancellationSignal
from .errors import WorkItemBuildError
from .gate import Permit
from .rate_limiter import TokenBucketRateLimiter
from .stats import StatsCounters
from .work import Outcome, Submitter, WorkItem, WorkItemFactory


@dataclass
class RunContext:
  """Everything the workers of one run share. Read-only for the workers."""

  factory: WorkItemFactory
  submitter: Submitter
  identity: Any
  rate_limiter: TokenBucketRateLimiter
  signal: CancellationSignal
  stats: StatsCounters

  # Creation time stamped on every document of the run
  created_at_ms: int


class Worker:
  def __init__(self, context: RunContext, worker_id: int):
    self.context = context
    self.worker_id = worker_id
    self.logger = get_logger("worker")

  async def run(self, permit: Permit) -> Optional[Outcome]:
    """
    Broadcast one document while holding the given permit.

    :param permit: Concurrency permit, released before this method returns
    :return: The outcome, or None if the run was cancelled before submission
    :raises WorkItemBuildError: If the document could not be generated
    """
    try:
      item = self._build()

      if not await self.context.rate_limiter.acquire(cancel=self.context.signal):
        return None

      return await self._submit(item)
    finally:
      permit.release()

  def _build(self) -> WorkItem:
    rng = random.Random()
    try:
      return self.context.factory.build(self.context.identity, self.context.created_at_ms, rng)
    except WorkItemBuildError:
      raise
    except Exception as e:
      raise WorkItemBuildError(str(e), cause=e) from e

  async def _submit(self, item: WorkItem) -> Outcome:
    stats = self.context.stats

    trace(self.logger, f"broadcasting document {item.id}")

    stats.pending.increment()
    stats.maybe_report()

    try:
      ack = await self.context.submitter.submit(item)
    except Exception as e:
      stats.failed.increment()
      self.logger.error(f"failed to broadcast document {item.id}: {e}")
      return Outcome.failed(item.id, str(e))
    finally:
      # runs on cancellation too
      stats.pending.decrement()

    stats.succeeded.increment()
    trace(self.logger, f"document {item.id} successfully broadcast")
    return Outcome.succeeded(item.id, ack)
