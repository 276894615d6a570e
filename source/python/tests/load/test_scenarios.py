"""
End to end runs of the dispatcher against the mock document service.
"""

import asyncio
import random

import pytest

from surge.documents import PREORDER, Identity, MockSubmitter, MockSubmitterConfig, RandomDocumentFactory
from surge.load import Dispatcher, LoadTestConfig, SubmitError
from surge.load.cancellation import DURATION_ELAPSED


def make_dispatcher(concurrency, duration, rate=None, submitter=None, **mock):
  identity = Identity.ephemeral()
  factory = RandomDocumentFactory(PREORDER, contract_id="contract", identity=identity)
  submitter = submitter or MockSubmitter(MockSubmitterConfig(**mock), rng=random.Random(7))
  config = LoadTestConfig.create(concurrency=concurrency, duration=duration, rate=rate)
  return Dispatcher(config, factory, submitter, identity, description="preorder"), submitter


class WatchingSubmitter(MockSubmitter):
  """Records the gate and counters each time a document arrives."""

  def __init__(self, dispatcher_ref, config):
    super().__init__(config, rng=random.Random(11))
    self.dispatcher_ref = dispatcher_ref
    self.permits_seen = []
    self.after_cancel = 0

  async def submit(self, item):
    dispatcher = self.dispatcher_ref[0]
    self.permits_seen.append(dispatcher.gate.in_use)
    if dispatcher.signal.is_set():
      self.after_cancel += 1
    return await super().submit(item)


class AlwaysFailingSubmitter:
  def __init__(self):
    self.calls = 0

  async def submit(self, item):
    self.calls += 1
    await asyncio.sleep(0.005)
    raise SubmitError("rejected", item_id=item.id, status_code=500)


class TestScenarios:
  @pytest.mark.asyncio
  async def test_unbounded_rate_with_instant_success(self):
    dispatcher, submitter = make_dispatcher(5, 2.0, latency_ms=0, latency_jitter_ms=0)

    summary = await dispatcher.run()

    assert summary.failed == 0
    assert summary.attempted == summary.succeeded
    assert summary.succeeded > 0
    assert summary.attempted == len(submitter.received)
    assert dispatcher.signal.reason == DURATION_ELAPSED
    assert summary.elapsed == pytest.approx(2.0, abs=0.5)

  @pytest.mark.asyncio
  async def test_rate_limited_run(self):
    dispatcher, submitter = make_dispatcher(3, 1.0, rate=2, latency_ms=1, latency_jitter_ms=0)

    summary = await dispatcher.run()

    # A full bucket of 2 tokens plus 2 per second
    assert summary.attempted <= 4
    assert summary.attempted >= 2
    assert summary.failed == 0

  @pytest.mark.asyncio
  async def test_rate_bound_with_fast_service(self):
    rate, duration = 20, 0.5
    dispatcher, _ = make_dispatcher(8, duration, rate=rate, latency_ms=0, latency_jitter_ms=0)

    summary = await dispatcher.run()

    assert summary.attempted <= rate * duration + rate

  @pytest.mark.asyncio
  async def test_always_failing_service(self):
    submitter = AlwaysFailingSubmitter()
    dispatcher, _ = make_dispatcher(4, 0.3, submitter=submitter)

    summary = await dispatcher.run()

    assert summary.succeeded == 0
    assert summary.failed == summary.attempted
    assert summary.attempted == submitter.calls
    assert summary.attempted > 0

  @pytest.mark.asyncio
  async def test_mock_failure_rate(self):
    dispatcher, submitter = make_dispatcher(4, 0.3, latency_ms=1, latency_jitter_ms=0, failure_rate=0.5)

    summary = await dispatcher.run()

    assert summary.failed == len(submitter.rejected)
    assert summary.succeeded == len(submitter.received) - len(submitter.rejected)

  @pytest.mark.asyncio
  async def test_zero_duration(self):
    dispatcher, submitter = make_dispatcher(5, 0, latency_ms=0, latency_jitter_ms=0)

    summary = await dispatcher.run()

    assert summary.attempted == 0
    assert submitter.received == []
    assert dispatcher.spawned == 0

  @pytest.mark.asyncio
  async def test_single_connection_never_overlaps(self):
    dispatcher, submitter = make_dispatcher(1, 0.3, latency_ms=5, latency_jitter_ms=2)

    summary = await dispatcher.run()

    assert submitter.peak_in_flight == 1
    assert dispatcher.gate.peak_in_use == 1
    assert summary.attempted > 1

  @pytest.mark.asyncio
  async def test_permits_never_exceed_concurrency(self):
    ref = []
    config = MockSubmitterConfig(latency_ms=10, latency_jitter_ms=5)
    submitter = WatchingSubmitter(ref, config)
    dispatcher, _ = make_dispatcher(3, 0.3, submitter=submitter)
    ref.append(dispatcher)

    summary = await dispatcher.run()

    assert max(submitter.permits_seen) <= 3
    assert dispatcher.gate.peak_in_use <= 3
    assert submitter.peak_in_flight <= 3
    assert summary.attempted == len(submitter.permits_seen)

  @pytest.mark.asyncio
  async def test_counters_settle_after_the_run(self):
    dispatcher, submitter = make_dispatcher(6, 0.3, latency_ms=20, latency_jitter_ms=10, failure_rate=0.2)

    summary = await dispatcher.run()

    assert dispatcher.stats.pending.value == 0
    assert summary.succeeded + summary.failed == len(submitter.received)
    assert dispatcher.gate.in_use == 0
    assert dispatcher.outstanding == 0

  @pytest.mark.asyncio
  async def test_no_worker_spawned_after_cancellation(self):
    ref = []
    submitter = WatchingSubmitter(ref, MockSubmitterConfig(latency_ms=1, latency_jitter_ms=0))
    dispatcher, _ = make_dispatcher(4, 0.2, rate=50, submitter=submitter)
    ref.append(dispatcher)

    spawned_at_cancel = []

    async def watch():
      await dispatcher.signal.wait()
      spawned_at_cancel.append(dispatcher.spawned)

    summary, _ = await asyncio.gather(dispatcher.run(), watch())

    assert dispatcher.spawned == spawned_at_cancel[0]
    # Workers admitted before the signal may still submit, none wait for a token afterwards
    assert submitter.after_cancel <= 4
    assert summary.attempted <= dispatcher.spawned
