from .cancellation import CancellationSignal, DurationTimer, DURATION_ELAPSED, STOP_REQUESTED
from .config import LoadTestConfig
from .dispatcher import Dispatcher, DispatcherState
from .errors import (
  LoadTestError,
  ConfigurationError,
  WorkItemBuildError,
  SubmitError,
  PermitError,
)
from .gate import ConcurrencyGate, Permit
from .rate_limiter import TokenBucketRateLimiter, RateLimiterStats
from .stats import Counter, StatsCounters, StatsSnapshot, LoadTestSummary
from .work import WorkItem, Outcome, WorkItemFactory, Submitter
from .worker import RunContext, Worker

__all__ = [
  "CancellationSignal",
  "DurationTimer",
  "DURATION_ELAPSED",
  "STOP_REQUESTED",
  "LoadTestConfig",
  "Dispatcher",
  "DispatcherState",
  "LoadTestError",
  "ConfigurationError",
  "WorkItemBuildError",
  "SubmitError",
  "PermitError",
  "ConcurrencyGate",
  "Permit",
  "TokenBucketRateLimiter",
  "RateLimiterStats",
  "Counter",
  "StatsCounters",
  "StatsSnapshot",
  "LoadTestSummary",
  "WorkItem",
  "Outcome",
  "WorkItemFactory",
  "Submitter",
  "RunContext",
  "Worker",
]
