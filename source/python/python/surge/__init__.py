from .load import (
  CancellationSignal,
  ConcurrencyGate,
  ConfigurationError,
  Dispatcher,
  DispatcherState,
  LoadTestConfig,
  LoadTestSummary,
  Outcome,
  SubmitError,
  TokenBucketRateLimiter,
  WorkItem,
  WorkItemBuildError,
)
from .logs import get_logger, set_log_level, set_log_levels

__all__ = [
  "CancellationSignal",
  "ConcurrencyGate",
  "ConfigurationError",
  "Dispatcher",
  "DispatcherState",
  "LoadTestConfig",
  "LoadTestSummary",
  "Outcome",
  "SubmitError",
  "TokenBucketRateLimiter",
  "WorkItem",
  "WorkItemBuildError",
  "get_logger",
  "set_log_level",
  "set_log_levels",
]
