"""
Exception classes for load test runs.

Each error carries a context dictionary that is rendered into its message so
that a log line is enough to understand which document, worker or setting
caused the failure.
"""

from typing import Optional, Dict, Any


class LoadTestError(Exception):
  """
  Base class for load test errors.

  Attributes:
    context: Additional context about the failure
    message: Human-readable error message
  """

  def __init__(
    self,
    message: str,
    context: Optional[Dict[str, Any]] = None,
  ):
    self.context = context or {}
    self.message = self._build_message(message)
    super().__init__(self.message)

  def _build_message(self, message: str) -> str:
    parts = [message]

    if self.context:
      context_parts = [f"{k}: {v}" for k, v in self.context.items() if v is not None]
      if context_parts:
        parts.append(f"({', '.join(context_parts)})")

    return " ".join(parts)


class ConfigurationError(LoadTestError, ValueError):
  """
  Raised before a run starts when its settings are invalid.

  Example:
    try:
      config = LoadTestConfig.create(concurrency=0, duration=10)
    except ConfigurationError as e:
      print(f"Invalid configuration: {e}")
      print(f"Setting: {e.setting}")
  """

  def __init__(self, setting: str, value: Any, reason: str):
    self.setting = setting
    self.value = value
    super().__init__(f"Invalid {setting}: {reason}.", {"value": repr(value)})


class WorkItemBuildError(LoadTestError):
  """
  Raised when a document cannot be generated or signed.

  This is not retried: it indicates a malformed document type or identity,
  so the affected worker is aborted and the error is logged.
  """

  def __init__(self, reason: str, document_type: Optional[str] = None, cause: Optional[BaseException] = None):
    self.document_type = document_type
    self.cause = cause
    context = {"document_type": document_type}
    if cause is not None:
      context["cause"] = f"{type(cause).__name__}: {cause}"
    super().__init__(f"Failed to build work item: {reason}.", context)


class SubmitError(LoadTestError):
  """
  Raised by a submitter when the remote service rejects a document or cannot
  be reached. Counted as one failed outcome and never retried.
  """

  def __init__(
    self,
    reason: str,
    item_id: Optional[str] = None,
    status_code: Optional[int] = None,
  ):
    self.reason = reason
    self.item_id = item_id
    self.status_code = status_code
    super().__init__(reason, {"item_id": item_id, "status_code": status_code})


class PermitError(LoadTestError):
  """Raised when a concurrency permit is released more than once."""

  def __init__(self, permit_id: int):
    self.permit_id = permit_id
    super().__init__("Permit already released.", {"permit_id": permit_id})
