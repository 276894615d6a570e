"""
Units of work dispatched by a load test and the capabilities that produce
and submit them.
"""

import random
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class WorkItem:
  """A single signed request, created fresh for every worker."""

  id: str
  payload: dict
  entropy: bytes = b""
  signature: Optional[str] = None
  created_at_ms: int = 0
  metadata: dict = field(default_factory=dict)


@dataclass(frozen=True)
class Outcome:
  """Result of submitting a work item."""

  success: bool
  item_id: str
  ack: Any = None
  reason: Optional[str] = None

  @classmethod
  def succeeded(cls, item_id: str, ack: Any = None) -> "Outcome":
    return cls(success=True, item_id=item_id, ack=ack)

  @classmethod
  def failed(cls, item_id: str, reason: str) -> "Outcome":
    return cls(success=False, item_id=item_id, reason=reason)


@runtime_checkable
class WorkItemFactory(Protocol):
  """Generates and signs one work item."""

  def build(self, identity: Any, created_at_ms: int, rng: random.Random) -> WorkItem: ...


@runtime_checkable
class Submitter(Protocol):
  """
  Submits a work item to the remote service.

  Returns an acknowledgement on success and raises on failure. Implementations
  must be safe to call concurrently and must not retry.
  """

  async def submit(self, item: WorkItem) -> Any: ...
