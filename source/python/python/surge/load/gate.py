"""
Bounded pool of concurrency permits.

A worker holds exactly one permit while it is in flight. Permits are owned
objects: releasing one twice is a programming error and raises PermitError
instead of silently growing the pool.
"""

import asyncio
import itertools
from typing import Optional

from surge.logs import get_logger

from .cancellation import CancellationSignal
from .errors import PermitError


class Permit:
  """Capacity token handed out by a ConcurrencyGate."""

  __slots__ = ("id", "_gate", "_released")

  def __init__(self, gate: "ConcurrencyGate", permit_id: int):
    self.id = permit_id
    self._gate = gate
    self._released = False

  @property
  def released(self) -> bool:
    return self._released

  def release(self) -> None:
    """
    Return the capacity to the gate.

    :raises PermitError: If the permit was already released
    """
    if self._released:
      raise PermitError(self.id)
    self._released = True
    self._gate._release()

  def __enter__(self) -> "Permit":
    return self

  def __exit__(self, exc_type, exc, tb) -> None:
    if not self._released:
      self.release()

  def __repr__(self) -> str:
    return f"Permit(id={self.id}, released={self._released})"


class ConcurrencyGate:
  """
  Limits the number of simultaneous in-flight workers.

  Usage:
      gate = ConcurrencyGate(capacity=10)

      permit = await gate.acquire()
      try:
        await do_work()
      finally:
        permit.release()
  """

  def __init__(self, capacity: int):
    if capacity <= 0:
      raise ValueError("capacity must be positive")

    self._capacity = capacity
    self._semaphore = asyncio.Semaphore(capacity)
    self._in_use = 0
    self._peak_in_use = 0
    self._ids = itertools.count(start=1)
    self.logger = get_logger("gate")

    self.logger.debug(f"Initialized concurrency gate: capacity={capacity}")

  @property
  def capacity(self) -> int:
    return self._capacity

  @property
  def in_use(self) -> int:
    return self._in_use

  @property
  def available(self) -> int:
    return self._capacity - self._in_use

  @property
  def peak_in_use(self) -> int:
    """Highest number of permits held at the same time."""
    return self._peak_in_use

  async def acquire(self, cancel: Optional[CancellationSignal] = None) -> Optional[Permit]:
    """
    Wait until capacity is available.

    :param cancel: Optional signal that abandons the wait when set
    :return: A permit, or None if the signal was set first
    """
    if cancel is None:
      await self._semaphore.acquire()
      return self._issue()

    if cancel.is_set():
      return None

    acquire_task = asyncio.ensure_future(self._semaphore.acquire())
    cancel_task = asyncio.ensure_future(cancel.wait())
    issued = False
    try:
      await asyncio.wait({acquire_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)

      # Cancellation wins when both became ready together
      if cancel.is_set() or not acquire_task.done():
        return None

      issued = True
      return self._issue()
    finally:
      for task in (acquire_task, cancel_task):
        if not task.done():
          task.cancel()
      await asyncio.gather(acquire_task, cancel_task, return_exceptions=True)

      acquired = not acquire_task.cancelled() and acquire_task.exception() is None
      if acquired and not issued:
        self._semaphore.release()

  def _issue(self) -> Permit:
    self._in_use += 1
    if self._in_use > self._peak_in_use:
      self._peak_in_use = self._in_use
    return Permit(self, next(self._ids))

  def _release(self) -> None:
    self._in_use -= 1
    self._semaphore.release()
