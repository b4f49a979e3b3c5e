# scheduler.py
import asyncio
from typing import Callable, List, Optional, Protocol


class ScheduledTask:
  """Handle on a callback armed to run once after a delay."""

  def __init__(self, callback: Callable[[], None], delay: float) -> None:
    self.callback = callback
    self.delay = delay
    self.cancelled = False
    self.done = False
    self.on_cancel: Optional[Callable[[], None]] = None
    self._timer: Optional[asyncio.TimerHandle] = None

  def run(self) -> None:
    if self.cancelled or self.done:
      return
    self.done = True
    self.callback()

  def cancel(self) -> None:
    if self.done or self.cancelled:
      return
    self.cancelled = True
    if self._timer is not None:
      self._timer.cancel()
    if self.on_cancel is not None:
      self.on_cancel()


class Scheduler(Protocol):
  def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
    ...


class AsyncioScheduler:
  def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
    task = ScheduledTask(callback, delay)
    loop = asyncio.get_running_loop()
    task._timer = loop.call_later(delay, task.run)
    return task


class ManualScheduler:
  """Holds tasks until ``run_pending`` is called; used to drive timers in tests."""

  def __init__(self) -> None:
    self.tasks: List[ScheduledTask] = []

  def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
    task = ScheduledTask(callback, delay)
    self.tasks.append(task)
    return task

  @property
  def pending(self) -> List[ScheduledTask]:
    return [t for t in self.tasks if not t.done and not t.cancelled]

  def run_pending(self) -> int:
    ran = 0
    for task in self.pending:
      task.run()
      ran += 1
    return ran
