# notices.py
from collections import deque
from typing import Deque, List, Literal, Protocol

from models import CamelModel

NoticeLevel = Literal["success", "warning", "error"]


class Notice(CamelModel):
  message: str
  level: NoticeLevel = "success"
  simulated: bool = False


class Notifier(Protocol):
  def notify(self, message: str, level: NoticeLevel = "success", simulated: bool = False) -> None:
    ...


class NoticeBoard:
  """Queue of user-facing notices, drained by whatever renders the toasts."""

  def __init__(self, maxlen: int = 50) -> None:
    self._items: Deque[Notice] = deque(maxlen=maxlen)

  def notify(self, message: str, level: NoticeLevel = "success", simulated: bool = False) -> None:
    self._items.append(Notice(message=message, level=level, simulated=simulated))

  def drain(self) -> List[Notice]:
    items = list(self._items)
    self._items.clear()
    return items

  def __len__(self) -> int:
    return len(self._items)
