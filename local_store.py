# local_store.py
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from errors import StoreError
from models import Account, Invoice

logger = logging.getLogger(__name__)

STORAGE_KEYS = {
  "invoices": "paynapple_invoices",
  "user": "paynapple_user",
}

_invoice_list = TypeAdapter(List[Invoice])


class LocalKeyValue:
  """String values under string keys, persisted as one JSON file."""

  def __init__(self, path: str) -> None:
    self.path = Path(path)

  def _load(self) -> Dict[str, str]:
    if not self.path.exists():
      return {}
    try:
      data = json.loads(self.path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
      logger.warning("unreadable local store %s: %s", self.path, exc)
      return {}
    if not isinstance(data, dict):
      logger.warning("local store %s is not a key-value object", self.path)
      return {}
    return {k: v for k, v in data.items() if isinstance(v, str)}

  def get(self, key: str) -> Optional[str]:
    return self._load().get(key)

  def set(self, key: str, value: str) -> None:
    data = self._load()
    data[key] = value
    self.path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
    try:
      with os.fdopen(fd, "w", encoding="utf-8") as fh:
        json.dump(data, fh)
      os.replace(tmp_path, self.path)
    except BaseException:
      if os.path.exists(tmp_path):
        os.remove(tmp_path)
      raise


class LocalStore:
  """Single-account backend: the whole collection lives under one key."""

  def __init__(self, path: str, kv: Optional[LocalKeyValue] = None) -> None:
    self.kv = kv or LocalKeyValue(path)
    self._lock = threading.Lock()

  def _read_invoices(self) -> List[Invoice]:
    raw = self.kv.get(STORAGE_KEYS["invoices"])
    if not raw:
      return []
    try:
      return _invoice_list.validate_json(raw)
    except ValidationError as exc:
      logger.warning("discarding malformed invoice collection: %s", exc.error_count())
      return []

  def _write_invoices(self, invoices: List[Invoice]) -> None:
    payload = _invoice_list.dump_json(invoices, by_alias=True).decode("utf-8")
    try:
      self.kv.set(STORAGE_KEYS["invoices"], payload)
    except OSError as exc:
      logger.error("failed to write invoices to %s: %s", self.kv.path, exc)
      raise StoreError(f"could not save invoices: {exc}") from exc

  def list_invoices(self, account_id: str) -> List[Invoice]:
    return self._read_invoices()

  def create(self, invoice: Invoice, account_id: str) -> None:
    with self._lock:
      invoices = self._read_invoices()
      invoices.append(invoice)
      self._write_invoices(invoices)

  def update(self, invoice_id: str, changes: Dict[str, Any]) -> None:
    with self._lock:
      invoices = [
        inv.model_copy(update=changes) if inv.id == invoice_id else inv
        for inv in self._read_invoices()
      ]
      self._write_invoices(invoices)

  def remove(self, invoice_id: str) -> None:
    with self._lock:
      invoices = [inv for inv in self._read_invoices() if inv.id != invoice_id]
      self._write_invoices(invoices)

  def load_account(self) -> Optional[Account]:
    raw = self.kv.get(STORAGE_KEYS["user"])
    if not raw:
      return None
    try:
      return Account.model_validate_json(raw)
    except ValidationError:
      logger.warning("discarding malformed account record")
      return None

  def save_account(self, account: Account) -> None:
    try:
      self.kv.set(STORAGE_KEYS["user"], account.model_dump_json(by_alias=True))
    except OSError as exc:
      logger.error("failed to write account to %s: %s", self.kv.path, exc)
      raise StoreError(f"could not save account: {exc}") from exc
