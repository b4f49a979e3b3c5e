# lifecycle.py
import logging
import math
import threading
import uuid
from datetime import datetime
from typing import Any, Callable, Iterable, List, Optional

from models import Account, Invoice, InvoiceStats, utcnow
from store import InvoiceStore

logger = logging.getLogger(__name__)


def _valid_amount(amount: Any) -> Optional[float]:
  if isinstance(amount, bool):
    return None
  try:
    value = float(amount)
  except (TypeError, ValueError):
    return None
  if not math.isfinite(value) or value <= 0:
    return None
  return value


def compute_statistics(invoices: Iterable[Invoice]) -> InvoiceStats:
  invoices = list(invoices)
  total = sum(inv.amount for inv in invoices)
  paid = sum(inv.amount for inv in invoices if inv.status == "paid")
  paid_count = sum(1 for inv in invoices if inv.status == "paid")
  return InvoiceStats(
    total_count=len(invoices),
    total_amount=round(total, 2),
    paid_amount=round(paid, 2),
    pending_amount=round(total - paid, 2),
    paid_count=paid_count,
    pending_count=sum(1 for inv in invoices if inv.status == "pending"),
    completion_rate=round(paid / total * 100) if total > 0 else 0,
  )


class InvoiceManager:
  """In-memory invoices and account, persisted after every mutation."""

  def __init__(
    self,
    store: InvoiceStore,
    account_id: str = "local",
    clock: Callable[[], datetime] = utcnow,
    id_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
  ) -> None:
    self.store = store
    self.account_id = account_id
    self.clock = clock
    self.id_factory = id_factory
    self.invoices: List[Invoice] = []
    self.account: Optional[Account] = None
    # held across the in-memory change and its store write
    self.lock = threading.RLock()

  def load(self) -> None:
    with self.lock:
      self.invoices = self.store.list_invoices(self.account_id)
      self.account = self.store.load_account()
    logger.info("loaded %d invoices", len(self.invoices), extra={"account_id": self.account_id})

  @property
  def has_access(self) -> bool:
    return self.account is not None and self.account.has_paid

  def get(self, invoice_id: str) -> Optional[Invoice]:
    return next((inv for inv in self.invoices if inv.id == invoice_id), None)

  # account

  def register_account(self, name: str, email: str) -> Optional[Account]:
    name, email = (name or "").strip(), (email or "").strip()
    if not name or not email:
      return None
    with self.lock:
      self.account = Account(name=name, email=email, has_paid=False)
      self.store.save_account(self.account)
      return self.account

  def mark_account_paid(self) -> Optional[Account]:
    with self.lock:
      if self.account is None:
        logger.warning("payment confirmed with no account on record")
        return None
      if self.account.has_paid:
        return self.account
      self.account = self.account.model_copy(update={"has_paid": True})
      self.store.save_account(self.account)
    logger.info("account unlocked", extra={"account_id": self.account_id})
    return self.account

  # invoices

  def add_invoice(self, client_name: Any, amount: Any) -> Optional[Invoice]:
    name = client_name.strip() if isinstance(client_name, str) else ""
    value = _valid_amount(amount)
    if not name or value is None:
      return None

    with self.lock:
      invoice = Invoice(
        id=self.id_factory(),
        client_name=name,
        amount=value,
        status="pending",
        created_at=self.clock(),
      )
      self.invoices = [*self.invoices, invoice]
      self.store.create(invoice, self.account_id)
    logger.info("invoice created", extra={"invoice_id": invoice.id})
    return invoice

  def mark_paid(self, invoice_id: str) -> Optional[Invoice]:
    with self.lock:
      invoice = self.get(invoice_id)
      if invoice is None or invoice.status == "paid":
        return None

      paid_at = max(self.clock(), invoice.created_at)
      updated = invoice.model_copy(update={"status": "paid", "paid_at": paid_at})
      self.invoices = [updated if inv.id == invoice_id else inv for inv in self.invoices]
      self.store.update(invoice_id, {"status": "paid", "paid_at": paid_at})
    logger.info("invoice marked paid", extra={"invoice_id": invoice_id})
    return updated

  def delete_invoice(self, invoice_id: str) -> Optional[Invoice]:
    with self.lock:
      invoice = self.get(invoice_id)
      if invoice is None:
        return None

      self.invoices = [inv for inv in self.invoices if inv.id != invoice_id]
      self.store.remove(invoice_id)
    logger.info("invoice deleted", extra={"invoice_id": invoice_id})
    return invoice

  def statistics(self) -> InvoiceStats:
    return compute_statistics(self.invoices)
