# store.py
from typing import Any, Dict, List, Optional, Protocol

from models import Account, Invoice
from settings import Settings


class InvoiceStore(Protocol):
  """Reads degrade to empty results; writes raise ``StoreError``."""

  def list_invoices(self, account_id: str) -> List[Invoice]:
    ...

  def create(self, invoice: Invoice, account_id: str) -> None:
    ...

  def update(self, invoice_id: str, changes: Dict[str, Any]) -> None:
    ...

  def remove(self, invoice_id: str) -> None:
    ...

  def load_account(self) -> Optional[Account]:
    ...

  def save_account(self, account: Account) -> None:
    ...


def build_store(settings: Settings) -> InvoiceStore:
  if settings.store_backend == "remote":
    from db import Database
    from remote_store import RemoteStore

    database = Database(settings.database_url or "")
    database.init_db()
    return RemoteStore(database, settings.account_id)

  from local_store import LocalStore

  return LocalStore(settings.local_store_path)
