# remote_store.py
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, select

from db import Database
from errors import StoreError
from models import Account, AccountRow, Invoice, InvoiceRow, as_utc

logger = logging.getLogger(__name__)

# only these columns may change after insert
UPDATABLE = ("status", "paid_at")


def row_to_invoice(row: InvoiceRow) -> Invoice:
  return Invoice(
    id=row.id,
    client_name=row.client_name,
    amount=row.amount,
    status=row.status,
    created_at=as_utc(row.created_at),
    paid_at=as_utc(row.paid_at),
  )


def invoice_to_row(invoice: Invoice, account_id: str) -> InvoiceRow:
  return InvoiceRow(
    id=invoice.id,
    user_id=account_id,
    client_name=invoice.client_name,
    amount=invoice.amount,
    status=invoice.status,
    created_at=invoice.created_at,
    paid_at=invoice.paid_at,
  )


class RemoteStore:
  def __init__(self, database: Database, account_id: str) -> None:
    self.database = database
    self.account_id = account_id

  def list_invoices(self, account_id: str) -> List[Invoice]:
    stmt = (
      select(InvoiceRow)
      .where(InvoiceRow.user_id == account_id)
      .order_by(col(InvoiceRow.created_at).desc())
    )
    try:
      with self.database.session() as session:
        rows = session.exec(stmt).all()
    except SQLAlchemyError as exc:
      logger.warning("error loading invoices: %s", exc, extra={"account_id": account_id})
      return []
    try:
      return [row_to_invoice(r) for r in rows]
    except ValidationError as exc:
      logger.warning("discarding malformed invoice rows: %s", exc.error_count(), extra={"account_id": account_id})
      return []

  def create(self, invoice: Invoice, account_id: str) -> None:
    try:
      with self.database.session() as session:
        session.add(invoice_to_row(invoice, account_id))
        session.commit()
    except SQLAlchemyError as exc:
      logger.error("error saving invoice: %s", exc, extra={"invoice_id": invoice.id})
      raise StoreError(f"could not save invoice {invoice.id}") from exc

  def update(self, invoice_id: str, changes: Dict[str, Any]) -> None:
    try:
      with self.database.session() as session:
        row = session.get(InvoiceRow, invoice_id)
        if row is None:
          return
        for field in UPDATABLE:
          if field in changes:
            setattr(row, field, changes[field])
        session.add(row)
        session.commit()
    except SQLAlchemyError as exc:
      logger.error("error updating invoice: %s", exc, extra={"invoice_id": invoice_id})
      raise StoreError(f"could not update invoice {invoice_id}") from exc

  def remove(self, invoice_id: str) -> None:
    try:
      with self.database.session() as session:
        row = session.get(InvoiceRow, invoice_id)
        if row is None:
          return
        session.delete(row)
        session.commit()
    except SQLAlchemyError as exc:
      logger.error("error deleting invoice: %s", exc, extra={"invoice_id": invoice_id})
      raise StoreError(f"could not delete invoice {invoice_id}") from exc

  def load_account(self) -> Optional[Account]:
    try:
      with self.database.session() as session:
        row = session.get(AccountRow, self.account_id)
    except SQLAlchemyError as exc:
      logger.warning("error loading account: %s", exc, extra={"account_id": self.account_id})
      return None
    if row is None:
      return None
    return Account(name=row.name, email=row.email, has_paid=row.has_paid)

  def save_account(self, account: Account) -> None:
    try:
      with self.database.session() as session:
        row = session.get(AccountRow, self.account_id)
        if row is None:
          row = AccountRow(id=self.account_id, name=account.name, email=account.email)
        row.name = account.name
        row.email = account.email
        row.has_paid = account.has_paid
        session.add(row)
        session.commit()
    except SQLAlchemyError as exc:
      logger.error("error saving account: %s", exc, extra={"account_id": self.account_id})
      raise StoreError("could not save account") from exc
