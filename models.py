# models.py
import math
from datetime import datetime, timezone
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel
from sqlmodel import Field, SQLModel

InvoiceStatus = Literal["pending", "paid"]


def utcnow() -> datetime:
  return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
  # sqlite hands back naive datetimes
  if value is None or value.tzinfo is not None:
    return value
  return value.replace(tzinfo=timezone.utc)


class CamelModel(BaseModel):
  model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Invoice(CamelModel):
  id: str
  client_name: str
  amount: float
  status: InvoiceStatus = "pending"
  created_at: datetime
  paid_at: Optional[datetime] = None

  @model_validator(mode="after")
  def _check_invariants(self):
    if not math.isfinite(self.amount) or self.amount <= 0:
      raise ValueError("amount must be a positive number")
    if (self.paid_at is not None) != (self.status == "paid"):
      raise ValueError("paidAt must be set exactly when status is paid")
    return self


class Account(CamelModel):
  name: str
  email: str
  has_paid: bool = False


class InvoiceStats(CamelModel):
  total_count: int = 0
  total_amount: float = 0.0
  paid_amount: float = 0.0
  pending_amount: float = 0.0
  paid_count: int = 0
  pending_count: int = 0
  completion_rate: int = 0


class OnboardingCheckout(CamelModel):
  kind: Literal["onboarding"] = "onboarding"
  name: str
  email: str


class InvoiceCheckout(CamelModel):
  kind: Literal["invoicePayment"] = "invoicePayment"
  email: Optional[str] = None
  invoice_id: str
  client_name: str
  amount: float


CheckoutRequest = Union[OnboardingCheckout, InvoiceCheckout]


# Remote database rows. Column names are the wire format of the remote
# backend; remote_store translates them to and from Invoice/Account.

class InvoiceRow(SQLModel, table=True):
  __tablename__ = "invoices"

  id: str = Field(primary_key=True, index=True)
  user_id: str = Field(index=True)
  client_name: str
  amount: float
  status: str = "pending"  # pending|paid
  created_at: datetime = Field(default_factory=utcnow, index=True)
  paid_at: Optional[datetime] = None


class AccountRow(SQLModel, table=True):
  __tablename__ = "accounts"

  id: str = Field(primary_key=True)
  name: str
  email: str
  has_paid: bool = False
