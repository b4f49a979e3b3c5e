# export.py
from datetime import date, datetime
from typing import Iterable, Optional

from models import Invoice

HEADERS = ["Client Name", "Amount", "Status", "Created Date", "Paid Date"]


def format_date(value: Optional[datetime]) -> str:
  # en-US short date, e.g. 3/7/2025
  if value is None:
    return ""
  return f"{value.month}/{value.day}/{value.year}"


def _quote(text: str) -> str:
  return '"' + text.replace('"', '""') + '"'


def invoice_row(invoice: Invoice) -> str:
  return ",".join([
    _quote(invoice.client_name),
    f"{invoice.amount:.2f}",
    invoice.status,
    format_date(invoice.created_at),
    format_date(invoice.paid_at),
  ])


def export_to_csv(invoices: Iterable[Invoice]) -> str:
  lines = [",".join(HEADERS)]
  lines.extend(invoice_row(inv) for inv in invoices)
  return "\n".join(lines)


def export_filename(today: Optional[date] = None) -> str:
  today = today or date.today()
  return f"invoices_{today.isoformat()}.csv"
