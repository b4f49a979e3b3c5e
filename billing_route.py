# billing_route.py
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel

from checkout import CheckoutOrchestrator, CheckoutOutcome
from errors import StoreError
from export import export_filename, export_to_csv
from lifecycle import InvoiceManager
from models import Account, CamelModel, Invoice, InvoiceCheckout, InvoiceStats, OnboardingCheckout
from notices import Notice, NoticeBoard
from redirect import consume_paid_marker

router = APIRouter(prefix="/api", tags=["billing"])


class SignupIn(BaseModel):
  name: str = ""
  email: str = ""


class SignupOut(CamelModel):
  account: Account
  checkout: CheckoutOutcome


class InvoiceIn(CamelModel):
  client_name: str = ""
  amount: Optional[float] = None


class ReturnIn(BaseModel):
  url: str = ""


class ReturnOut(BaseModel):
  confirmed: bool
  url: str


def get_manager(request: Request) -> InvoiceManager:
  return request.app.state.manager


def get_orchestrator(request: Request) -> CheckoutOrchestrator:
  return request.app.state.orchestrator


def get_notices(request: Request) -> NoticeBoard:
  return request.app.state.notices


def require_paid_account(manager: InvoiceManager = Depends(get_manager)) -> InvoiceManager:
  if not manager.has_access:
    raise HTTPException(status_code=402, detail="Complete the onboarding payment first")
  return manager


def _store_failed(exc: StoreError) -> HTTPException:
  return HTTPException(status_code=503, detail=str(exc))


def _match(q: str, *values: str) -> bool:
  ql = q.strip().lower()
  return any(ql in (v or "").lower() for v in values)


def _get_or_404(manager: InvoiceManager, invoice_id: str) -> Invoice:
  invoice = manager.get(invoice_id)
  if not invoice:
    raise HTTPException(status_code=404, detail="Invoice not found")
  return invoice


@router.post("/signup", response_model=SignupOut)
async def signup(
  body: SignupIn,
  manager: InvoiceManager = Depends(get_manager),
  orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
):
  if manager.has_access:
    raise HTTPException(status_code=409, detail="Account is already active")
  try:
    account = manager.register_account(body.name, body.email)
  except StoreError as exc:
    raise _store_failed(exc)
  if account is None:
    raise HTTPException(status_code=422, detail="Name and email are required")

  outcome = await orchestrator.initiate_checkout(
    OnboardingCheckout(name=account.name, email=account.email)
  )
  return SignupOut(account=account, checkout=outcome)


@router.get("/account", response_model=Account)
def get_account(manager: InvoiceManager = Depends(get_manager)):
  if manager.account is None:
    raise HTTPException(status_code=404, detail="No account")
  return manager.account


@router.post("/checkout/return", response_model=ReturnOut)
def checkout_return(
  body: ReturnIn,
  manager: InvoiceManager = Depends(get_manager),
  notices: NoticeBoard = Depends(get_notices),
):
  confirmed, url = consume_paid_marker(body.url)
  if not confirmed:
    return ReturnOut(confirmed=False, url=url)

  if manager.account is not None and not manager.account.has_paid:
    try:
      manager.mark_account_paid()
    except StoreError as exc:
      raise _store_failed(exc)
    notices.notify("Payment successful! Welcome to PayNapple!")
  else:
    notices.notify("Payment successful!")
  return ReturnOut(confirmed=True, url=url)


@router.get("/notices", response_model=List[Notice])
def drain_notices(notices: NoticeBoard = Depends(get_notices)):
  return notices.drain()


@router.get("/invoices", response_model=List[Invoice])
def list_invoices(q: Optional[str] = None, manager: InvoiceManager = Depends(require_paid_account)):
  rows = manager.invoices
  if not q:
    return rows
  return [r for r in rows if _match(q, r.client_name, r.status)]


@router.post("/invoices", response_model=Invoice, status_code=201)
def create_invoice(body: InvoiceIn, manager: InvoiceManager = Depends(require_paid_account)):
  try:
    invoice = manager.add_invoice(body.client_name, body.amount)
  except StoreError as exc:
    raise _store_failed(exc)
  if invoice is None:
    raise HTTPException(status_code=422, detail="Client name and a positive amount are required")
  return invoice


@router.get("/invoices/stats", response_model=InvoiceStats)
def invoice_stats(manager: InvoiceManager = Depends(require_paid_account)):
  return manager.statistics()


@router.get("/invoices/export")
def export_invoices(manager: InvoiceManager = Depends(require_paid_account)):
  if not manager.invoices:
    raise HTTPException(status_code=404, detail="No invoices to export")
  return Response(
    content=export_to_csv(manager.invoices),
    media_type="text/csv",
    headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
  )


@router.post("/invoices/{invoice_id}/pay", response_model=Invoice)
def pay_invoice(invoice_id: str, manager: InvoiceManager = Depends(require_paid_account)):
  invoice = _get_or_404(manager, invoice_id)
  try:
    updated = manager.mark_paid(invoice_id)
  except StoreError as exc:
    raise _store_failed(exc)
  return updated or invoice


@router.post("/invoices/{invoice_id}/send", response_model=CheckoutOutcome)
async def send_invoice(
  invoice_id: str,
  manager: InvoiceManager = Depends(require_paid_account),
  orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
):
  invoice = _get_or_404(manager, invoice_id)
  if invoice.status == "paid":
    raise HTTPException(status_code=409, detail="Invoice is already paid")

  return await orchestrator.initiate_checkout(InvoiceCheckout(
    email=manager.account.email if manager.account else None,
    invoice_id=invoice.id,
    client_name=invoice.client_name,
    amount=invoice.amount,
  ))


@router.delete("/invoices/{invoice_id}", response_model=Invoice)
def delete_invoice(invoice_id: str, manager: InvoiceManager = Depends(require_paid_account)):
  _get_or_404(manager, invoice_id)
  try:
    return manager.delete_invoice(invoice_id)
  except StoreError as exc:
    raise _store_failed(exc)
