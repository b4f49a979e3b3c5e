# checkout.py
import logging
import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Literal, Optional, Set

import httpx
from pydantic import PrivateAttr

from errors import CheckoutError, StoreError
from lifecycle import InvoiceManager
from models import CamelModel, CheckoutRequest, InvoiceCheckout
from notices import Notifier
from scheduler import ScheduledTask, Scheduler

logger = logging.getLogger(__name__)

ONBOARDING_FEE_CENTS = 900
CURRENCY = "usd"


class LineItem(CamelModel):
  name: str
  description: str
  unit_amount: int
  currency: str = CURRENCY
  quantity: int = 1


class SessionResult(CamelModel):
  session_id: str = ""
  url: str


class CheckoutOutcome(CamelModel):
  kind: str
  mode: Literal["live", "demo", "duplicate"]
  url: Optional[str] = None
  session_id: Optional[str] = None
  simulated: bool = False

  _task: Optional[ScheduledTask] = PrivateAttr(default=None)

  @property
  def task(self) -> Optional[ScheduledTask]:
    return self._task


def to_cents(amount: float) -> int:
  if not math.isfinite(amount):
    raise ValueError(f"amount must be finite, got {amount!r}")
  cents = (Decimal(str(amount)) * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP)
  return int(cents)


def build_line_item(request: CheckoutRequest) -> LineItem:
  if isinstance(request, InvoiceCheckout):
    return LineItem(
      name=f"Invoice for {request.client_name}",
      description=f"PayNapple Invoice - {request.client_name}",
      unit_amount=to_cents(request.amount),
    )
  return LineItem(
    name="PayNapple Onboarding",
    description="One-time access fee to PayNapple invoicing platform",
    unit_amount=ONBOARDING_FEE_CENTS,
  )


def session_payload(request: CheckoutRequest) -> Dict[str, Any]:
  if isinstance(request, InvoiceCheckout):
    payload: Dict[str, Any] = {
      "invoice": {
        "id": request.invoice_id,
        "clientName": request.client_name,
        "amount": request.amount,
      },
    }
    if request.email:
      payload["email"] = request.email
    return payload
  return {"name": request.name, "email": request.email}


def _dedup_key(request: CheckoutRequest) -> str:
  if isinstance(request, InvoiceCheckout):
    return f"invoice:{request.invoice_id}"
  return "onboarding"


class PaymentSessionClient:
  def __init__(
    self,
    endpoint: Optional[str],
    origin: str,
    timeout: float = 10.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
  ) -> None:
    self.endpoint = endpoint
    self.origin = origin
    self.timeout = timeout
    self.transport = transport

  async def create_session(self, request: CheckoutRequest) -> SessionResult:
    if not self.endpoint:
      raise CheckoutError("payment session endpoint is not configured")

    try:
      async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
        r = await client.post(
          self.endpoint,
          json=session_payload(request),
          headers={"Origin": self.origin},
        )
    except httpx.HTTPError as exc:
      raise CheckoutError(f"payment session request failed: {exc}") from exc

    try:
      data = r.json()
    except ValueError:
      data = None

    if r.status_code >= 400:
      detail = data.get("error") if isinstance(data, dict) else None
      raise CheckoutError(f"payment session error: {r.status_code} {detail or r.text}")
    if not isinstance(data, dict) or not isinstance(data.get("url"), str) or not data["url"]:
      raise CheckoutError("payment session response has no url")

    return SessionResult(session_id=str(data.get("sessionId") or ""), url=data["url"])


class CheckoutOrchestrator:
  def __init__(
    self,
    client: PaymentSessionClient,
    manager: InvoiceManager,
    scheduler: Scheduler,
    notifier: Notifier,
    demo_delay: float = 1.5,
  ) -> None:
    self.client = client
    self.manager = manager
    self.scheduler = scheduler
    self.notifier = notifier
    self.demo_delay = demo_delay
    self._in_flight: Set[str] = set()

  def in_flight(self, request: CheckoutRequest) -> bool:
    return _dedup_key(request) in self._in_flight

  async def initiate_checkout(self, request: CheckoutRequest) -> CheckoutOutcome:
    key = _dedup_key(request)
    if key in self._in_flight:
      logger.warning("checkout already in progress for %s", key, extra={"checkout_kind": request.kind})
      return CheckoutOutcome(kind=request.kind, mode="duplicate")

    self._in_flight.add(key)
    try:
      result = await self.client.create_session(request)
    except Exception as exc:
      return self._start_demo(request, key, exc)
    self._in_flight.discard(key)

    logger.info(
      "checkout session created",
      extra={"checkout_mode": "live", "checkout_kind": request.kind},
    )
    if isinstance(request, InvoiceCheckout):
      self.notifier.notify(f"Payment link sent for {request.client_name}")
    return CheckoutOutcome(
      kind=request.kind, mode="live", url=result.url, session_id=result.session_id
    )

  def _start_demo(self, request: CheckoutRequest, key: str, exc: Exception) -> CheckoutOutcome:
    logger.warning(
      "payment session unavailable, starting demo checkout: %s",
      exc,
      extra={"checkout_mode": "demo", "checkout_kind": request.kind},
    )
    if isinstance(request, InvoiceCheckout):
      self.notifier.notify(f"Demo: Creating payment link for {request.client_name}...", simulated=True)
    else:
      self.notifier.notify("Demo: Simulating onboarding payment...", simulated=True)

    task = self.scheduler.call_later(self.demo_delay, lambda: self._complete_demo(request, key))
    task.on_cancel = lambda: self._in_flight.discard(key)
    outcome = CheckoutOutcome(kind=request.kind, mode="demo", simulated=True)
    outcome._task = task
    return outcome

  def _complete_demo(self, request: CheckoutRequest, key: str) -> None:
    try:
      if isinstance(request, InvoiceCheckout):
        self.notifier.notify(
          f"Demo payment link created for {request.client_name}! (Would normally open Stripe)",
          simulated=True,
        )
      else:
        try:
          self.manager.mark_account_paid()
        except StoreError as exc:
          logger.error("demo onboarding could not save account: %s", exc, extra={"checkout_mode": "demo"})
          self.notifier.notify("Demo payment finished but the account could not be saved", "error", simulated=True)
          return
        self.notifier.notify("Demo payment successful! Welcome to PayNapple!", simulated=True)
      logger.info(
        "demo checkout completed",
        extra={"checkout_mode": "demo", "checkout_kind": request.kind},
      )
    finally:
      self._in_flight.discard(key)
