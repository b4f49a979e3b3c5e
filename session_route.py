# session_route.py
import logging
import math
from typing import Any, Dict, Optional

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from checkout import build_line_item
from models import CamelModel, CheckoutRequest, InvoiceCheckout, OnboardingCheckout

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["checkout"])

STRIPE_SESSIONS_URL = "https://api.stripe.com/v1/checkout/sessions"


class InvoiceRef(CamelModel):
  id: str
  client_name: str
  amount: float


class SessionRequest(BaseModel):
  name: Optional[str] = None
  email: Optional[str] = None
  invoice: Optional[InvoiceRef] = None


def get_stripe_transport() -> Optional[httpx.AsyncBaseTransport]:
  return None


def to_checkout_request(body: SessionRequest) -> CheckoutRequest:
  if body.invoice is not None:
    return InvoiceCheckout(
      email=body.email,
      invoice_id=body.invoice.id,
      client_name=body.invoice.client_name,
      amount=body.invoice.amount,
    )
  return OnboardingCheckout(name=body.name or "", email=body.email or "")


def stripe_form(checkout: CheckoutRequest, origin: str) -> Dict[str, Any]:
  item = build_line_item(checkout)
  form: Dict[str, Any] = {
    "payment_method_types[0]": "card",
    "mode": "payment",
    "line_items[0][price_data][currency]": item.currency,
    "line_items[0][price_data][product_data][name]": item.name,
    "line_items[0][price_data][product_data][description]": item.description,
    "line_items[0][price_data][unit_amount]": item.unit_amount,
    "line_items[0][quantity]": item.quantity,
    "success_url": f"{origin}?paid=1&session_id={{CHECKOUT_SESSION_ID}}",
    "cancel_url": origin,
  }
  if checkout.email:
    form["customer_email"] = checkout.email
  if isinstance(checkout, InvoiceCheckout):
    form["metadata[invoiceId]"] = checkout.invoice_id
    form["metadata[type]"] = "invoice"
  else:
    form["metadata[type]"] = "onboarding"
    form["metadata[userName]"] = checkout.name
  return form


def _error(message: str, status_code: int = 500) -> JSONResponse:
  return JSONResponse({"error": message}, status_code=status_code)


@router.post("/create-checkout-session")
async def create_checkout_session(
  body: SessionRequest,
  request: Request,
  transport: Optional[httpx.AsyncBaseTransport] = Depends(get_stripe_transport),
):
  settings = request.app.state.settings
  if not settings.stripe_secret_key:
    logger.error("checkout session requested but STRIPE_SECRET_KEY is not set")
    return _error("STRIPE_SECRET_KEY is not set")

  if body.invoice is not None and not (math.isfinite(body.invoice.amount) and body.invoice.amount > 0):
    logger.warning("rejected checkout session for invoice %s: amount %r", body.invoice.id, body.invoice.amount)
    return _error("Invoice amount must be a positive number", status_code=400)

  origin = (request.headers.get("origin") or settings.app_origin).rstrip("/")
  checkout = to_checkout_request(body)
  headers = {"Authorization": f"Bearer {settings.stripe_secret_key}"}

  try:
    async with httpx.AsyncClient(timeout=settings.checkout_timeout, transport=transport) as client:
      r = await client.post(STRIPE_SESSIONS_URL, headers=headers, data=stripe_form(checkout, origin))
  except httpx.HTTPError as exc:
    logger.error("error creating checkout session: %s", exc)
    return _error(str(exc))

  try:
    data = r.json()
  except ValueError:
    data = {}

  if r.status_code >= 400:
    err = data.get("error") if isinstance(data, dict) else None
    message = err.get("message") if isinstance(err, dict) else err
    logger.error("stripe rejected checkout session: %s %s", r.status_code, message)
    return _error(message or f"Stripe error: {r.status_code}")

  if not isinstance(data, dict) or not data.get("url"):
    return _error("Stripe returned no checkout url")

  logger.info("checkout session %s created", data.get("id"), extra={"checkout_kind": checkout.kind})
  return {"sessionId": data.get("id"), "url": data["url"]}
