from datetime import datetime, timedelta, timezone

import httpx

SESSION_URL = "https://payments.test/functions/create-checkout-session"


class FakeClock:
  def __init__(self, start=None, step=timedelta(seconds=1)):
    self.now = start or datetime(2025, 3, 7, 9, 30, tzinfo=timezone.utc)
    self.step = step

  def __call__(self):
    current = self.now
    self.now = self.now + self.step
    return current


def failing_transport(status_code=500, body=None):
  def handler(request):
    return httpx.Response(status_code, json=body or {"error": "STRIPE_SECRET_KEY is not set"})
  return httpx.MockTransport(handler)


def session_transport(url="https://checkout.stripe.test/c/pay/cs_test_1", session_id="cs_test_1", seen=None):
  def handler(request):
    if seen is not None:
      seen.append(request)
    return httpx.Response(200, json={"sessionId": session_id, "url": url})
  return httpx.MockTransport(handler)
