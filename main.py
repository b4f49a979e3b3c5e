# main.py
import logging
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import billing_route
import session_route
from checkout import CheckoutOrchestrator, PaymentSessionClient
from lifecycle import InvoiceManager
from logs import configure_logging
from notices import NoticeBoard
from scheduler import AsyncioScheduler, Scheduler
from settings import Settings, load_settings
from store import InvoiceStore, build_store

logger = logging.getLogger(__name__)


def create_app(
  settings: Optional[Settings] = None,
  store: Optional[InvoiceStore] = None,
  scheduler: Optional[Scheduler] = None,
  session_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
  settings = settings or load_settings()
  configure_logging(settings.log_level)

  store = store or build_store(settings)
  manager = InvoiceManager(store, account_id=settings.account_id)
  manager.load()

  notices = NoticeBoard()
  client = PaymentSessionClient(
    settings.checkout_session_url,
    origin=settings.app_origin,
    timeout=settings.checkout_timeout,
    transport=session_transport,
  )
  orchestrator = CheckoutOrchestrator(
    client,
    manager,
    scheduler or AsyncioScheduler(),
    notices,
    demo_delay=settings.demo_delay_seconds,
  )
  if not settings.checkout_session_url:
    logger.warning("CHECKOUT_SESSION_URL is not set, checkouts run in demo mode")

  app = FastAPI(title="PayNapple Backend", version="1.0.0")
  app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
  )
  app.state.settings = settings
  app.state.manager = manager
  app.state.orchestrator = orchestrator
  app.state.notices = notices

  @app.get("/health")
  def health():
    return {
      "ok": True,
      "store_backend": settings.store_backend,
      "checkout": "live" if settings.checkout_session_url else "demo",
    }

  app.include_router(billing_route.router)
  app.include_router(session_route.router)
  return app


app = create_app()
