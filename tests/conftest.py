import pytest
from fastapi.testclient import TestClient

from checkout import CheckoutOrchestrator, PaymentSessionClient
from lifecycle import InvoiceManager
from local_store import LocalStore
from notices import NoticeBoard
from scheduler import ManualScheduler
from settings import Settings

from helpers import SESSION_URL, FakeClock, failing_transport


@pytest.fixture
def clock():
  return FakeClock()


@pytest.fixture
def store(tmp_path):
  return LocalStore(str(tmp_path / "store.json"))


@pytest.fixture
def manager(store, clock):
  counter = iter(range(1, 10_000))
  return InvoiceManager(store, clock=clock, id_factory=lambda: f"inv-{next(counter)}")


@pytest.fixture
def paid_manager(manager):
  manager.register_account("Ada Lovelace", "ada@example.com")
  manager.mark_account_paid()
  return manager


@pytest.fixture
def scheduler():
  return ManualScheduler()


@pytest.fixture
def notices():
  return NoticeBoard()


@pytest.fixture
def make_orchestrator(manager, scheduler, notices):
  def _make(transport=None, endpoint=SESSION_URL):
    client = PaymentSessionClient(endpoint, origin="http://localhost:5173", transport=transport)
    return CheckoutOrchestrator(client, manager, scheduler, notices, demo_delay=1.5)
  return _make


@pytest.fixture
def settings(tmp_path):
  return Settings(
    store_backend="local",
    local_store_path=str(tmp_path / "app-store.json"),
    checkout_session_url=SESSION_URL,
    stripe_secret_key="sk_test_123",
  )


@pytest.fixture
def make_client(settings, scheduler):
  from main import create_app

  def _make(transport=None, **overrides):
    app = create_app(
      settings.model_copy(update=overrides),
      scheduler=scheduler,
      session_transport=transport or failing_transport(),
    )
    return TestClient(app)
  return _make
