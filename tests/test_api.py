from concurrent.futures import ThreadPoolExecutor

from local_store import LocalStore

from helpers import session_transport


def _signup(client):
  return client.post("/api/signup", json={"name": "Ada Lovelace", "email": "ada@example.com"})


def _unlocked(make_client, scheduler):
  client = make_client()
  _signup(client)
  scheduler.run_pending()
  return client


def test_health(make_client):
  r = make_client().get("/health")
  assert r.status_code == 200
  assert r.json()["store_backend"] == "local"


def test_invoice_surface_is_gated(make_client):
  client = make_client()

  assert client.get("/api/invoices").status_code == 402
  assert client.post("/api/invoices", json={"clientName": "Acme", "amount": 5}).status_code == 402
  assert client.get("/api/account").status_code == 404


def test_signup_falls_back_to_demo_and_unlocks(make_client, scheduler):
  client = make_client()

  r = _signup(client)

  assert r.status_code == 200
  body = r.json()
  assert body["account"] == {"name": "Ada Lovelace", "email": "ada@example.com", "hasPaid": False}
  assert body["checkout"]["mode"] == "demo"
  assert body["checkout"]["simulated"] is True
  assert client.get("/api/invoices").status_code == 402

  scheduler.run_pending()

  assert client.get("/api/account").json()["hasPaid"] is True
  assert client.get("/api/invoices").json() == []
  notices = client.get("/api/notices").json()
  assert [n["simulated"] for n in notices] == [True, True]
  assert client.get("/api/notices").json() == []


def test_signup_live_returns_redirect(make_client, scheduler):
  client = make_client(transport=session_transport())

  body = _signup(client).json()

  assert body["checkout"]["mode"] == "live"
  assert body["checkout"]["url"] == "https://checkout.stripe.test/c/pay/cs_test_1"
  assert body["checkout"]["sessionId"] == "cs_test_1"
  assert scheduler.pending == []
  assert client.get("/api/account").json()["hasPaid"] is False


def test_signup_requires_name_and_email(make_client):
  r = make_client().post("/api/signup", json={"name": "  ", "email": "ada@example.com"})
  assert r.status_code == 422


def test_signup_twice_after_unlock_conflicts(make_client, scheduler):
  client = _unlocked(make_client, scheduler)
  assert _signup(client).status_code == 409


def test_return_with_marker_unlocks_onboarding(make_client, scheduler):
  client = make_client(transport=session_transport())
  _signup(client)

  r = client.post("/api/checkout/return", json={"url": "http://localhost:5173/?paid=1&session_id=cs_test_1"})

  assert r.json() == {"confirmed": True, "url": "http://localhost:5173/"}
  assert client.get("/api/account").json()["hasPaid"] is True
  [notice] = client.get("/api/notices").json()
  assert notice["simulated"] is False


def test_return_without_marker_changes_nothing(make_client):
  client = make_client(transport=session_transport())
  _signup(client)

  r = client.post("/api/checkout/return", json={"url": "http://localhost:5173/?paid=0"})

  assert r.json() == {"confirmed": False, "url": "http://localhost:5173/?paid=0"}
  assert client.get("/api/account").json()["hasPaid"] is False


def test_invoice_lifecycle(make_client, scheduler):
  client = _unlocked(make_client, scheduler)

  r = client.post("/api/invoices", json={"clientName": " Acme ", "amount": 150.5})
  assert r.status_code == 201
  acme = r.json()
  assert acme["clientName"] == "Acme"
  assert acme["status"] == "pending"
  assert acme["paidAt"] is None

  beta = client.post("/api/invoices", json={"clientName": "Beta", "amount": 49.99}).json()
  paid = client.post(f"/api/invoices/{beta['id']}/pay").json()
  assert paid["status"] == "paid"
  assert paid["paidAt"] is not None

  again = client.post(f"/api/invoices/{beta['id']}/pay").json()
  assert again["paidAt"] == paid["paidAt"]

  stats = client.get("/api/invoices/stats").json()
  assert stats["totalCount"] == 2
  assert round(stats["totalAmount"], 2) == 200.49
  assert round(stats["pendingAmount"], 2) == 150.5
  assert stats["paidCount"] == 1

  assert [i["clientName"] for i in client.get("/api/invoices", params={"q": "acm"}).json()] == ["Acme"]
  assert [i["clientName"] for i in client.get("/api/invoices", params={"q": "paid"}).json()] == ["Beta"]

  assert client.delete(f"/api/invoices/{acme['id']}").status_code == 200
  assert [i["id"] for i in client.get("/api/invoices").json()] == [beta["id"]]


def test_invalid_invoice_is_rejected(make_client, scheduler):
  client = _unlocked(make_client, scheduler)

  assert client.post("/api/invoices", json={"clientName": "", "amount": 10}).status_code == 422
  assert client.post("/api/invoices", json={"clientName": "Acme", "amount": 0}).status_code == 422
  assert client.post("/api/invoices", json={"clientName": "Acme", "amount": "lots"}).status_code == 422
  assert client.get("/api/invoices").json() == []


def test_unknown_invoice_is_404(make_client, scheduler):
  client = _unlocked(make_client, scheduler)

  assert client.post("/api/invoices/nope/pay").status_code == 404
  assert client.post("/api/invoices/nope/send").status_code == 404
  assert client.delete("/api/invoices/nope").status_code == 404


def test_send_invoice_demo_leaves_it_pending(make_client, scheduler):
  client = _unlocked(make_client, scheduler)
  client.get("/api/notices")
  invoice = client.post("/api/invoices", json={"clientName": "Acme", "amount": 20}).json()

  first = client.post(f"/api/invoices/{invoice['id']}/send").json()
  second = client.post(f"/api/invoices/{invoice['id']}/send").json()
  scheduler.run_pending()

  assert first["mode"] == "demo"
  assert second["mode"] == "duplicate"
  assert client.get("/api/invoices").json()[0]["status"] == "pending"
  assert all(n["simulated"] for n in client.get("/api/notices").json())


def test_send_paid_invoice_conflicts(make_client, scheduler):
  client = _unlocked(make_client, scheduler)
  invoice = client.post("/api/invoices", json={"clientName": "Acme", "amount": 20}).json()
  client.post(f"/api/invoices/{invoice['id']}/pay")

  assert client.post(f"/api/invoices/{invoice['id']}/send").status_code == 409


def test_export_csv(make_client, scheduler):
  client = _unlocked(make_client, scheduler)

  assert client.get("/api/invoices/export").status_code == 404

  client.post("/api/invoices", json={"clientName": "Acme", "amount": 150.5})
  client.post("/api/invoices", json={"clientName": "Beta", "amount": 7})
  r = client.get("/api/invoices/export")

  assert r.status_code == 200
  assert r.headers["content-type"].startswith("text/csv")
  assert "attachment; filename=\"invoices_" in r.headers["content-disposition"]
  lines = r.text.split("\n")
  assert len(lines) == 3
  assert lines[1].startswith('"Acme",150.50,pending,')


def test_state_survives_restart(make_client, scheduler):
  client = _unlocked(make_client, scheduler)
  client.post("/api/invoices", json={"clientName": "Acme", "amount": 150.5})

  restarted = make_client()

  assert restarted.get("/api/account").json()["hasPaid"] is True
  assert [i["clientName"] for i in restarted.get("/api/invoices").json()] == ["Acme"]


def test_concurrent_creates_are_all_saved(make_client, scheduler, settings):
  client = _unlocked(make_client, scheduler)

  def create(n):
    return client.post("/api/invoices", json={"clientName": f"Client {n}", "amount": n + 1}).status_code

  with ThreadPoolExecutor(max_workers=16) as pool:
    codes = list(pool.map(create, range(100)))

  assert codes == [201] * 100
  assert len(client.get("/api/invoices").json()) == 100
  assert len(LocalStore(settings.local_store_path).list_invoices("local")) == 100
