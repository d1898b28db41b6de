import copy
import hashlib
import hmac
import os
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Generator, List, Optional

# Avant tout import du package: pas de Redis ni de secrets réels en tests
os.environ["DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS"] = "1"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = ""

import pytest
import stripe
from fastapi.testclient import TestClient

from storefront import config
from storefront.app_setup.factory import create_app
from storefront.catalog.seed import SAMPLE_PRODUCTS
from storefront.infra.supabase_client import get_db, get_db_provider

WEBHOOK_SECRET = "whsec_test_secret"

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


class FakePostgrestError(Exception):
    pass


class _Result:
    def __init__(self, data: Any, count: Optional[int] = None):
        self.data = data
        self.count = count


class _Query:
    """Sous-ensemble du query builder postgrest utilisé par les repositories."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self._rows_to_insert: Optional[List[dict]] = None
        self._columns = "*"
        self._count: Optional[str] = None
        self._filters: List[Callable[[dict], bool]] = []
        self._orders: List[tuple] = []
        self._limit: Optional[int] = None

    def select(self, columns: str = "*", count: Optional[str] = None):
        self._columns = columns
        self._count = count
        return self

    def insert(self, rows):
        self._rows_to_insert = rows if isinstance(rows, list) else [rows]
        return self

    def in_(self, column: str, values):
        allowed = list(values)
        self._filters.append(lambda r: r.get(column) in allowed)
        return self

    def eq(self, column: str, value):
        self._filters.append(lambda r: r.get(column) == value)
        return self

    def order(self, column: str, desc: bool = False):
        self._orders.append((column, desc))
        return self

    def limit(self, n: int):
        self._limit = n
        return self

    def execute(self) -> _Result:
        self.db.maybe_fail(self.table_name)
        if self._rows_to_insert is not None:
            return _Result([self.db.insert_row(self.table_name, r) for r in self._rows_to_insert])
        rows = [dict(r) for r in self.db.tables[self.table_name] if all(f(r) for f in self._filters)]
        for column, desc in reversed(self._orders):
            rows.sort(key=lambda r: r.get(column), reverse=desc)
        if self._limit is not None:
            rows = rows[: self._limit]
        if "order_items(" in self._columns:
            for row in rows:
                row["order_items"] = [dict(i) for i in self.db.tables["order_items"] if i["order_id"] == row["id"]]
        return _Result(rows, count=len(rows) if self._count else None)


class _RpcCall:
    def __init__(self, db: "FakeSupabase", name: str, params: Dict[str, Any]):
        self.db = db
        self.name = name
        self.params = params

    def execute(self) -> _Result:
        if self.name != "record_paid_order":
            raise FakePostgrestError(f"unknown function {self.name}")
        return _Result(self.db.record_paid_order(**self.params))


class FakeSupabase:
    """
    Double en mémoire du client Supabase.
    record_paid_order reproduit la fonction SQL: une transaction (snapshot/rollback),
    contrainte de clé étrangère order_items.product_id -> products.id, total_cents >= 0.
    """

    def __init__(self):
        self.tables: Dict[str, List[dict]] = {"products": [], "orders": [], "order_items": []}
        self._seq: Dict[str, int] = {name: 0 for name in self.tables}
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)
        self.failing_tables: set = set()
        self.fail_after_header = False
        self.rpc_calls: List[Dict[str, Any]] = []

    def table(self, name: str) -> _Query:
        return _Query(self, name)

    def rpc(self, name: str, params: Dict[str, Any]) -> _RpcCall:
        self.rpc_calls.append({"name": name, "params": copy.deepcopy(params)})
        return _RpcCall(self, name, params)

    def maybe_fail(self, table: str) -> None:
        if table in self.failing_tables:
            raise FakePostgrestError(f"connection to table {table} failed")

    def insert_row(self, table: str, row: dict) -> dict:
        self._seq[table] += 1
        stored = dict(row)
        stored.setdefault("id", self._seq[table])
        if table == "orders":
            self._clock += timedelta(seconds=1)
            stored.setdefault("created_at", self._clock.isoformat())
        self.tables[table].append(stored)
        return dict(stored)

    def record_paid_order(self, p_email, p_total_cents, p_status, p_items) -> int:
        snapshot = copy.deepcopy((self.tables, self._seq))
        try:
            self.maybe_fail("orders")
            if p_total_cents < 0:
                raise FakePostgrestError("violates check constraint orders_total_cents_check")
            order = self.insert_row("orders", {"email": p_email, "total_cents": p_total_cents, "status": p_status})
            if self.fail_after_header:
                raise FakePostgrestError("simulated failure after order header")
            product_ids = {p["id"] for p in self.tables["products"]}
            for item in p_items or []:
                if item["product_id"] not in product_ids:
                    raise FakePostgrestError("violates foreign key constraint order_items_product_id_fkey")
                self.insert_row("order_items", {
                    "order_id": order["id"],
                    "product_id": item["product_id"],
                    "quantity": item["quantity"],
                    "unit_price_cents": item["unit_price_cents"],
                })
            return order["id"]
        except Exception:
            self.tables, self._seq = snapshot
            raise


@pytest.fixture
def empty_db() -> FakeSupabase:
    return FakeSupabase()

@pytest.fixture
def db() -> FakeSupabase:
    """Catalogue d'exemple: 1 Blue Tee 1500, 2 Red Hoodie 4500, 3 Canvas Tote 2500, 4 Cap 1800."""
    seeded = FakeSupabase()
    for product in SAMPLE_PRODUCTS:
        seeded.insert_row("products", product)
    return seeded

@pytest.fixture
def app(db):
    application = create_app()
    application.dependency_overrides[get_db] = lambda: db
    application.dependency_overrides[get_db_provider] = lambda: (lambda: db)
    yield application
    application.dependency_overrides.clear()

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

@pytest.fixture(autouse=True)
def _unsigned_webhooks_by_default(monkeypatch):
    monkeypatch.setattr(config, "STRIPE_WEBHOOK_SECRET", "")
    monkeypatch.setattr(config, "WEBHOOK_ACK_ON_FAILURE", True)

@pytest.fixture
def signed_webhooks(monkeypatch) -> str:
    monkeypatch.setattr(config, "STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    return WEBHOOK_SECRET

@pytest.fixture
def fake_stripe(monkeypatch) -> List[Dict[str, Any]]:
    """Remplace stripe.checkout.Session.create; retourne la liste des paramètres reçus."""
    calls: List[Dict[str, Any]] = []

    def _fake_create(**params):
        calls.append(params)
        return {"id": "cs_test_123", "url": "https://checkout.stripe.test/c/pay/cs_test_123"}

    monkeypatch.setattr(stripe.checkout.Session, "create", _fake_create)
    return calls

def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """En-tête Stripe-Signature (schéma v1: HMAC-SHA256 de '<t>.<payload>')."""
    ts = int(time.time()) if timestamp is None else timestamp
    signed = f"{ts}.{payload.decode('utf-8')}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"

@pytest.fixture
def sign() -> Callable[..., str]:
    return sign_payload

def make_completed_event(
    cart: str = '[{"id":1,"qty":2}]',
    total_cents: Any = "3000",
    email: Optional[str] = "buyer@example.com",
    event_id: str = "evt_test_1",
    metadata: Any = None,
) -> Dict[str, Any]:
    session: Dict[str, Any] = {
        "id": "cs_test_123",
        "object": "checkout.session",
        "metadata": metadata if metadata is not None else {"cart": cart, "total_cents": total_cents},
        "customer_details": {"email": email},
    }
    return {"id": event_id, "type": "checkout.session.completed", "data": {"object": session}}

@pytest.fixture
def completed_event() -> Callable[..., Dict[str, Any]]:
    return make_completed_event
