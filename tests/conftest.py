import os

# Pas de Redis en tests: le rate limiting est désactivé avant l'import de l'app
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import copy
import pytest
import bcrypt
import stripe
from typing import Any, Dict, Generator, Iterable, List, Optional
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from vendgb import config
from vendgb.app import app as fastapi_app
from vendgb.errors import ConflictError

ADMIN_SECRET = "admin-test-secret"
_ADMIN_HASH = bcrypt.hashpw(ADMIN_SECRET.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


class FakeStore:
    """Tables 'products' et 'orders' en mémoire, avec la sémantique des repositories."""

    def __init__(self) -> None:
        self.products: Dict[str, dict] = {}
        self.orders: Dict[str, dict] = {}
        self.order_inserts = 0

    def add_product(self, **fields: Any) -> dict:
        row = {
            "id": fields.pop("id", f"p{len(self.products) + 1}"),
            "name": "Product",
            "price": 1.0,
            "sale_price": None,
            "active": True,
            "available": True,
            "max_order_qty": 0,
            "sort_order": len(self.products),
        }
        row.update(fields)
        self.products[str(row["id"])] = row
        return row

    # catalogue.repository
    def list_active_products(self) -> List[dict]:
        rows = [p for p in self.products.values() if p.get("active")]
        return sorted(rows, key=lambda p: p.get("sort_order", 0))

    def list_products(self) -> List[dict]:
        return sorted(self.products.values(), key=lambda p: p.get("sort_order", 0))

    def get_product(self, product_id: str) -> Optional[dict]:
        return copy.deepcopy(self.products.get(str(product_id)))

    def get_products_map(self, ids: Iterable[str]) -> Dict[str, dict]:
        return {str(i): copy.deepcopy(self.products[str(i)]) for i in ids if str(i) in self.products}

    def create_product(self, data: Dict[str, Any]) -> dict:
        return self.add_product(id=f"p{len(self.products) + 1}", **data)

    def update_product(self, product_id: str, data: Dict[str, Any]) -> Optional[dict]:
        row = self.products.get(product_id)
        if row is None:
            return None
        row.update(data)
        return copy.deepcopy(row)

    def delete_product(self, product_id: str) -> bool:
        return self.products.pop(product_id, None) is not None

    # orders.repository
    def insert_order(self, row: Dict[str, Any]) -> dict:
        key = row.get("idempotency_key")
        if key and any(o.get("idempotency_key") == key for o in self.orders.values()):
            raise ConflictError("Duplicate order")
        self.order_inserts += 1
        self.orders[row["id"]] = copy.deepcopy(row)
        return copy.deepcopy(row)

    def get_order(self, order_id: str) -> Optional[dict]:
        return copy.deepcopy(self.orders.get(order_id))

    def find_by_idempotency_key(self, key: str) -> Optional[dict]:
        for o in self.orders.values():
            if o.get("idempotency_key") == key:
                return copy.deepcopy(o)
        return None

    def list_orders(self, status: Optional[str] = None, limit: int = 100) -> List[dict]:
        rows = [o for o in self.orders.values() if status is None or o.get("status") == status]
        rows.sort(key=lambda o: o.get("created_at") or "", reverse=True)
        return copy.deepcopy(rows[:limit])

    def update_where_status(self, order_id: str, data: Dict[str, Any], allowed_statuses: Iterable[str]) -> Optional[dict]:
        row = self.orders.get(order_id)
        if row is None or row.get("status") not in list(allowed_statuses):
            return None
        row.update(data)
        return copy.deepcopy(row)

    def update_order(self, order_id: str, data: Dict[str, Any]) -> Optional[dict]:
        row = self.orders.get(order_id)
        if row is None:
            return None
        row.update(data)
        return copy.deepcopy(row)

    def delete_order_if_status(self, order_id: str, status: str) -> bool:
        row = self.orders.get(order_id)
        if row is None or row.get("status") != status:
            return False
        del self.orders[order_id]
        return True


# Aucun accès réseau: clients Supabase mockés, repositories branchés sur le store mémoire
@pytest.fixture(autouse=True)
def store(monkeypatch) -> FakeStore:
    monkeypatch.setattr("vendgb.infra.supabase_client.get_supabase", lambda: MagicMock())
    monkeypatch.setattr("vendgb.infra.supabase_client.get_service_supabase", lambda: MagicMock())

    fake = FakeStore()
    for name in (
        "list_active_products", "list_products", "get_product", "get_products_map",
        "create_product", "update_product", "delete_product",
    ):
        monkeypatch.setattr(f"vendgb.catalogue.repository.{name}", getattr(fake, name))
    for name in (
        "insert_order", "get_order", "find_by_idempotency_key", "list_orders",
        "update_where_status", "update_order", "delete_order_if_status",
    ):
        monkeypatch.setattr(f"vendgb.orders.repository.{name}", getattr(fake, name))
    return fake

@pytest.fixture
def margherita(store) -> dict:
    return store.add_product(id="PZ-MARG", name="Margherita", price=8.99, tax_rate=20, cost_price=3.1)


class FakeStripe:
    """
    Remplace stripe.PaymentIntent.create/retrieve; enregistre les appels.
    Renvoie de vrais objets SDK (PaymentIntent.construct_from) comme l'API Stripe,
    l'état de chaque intent restant modifiable via self.intents.
    """

    def __init__(self) -> None:
        self.created: List[Dict[str, Any]] = []
        self.intents: Dict[str, Dict[str, Any]] = {}
        self.create_error: Optional[Exception] = None

    def _as_sdk(self, intent_id: str) -> stripe.PaymentIntent:
        return stripe.PaymentIntent.construct_from(copy.deepcopy(self.intents[intent_id]), "sk_test_123")

    def create(self, **kwargs: Any) -> stripe.PaymentIntent:
        if self.create_error:
            raise self.create_error
        self.created.append(kwargs)
        intent_id = f"pi_test_{len(self.created)}"
        self.intents[intent_id] = {
            "id": intent_id,
            "object": "payment_intent",
            "client_secret": f"{intent_id}_secret_abc",
            "amount": kwargs["amount"],
            "currency": kwargs["currency"],
            "status": "requires_payment_method",
            "metadata": dict(kwargs.get("metadata") or {}),
        }
        return self._as_sdk(intent_id)

    def retrieve(self, intent_id: str, **kwargs: Any) -> stripe.PaymentIntent:
        if intent_id not in self.intents:
            raise stripe.InvalidRequestError(f"No such payment_intent: '{intent_id}'", "id")
        return self._as_sdk(intent_id)

    def set_status(self, intent_id: str, status: str) -> None:
        self.intents[intent_id]["status"] = status


@pytest.fixture
def fake_stripe(monkeypatch) -> FakeStripe:
    fake = FakeStripe()
    monkeypatch.setattr(config, "STRIPE_SECRET_KEY", "sk_test_123")
    monkeypatch.setattr(config, "STRIPE_PUBLISHABLE_KEY", "pk_test_123")
    monkeypatch.setattr(config, "STRIPE_WEBHOOK_SECRET", "")
    monkeypatch.setattr(stripe.PaymentIntent, "create", fake.create)
    monkeypatch.setattr(stripe.PaymentIntent, "retrieve", fake.retrieve)
    return fake

@pytest.fixture
def admin_headers(monkeypatch) -> Dict[str, str]:
    monkeypatch.setattr(config, "ADMIN_SECRET_HASH", _ADMIN_HASH)
    return {"X-Admin-Secret": ADMIN_SECRET}

@pytest.fixture
def checkout_body() -> Dict[str, Any]:
    return {
        "customer": {"name": "Ada Lovelace", "phone": "+447700900123"},
        "address": {"line1": "1 High Street", "city": "London", "postcode": "N1 1AA"},
        "items": [{"productId": "PZ-MARG", "qty": 2, "price": 8.99}],
        "notes": "Ring twice",
    }
