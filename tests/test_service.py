# tests/test_service.py
from decimal import Decimal

import requests
from fastapi.testclient import TestClient

from pharmacy.config import Settings
from pharmacy.database import SHEETS
from pharmacy.errors import (
    InsufficientStockError, InvalidProductError, MalformedResponseError,
    MalformedRowError, NetworkFailure, ProductNotFoundError,
)
from pharmacy.main import app
from pharmacy.service import PharmacyService
from sheetdb.client import SheetDBClient

client = TestClient(app)
SHEET_ID = "service-test"
URL = f"http://testserver/api/v1/{SHEET_ID}"


def reset():
    client.post(f"/api/v1/{SHEET_ID}/reset")


def seed(*rows):
    client.post(f"/api/v1/{SHEET_ID}", json={"data": list(rows)})


def new_service(**settings):
    return PharmacyService(SheetDBClient(URL, session=client), Settings(sheetdb_url=URL, **settings))


class DownSession:
    """Session whose every request fails at the transport level."""

    def _fail(self, url, **kwargs):
        raise requests.ConnectionError("connection refused")

    get = post = patch = delete = _fail


class _Resp:
    def __init__(self, status_code, body):
        self.status_code = status_code
        self._body = body

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


class FixedSession:
    def __init__(self, status_code, body=None):
        self.resp = _Resp(status_code, body)

    def _answer(self, url, **kwargs):
        return self.resp

    get = post = patch = delete = _answer


# ---------------------------
# Inventory sync
# ---------------------------
def test_reload_coerces_rows():
    reset()
    seed({"id": "1", "name": "Ibuprofen", "price": "20", "discount": "5", "stock": "30"})
    svc = new_service()
    outcome = svc.reload()
    assert outcome.ok
    (p,) = svc.products
    assert (p.id, p.price, p.discount, p.stock) == (1, Decimal("20"), Decimal("5"), 30)


def test_reload_replaces_never_merges():
    reset()
    seed({"id": "1", "name": "A", "price": "1", "discount": "0", "stock": "1"},
         {"id": "2", "name": "B", "price": "1", "discount": "0", "stock": "1"})
    svc = new_service()
    svc.reload()
    SHEETS[SHEET_ID][:] = [{"id": "3", "name": "C", "price": "1", "discount": "0", "stock": "1"}]
    svc.reload()
    assert [p.id for p in svc.products] == [3]


def test_reload_discards_local_stock_changes():
    reset()
    seed({"id": "1", "name": "A", "price": "10", "discount": "0", "stock": "5"})
    svc = new_service()
    svc.reload()
    assert svc.sell(1, 2).ok
    assert svc.get_product(1).stock == 3
    svc.reload()
    assert svc.get_product(1).stock == 5


def test_reload_failure_keeps_previous_collection():
    reset()
    seed({"id": "1", "name": "A", "price": "1", "discount": "0", "stock": "1"})
    svc = new_service()
    svc.reload()
    svc.client.session = DownSession()
    outcome = svc.reload()
    assert not outcome.ok
    assert isinstance(outcome.error, NetworkFailure)
    assert [p.id for p in svc.products] == [1]


def test_reload_with_error_status():
    svc = PharmacyService(SheetDBClient(URL, session=FixedSession(500, {"error": "boom"})))
    outcome = svc.reload()
    assert not outcome.ok
    assert outcome.error.status_code == 500


def test_reload_with_malformed_body():
    svc = PharmacyService(SheetDBClient(URL, session=FixedSession(200, {"rows": []})))
    outcome = svc.reload()
    assert isinstance(outcome.error, MalformedResponseError)

    svc = PharmacyService(SheetDBClient(URL, session=FixedSession(200, ValueError("not json"))))
    assert isinstance(svc.reload().error, MalformedResponseError)


def test_reload_accepts_bare_list():
    rows = [{"id": "9", "name": "Z", "price": "2", "discount": "0", "stock": "3"}]
    svc = PharmacyService(SheetDBClient(URL, session=FixedSession(200, rows)))
    assert svc.reload().ok
    assert svc.products[0].id == 9


def test_reload_with_malformed_row():
    reset()
    seed({"id": "1", "name": "A", "price": "cheap", "discount": "0", "stock": "1"})
    outcome = new_service().reload()
    assert isinstance(outcome.error, MalformedRowError)


# ---------------------------
# Product mutation
# ---------------------------
def test_create_product_appears_after_reload():
    reset()
    svc = new_service()
    outcome = svc.create_product("Paracetamol", "12.50", "0", "100")
    assert outcome.ok, outcome.message
    (p,) = svc.products
    assert p.name == "Paracetamol"
    assert p.price == Decimal("12.50")
    assert p.discount == Decimal("0")
    assert p.stock == 100
    assert p.id == outcome.value.id


def test_create_rejects_bad_input_without_writing():
    reset()
    svc = new_service()
    for fields in (("X", "abc", "0", "1"), ("X", "1", "120", "1"), ("", "1", "0", "1")):
        outcome = svc.create_product(*fields)
        assert not outcome.ok
        assert isinstance(outcome.error, InvalidProductError)
    assert client.get(f"/api/v1/{SHEET_ID}").json()["data"] == []


def test_create_network_failure_changes_nothing():
    svc = PharmacyService(SheetDBClient(URL, session=DownSession()))
    outcome = svc.create_product("X", "1", "0", "1")
    assert not outcome.ok
    assert outcome.message == "Error adding product."
    assert svc.products == ()


def test_delete_product_reloads():
    reset()
    seed({"id": "1", "name": "A", "price": "1", "discount": "0", "stock": "1"},
         {"id": "2", "name": "B", "price": "1", "discount": "0", "stock": "1"})
    svc = new_service()
    svc.reload()
    outcome = svc.delete_product(1)
    assert outcome.ok
    assert outcome.message == "Product removed successfully!"
    assert [p.id for p in svc.products] == [2]


def test_delete_failure_keeps_local_list():
    reset()
    seed({"id": "1", "name": "A", "price": "1", "discount": "0", "stock": "1"})
    svc = new_service()
    svc.reload()
    outcome = svc.delete_product(404)
    assert not outcome.ok
    assert outcome.error.status_code == 404
    assert [p.id for p in svc.products] == [1]


# ---------------------------
# Sales
# ---------------------------
def test_sell_updates_stock_and_invoice():
    reset()
    seed({"id": "1", "name": "Amoxicillin", "price": "100", "discount": "10", "stock": "5"},
         {"id": "2", "name": "Other", "price": "5", "discount": "0", "stock": "9"})
    svc = new_service()
    svc.reload()
    outcome = svc.sell("1", "3")
    assert outcome.ok
    assert svc.last_invoice is outcome.value
    assert svc.last_invoice.total == Decimal("270.00")
    assert svc.last_invoice.discount_amount == Decimal("30.00")
    assert svc.get_product(1).stock == 2
    assert svc.get_product(2).stock == 9
    # local only unless write-back is switched on
    assert SHEETS[SHEET_ID][0]["stock"] == "5"


def test_rejected_sale_keeps_stock_and_previous_invoice():
    reset()
    seed({"id": "1", "name": "A", "price": "10", "discount": "0", "stock": "2"})
    svc = new_service()
    svc.reload()
    assert svc.last_invoice is None
    outcome = svc.sell(1, 3)
    assert not outcome.ok
    assert isinstance(outcome.error, InsufficientStockError)
    assert svc.get_product(1).stock == 2
    assert svc.last_invoice is None

    first = svc.sell(1, 1).value
    svc.sell(1, 5)
    assert svc.last_invoice is first


def test_sell_unknown_product_and_bad_input():
    svc = new_service()
    assert isinstance(svc.sell(77, 1).error, ProductNotFoundError)
    assert not svc.sell("abc", 1).ok
    assert not svc.sell(1, "two").ok
    missing = svc.sell(None, 1)
    assert isinstance(missing.error, ProductNotFoundError)
    assert isinstance(svc.sell(float("inf"), 1).error, ProductNotFoundError)
    assert isinstance(svc.sell([1], 1).error, ProductNotFoundError)


def test_stock_write_back():
    reset()
    seed({"id": "1", "name": "A", "price": "10", "discount": "0", "stock": "4"})
    svc = new_service(push_stock=True)
    svc.reload()
    outcome = svc.sell(1, 3)
    assert outcome.ok
    assert outcome.message == ""
    assert SHEETS[SHEET_ID][0]["stock"] == "1"


def test_stock_write_back_failure_keeps_sale():
    reset()
    seed({"id": "1", "name": "A", "price": "10", "discount": "0", "stock": "4"})
    svc = new_service(push_stock=True)
    svc.reload()
    svc.client.session = DownSession()
    outcome = svc.sell(1, 1)
    assert outcome.ok
    assert "stock update failed" in outcome.message
    assert svc.get_product(1).stock == 3


# ---------------------------
# Invoice
# ---------------------------
def test_render_and_clear_invoice():
    reset()
    seed({"id": "1", "name": "Amoxicillin", "price": "100", "discount": "10", "stock": "5"})
    svc = new_service()
    svc.reload()
    assert svc.render_last_invoice() is None
    svc.sell(1, 3)
    text = svc.render_last_invoice()
    assert "Amoxicillin" in text
    assert "₹270.00" in text
    svc.clear_invoice()
    assert svc.last_invoice is None
    assert not svc.print_last_invoice().ok


def test_ids_are_unique_within_a_millisecond():
    svc = new_service()
    a = svc.next_product_id(now=1_700_000_000.0)
    b = svc.next_product_id(now=1_700_000_000.0)
    assert b == a + 1
    # each counter keeps its own sequence
    assert new_service().next_product_id(now=1_700_000_000.0) == a
