import itertools
from datetime import datetime, timezone

import pytest

from erp.schemas.notification import NotificationType
from erp.schemas.product import Product
from erp.schemas.sale import SaleLineItem
from erp.services.stock_service import (
    LOW_STOCK_TITLE,
    OUT_OF_STOCK_TITLE,
    SaleRejected,
    StockMutationEngine,
    stock_notification,
)

NOW = datetime(2026, 1, 15, 10, 30, tzinfo=timezone.utc)


def make_product(product_id="p1", name="Widget", quantity=10, threshold=5):
    return Product(id=product_id, name=name, quantity=quantity, threshold=threshold)


@pytest.fixture
def engine():
    counter = itertools.count(1)
    return StockMutationEngine(id_factory=lambda: f"id-{next(counter)}", clock=lambda: NOW)


def test_low_stock_then_out_of_stock(engine):
    products = [make_product()]

    first = engine.record_sale(products, [], [{"product_id": "p1", "quantity": 6}])
    assert first.products[0].quantity == 4
    assert len(first.notifications) == 1
    warning = first.notifications[0]
    assert warning.type is NotificationType.WARNING
    assert warning.title == LOW_STOCK_TITLE
    assert warning.message == "Widget is running low on stock (4 remaining)"
    assert warning.read is False

    second = engine.record_sale(first.products, first.notifications, [("p1", 10)])
    assert second.products[0].quantity == -6
    assert len(second.new_notifications) == 1
    error = second.notifications[0]
    assert error.type is NotificationType.ERROR
    assert error.title == OUT_OF_STOCK_TITLE
    assert error.message == "Widget is now out of stock!"
    assert second.notifications[1] == warning


@pytest.mark.parametrize(
    "sold, expected_type",
    [
        (1, None),                         # 9 > 5
        (4, None),                         # 6 > 5
        (5, NotificationType.WARNING),     # 5 == seuil
        (9, NotificationType.WARNING),     # 1
        (10, NotificationType.ERROR),      # 0
        (15, NotificationType.ERROR),      # -5
    ],
)
def test_threshold_policy(engine, sold, expected_type):
    outcome = engine.record_sale([make_product()], [], [SaleLineItem(product_id="p1", quantity=sold)])
    types = [n.type for n in outcome.new_notifications]
    if expected_type is None:
        assert types == []
    else:
        assert types == [expected_type]


def test_zero_threshold_only_alerts_on_out_of_stock(engine):
    outcome = engine.record_sale([make_product(quantity=2, threshold=0)], [], [("p1", 1)])
    assert outcome.new_notifications == ()


def test_notifications_prepended_most_recent_first(engine):
    products = [make_product("a", "Alpha", 3, 5), make_product("b", "Beta", 3, 5)]
    outcome = engine.record_sale(products, [], [("a", 1), ("b", 1)])
    # La ligne traitée en dernier arrive en tête
    assert [n.message for n in outcome.notifications] == [
        "Beta is running low on stock (2 remaining)",
        "Alpha is running low on stock (2 remaining)",
    ]

    later = engine.record_sale(outcome.products, outcome.notifications, [("a", 5)])
    assert later.notifications[0].message == "Alpha is now out of stock!"
    assert len(later.notifications) == 3


def test_sale_record(engine):
    outcome = engine.record_sale([make_product()], [], [("p1", 2)])
    assert outcome.sale.date == NOW
    assert outcome.sale.id.startswith("id-")
    assert [(i.product_id, i.quantity) for i in outcome.sale.items] == [("p1", 2)]
    assert outcome.products[0].updated_at == NOW


def test_repeated_product_lines_apply_sequentially(engine):
    outcome = engine.record_sale([make_product()], [], [("p1", 3), ("p1", 3)])
    assert outcome.products[0].quantity == 4
    # 7 puis 4 : seule la seconde ligne franchit le seuil
    assert len(outcome.new_notifications) == 1


def test_input_snapshots_are_not_mutated(engine):
    products = [make_product()]
    engine.record_sale(products, [], [("p1", 6)])
    assert products[0].quantity == 10


def test_untouched_products_kept_in_order(engine):
    products = [make_product("a", "Alpha"), make_product("b", "Beta"), make_product("c", "Gamma")]
    outcome = engine.record_sale(products, [], [("b", 1)])
    assert [p.id for p in outcome.products] == ["a", "b", "c"]
    assert outcome.products[0] is products[0]


def test_unknown_products_are_reported(engine):
    outcome = engine.record_sale([make_product()], [], [("ghost", 1), ("p1", 1)])
    assert outcome.is_partial
    assert outcome.skipped_product_ids == ("ghost",)
    assert [i.product_id for i in outcome.sale.items] == ["p1"]


def test_sale_without_known_product_is_rejected(engine):
    with pytest.raises(SaleRejected):
        engine.record_sale([make_product()], [], [("ghost", 1)])


def test_empty_sale_is_rejected(engine):
    with pytest.raises(SaleRejected):
        engine.record_sale([make_product()], [], [])


def test_non_positive_quantity_is_rejected(engine):
    with pytest.raises(ValueError):
        engine.record_sale([make_product()], [], [("p1", 0)])


def test_stock_notification_helper():
    assert stock_notification(make_product(quantity=6), NOW) is None
    assert stock_notification(make_product(quantity=0), NOW).type is NotificationType.ERROR


@pytest.mark.parametrize("bad_line", [42, None, ("p1",), ("p1", 1, "extra")])
def test_malformed_line_is_rejected(engine, bad_line):
    with pytest.raises(SaleRejected):
        engine.record_sale([make_product()], [], [bad_line])
