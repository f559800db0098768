import logging
import threading

import pytest

from smokehouse.core.config import settings
from smokehouse.schemas.catalog import Product
from smokehouse.services.cart import CartRegistry, CartStore, line_subtotal


def test_add_same_product_accumulates_on_one_line(ribs: Product) -> None:
    cart = CartStore()
    cart.add_to_cart(ribs, 100)
    cart.add_to_cart(ribs, 50)

    assert len(cart.items) == 1
    assert cart.get_item_quantity("ribs") == 150
    assert cart.items[0].product is ribs


def test_add_without_quantity_uses_default_increment(ribs: Product) -> None:
    cart = CartStore()
    cart.add_to_cart(ribs)
    cart.add_to_cart(ribs)
    assert cart.get_item_quantity("ribs") == 2 * settings.cart_default_increment_grams


def test_update_quantity_is_absolute_and_never_creates(ribs: Product, steak: Product) -> None:
    cart = CartStore()
    cart.add_to_cart(ribs, 300)

    cart.update_quantity("ribs", 120)
    assert cart.get_item_quantity("ribs") == 120

    cart.update_quantity("steak", 500)
    assert "steak" not in cart
    assert cart.get_item_quantity("steak") == 0
    assert cart.total_items == 1


@pytest.mark.parametrize("quantity", [0, -1, -300])
def test_update_to_non_positive_removes_line(ribs: Product, quantity: int) -> None:
    cart = CartStore()
    cart.add_to_cart(ribs, 200)
    cart.update_quantity("ribs", quantity)
    assert cart.get_item_quantity("ribs") == 0
    assert cart.is_empty


def test_add_never_leaves_non_positive_line(ribs: Product, steak: Product) -> None:
    cart = CartStore()
    cart.add_to_cart(steak, 0)
    cart.add_to_cart(steak, -100)
    assert "steak" not in cart

    cart.add_to_cart(ribs, 100)
    cart.add_to_cart(ribs, -100)
    assert "ribs" not in cart
    assert all(item.quantity > 0 for item in cart.items)


def test_remove_absent_product_is_noop(ribs: Product) -> None:
    cart = CartStore()
    cart.add_to_cart(ribs, 100)
    cart.remove_from_cart("missing")
    assert cart.total_items == 1
    cart.remove_from_cart("ribs")
    assert cart.is_empty


def test_total_items_counts_lines_not_grams(ribs: Product, steak: Product) -> None:
    cart = CartStore()
    cart.add_to_cart(ribs, 300)
    cart.add_to_cart(steak, 100)
    assert cart.total_items == 2


def test_single_line_total(ribs: Product) -> None:
    cart = CartStore()
    cart.add_to_cart(ribs, 100)
    assert cart.get_item_quantity("ribs") == 100
    assert cart.total_price == 198


def test_totals_are_sum_of_rounded_line_subtotals(ribs: Product, steak: Product) -> None:
    cart = CartStore()
    cart.add_to_cart(ribs, 100)
    cart.add_to_cart(steak, 300)

    assert [line_subtotal(item) for item in cart.items] == [198, 375]
    assert cart.total_price == 573
    assert cart.total_items == 2


def test_insertion_order_survives_updates(ribs: Product, steak: Product) -> None:
    cart = CartStore()
    cart.add_to_cart(ribs, 100)
    cart.add_to_cart(steak, 100)
    cart.update_quantity("ribs", 900)
    cart.add_to_cart(ribs, 100)
    assert [item.product.id for item in cart.items] == ["ribs", "steak"]


def test_clear_cart(ribs: Product, steak: Product) -> None:
    cart = CartStore()
    cart.add_to_cart(ribs, 100)
    cart.add_to_cart(steak, 100)
    cart.clear_cart()
    assert cart.is_empty
    assert cart.total_price == 0


def test_unparseable_weight_is_zero_priced_and_flagged(caplog: pytest.LogCaptureFixture) -> None:
    mystery = Product(id="mystery", name="Mystery box", price=500, weight="на развес", category="Разное")
    cart = CartStore()
    with caplog.at_level(logging.WARNING, logger="smokehouse.services.cart"):
        cart.add_to_cart(mystery, 200)

    assert cart.get_item_quantity("mystery") == 200
    assert cart.total_price == 0
    flagged = [r for r in caplog.records if r.getMessage() == "cart.unpriced_line"]
    assert len(flagged) == 1
    assert flagged[0].product_id == "mystery"


def test_free_product_with_known_weight_is_not_flagged(caplog: pytest.LogCaptureFixture) -> None:
    bread = Product(id="bread", name="Bread", price=0, weight="100 г", category="Гарниры")
    cart = CartStore()
    with caplog.at_level(logging.WARNING, logger="smokehouse.services.cart"):
        cart.add_to_cart(bread, 100)
    assert cart.total_price == 0
    assert not [r for r in caplog.records if r.getMessage() == "cart.unpriced_line"]


def test_snapshot_is_detached_from_later_mutations(ribs: Product, steak: Product) -> None:
    cart = CartStore()
    cart.add_to_cart(ribs, 100)
    cart.add_to_cart(steak, 300)
    snapshot = cart.snapshot()

    cart.clear_cart()

    assert snapshot.total_price == 573
    assert snapshot.total_items == 2
    assert snapshot.items[0].quantity == 100


def test_listeners_fire_on_changes_only(ribs: Product) -> None:
    cart = CartStore()
    seen: list[int] = []
    unsubscribe = cart.subscribe(lambda store: seen.append(store.total_items))

    cart.add_to_cart(ribs, 100)
    cart.update_quantity("ribs", 100)
    cart.update_quantity("missing", 100)
    cart.remove_from_cart("missing")
    cart.update_quantity("ribs", 250)
    cart.remove_from_cart("ribs")
    cart.clear_cart()
    assert seen == [1, 1, 0]

    unsubscribe()
    cart.add_to_cart(ribs, 100)
    assert seen == [1, 1, 0]


def test_concurrent_adds_keep_one_line_per_product(ribs: Product) -> None:
    cart = CartStore()

    def worker() -> None:
        for _ in range(50):
            cart.add_to_cart(ribs, 10)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert cart.total_items == 1
    assert cart.get_item_quantity("ribs") == 8 * 50 * 10


def test_registry_scopes_carts_by_session(ribs: Product) -> None:
    registry = CartRegistry()
    first = registry.get("s-1")
    assert registry.get("s-1") is first
    first.add_to_cart(ribs, 100)

    assert registry.get("s-2").is_empty
    assert len(registry) == 2

    registry.discard("s-1")
    assert "s-1" not in registry
    assert first.is_empty
    assert registry.get("s-1").is_empty
    registry.discard("never-seen")


def test_huge_quantities_stay_priced(ribs: Product) -> None:
    cart = CartStore()
    cart.add_to_cart(ribs, 10**30)
    cart.add_to_cart(ribs, 10**30)
    assert cart.get_item_quantity("ribs") == 2 * 10**30
    assert cart.total_price == 396 * 10**28


def test_checkout_claim_is_exclusive(ribs: Product) -> None:
    cart = CartStore()
    cart.add_to_cart(ribs, 100)

    snapshot = cart.begin_checkout()
    assert snapshot is not None
    assert cart.checking_out
    assert cart.begin_checkout() is None

    cart.finish_checkout()
    assert not cart.checking_out
    assert cart.get_item_quantity("ribs") == 100
    assert cart.begin_checkout() is not None


def test_finish_checkout_removes_only_ordered_grams(ribs: Product, steak: Product) -> None:
    cart = CartStore()
    cart.add_to_cart(ribs, 100)
    snapshot = cart.begin_checkout()

    cart.add_to_cart(ribs, 50)
    cart.add_to_cart(steak, 300)
    events: list[int] = []
    cart.subscribe(lambda store: events.append(store.total_items))
    cart.finish_checkout(snapshot)

    assert cart.get_item_quantity("ribs") == 50
    assert cart.get_item_quantity("steak") == 300
    assert events == [2]


def test_finish_checkout_drops_lines_reduced_meanwhile(ribs: Product) -> None:
    cart = CartStore()
    cart.add_to_cart(ribs, 300)
    snapshot = cart.begin_checkout()
    cart.update_quantity("ribs", 100)
    cart.finish_checkout(snapshot)
    assert cart.is_empty


def test_registry_peek_does_not_register(ribs: Product) -> None:
    registry = CartRegistry()
    transient = registry.peek("browser")
    assert transient.is_empty
    assert transient.session_id == "browser"
    assert "browser" not in registry
    assert len(registry) == 0

    registered = registry.get("browser")
    registered.add_to_cart(ribs, 100)
    assert registry.peek("browser") is registered


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_registry_evicts_idle_carts(ribs: Product, caplog: pytest.LogCaptureFixture) -> None:
    clock = FakeClock()
    registry = CartRegistry(idle_ttl_seconds=60, clock=clock)
    stale = registry.get("stale")
    stale.add_to_cart(ribs, 100)
    registry.get("busy")

    clock.now += 45
    registry.peek("busy")
    clock.now += 30

    with caplog.at_level(logging.INFO, logger="smokehouse.services.cart"):
        registry.get("fresh")

    assert "stale" not in registry
    assert stale.is_empty
    assert "busy" in registry
    assert len(registry) == 2
    ended = [r for r in caplog.records if r.getMessage() == "cart.session_ended"]
    assert [(r.cart_session, r.reason) for r in ended] == [("stale", "expired")]


def test_registry_keeps_carts_mid_checkout(ribs: Product) -> None:
    clock = FakeClock()
    registry = CartRegistry(idle_ttl_seconds=60, clock=clock)
    cart = registry.get("paying")
    cart.add_to_cart(ribs, 100)
    cart.begin_checkout()

    clock.now += 600
    registry.get("other")
    assert "paying" in registry
