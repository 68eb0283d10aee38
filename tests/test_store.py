"""Tests for the product store and snapshot backends."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from src.db.snapshot import InMemoryBackend, JsonFileBackend, NullBackend, create_snapshot_backend
from src.db.store import (
    NotFoundError,
    NotificationNotFoundError,
    ProductNotFoundError,
    ProductStore,
    StoreValidationError,
)

from tests.conftest import PRODUCT_URL, FailingBackend, make_product


def make_notification(store, product_id=1, old_price=700, new_price=390, pct=61):
    return store.create_notification(
        product_id=product_id,
        product_name="Test Product",
        product_url=PRODUCT_URL,
        old_price=old_price,
        new_price=new_price,
        percentage_dropped=pct,
    )


class TestProducts:
    def test_create_assigns_increasing_ids(self, store):
        first = make_product(store)
        second = make_product(store, url="https://www.amazon.in/dp/B0OTHER000")

        assert first.id == 1
        assert second.id == 2
        assert [p.id for p in store.get_all_products()] == [1, 2]

    def test_create_defaults(self, store):
        product = make_product(store)

        assert product.notify_on_drop is True
        assert product.drop_percentage == 60
        assert product.price_history == []
        assert product.created_at.tzinfo is not None

    def test_get_product_by_url(self, store):
        product = make_product(store)

        assert store.get_product_by_url(PRODUCT_URL).id == product.id
        assert store.get_product_by_url("https://www.amazon.in/dp/NOPE") is None

    def test_unknown_product_is_not_found(self, store):
        with pytest.raises(ProductNotFoundError):
            store.get_product(42)
        with pytest.raises(ProductNotFoundError):
            store.update_product(42, title="x")
        with pytest.raises(ProductNotFoundError):
            store.delete_product(42)
        with pytest.raises(ProductNotFoundError):
            store.add_price_point(42, 100)

    def test_not_found_is_distinct_from_validation(self, store):
        make_product(store)

        with pytest.raises(StoreValidationError) as exc_info:
            store.update_product(1, current_price=-5)

        assert not isinstance(exc_info.value, NotFoundError)

    def test_update_rejects_immutable_and_unknown_fields(self, store):
        make_product(store)

        with pytest.raises(StoreValidationError, match="immutable"):
            store.update_product(1, id=99)
        with pytest.raises(StoreValidationError, match="immutable"):
            store.update_product(1, created_at=datetime.now(timezone.utc))
        with pytest.raises(StoreValidationError, match="Unknown"):
            store.update_product(1, colour="red")

    def test_drop_percentage_bounds(self, store):
        with pytest.raises(StoreValidationError):
            make_product(store, drop_percentage=101)

        product = make_product(store, drop_percentage=0)
        assert product.drop_percentage == 0

    def test_update_keeps_id_and_created_at(self, store):
        product = make_product(store)

        updated = store.update_product(product.id, title="Renamed", notify_on_drop=False)

        assert updated.id == product.id
        assert updated.created_at == product.created_at
        assert updated.title == "Renamed"
        assert store.get_product(product.id).notify_on_drop is False

    def test_returned_objects_are_copies(self, store):
        product = make_product(store)
        product.title = "Mutated outside"

        assert store.get_product(product.id).title == "Test Product"

    def test_delete_keeps_notifications(self, store):
        product = make_product(store)
        make_notification(store, product_id=product.id)

        store.delete_product(product.id)

        assert store.get_all_products() == []
        assert len(store.get_all_notifications()) == 1

    def test_ids_are_not_reused_after_delete(self, store):
        make_product(store)
        store.delete_product(1)

        product = make_product(store)

        assert product.id == 2


class TestPriceHistory:
    def test_add_price_point_prepends_and_sets_current(self, store):
        make_product(store, price=700)

        store.add_price_point(1, 650)
        product = store.add_price_point(1, 600)

        assert [p.price for p in product.price_history] == [600, 650]
        assert product.current_price == 600

    def test_history_is_bounded_newest_first(self, store):
        make_product(store)
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)

        for i in range(35):
            store.add_price_point(1, 1000 - i, date=start + timedelta(hours=i))

        history = store.get_product(1).price_history
        assert len(history) == 30
        assert history[0].price == 966
        assert history[-1].price == 995
        assert all(a.date > b.date for a, b in zip(history, history[1:]))

    def test_custom_history_limit(self, backend):
        store = ProductStore(backend, history_limit=3)
        make_product(store)

        for price in (900, 800, 700, 600):
            store.add_price_point(1, price)

        assert [p.price for p in store.get_product(1).price_history] == [600, 700, 800]

    def test_add_price_point_applies_fields_with_one_save(self, store, backend):
        make_product(store, price=700)
        saves = backend.save_count

        product = store.add_price_point(1, 650, title="Renamed", original_price=1200)

        assert backend.save_count == saves + 1
        assert product.title == "Renamed"
        assert product.original_price == 1200
        assert product.current_price == 650
        assert backend.data["products"][0]["title"] == "Renamed"

    def test_add_price_point_rejects_price_fields(self, store):
        make_product(store)

        with pytest.raises(StoreValidationError):
            store.add_price_point(1, 650, current_price=600)

        assert store.get_product(1).price_history == []

    def test_negative_price_rejected(self, store):
        make_product(store)

        with pytest.raises(StoreValidationError):
            store.add_price_point(1, -1)

        assert store.get_product(1).price_history == []


class TestNotifications:
    def test_notifications_are_newest_first(self, store):
        make_product(store)
        first = make_notification(store)
        second = make_notification(store, old_price=390, new_price=300, pct=70)

        assert [n.id for n in store.get_all_notifications()] == [second.id, first.id]

    def test_notification_requires_existing_product(self, store, backend):
        with pytest.raises(ProductNotFoundError):
            make_notification(store, product_id=999)

        assert store.get_all_notifications() == []
        assert backend.save_count == 0
        # The failed call does not consume an id
        make_product(store)
        assert make_notification(store).id == 1

    def test_mark_as_read_is_idempotent(self, store, backend):
        make_product(store)
        notification = make_notification(store)
        assert notification.read is False

        store.mark_notification_as_read(notification.id)
        saves = backend.save_count
        again = store.mark_notification_as_read(notification.id)

        assert again.read is True
        assert backend.save_count == saves
        assert store.get_notification(notification.id).read is True

    def test_mark_unknown_notification_fails_every_time(self, store):
        for _ in range(2):
            with pytest.raises(NotificationNotFoundError):
                store.mark_notification_as_read(99)

    def test_notification_keeps_product_fields_after_rename(self, store):
        product = make_product(store)
        notification = make_notification(store, product_id=product.id)

        store.update_product(product.id, title="Renamed")

        assert store.get_notification(notification.id).product_name == "Test Product"


class TestPersistence:
    def test_every_mutation_saves(self, store, backend):
        make_product(store)
        store.add_price_point(1, 650)
        store.update_product(1, title="New")
        make_notification(store)
        store.mark_notification_as_read(1)
        store.delete_product(1)

        assert backend.save_count == 6

    def test_reload_reproduces_collections_and_counters(self, store, backend):
        make_product(store)
        make_product(store, url="https://www.amazon.in/dp/B0OTHER000")
        store.add_price_point(1, 650)
        make_notification(store)
        store.delete_product(2)

        reloaded = ProductStore(backend)
        assert reloaded.load() is True

        assert reloaded.get_all_products() == store.get_all_products()
        assert reloaded.get_all_notifications() == store.get_all_notifications()
        assert make_product(reloaded, url="https://www.amazon.in/dp/B0THIRD000").id == 3
        assert make_notification(reloaded).id == 2

    def test_load_never_reuses_present_ids(self):
        backend = InMemoryBackend({
            "products": [],
            "notifications": [{
                "id": 7,
                "product_id": 1,
                "product_name": "Old",
                "product_url": PRODUCT_URL,
                "old_price": 700,
                "new_price": 390,
                "percentage_dropped": 61,
                "read": False,
                "created_at": "2024-01-01T00:00:00Z",
            }],
            "product_id_counter": 1,
            "notification_id_counter": 1,
        })
        store = ProductStore(backend)

        store.load()
        make_product(store)

        assert make_notification(store).id == 8

    def test_load_without_snapshot_starts_empty(self, store):
        assert store.load() is False
        assert store.get_all_products() == []

    def test_corrupt_snapshot_starts_empty(self):
        store = ProductStore(InMemoryBackend({"products": "not a list"}))

        assert store.load() is False
        assert store.get_all_products() == []

    def test_save_failure_keeps_memory_state(self):
        store = ProductStore(FailingBackend())

        product = make_product(store)
        store.add_price_point(product.id, 650)

        assert store.get_product(product.id).current_price == 650


class TestBackends:
    def test_json_file_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "data.json"
        store = ProductStore(JsonFileBackend(path))
        make_product(store)
        store.add_price_point(1, 650)

        on_disk = json.loads(path.read_text(encoding="utf-8"))
        assert on_disk["product_id_counter"] == 2
        assert on_disk["products"][0]["current_price"] == 650
        assert not list(path.parent.glob(".tmp_*"))

        reloaded = ProductStore(JsonFileBackend(path))
        assert reloaded.load() is True
        assert reloaded.get_product(1).price_history[0].price == 650

    def test_json_file_missing(self, tmp_path):
        assert JsonFileBackend(tmp_path / "absent.json").load() is None

    def test_null_backend(self):
        backend = NullBackend()
        backend.save({"products": []})

        assert backend.load() is None

    def test_backend_selection(self, settings):
        assert isinstance(create_snapshot_backend(settings), NullBackend)

        file_settings = settings.model_copy(update={"storage_backend": "file"})
        assert isinstance(create_snapshot_backend(file_settings), JsonFileBackend)

        serverless = file_settings.model_copy(update={"serverless": True})
        assert isinstance(create_snapshot_backend(serverless), NullBackend)
