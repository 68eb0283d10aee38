"""In-memory product and notification store with snapshot persistence."""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import ValidationError

from src.db.models import Notification, PricePoint, Product, StoreSnapshot, utcnow
from src.db.snapshot import SnapshotBackend

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 30

# Fields callers may never change through update_product
IMMUTABLE_PRODUCT_FIELDS = frozenset({"id", "created_at"})


class NotFoundError(LookupError):
    """Raised when an operation references an unknown id."""


class ProductNotFoundError(NotFoundError):
    """Raised when a product id is unknown."""

    def __init__(self, product_id: int):
        super().__init__(f"Product with ID {product_id} not found")
        self.product_id = product_id


class NotificationNotFoundError(NotFoundError):
    """Raised when a notification id is unknown."""

    def __init__(self, notification_id: int):
        super().__init__(f"Notification with ID {notification_id} not found")
        self.notification_id = notification_id


class StoreValidationError(ValueError):
    """Raised when field values are invalid for a product or notification."""


class ProductStore:
    """
    Repository of tracked products and the notification log.

    The store owns both collections and their id counters. Every mutating
    call applies the change in memory and then writes the full state to the
    snapshot backend. Snapshot failures are logged and the in-memory state
    stays authoritative for the rest of the process lifetime.

    Objects handed out are copies; mutate them through the store methods.
    """

    def __init__(
        self,
        backend: SnapshotBackend,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        self.backend = backend
        self.history_limit = history_limit
        self._products: Dict[int, Product] = {}
        self._notifications: Dict[int, Notification] = {}
        self._product_id_counter = 1
        self._notification_id_counter = 1

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def get_all_products(self) -> List[Product]:
        """Return all products in creation order."""
        return [p.model_copy(deep=True) for p in self._products.values()]

    def get_product(self, product_id: int) -> Product:
        """
        Get a product by id.

        Raises:
            ProductNotFoundError: If the id is unknown
        """
        return self._require_product(product_id).model_copy(deep=True)

    def get_product_by_url(self, url: str) -> Optional[Product]:
        """Return the product tracking ``url``, if any."""
        for product in self._products.values():
            if product.url == url:
                return product.model_copy(deep=True)
        return None

    def create_product(
        self,
        url: str,
        title: str,
        current_price: int,
        original_price: int,
        image_url: str,
        notify_on_drop: bool = True,
        drop_percentage: int = 60,
        price_history: Optional[List[PricePoint]] = None,
    ) -> Product:
        """
        Create a product with the next product id.

        Raises:
            StoreValidationError: If any field value is invalid
        """
        now = utcnow()
        history = list(price_history or [])[: self.history_limit]
        try:
            product = Product(
                id=self._product_id_counter,
                url=url,
                title=title,
                current_price=current_price,
                original_price=original_price,
                image_url=image_url,
                notify_on_drop=notify_on_drop,
                drop_percentage=drop_percentage,
                price_history=history,
                last_checked=now,
                created_at=now,
            )
        except ValidationError as e:
            raise StoreValidationError(str(e)) from e

        self._product_id_counter += 1
        self._products[product.id] = product
        logger.info(f"Created product {product.id}: {product.title[:60]}")

        self._persist()
        return product.model_copy(deep=True)

    def update_product(self, product_id: int, **fields) -> Product:
        """
        Update product fields.

        Args:
            product_id: Product id
            **fields: Product fields to replace (``id`` and ``created_at``
                excluded)

        Raises:
            ProductNotFoundError: If the id is unknown
            StoreValidationError: If a field is immutable, unknown or invalid
        """
        product = self._require_product(product_id)

        forbidden = IMMUTABLE_PRODUCT_FIELDS.intersection(fields)
        if forbidden:
            raise StoreValidationError(
                f"Cannot update immutable fields: {', '.join(sorted(forbidden))}"
            )
        unknown = set(fields) - set(Product.model_fields)
        if unknown:
            raise StoreValidationError(f"Unknown product fields: {', '.join(sorted(unknown))}")

        if "price_history" in fields and fields["price_history"] is not None:
            fields["price_history"] = list(fields["price_history"])[: self.history_limit]

        try:
            updated = Product.model_validate({**product.model_dump(), **fields})
        except ValidationError as e:
            raise StoreValidationError(str(e)) from e

        self._products[product_id] = updated
        self._persist()
        return updated.model_copy(deep=True)

    def delete_product(self, product_id: int) -> None:
        """
        Delete a product. Its notifications are kept.

        Raises:
            ProductNotFoundError: If the id is unknown
        """
        self._require_product(product_id)
        del self._products[product_id]
        logger.info(f"Deleted product {product_id}")
        self._persist()

    def add_price_point(
        self,
        product_id: int,
        price: int,
        date: Optional[datetime] = None,
        **fields,
    ) -> Product:
        """
        Prepend a price point and make it the current price.

        History is truncated to ``history_limit`` points, dropping the oldest.
        Extra ``fields`` are applied in the same update, so the whole change
        is written with a single snapshot save.

        Raises:
            ProductNotFoundError: If the id is unknown
            StoreValidationError: If the price or a field is invalid
        """
        product = self._require_product(product_id)
        if {"price_history", "current_price"}.intersection(fields):
            raise StoreValidationError("Price history and current price are set from the price point")
        try:
            point = PricePoint(date=date or utcnow(), price=price)
        except ValidationError as e:
            raise StoreValidationError(str(e)) from e

        history = [point, *product.price_history][: self.history_limit]
        return self.update_product(
            product_id,
            **fields,
            price_history=history,
            current_price=point.price,
        )

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def get_all_notifications(self) -> List[Notification]:
        """Return all notifications, newest first."""
        notifications = sorted(
            self._notifications.values(),
            key=lambda n: (n.created_at, n.id),
            reverse=True,
        )
        return [n.model_copy(deep=True) for n in notifications]

    def get_notification(self, notification_id: int) -> Notification:
        """
        Get a notification by id.

        Raises:
            NotificationNotFoundError: If the id is unknown
        """
        return self._require_notification(notification_id).model_copy(deep=True)

    def create_notification(
        self,
        product_id: int,
        product_name: str,
        product_url: str,
        old_price: int,
        new_price: int,
        percentage_dropped: int,
        read: bool = False,
    ) -> Notification:
        """
        Append a notification with the next notification id.

        Raises:
            ProductNotFoundError: If the product id is unknown
            StoreValidationError: If any field value is invalid
        """
        self._require_product(product_id)
        try:
            notification = Notification(
                id=self._notification_id_counter,
                product_id=product_id,
                product_name=product_name,
                product_url=product_url,
                old_price=old_price,
                new_price=new_price,
                percentage_dropped=percentage_dropped,
                read=read,
                created_at=utcnow(),
            )
        except ValidationError as e:
            raise StoreValidationError(str(e)) from e

        self._notification_id_counter += 1
        self._notifications[notification.id] = notification
        self._persist()
        return notification.model_copy(deep=True)

    def mark_notification_as_read(self, notification_id: int) -> Notification:
        """
        Mark a notification as read. Marking twice is harmless.

        Raises:
            NotificationNotFoundError: If the id is unknown
        """
        notification = self._require_notification(notification_id)
        if notification.read:
            return notification.model_copy(deep=True)

        updated = notification.model_copy(update={"read": True})
        self._notifications[notification_id] = updated
        self._persist()
        return updated.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def snapshot(self) -> StoreSnapshot:
        """Current state as a snapshot model."""
        return StoreSnapshot(
            products=list(self._products.values()),
            notifications=list(self._notifications.values()),
            product_id_counter=self._product_id_counter,
            notification_id_counter=self._notification_id_counter,
        ).model_copy(deep=True)

    def load(self) -> bool:
        """
        Replace in-memory state with the backend's snapshot.

        Returns:
            True if a snapshot was loaded, False if none existed or it could
            not be read
        """
        try:
            data = self.backend.load()
            if data is None:
                return False
            snapshot = StoreSnapshot.model_validate(data)
        except Exception as e:
            logger.error(f"Error loading data: {e}")
            return False

        self._products = {p.id: p for p in snapshot.products}
        self._notifications = {n.id: n for n in snapshot.notifications}
        # Never hand out an id that is already present, even with stale counters
        self._product_id_counter = max(
            [snapshot.product_id_counter, *(pid + 1 for pid in self._products)]
        )
        self._notification_id_counter = max(
            [snapshot.notification_id_counter, *(nid + 1 for nid in self._notifications)]
        )

        logger.info(
            f"Loaded {len(self._products)} products and "
            f"{len(self._notifications)} notifications"
        )
        return True

    def _persist(self) -> None:
        try:
            self.backend.save(self.snapshot().model_dump(mode="json"))
        except Exception as e:
            logger.error(f"Error saving data: {e}")

    def _require_product(self, product_id: int) -> Product:
        product = self._products.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def _require_notification(self, notification_id: int) -> Notification:
        notification = self._notifications.get(notification_id)
        if notification is None:
            raise NotificationNotFoundError(notification_id)
        return notification
