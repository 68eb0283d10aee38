"""Recurring price checks over all tracked products."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional
from uuid import uuid4

from src import metrics
from src.db.models import Product, utcnow
from src.db.store import NotFoundError, ProductStore
from src.detect.rules import DropRule, discount_percentage
from src.ingest.base import ExtractionError
from src.ingest.extractor import ProductExtractor
from src.logging_config import get_logger

logger = logging.getLogger(__name__)


@dataclass
class TickSummary:
    """Outcome of one pass over the product set."""

    run_id: str
    trigger: str
    total_products: int = 0
    updated: int = 0
    failed: int = 0
    notifications_created: int = 0
    errors: List[str] = field(default_factory=list)


class PriceTracker:
    """
    Runs price checks over every tracked product, one product at a time.

    At most one tick runs at once: triggers that arrive while a tick is in
    progress are logged and dropped, not queued. The checking flag is
    released on every exit path of a tick.

    Per product the tracker extracts the listing, records the new price,
    refreshes display fields and stores a notification when the discount
    newly crosses the product's drop threshold. Extraction failures skip
    the product until the next tick.
    """

    def __init__(
        self,
        store: ProductStore,
        extractor: ProductExtractor,
        request_delay_seconds: float = 2.0,
    ):
        self.store = store
        self.extractor = extractor
        self.request_delay_seconds = request_delay_seconds
        self._checking = False
        self._task: Optional[asyncio.Task] = None
        self.last_summary: Optional[TickSummary] = None

    @property
    def is_checking(self) -> bool:
        return self._checking

    async def close(self):
        """Wait for the tick in flight, whatever its trigger, then close the extractor."""
        if self._task and not self._task.done():
            try:
                await self._task
            except Exception:
                logger.exception("Price check task failed during shutdown")
        await self.extractor.close()

    async def check_prices(self, trigger: str = "scheduled") -> Optional[TickSummary]:
        """
        Run one tick over all products (scheduler entrypoint).

        Args:
            trigger: Trigger type for logs and metrics

        Returns:
            TickSummary, or None if a tick was already running
        """
        if self._checking:
            self._log_skip(trigger)
            return None
        self._checking = True
        self._task = asyncio.create_task(self._run_tick(trigger))
        return await self._task

    def trigger_check_now(self) -> bool:
        """
        Start a tick in the background (manual trigger).

        Must be called from within the running event loop.

        Returns:
            True if a tick was started, False if one was already running
        """
        if self._checking:
            self._log_skip("manual")
            return False
        self._checking = True
        self._task = asyncio.create_task(self._run_tick("manual"))
        return True

    def _log_skip(self, trigger: str):
        metrics.record_tracker_skipped(trigger)
        logger.info(f"Price check already in progress, skipping {trigger} trigger")

    async def _run_tick(self, trigger: str) -> TickSummary:
        """Iterate the product set. Caller must have claimed the checking flag."""
        summary = TickSummary(run_id=uuid4().hex, trigger=trigger)
        run_logger = get_logger(__name__, run_id=summary.run_id, trigger=trigger)
        started = time.monotonic()
        success = False

        try:
            products = self.store.get_all_products()
            summary.total_products = len(products)
            metrics.update_products_tracked(len(products))

            if not products:
                logger.info("No products to check")
                success = True
                return summary

            run_logger.info(
                f"Checking prices for {len(products)} products "
                f"(trigger: {trigger}, run_id: {summary.run_id[:16]}...)"
            )

            for index, product in enumerate(products):
                try:
                    await self._check_product(product, summary)
                except NotFoundError:
                    # Deleted while the tick was running
                    logger.info(f"Product {product.id} was removed during the check, skipping")
                except Exception as e:
                    summary.failed += 1
                    summary.errors.append(f"product {product.id}: {e}")
                    logger.error(f"Error checking price for product {product.id}: {e}", exc_info=True)

                if index < len(products) - 1 and self.request_delay_seconds > 0:
                    await asyncio.sleep(self.request_delay_seconds)

            success = True
            run_logger.info(
                f"Price check completed: {summary.updated} updated, {summary.failed} failed, "
                f"{summary.notifications_created} notifications"
            )
        except Exception as e:
            summary.errors.append(str(e))
            logger.error(f"Error in price checker: {e}", exc_info=True)
        finally:
            self._checking = False
            self.last_summary = summary
            metrics.record_tracker_run(success, time.monotonic() - started)

        return summary

    async def _check_product(self, product: Product, summary: TickSummary):
        started = time.monotonic()
        try:
            scraped = await self.extractor.extract(product.url)
        except ExtractionError as e:
            cause = e.__cause__ or e
            metrics.record_check_error(type(cause).__name__, time.monotonic() - started)
            summary.failed += 1
            summary.errors.append(f"product {product.id}: {e}")
            logger.warning(f"Failed to scrape product {product.id}: {product.title[:50]}")
            return
        metrics.record_check_success(time.monotonic() - started)

        now = utcnow()
        previous_price = product.current_price
        new_price = scraped.current_price
        # Sources sometimes report a lower M.R.P. than seen before
        original_price = max(scraped.original_price, product.original_price, new_price)

        updated = self.store.add_price_point(
            product.id,
            new_price,
            date=now,
            title=scraped.title,
            original_price=original_price,
            image_url=scraped.image_url,
            last_checked=now,
        )
        summary.updated += 1
        metrics.record_price_change(previous_price, new_price)

        if not product.notify_on_drop:
            return

        rule = DropRule(threshold=product.drop_percentage)
        triggered, reason = rule.check(previous_price, new_price, original_price)
        if not triggered:
            logger.debug(f"No notification for product {product.id}: {reason}")
            return

        percentage = discount_percentage(new_price, original_price)
        self.store.create_notification(
            product_id=updated.id,
            product_name=updated.title,
            product_url=updated.url,
            old_price=previous_price,
            new_price=new_price,
            percentage_dropped=percentage,
        )
        summary.notifications_created += 1
        metrics.record_notification_created()
        logger.info(
            f"Created notification for product {product.id}: price dropped from "
            f"{previous_price} to {new_price} ({percentage}%): {reason}"
        )
