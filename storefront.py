import os
import random
import time
from typing import Any, Dict

from storesync.app import Storefront
from storesync.logger import get_logger
from storesync.storage import DB_PATH, SqliteKeyValueStore
from remotes.base import API_BASE_URL

logger = get_logger(__name__)

POLL_MINUTES = int(os.getenv("POLL_MINUTES", "10"))
MODE = os.getenv("MODE", "once").lower()  # "daemon" or "once"


def jitter_sleep_minutes(minutes: int) -> None:
    base = max(1, minutes)
    jitter = random.uniform(-0.1 * base, 0.1 * base)
    total = base + jitter
    logger.info("Sleeping %.1f minutes before next refresh.", total)
    time.sleep(total * 60)


def build_storefront(db_path: str = DB_PATH, base_url: str = API_BASE_URL) -> Storefront:
    return Storefront(SqliteKeyValueStore(db_path), base_url=base_url)


def summarize(app: Storefront) -> Dict[str, Any]:
    default = app.addresses.get_default()
    return {
        "owner": app.session.owner.scope,
        "cart_lines": len(app.cart.lines),
        "cart_count": app.cart.count,
        "cart_total": round(app.cart.total, 2),
        "wishlist_count": app.wishlist.count,
        "addresses": len(app.addresses.addresses),
        "default_address": default.address_id if default else None,
        "orders": len(app.orders.orders),
        "background_failures": app.queue.failures,
    }


def sync_cycle(app: Storefront) -> Dict[str, bool]:
    """Flush queued remote calls, then pull fresh snapshots."""
    ran = app.queue.drain()
    if ran:
        logger.debug("Flushed %d background calls.", ran)
    results = app.refresh_all()
    for collection, ok in results.items():
        if not ok:
            logger.warning("Refresh of %s failed; keeping current state.", collection)
    return results


def run_once() -> int:
    app = build_storefront()
    try:
        results = sync_cycle(app)
        logger.info("Sync summary: %s", summarize(app))
    finally:
        app.close()
    return 0 if all(results.values()) else 1


def run_daemon() -> None:
    logger.info("Starting daemon; refresh every %d minutes.", POLL_MINUTES)
    app = build_storefront()
    try:
        while True:
            try:
                sync_cycle(app)
                logger.info("Sync summary: %s", summarize(app))
            except Exception as e:
                logger.exception("Unhandled error in daemon loop: %s", e)
            jitter_sleep_minutes(POLL_MINUTES)
    finally:
        app.close()


if __name__ == "__main__":
    try:
        if MODE == "daemon":
            run_daemon()
        else:
            raise SystemExit(run_once())
    except Exception as e:
        logger.exception("Fatal storefront sync error: %s", e)
        raise SystemExit(2)
