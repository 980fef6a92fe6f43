"""
Trigger and Timer Handlers
--------------------------
Bodies invoked by the platform rather than by a client:
- on_clothing_item_created: bump the owner's item statistics
- on_user_deleted: cascade-delete everything a user owns
- send_daily_recommendations: morning recommendation run

Failures propagate to Lambda; there is no user-facing error channel here.
"""

import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from typing import Any, Dict, List

from .callables import generate_recommendation_text
from .config import (
    Collection,
    DAILY_WARDROBE_LIMIT,
    KEY_ATTRIBUTES,
    OWNED_COLLECTIONS,
    OWNER_ATTRIBUTE,
)
from .services import Services
from .utils.logger import get_logger

logger = get_logger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def on_clothing_item_created(services: Services, item: Dict[str, Any]) -> None:
    """Increment the owning user's item counter for one new clothing item."""
    user_id = item[OWNER_ATTRIBUTE]
    services.store.increment_item_count(user_id, _utc_now())


def on_user_deleted(services: Services, user_id: str) -> int:
    """
    Delete the user and every record they own in one transaction.

    Returns:
        Number of deletes committed (owned records + the user record)
    """
    store = services.store
    refs = [(Collection.USERS, {KEY_ATTRIBUTES[Collection.USERS]: user_id})]

    for collection in OWNED_COLLECTIONS:
        owned = store.find_owned(collection, user_id)
        logger.info(f"Found {len(owned)} {collection.value} records for user {user_id}")
        refs.extend(store.record_ref(collection, item) for item in owned)

    deleted = store.delete_atomically(refs)
    logger.info(f"Deleted all data for user: {user_id}")
    return deleted


def _dispatch_for_user(services: Services, user: Dict[str, Any]) -> bool:
    """
    Run the daily recommendation for one user.

    Returns:
        False when the user has no wardrobe items and was skipped
    """
    user_id = user[KEY_ATTRIBUTES[Collection.USERS]]
    wardrobe = services.store.find_owned(
        Collection.CLOTHING_ITEMS, user_id, limit=DAILY_WARDROBE_LIMIT
    )
    if not wardrobe:
        return False

    if services.config.daily_generation_enabled:
        recommendations = generate_recommendation_text(services, wardrobe)
        services.store.put_recommendation_log({
            KEY_ATTRIBUTES[Collection.RECOMMENDATION_LOGS]: uuid.uuid4().hex,
            OWNER_ATTRIBUTE: user_id,
            "createdAt": _utc_now(),
            "source": "daily",
            "itemCount": len(wardrobe),
            "recommendations": recommendations,
        })

    logger.info(f"Generated daily recommendations for user: {user_id}")
    return True


def send_daily_recommendations(services: Services) -> Dict[str, Any]:
    """
    Fan out the daily run across opted-in users on a bounded pool.

    With dispatch_fail_fast off, per-user failures are collected into the
    summary. With it on, the first failure is re-raised once every submitted
    task has finished.
    """
    config = services.config
    users = services.store.users_with_daily_recommendations()
    logger.info(f"Daily recommendations: {len(users)} opted-in users")

    processed = 0
    skipped = 0
    failed: List[Dict[str, str]] = []
    first_error = None

    if users:
        workers = min(config.dispatch_max_workers, len(users))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(_dispatch_for_user, services, user): user
                for user in users
            }
            for future in as_completed(futures):
                user_id = futures[future].get(KEY_ATTRIBUTES[Collection.USERS])
                try:
                    if future.result():
                        processed += 1
                    else:
                        skipped += 1
                except Exception as e:
                    logger.error(f"Daily recommendation failed for user {user_id}: {e}")
                    failed.append({"userId": user_id, "error": str(e)})
                    if first_error is None:
                        first_error = e

    if first_error is not None and config.dispatch_fail_fast:
        raise first_error

    logger.info(
        f"Daily recommendations sent: processed={processed}, "
        f"skipped={skipped}, failed={len(failed)}"
    )
    return {"processed": processed, "skipped": skipped, "failed": failed}
