"""
Unit tests for trigger and timer bodies, run against the in-memory store.
"""

from datetime import datetime, timezone

import pytest

from wardrobe_functions.config import AppConfig, Collection
from wardrobe_functions.services import Services
from wardrobe_functions.triggers import (
    on_clothing_item_created,
    on_user_deleted,
    send_daily_recommendations,
)


def _seed_user(store, user_id, items=0, outfits=0, logs=0, daily=False):
    store.add(Collection.USERS, {
        "userId": user_id,
        "stats": {"totalItems": items, "lastItemAdded": "2020-01-01T00:00:00+00:00"},
        "notifications": {"dailyRecommendations": daily},
    })
    for i in range(items):
        store.add(Collection.CLOTHING_ITEMS, {
            "itemId": f"{user_id}-item-{i}", "userId": user_id, "category": "Tops",
        })
    for i in range(outfits):
        store.add(Collection.OUTFITS, {"outfitId": f"{user_id}-outfit-{i}", "userId": user_id})
    for i in range(logs):
        store.add(Collection.RECOMMENDATION_LOGS, {"logId": f"{user_id}-log-{i}", "userId": user_id})


class TestOnClothingItemCreated:
    """Tests for the item statistics trigger."""

    def test_increments_counter_by_one(self, services, store):
        _seed_user(store, "u1", items=2)
        before = store.get(Collection.USERS, "u1")["stats"]["lastItemAdded"]

        on_clothing_item_created(services, {"itemId": "new", "userId": "u1"})

        stats = store.get(Collection.USERS, "u1")["stats"]
        assert stats["totalItems"] == 3
        assert stats["lastItemAdded"] >= before
        # ISO-8601 UTC timestamp
        assert datetime.fromisoformat(stats["lastItemAdded"]).tzinfo == timezone.utc

    def test_missing_user_propagates(self, services):
        """The store error is not swallowed."""
        with pytest.raises(KeyError):
            on_clothing_item_created(services, {"itemId": "new", "userId": "ghost"})


class TestOnUserDeleted:
    """Tests for the account deletion cascade."""

    def test_deletes_everything_in_one_transaction(self, services, store):
        """N items + M outfits + K logs + the user, committed once."""
        _seed_user(store, "u1", items=4, outfits=2, logs=3)
        _seed_user(store, "u2", items=1, outfits=1, logs=1)

        deleted = on_user_deleted(services, "u1")

        assert deleted == 4 + 2 + 3 + 1
        assert len(store.transactions) == 1
        assert len(store.transactions[0]) == 10
        assert store.get(Collection.USERS, "u1") is None
        for collection in (Collection.CLOTHING_ITEMS, Collection.OUTFITS, Collection.RECOMMENDATION_LOGS):
            assert store.find_owned(collection, "u1") == []
            assert len(store.find_owned(collection, "u2")) == 1
        assert store.get(Collection.USERS, "u2") is not None

    def test_owner_lookups_are_unbounded(self, services, store):
        _seed_user(store, "u1", items=1)

        on_user_deleted(services, "u1")

        assert all(limit is None for _, _, limit in store.owner_queries)

    def test_repeat_deletion_is_a_no_op(self, services, store):
        """Deleting an already-deleted user does not error."""
        _seed_user(store, "u1", items=2)
        on_user_deleted(services, "u1")

        deleted = on_user_deleted(services, "u1")

        assert deleted == 1
        assert len(store.transactions) == 2


class TestSendDailyRecommendations:
    """Tests for the daily dispatch timer."""

    def test_only_opted_in_users_are_queried(self, services, store, mock_llm):
        mock_llm.chat.return_value = "Outfit ideas"
        _seed_user(store, "opted-in", items=3, daily=True)
        _seed_user(store, "opted-out", items=3, daily=False)

        summary = send_daily_recommendations(services)

        queried = {user_id for _, user_id, _ in store.owner_queries}
        assert queried == {"opted-in"}
        assert summary["processed"] == 1

    def test_wardrobe_lookup_is_capped_at_fifty(self, services, store, mock_llm):
        mock_llm.chat.return_value = "Outfit ideas"
        _seed_user(store, "u1", items=60, daily=True)

        send_daily_recommendations(services)

        assert store.owner_queries == [(Collection.CLOTHING_ITEMS, "u1", 50)]
        prompt = mock_llm.chat.call_args[0][1]
        assert "u1-item-49" in prompt
        assert "u1-item-55" not in prompt

    def test_empty_wardrobe_is_skipped(self, services, store, mock_llm):
        """Opted-in users with no items produce no further action."""
        _seed_user(store, "u1", items=0, daily=True)

        summary = send_daily_recommendations(services)

        assert summary == {"processed": 0, "skipped": 1, "failed": []}
        mock_llm.chat.assert_not_called()
        assert store.logs_written == []

    def test_generates_and_logs_recommendations(self, services, store, mock_llm):
        mock_llm.chat.return_value = "Wear the navy blazer"
        _seed_user(store, "u1", items=2, daily=True)

        send_daily_recommendations(services)

        assert len(store.logs_written) == 1
        log = store.logs_written[0]
        assert log["userId"] == "u1"
        assert log["source"] == "daily"
        assert log["recommendations"] == "Wear the navy blazer"
        assert "- Occasion: any" in mock_llm.chat.call_args[0][1]

    def test_generation_disabled_only_looks_up(self, mock_llm, store):
        services = Services(
            config=AppConfig(daily_generation_enabled=False), llm=mock_llm, store=store
        )
        _seed_user(store, "u1", items=2, daily=True)

        summary = send_daily_recommendations(services)

        assert summary["processed"] == 1
        mock_llm.chat.assert_not_called()
        assert store.logs_written == []

    def test_failures_are_collected(self, services, store, mock_llm):
        """One user's failure does not stop the others by default."""
        def chat(system, prompt, model, **kwargs):
            if "bad-item" in prompt:
                raise RuntimeError("model unavailable")
            return "ok"

        mock_llm.chat.side_effect = chat
        _seed_user(store, "good", items=1, daily=True)
        store.add(Collection.USERS, {"userId": "bad", "notifications": {"dailyRecommendations": True}})
        store.add(Collection.CLOTHING_ITEMS, {"itemId": "bad-item", "userId": "bad"})

        summary = send_daily_recommendations(services)

        assert summary["processed"] == 1
        assert summary["failed"] == [{"userId": "bad", "error": "model unavailable"}]

    def test_fail_fast_reraises(self, mock_llm, store):
        services = Services(
            config=AppConfig(dispatch_fail_fast=True), llm=mock_llm, store=store
        )
        mock_llm.chat.side_effect = RuntimeError("model unavailable")
        _seed_user(store, "u1", items=1, daily=True)

        with pytest.raises(RuntimeError, match="model unavailable"):
            send_daily_recommendations(services)

    def test_no_opted_in_users(self, services):
        assert send_daily_recommendations(services) == {"processed": 0, "skipped": 0, "failed": []}
