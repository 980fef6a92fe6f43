"""
Shared fixtures: a config, mocked LLM, and an in-memory stand-in for the
DynamoDB store so trigger behavior can be checked end to end.
"""

import copy
import os
import sys
from unittest.mock import MagicMock

import pytest

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from wardrobe_functions.config import AppConfig, Collection, KEY_ATTRIBUTES, OWNER_ATTRIBUTE
from wardrobe_functions.services import Services


class InMemoryStore:
    """Dict-backed store with the same surface as WardrobeStore."""

    def __init__(self):
        self.tables = {collection: {} for collection in Collection}
        self.transactions = []
        self.owner_queries = []
        self.logs_written = []

    def add(self, collection, item):
        key = item[KEY_ATTRIBUTES[collection]]
        self.tables[collection][key] = copy.deepcopy(item)

    def get(self, collection, key):
        return self.tables[collection].get(key)

    def record_ref(self, collection, item):
        key_attr = KEY_ATTRIBUTES[collection]
        return collection, {key_attr: item[key_attr]}

    def find_owned(self, collection, user_id, limit=None):
        self.owner_queries.append((collection, user_id, limit))
        items = [
            copy.deepcopy(item)
            for item in self.tables[collection].values()
            if item.get(OWNER_ATTRIBUTE) == user_id
        ]
        return items[:limit] if limit is not None else items

    def increment_item_count(self, user_id, timestamp):
        user = self.tables[Collection.USERS].get(user_id)
        if user is None:
            raise KeyError(f"user {user_id} does not exist")
        stats = user.setdefault("stats", {})
        stats["totalItems"] = stats.get("totalItems", 0) + 1
        stats["lastItemAdded"] = timestamp

    def users_with_daily_recommendations(self):
        return [
            copy.deepcopy(user)
            for user in self.tables[Collection.USERS].values()
            if user.get("notifications", {}).get("dailyRecommendations") is True
        ]

    def put_recommendation_log(self, log):
        self.logs_written.append(log)
        self.add(Collection.RECOMMENDATION_LOGS, log)

    def delete_atomically(self, refs):
        self.transactions.append(list(refs))
        for collection, key in refs:
            key_value = key[KEY_ATTRIBUTES[collection]]
            self.tables[collection].pop(key_value, None)
        return len(refs)


@pytest.fixture
def config():
    return AppConfig()


@pytest.fixture
def mock_llm():
    return MagicMock()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def services(config, mock_llm, store):
    return Services(config=config, llm=mock_llm, store=store)
