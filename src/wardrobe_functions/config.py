"""
Function Configuration
----------------------
Environment-driven settings shared by every handler.
"""

import os
from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, Optional


class LLMProvider(Enum):
    """Chat completion providers."""
    BEDROCK = "bedrock"   # Amazon Bedrock Converse API
    OPENAI = "openai"     # OpenAI chat completions


class Collection(Enum):
    """Document collections, one DynamoDB table each."""
    USERS = "users"
    CLOTHING_ITEMS = "clothing_items"
    OUTFITS = "outfits"
    RECOMMENDATION_LOGS = "recommendation_logs"


# Primary key attribute of each collection
KEY_ATTRIBUTES = {
    Collection.USERS: "userId",
    Collection.CLOTHING_ITEMS: "itemId",
    Collection.OUTFITS: "outfitId",
    Collection.RECOMMENDATION_LOGS: "logId",
}

# Collections whose records are owned by a user via "userId"
OWNED_COLLECTIONS = (
    Collection.CLOTHING_ITEMS,
    Collection.OUTFITS,
    Collection.RECOMMENDATION_LOGS,
)

OWNER_ATTRIBUTE = "userId"

# EventBridge Scheduler expression for the daily dispatch (07:00 local time)
DAILY_SCHEDULE = "cron(0 7 * * ? *)"
DAILY_TIMEZONE = "America/New_York"

DEFAULT_MODEL = "anthropic.claude-3-haiku-20240307-v1:0"

DEFAULT_MODELS = {
    LLMProvider.BEDROCK: DEFAULT_MODEL,
    LLMProvider.OPENAI: "gpt-4o-mini",
}

# DynamoDB caps a single TransactWriteItems call at 100 actions
MAX_TRANSACTION_ITEMS = 100

# Daily dispatch looks at no more than this many items per user
DAILY_WARDROBE_LIMIT = 50


def _env_bool(env, name: str, default: bool) -> bool:
    value = env.get(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class AppConfig:
    """Settings for one Lambda process."""

    # AWS Settings
    aws_region: str = "us-east-1"

    # LLM Settings
    llm_provider: LLMProvider = LLMProvider.BEDROCK
    vision_model: str = DEFAULT_MODEL
    text_model: str = DEFAULT_MODEL
    openai_api_key: str = ""
    http_timeout: int = 30

    # DynamoDB Settings
    table_names: Dict[Collection, str] = field(
        default_factory=lambda: {c: c.value for c in Collection}
    )
    owner_index: str = "userId-index"

    # Daily dispatch
    daily_generation_enabled: bool = True
    dispatch_max_workers: int = 8
    dispatch_fail_fast: bool = False

    def table_name(self, collection: Collection) -> str:
        return self.table_names[collection]

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "AppConfig":
        """Build a config from environment variables."""
        env = os.environ if environ is None else environ

        def get(key: str, default: str) -> str:
            value = env.get(key)
            return value if value else default

        provider_name = get("LLM_PROVIDER", LLMProvider.BEDROCK.value).lower()
        try:
            provider = LLMProvider(provider_name)
        except ValueError:
            raise ValueError(f"Unknown LLM provider: {provider_name}")

        table_names = {
            Collection.USERS: get("USERS_TABLE", Collection.USERS.value),
            Collection.CLOTHING_ITEMS: get("CLOTHING_ITEMS_TABLE", Collection.CLOTHING_ITEMS.value),
            Collection.OUTFITS: get("OUTFITS_TABLE", Collection.OUTFITS.value),
            Collection.RECOMMENDATION_LOGS: get(
                "RECOMMENDATION_LOGS_TABLE", Collection.RECOMMENDATION_LOGS.value
            ),
        }

        generation_enabled = _env_bool(env, "DAILY_GENERATION_ENABLED", True)
        fail_fast = _env_bool(env, "DISPATCH_FAIL_FAST", False)

        return cls(
            aws_region=get("AWS_REGION", "us-east-1"),
            llm_provider=provider,
            vision_model=get("VISION_MODEL", DEFAULT_MODELS[provider]),
            text_model=get("TEXT_MODEL", DEFAULT_MODELS[provider]),
            openai_api_key=get("OPENAI_API_KEY", ""),
            http_timeout=int(get("HTTP_TIMEOUT", "30")),
            table_names=table_names,
            owner_index=get("OWNER_INDEX", "userId-index"),
            daily_generation_enabled=generation_enabled,
            dispatch_max_workers=max(1, int(get("DISPATCH_MAX_WORKERS", "8"))),
            dispatch_fail_fast=fail_fast,
        )
