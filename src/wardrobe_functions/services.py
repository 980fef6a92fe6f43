"""
Process-wide service container.

Built once per Lambda process and passed to every handler body, so each
handler's collaborators are visible in its signature.
"""

from dataclasses import dataclass
from typing import Optional

from .config import AppConfig
from .db.wardrobe_store import WardrobeStore
from .llm.router import LLMRouter
from .utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Services:
    config: AppConfig
    llm: LLMRouter
    store: WardrobeStore


def build_services(config: Optional[AppConfig] = None) -> Services:
    """Construct the clients once from configuration."""
    config = config or AppConfig.from_env()
    logger.info(
        f"Initializing services: region={config.aws_region}, "
        f"llm_provider={config.llm_provider.value}"
    )
    llm = LLMRouter(config)
    store = WardrobeStore(config)
    # Clients exist before any handler fans work out to threads
    llm.warm()
    store.warm()
    return Services(config=config, llm=llm, store=store)
