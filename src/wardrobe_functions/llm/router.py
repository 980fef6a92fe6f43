"""
LLM Router
----------
Routes chat requests to the provider selected in configuration.
"""

import threading
from typing import Optional

from ..config import AppConfig, LLMProvider
from ..utils.logger import get_logger
from .bedrock_client import BedrockChat
from .openai_client import OpenAIChat

logger = get_logger(__name__)


class LLMRouter:
    """
    Routes chat requests to the configured provider.

    Routing Logic:
    - LLM_PROVIDER=bedrock → Amazon Bedrock (Converse)
    - LLM_PROVIDER=openai  → OpenAI chat completions
    """

    def __init__(self, config: AppConfig):
        self.config = config
        self._bedrock: Optional[BedrockChat] = None
        self._openai: Optional[OpenAIChat] = None
        self._lock = threading.Lock()

    @property
    def bedrock(self) -> BedrockChat:
        """Lazy initialization of Bedrock client."""
        if self._bedrock is None:
            with self._lock:
                if self._bedrock is None:
                    self._bedrock = BedrockChat(self.config.aws_region, self.config.http_timeout)
        return self._bedrock

    @property
    def openai_chat(self) -> OpenAIChat:
        """Lazy initialization of OpenAI client."""
        if self._openai is None:
            with self._lock:
                if self._openai is None:
                    self._openai = OpenAIChat(self.config.openai_api_key, self.config.http_timeout)
        return self._openai

    def provider_client(self):
        """Client for the configured provider."""
        provider = self.config.llm_provider
        if provider == LLMProvider.BEDROCK:
            return self.bedrock
        if provider == LLMProvider.OPENAI:
            return self.openai_chat
        raise ValueError(f"Unknown LLM provider: {provider}")

    def warm(self) -> None:
        """Build the configured provider client and its boto3 client up front."""
        client = self.provider_client()
        if isinstance(client, BedrockChat):
            _ = client.client

    def chat(
        self,
        system: str,
        user_text: str,
        model: str,
        image_url: Optional[str] = None,
        max_tokens: int = 1024,
        temperature: Optional[float] = None,
    ) -> str:
        provider = self.config.llm_provider

        logger.info(f"LLM routing: provider={provider.value}, model={model}")

        client = self.provider_client()

        return client.chat(
            system,
            user_text,
            model,
            image_url=image_url,
            max_tokens=max_tokens,
            temperature=temperature,
        )
