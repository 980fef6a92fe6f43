# LLM (chat completion) providers
from .bedrock_client import BedrockChat
from .openai_client import OpenAIChat
from .router import LLMRouter

__all__ = ["BedrockChat", "OpenAIChat", "LLMRouter"]
