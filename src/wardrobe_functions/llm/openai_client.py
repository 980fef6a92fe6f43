"""
OpenAI Chat Client
------------------
Chat completions through the OpenAI REST API. Image URLs are passed through
as-is; OpenAI fetches them itself.
"""

import json
import urllib.request
import urllib.error
from typing import Optional

from ..errors import LLMError
from .bedrock_client import validate_image_url
from ..utils.logger import get_logger

logger = get_logger(__name__)


class OpenAIChat:
    """OpenAI chat completions wrapper."""

    CHAT_API_URL = "https://api.openai.com/v1/chat/completions"

    def __init__(self, api_key: str, timeout: int = 30):
        self.api_key = api_key
        self.timeout = timeout

        if not self.api_key:
            logger.warning("OpenAI API key not configured")

    def chat(
        self,
        system: str,
        user_text: str,
        model: str,
        image_url: Optional[str] = None,
        max_tokens: int = 1024,
        temperature: Optional[float] = None,
    ) -> str:
        if not self.api_key:
            raise LLMError("OpenAI API key not configured")

        if image_url:
            validate_image_url(image_url)
            user_content = [
                {"type": "image_url", "image_url": {"url": image_url}},
                {"type": "text", "text": user_text},
            ]
        else:
            user_content = user_text

        body = {
            "model": model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user_content},
            ],
            "max_tokens": max_tokens,
        }
        if temperature is not None:
            body["temperature"] = temperature

        logger.info(f"Calling OpenAI model: {model}")

        request = urllib.request.Request(
            self.CHAT_API_URL,
            data=json.dumps(body).encode("utf-8"),
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )

        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                result = json.loads(response.read().decode("utf-8"))
        except urllib.error.HTTPError as e:
            error_body = e.read().decode("utf-8")
            logger.error(f"OpenAI chat error: {e.code} - {error_body}")
            raise LLMError(f"OpenAI error: {e.code}", status_code=e.code)
        except urllib.error.URLError as e:
            logger.error(f"OpenAI network error: {e}")
            raise LLMError(f"OpenAI network error: {e.reason}")

        return result["choices"][0]["message"]["content"]
