"""
Amazon Bedrock Chat Client
--------------------------
Chat completions through the Bedrock Converse API. Images referenced by URL
are downloaded and sent inline, since Converse only accepts image bytes.
"""

import threading
import urllib.request
import urllib.parse
from typing import Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import LLMError
from ..utils.logger import get_logger

logger = get_logger(__name__)

SUPPORTED_IMAGE_FORMATS = ("png", "jpeg", "gif", "webp")

# Only remote images; file:, ftp: and friends would expose the Lambda host
ALLOWED_IMAGE_SCHEMES = ("http", "https")


def _image_format(content_type: Optional[str], url: str) -> str:
    """Work out the Converse image format from the response or URL."""
    if content_type and content_type.startswith("image/"):
        subtype = content_type.split("/", 1)[1].split(";", 1)[0].strip().lower()
        if subtype == "jpg":
            subtype = "jpeg"
        if subtype in SUPPORTED_IMAGE_FORMATS:
            return subtype

    path = urllib.parse.urlparse(url).path.lower()
    extension = path.rsplit(".", 1)[-1] if "." in path else ""
    if extension == "jpg":
        extension = "jpeg"
    if extension in SUPPORTED_IMAGE_FORMATS:
        return extension
    return "jpeg"


def validate_image_url(url: str) -> None:
    """Raise LLMError unless url is an http(s) URL with a host."""
    parsed = urllib.parse.urlparse(url)
    if parsed.scheme.lower() not in ALLOWED_IMAGE_SCHEMES or not parsed.netloc:
        logger.warning(f"Refused image URL with scheme: {parsed.scheme!r}")
        raise LLMError("Image URL must be an http or https URL")


def download_image(url: str, timeout: int = 30) -> Tuple[bytes, str]:
    """
    Fetch an image for inline submission.

    Returns:
        Tuple of (image_bytes, format)

    Raises:
        LLMError: If the URL is not an http(s) URL with a host
    """
    validate_image_url(url)

    request = urllib.request.Request(url, headers={"User-Agent": "wardrobe-functions/0.1"})
    with urllib.request.urlopen(request, timeout=timeout) as response:
        image_bytes = response.read()
        content_type = response.headers.get("Content-Type")

    if not image_bytes:
        raise LLMError(f"Image at {url} was empty")

    image_format = _image_format(content_type, url)
    logger.info(f"Downloaded image: {len(image_bytes)} bytes, format={image_format}")
    return image_bytes, image_format


class BedrockChat:
    """Bedrock Converse wrapper for system + user turn requests."""

    def __init__(self, region: str, timeout: int = 30, client=None):
        self.region = region
        self.timeout = timeout
        self._client = client
        self._lock = threading.Lock()

    @property
    def client(self):
        """Lazy initialization of the bedrock-runtime client (thread-safe)."""
        if self._client is None:
            with self._lock:
                if self._client is None:
                    logger.info(f"Initializing Bedrock client in region: {self.region}")
                    self._client = boto3.client("bedrock-runtime", region_name=self.region)
        return self._client

    def chat(
        self,
        system: str,
        user_text: str,
        model: str,
        image_url: Optional[str] = None,
        max_tokens: int = 1024,
        temperature: Optional[float] = None,
    ) -> str:
        """
        Send one system turn and one user turn, return the reply text.

        Args:
            system: System instruction
            user_text: User turn text
            model: Bedrock model id
            image_url: Optional image to include in the user turn
            max_tokens: Completion token limit
            temperature: Sampling temperature (provider default when None)

        Returns:
            Text of the first content block of the reply
        """
        content = []
        if image_url:
            image_bytes, image_format = download_image(image_url, self.timeout)
            content.append({
                "image": {"format": image_format, "source": {"bytes": image_bytes}}
            })
        content.append({"text": user_text})

        inference_config = {"maxTokens": max_tokens}
        if temperature is not None:
            inference_config["temperature"] = temperature

        logger.info(f"Calling Bedrock model: {model}")

        try:
            response = self.client.converse(
                modelId=model,
                system=[{"text": system}],
                messages=[{"role": "user", "content": content}],
                inferenceConfig=inference_config,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Bedrock LLM error: {e}")
            raise LLMError(f"Bedrock error: {e}")

        return response["output"]["message"]["content"][0]["text"]
