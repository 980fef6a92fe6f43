"""
Callable Handlers
-----------------
Request/response bodies invoked by authenticated clients:
- analyze_clothing_image: vision analysis of one clothing photo
- generate_outfit_recommendations: free-text outfit suggestions
- parse_style_request: structured context from a natural-language request

Each body returns a Result; none of them raise.
"""

import json
from typing import Any, Dict, List, Optional

from .errors import ErrorKind, Result
from .llm.prompts import (
    IMAGE_ANALYSIS_SYSTEM_PROMPT,
    IMAGE_ANALYSIS_USER_TEXT,
    STYLE_REQUEST_SYSTEM_PROMPT,
    STYLIST_SYSTEM_PROMPT,
    build_outfit_prompt,
)
from .services import Services
from .utils.logger import get_logger

logger = get_logger(__name__)

IMAGE_ANALYSIS_MAX_TOKENS = 500
RECOMMENDATION_MAX_TOKENS = 1000
RECOMMENDATION_TEMPERATURE = 0.7
STYLE_REQUEST_MAX_TOKENS = 200


def generate_recommendation_text(
    services: Services,
    wardrobe_items: List[Dict[str, Any]],
    context: Optional[Dict[str, Any]] = None,
) -> str:
    """Ask the stylist model for 3-5 outfits. Raises on provider failure."""
    prompt = build_outfit_prompt(wardrobe_items, context)
    return services.llm.chat(
        STYLIST_SYSTEM_PROMPT,
        prompt,
        services.config.text_model,
        max_tokens=RECOMMENDATION_MAX_TOKENS,
        temperature=RECOMMENDATION_TEMPERATURE,
    )


def analyze_clothing_image(
    services: Services,
    data: Dict[str, Any],
    caller_id: Optional[str],
) -> Result:
    if not caller_id:
        return Result.failure(
            ErrorKind.UNAUTHENTICATED,
            "User must be authenticated to analyze images.",
        )

    image_url = data.get("imageUrl")
    if not image_url:
        return Result.failure(ErrorKind.INVALID_ARGUMENT, "Image URL is required.")

    logger.info(f"Analyzing clothing image for user={caller_id}")

    try:
        analysis_text = services.llm.chat(
            IMAGE_ANALYSIS_SYSTEM_PROMPT,
            IMAGE_ANALYSIS_USER_TEXT,
            services.config.vision_model,
            image_url=image_url,
            max_tokens=IMAGE_ANALYSIS_MAX_TOKENS,
        )
        analysis = json.loads(analysis_text)
    except Exception as e:
        logger.error(f"Error analyzing image: {e}")
        return Result.failure(ErrorKind.INTERNAL, "Failed to analyze image", str(e))

    return Result.success({"success": True, "analysis": analysis})


def generate_outfit_recommendations(
    services: Services,
    data: Dict[str, Any],
    caller_id: Optional[str],
) -> Result:
    if not caller_id:
        return Result.failure(ErrorKind.UNAUTHENTICATED, "User must be authenticated.")

    wardrobe_items = data.get("wardrobeItems")
    request_context = data.get("context") or {}

    logger.info(f"Generating outfit recommendations for user={caller_id}")

    try:
        recommendations = generate_recommendation_text(services, wardrobe_items, request_context)
    except Exception as e:
        logger.error(f"Error generating recommendations: {e}")
        return Result.failure(
            ErrorKind.INTERNAL, "Failed to generate recommendations", str(e)
        )

    return Result.success({"success": True, "recommendations": recommendations})


def parse_style_request(
    services: Services,
    data: Dict[str, Any],
    caller_id: Optional[str],
) -> Result:
    if not caller_id:
        return Result.failure(ErrorKind.UNAUTHENTICATED, "User must be authenticated.")

    user_prompt = data.get("userPrompt")

    logger.info(f"Parsing style request for user={caller_id}")

    try:
        response_text = services.llm.chat(
            STYLE_REQUEST_SYSTEM_PROMPT,
            user_prompt,
            services.config.text_model,
            max_tokens=STYLE_REQUEST_MAX_TOKENS,
        )
        parsed_context = json.loads(response_text)
    except Exception as e:
        logger.error(f"Error parsing request: {e}")
        return Result.failure(ErrorKind.INTERNAL, "Failed to parse request", str(e))

    return Result.success({"success": True, "context": parsed_context})
