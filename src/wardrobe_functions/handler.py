"""
Lambda Entry Points
-------------------
Callable handlers (API Gateway + Cognito authorizer):
- analyze_clothing_image_handler           POST /analyze-image
- generate_outfit_recommendations_handler  POST /recommendations
- parse_style_request_handler              POST /parse-request

Event handlers:
- on_clothing_item_created_handler   DynamoDB stream on clothing_items
- on_user_deleted_handler            account deletion event
- send_daily_recommendations_handler EventBridge schedule, 07:00 America/New_York
"""

import base64
import json
from typing import Any, Callable, Dict, Optional

from boto3.dynamodb.types import TypeDeserializer

from . import callables, triggers
from .errors import ErrorKind, Result
from .services import Services, build_services
from .utils.logger import get_logger

logger = get_logger(__name__)

CORS_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type,Authorization",
}

# Built once per Lambda process
_services: Optional[Services] = None
_deserializer = TypeDeserializer()


def get_services() -> Services:
    global _services
    if _services is None:
        _services = build_services()
    return _services


def _response(status_code: int, body: dict) -> dict:
    """Build API Gateway response."""
    return {
        "statusCode": status_code,
        "headers": dict(CORS_HEADERS),
        "body": json.dumps(body),
    }


def to_response(result: Result) -> dict:
    """Convert a handler Result into an API Gateway response."""
    if result.ok:
        return _response(200, result.value)
    return _response(result.error.http_status, {"error": result.error.to_dict()})


def get_caller_id(event: dict) -> Optional[str]:
    """
    Extract the authenticated caller's id from the authorizer claims.

    REST APIs put claims at requestContext.authorizer.claims, HTTP APIs with
    a JWT authorizer at requestContext.authorizer.jwt.claims.
    """
    authorizer = (event.get("requestContext") or {}).get("authorizer") or {}
    claims = authorizer.get("claims") or (authorizer.get("jwt") or {}).get("claims") or {}
    return claims.get("sub") or None


def parse_body(event: dict) -> Dict[str, Any]:
    """
    Decode the JSON body. Accepts the bare payload or a {"data": {...}}
    callable envelope.

    Raises:
        ValueError: If the body is not a JSON object
    """
    raw = event.get("body")
    if not raw:
        return {}
    if event.get("isBase64Encoded"):
        raw = base64.b64decode(raw).decode("utf-8")

    try:
        body = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Request body is not valid JSON: {e}")

    if isinstance(body, dict) and isinstance(body.get("data"), dict):
        body = body["data"]
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return body


def _run_callable(body_fn: Callable[..., Result], event: dict) -> dict:
    caller_id = get_caller_id(event)
    try:
        data = parse_body(event)
    except ValueError as e:
        logger.warning(f"Rejected request body: {e}")
        return to_response(Result.failure(ErrorKind.INVALID_ARGUMENT, str(e)))
    return to_response(body_fn(get_services(), data, caller_id))


# =============================================================================
# CALLABLE HANDLERS
# =============================================================================

def analyze_clothing_image_handler(event: dict, context: Any) -> dict:
    """
    Analyze one clothing photo.

    Body:
        {"imageUrl": "https://..."}

    Returns:
        {"success": true, "analysis": {...}}
    """
    return _run_callable(callables.analyze_clothing_image, event)


def generate_outfit_recommendations_handler(event: dict, context: Any) -> dict:
    """
    Suggest outfits from the supplied wardrobe.

    Body:
        {
            "wardrobeItems": [...],
            "context": {"occasion": ..., "weather": ..., "temperature": ..., "mood": ...}
        }

    Returns:
        {"success": true, "recommendations": "..."}
    """
    return _run_callable(callables.generate_outfit_recommendations, event)


def parse_style_request_handler(event: dict, context: Any) -> dict:
    """
    Extract occasion, mood, weather, timeOfDay and preferences from free text.

    Body:
        {"userPrompt": "..."}

    Returns:
        {"success": true, "context": {...}}
    """
    return _run_callable(callables.parse_style_request, event)


# =============================================================================
# EVENT HANDLERS
# =============================================================================

def _new_image(record: dict) -> Dict[str, Any]:
    image = record["dynamodb"]["NewImage"]
    return {name: _deserializer.deserialize(value) for name, value in image.items()}


def on_clothing_item_created_handler(event: dict, context: Any) -> dict:
    """
    DynamoDB stream handler; each INSERT record is one new clothing item.

    Requires ReportBatchItemFailures on the event source mapping. Processing
    stops at the first failing record, and that record plus everything after
    it is reported back, so Lambda retries from there and never re-applies
    an increment that already succeeded.

    Returns:
        {"batchItemFailures": [{"itemIdentifier": "<SequenceNumber>"}, ...]}
    """
    services = get_services()
    records = event.get("Records", [])
    logger.info(f"Clothing item stream batch: {len(records)} records")

    for index, record in enumerate(records):
        if record.get("eventName") != "INSERT":
            continue
        try:
            triggers.on_clothing_item_created(services, _new_image(record))
        except Exception as e:
            logger.error(
                f"Item stats update failed at sequence "
                f"{record['dynamodb'].get('SequenceNumber')}: {e}"
            )
            return {
                "batchItemFailures": [
                    {"itemIdentifier": remaining["dynamodb"]["SequenceNumber"]}
                    for remaining in records[index:]
                ]
            }
    return {"batchItemFailures": []}


def get_deleted_user_id(event: dict) -> str:
    """Read the user id from an EventBridge detail or a direct payload."""
    detail = event.get("detail") or {}
    user_id = detail.get("userId") or event.get("userId") or event.get("uid")
    if not user_id:
        raise ValueError("Account deletion event has no userId")
    return user_id


def on_user_deleted_handler(event: dict, context: Any) -> None:
    user_id = get_deleted_user_id(event)
    logger.info(f"Account deletion for user: {user_id}")
    triggers.on_user_deleted(get_services(), user_id)
    return None


def send_daily_recommendations_handler(event: dict, context: Any) -> dict:
    """Scheduled run; the event payload is ignored."""
    return triggers.send_daily_recommendations(get_services())
