import json
from decimal import Decimal

IMAGE_ANALYSIS_SYSTEM_PROMPT = """You are a fashion expert AI. Analyze the clothing item in the image and provide:
1. Category (Tops, Bottoms, Dresses, Outerwear, Shoes, Accessories, Traditional)
2. Subcategory (e.g., T-Shirt, Jeans, etc.)
3. Dominant colors (list up to 3)
4. Pattern (Solid, Striped, Checkered, Floral, Polka Dots, Abstract, Printed)
5. Style tags (e.g., casual, formal, sporty)
6. Suitable occasions

Respond in JSON format."""

IMAGE_ANALYSIS_USER_TEXT = "Analyze this clothing item."

STYLIST_SYSTEM_PROMPT = "You are a friendly, expert fashion stylist."

STYLE_REQUEST_SYSTEM_PROMPT = """Extract structured information from this fashion request.
Identify: occasion, mood, weather conditions, time of day, specific preferences.
Respond in JSON format with keys: occasion, mood, weather, timeOfDay, preferences"""

CONTEXT_DEFAULTS = {
    "occasion": "any",
    "weather": "any",
    "temperature": "comfortable",
    "mood": "confident",
}


def _json_default(value):
    # DynamoDB hands numbers back as Decimal
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, set):
        return sorted(value, key=str)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def resolve_context(context):
    """Fill missing or empty context fields with their defaults."""
    context = context or {}
    return {
        key: context.get(key) or default
        for key, default in CONTEXT_DEFAULTS.items()
    }


def build_outfit_prompt(wardrobe_items, context):
    ctx = resolve_context(context)
    items_json = json.dumps(wardrobe_items, default=_json_default)

    return f"""As a professional fashion stylist, suggest outfit combinations from these wardrobe items:

Items: {items_json}

Context:
- Occasion: {ctx['occasion']}
- Weather: {ctx['weather']} ({ctx['temperature']}°C)
- Mood: {ctx['mood']}

Provide 3-5 outfit recommendations with explanations."""
