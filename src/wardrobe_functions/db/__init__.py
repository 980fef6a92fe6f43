# DynamoDB persistence
from .wardrobe_store import WardrobeStore

__all__ = ["WardrobeStore"]
