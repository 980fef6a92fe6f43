"""
Wardrobe Functions
==================

Serverless handlers for a wardrobe styling app:
- Callable handlers forwarding images and requests to an LLM
- DynamoDB stream trigger maintaining per-user item statistics
- Account deletion cascade across the wardrobe tables
- Daily outfit recommendation run
"""

__version__ = "0.1.0"
