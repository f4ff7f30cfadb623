"""Chat platform access for the page pipeline."""

from .base import ChatGateway, GatewayError
from .static import StaticGateway, load_dump

__all__ = [
    "ChatGateway",
    "GatewayError",
    "StaticGateway",
    "load_dump",
]
