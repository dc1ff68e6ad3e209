# extraction/__init__.py
from .cache import ExtractionCache
from .client import AnthropicClient, Extraction, ExtractionError
from .enricher import DescriptionEnricher

__all__ = [
    "AnthropicClient",
    "DescriptionEnricher",
    "Extraction",
    "ExtractionCache",
    "ExtractionError",
]
