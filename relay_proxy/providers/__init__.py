"""Upstream provider adapters, one per relay route family."""

from .myqa import MyQAProvider
from .openrouter import OpenRouterProvider
from .perplexity import PerplexityProvider
from .search import SearchProvider

__all__ = ["MyQAProvider", "OpenRouterProvider", "PerplexityProvider", "SearchProvider"]
