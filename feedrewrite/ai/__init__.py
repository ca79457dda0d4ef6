"""
FeedRewrite AI Module
=====================

OpenAI-compatible content conversion, applied on ingest or deferred to
background batches.
"""

from .client import ChatCompletionClient
from .converter import AI_PENDING_MARKER, AiConverterExtension

__all__ = ["ChatCompletionClient", "AI_PENDING_MARKER", "AiConverterExtension"]
