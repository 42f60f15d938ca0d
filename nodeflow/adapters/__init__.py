"""
Adapters Module

Clients and interfaces for services outside the graph engine.
"""

from .collaborators import (
    IdentityProvider,
    InMemoryRecordStore,
    RecordNotFound,
    RecordStore,
    StaticIdentityProvider,
)
from .providers import (
    DEFAULT_SYSTEM_PROMPT,
    CompletionOptions,
    HttpTextProvider,
    StaticTextProvider,
    TextProvider,
)

__all__ = [
    "IdentityProvider",
    "InMemoryRecordStore",
    "RecordNotFound",
    "RecordStore",
    "StaticIdentityProvider",
    "DEFAULT_SYSTEM_PROMPT",
    "CompletionOptions",
    "HttpTextProvider",
    "StaticTextProvider",
    "TextProvider",
]
