"""
Plugin Registry
===============

Builds the full set of plugins for one user and wires them into a
``HookManager`` in the order the host runs them.
"""

from typing import Dict, List, Optional, Type

from .ai.converter import AiConverterExtension
from .config.settings import FeedRewriteSettings
from .extensions import (
    Extension,
    FixXEmbeddingExtension,
    FixYoutubeEmbeddingExtension,
    InlineImagesExtension,
    UpdatePubDateNowExtension,
)
from .hooks import HookManager
from .host.models import UserConfiguration
from .replacer.extension import ReplacerExtension


# Call order. InlineImages must follow the embed fixes that add <img> tags.
PLUGIN_CLASSES: List[Type[Extension]] = [
    ReplacerExtension,
    FixYoutubeEmbeddingExtension,
    FixXEmbeddingExtension,
    InlineImagesExtension,
    UpdatePubDateNowExtension,
    AiConverterExtension,
]

PLUGINS_BY_KEY: Dict[str, Type[Extension]] = {cls.config_key: cls for cls in PLUGIN_CLASSES}


def build_extensions(
    user_config: UserConfiguration,
    settings: Optional[FeedRewriteSettings] = None,
    only: Optional[List[str]] = None,
) -> List[Extension]:
    """Instantiate plugins for a user.

    Args:
        user_config: The user's configuration store
        settings: Process settings (default: global settings)
        only: Configuration keys of the plugins to build (default: all)

    Raises:
        KeyError: If ``only`` names an unknown plugin
    """
    classes = PLUGIN_CLASSES if only is None else [PLUGINS_BY_KEY[key] for key in only]
    return [cls(user_config, settings) for cls in classes]


def register_extensions(hooks: HookManager, extensions: List[Extension]) -> HookManager:
    """Register each plugin's ``entry_before_insert`` callback."""
    for extension in extensions:
        extension.register(hooks)
    return hooks
