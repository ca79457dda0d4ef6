"""
FeedRewrite Extensions
======================

``entry_before_insert`` plugins that fix up common embed problems and
entry metadata. Each plugin is switched on per feed.
"""

from .base import Extension
from .youtube import FixYoutubeEmbeddingExtension
from .x_embed import FixXEmbeddingExtension
from .inline_images import InlineImagesExtension
from .update_pub_date import UpdatePubDateNowExtension

__all__ = [
    "Extension",
    "FixYoutubeEmbeddingExtension",
    "FixXEmbeddingExtension",
    "InlineImagesExtension",
    "UpdatePubDateNowExtension",
]
