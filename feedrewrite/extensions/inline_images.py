"""
InlineImages Extension
======================

Downloads the images referenced by an entry and embeds them as base64
``data:`` URIs, so reading the entry later makes no external requests.
"""

import base64
import io
import re
from typing import Any, Dict, Mapping, Optional

import requests
from PIL import Image, UnidentifiedImageError

from .base import Extension
from ..config.settings import FeedRewriteSettings
from ..host.forms import parse_enabled_feeds
from ..host.models import HostEntry, UserConfiguration
from ..utils.exceptions import ErrorCode, FetchError
from ..utils.http import build_session
from ..utils.validators import URLValidator


IMG_TAG_PATTERN = re.compile(
    r"""<img\s+([^>]*\s+)?src=["']([^"']+)["']([^>]*)>""",
    re.IGNORECASE,
)

_SVG_SNIFF_BYTES = 1024


def detect_mime_type(data: bytes, content_type: Optional[str] = None,
                     default: str = "image/jpeg") -> str:
    """Work out an image's MIME type from its bytes.

    Pillow identifies raster formats from the header. SVG is text, so it is
    sniffed separately. The server's ``Content-Type`` is only trusted when
    the bytes say nothing.
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            mime = Image.MIME.get(image.format or "")
        if mime:
            return mime
    except (UnidentifiedImageError, OSError, ValueError):
        pass

    head = data[:_SVG_SNIFF_BYTES].lstrip().lower()
    if head.startswith(b"<svg") or (head.startswith(b"<?xml") and b"<svg" in head):
        return "image/svg+xml"

    if content_type:
        mime = content_type.split(";", 1)[0].strip().lower()
        if mime.startswith("image/"):
            return mime

    return default


class InlineImagesExtension(Extension):
    """Rewrites ``<img src>`` URLs of enabled feeds to data URIs."""

    name = "InlineImages"
    config_key = "inline_images"

    def __init__(
        self,
        user_config: UserConfiguration,
        settings: Optional[FeedRewriteSettings] = None,
        session: Optional[requests.Session] = None,
    ):
        super().__init__(user_config, settings)
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = build_session(
                self.settings, user_agent=self.settings.inline_images.user_agent
            )
        return self._session

    def process_entry(self, entry: HostEntry) -> HostEntry:
        if not self.is_feed_enabled(entry.feed_id):
            return entry

        content = entry.content
        if not content:
            return entry

        new_content = self.process_image_tags(content)
        if new_content != content:
            entry.content = new_content
            self.logger.info(f"Processed images for entry: {entry.title}")
        return entry

    def process_image_tags(self, content: str) -> str:
        """Inline every image tag that can be downloaded.

        Each distinct URL is fetched once; tags whose image fails are left
        exactly as they were.
        """
        cache: Dict[str, Optional[str]] = {}

        def replace(match: "re.Match[str]") -> str:
            before_src = match.group(1) or ""
            image_url = match.group(2)
            after_src = match.group(3) or ""

            if image_url not in cache:
                cache[image_url] = self.download_as_data_uri(image_url)
            data_uri = cache[image_url]

            if data_uri is None:
                return match.group(0)
            return f'<img {before_src}src="{data_uri}"{after_src}>'

        return IMG_TAG_PATTERN.sub(replace, content)

    def download_as_data_uri(self, url: str) -> Optional[str]:
        """Fetch an image and return it as a ``data:`` URI, or None on failure."""
        if URLValidator.is_data_url(url):
            return None
        if not URLValidator.is_http_url(url):
            self.logger.warning(f"Invalid URL: {url}")
            return None

        try:
            data, content_type = self.download(url)
        except FetchError as e:
            self.logger.warning(str(e), extra=e.to_dict())
            return None
        except requests.RequestException as e:
            self.logger.warning(f"Failed to download image: {url}: {e}")
            return None

        mime = detect_mime_type(
            data, content_type, default=self.settings.inline_images.default_mime_type
        )
        encoded = base64.b64encode(data).decode("ascii")
        return f"data:{mime};base64,{encoded}"

    def download(self, url: str):
        """Stream an image, enforcing the size cap.

        Returns:
            Tuple of the image bytes and the response ``Content-Type``

        Raises:
            FetchError: If the image is too large or empty
            requests.RequestException: On network or HTTP errors
        """
        limits = self.settings.inline_images
        response = self.session.get(url, timeout=limits.download_timeout, stream=True)
        try:
            response.raise_for_status()

            declared = response.headers.get("Content-Length")
            if declared and declared.isdigit() and int(declared) > limits.max_file_size:
                raise FetchError(
                    f"Image too large ({declared} bytes): {url}",
                    error_code=ErrorCode.FETCH_TOO_LARGE,
                    url=url,
                )

            buffer = bytearray()
            for chunk in response.iter_content(chunk_size=64 * 1024):
                if not chunk:
                    continue
                buffer.extend(chunk)
                if len(buffer) > limits.max_file_size:
                    raise FetchError(
                        f"Image too large (over {limits.max_file_size} bytes): {url}",
                        error_code=ErrorCode.FETCH_TOO_LARGE,
                        url=url,
                    )

            if not buffer:
                raise FetchError(
                    f"Empty response for image: {url}",
                    error_code=ErrorCode.FETCH_INVALID_RESPONSE,
                    url=url,
                )

            return bytes(buffer), response.headers.get("Content-Type")
        finally:
            response.close()

    def parse_configure_form(self, form: Mapping[str, Any]) -> Dict[str, Any]:
        enabled_feeds = parse_enabled_feeds(form.get("enabled_feeds", {}), require_on=True)
        self.logger.info(f"Configuration saved - {len(enabled_feeds)} feed(s) enabled")
        return {"enabled_feeds": enabled_feeds}
