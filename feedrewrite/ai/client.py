"""
Chat Completion Client
======================

Thin wrapper around the ``openai`` client for any OpenAI-compatible
chat completions endpoint. API failures surface as ``AIError`` with a
categorized error code.
"""

from typing import Optional

import openai

from ..config.settings import FeedRewriteSettings, get_settings
from ..utils.exceptions import AIError, ErrorCode
from ..utils.logging import get_logger_for_component


CHAT_COMPLETIONS_SUFFIX = "/chat/completions"


def endpoint_base_url(endpoint: str) -> str:
    """Turn a full ``.../chat/completions`` URL into the client's base URL."""
    endpoint = endpoint.strip().rstrip("/")
    if endpoint.endswith(CHAT_COMPLETIONS_SUFFIX):
        endpoint = endpoint[: -len(CHAT_COMPLETIONS_SUFFIX)]
    return endpoint


class ChatCompletionClient:
    """Sends a single user message and returns the model's answer."""

    def __init__(
        self,
        endpoint: str,
        api_token: str,
        model: Optional[str] = None,
        settings: Optional[FeedRewriteSettings] = None,
    ):
        """Initialize the client.

        Args:
            endpoint: Full chat completions URL
            api_token: Bearer token for the API
            model: Model name (default from settings)
            settings: Process settings (default: global settings)

        Raises:
            AIError: If no token is given
        """
        if not api_token:
            raise AIError(
                "API token is required",
                endpoint=endpoint,
                error_code=ErrorCode.AI_INVALID_CREDENTIALS,
                recoverable=False,
            )

        self.settings = settings or get_settings()
        self.endpoint = endpoint
        self.model = model or self.settings.ai.default_model
        self.client = openai.OpenAI(
            api_key=api_token,
            base_url=endpoint_base_url(endpoint),
            timeout=self.settings.ai.request_timeout,
            max_retries=0,
        )
        self.logger = get_logger_for_component("ai_client")

    def complete(self, message: str) -> str:
        """Send ``message`` as the user turn and return the reply text.

        Raises:
            AIError: On any API failure or an empty/malformed reply
        """
        self.logger.info("Sending request to AI API")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": message}],
                temperature=self.settings.ai.temperature,
            )
        except openai.APITimeoutError as e:
            raise AIError(
                f"AI API request timed out: {e}",
                endpoint=self.endpoint,
                error_code=ErrorCode.AI_TIMEOUT,
            ) from e
        except openai.APIConnectionError as e:
            raise AIError(
                f"Connection to AI API failed: {e}",
                endpoint=self.endpoint,
                error_code=ErrorCode.AI_CONNECTION_ERROR,
            ) from e
        except openai.RateLimitError as e:
            raise AIError(
                f"AI API rate limit exceeded: {e}",
                endpoint=self.endpoint,
                error_code=ErrorCode.AI_RATE_LIMIT,
            ) from e
        except openai.AuthenticationError as e:
            raise AIError(
                f"AI API rejected the token: {e}",
                endpoint=self.endpoint,
                error_code=ErrorCode.AI_AUTHENTICATION,
                recoverable=False,
            ) from e
        except openai.APIStatusError as e:
            raise AIError(
                f"AI API returned HTTP {e.status_code}: {str(e)[:500]}",
                endpoint=self.endpoint,
            ) from e
        except openai.APIError as e:
            raise AIError(f"AI API error: {e}", endpoint=self.endpoint) from e

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise AIError(
                "Invalid API response format",
                endpoint=self.endpoint,
                error_code=ErrorCode.AI_INVALID_RESPONSE,
            ) from e

        if not isinstance(content, str):
            raise AIError(
                "Invalid API response format",
                endpoint=self.endpoint,
                error_code=ErrorCode.AI_INVALID_RESPONSE,
            )

        self.logger.info(f"Received response from AI API ({len(content)} characters)")
        return content
