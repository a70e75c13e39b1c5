# =============================================================================
# lib/completion_client.py - OpenAI Chat Completion Client
# =============================================================================
# Sends one system prompt + one user message to the chat-completion API and
# returns the generated text.
#
# Fixed behaviour (not caller-supplied):
# - temperature and max_tokens come from settings
# - a fixed request timeout so a hung upstream cannot stall a request
# - no retries: SDK retries are disabled and failures surface immediately
#
# Usage:
#   client = CompletionClient.from_settings(settings)
#   reply = client.complete(system=context, user="What do you read?")
# =============================================================================

from __future__ import annotations

import json
import logging
from typing import Any

from openai import OpenAI, APIConnectionError, APIStatusError, APITimeoutError, OpenAIError

from app.config import Settings
from app.exceptions import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)


class CompletionClient:
    """
    Thin wrapper over the OpenAI chat-completions endpoint.

    The underlying OpenAI client is created lazily on first use so that an
    unconfigured key is reported as ConfigurationError at call time rather
    than at startup.
    """

    def __init__(
        self,
        api_key: str | None,
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        max_tokens: int = 1000,
        timeout: float = 30.0,
        openai_client: Any | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._client = openai_client

    @classmethod
    def from_settings(cls, settings: Settings, model: str | None = None) -> "CompletionClient":
        return cls(
            api_key=settings.OPENAI_API_KEY,
            model=model or settings.OPENAI_MODEL,
            temperature=settings.COMPLETION_TEMPERATURE,
            max_tokens=settings.COMPLETION_MAX_TOKENS,
            timeout=settings.COMPLETION_TIMEOUT_SECONDS,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> Any:
        if not self.api_key:
            raise ConfigurationError("OpenAI", "OPENAI_API_KEY")
        if self._client is None:
            self._client = OpenAI(
                api_key=self.api_key,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    def _create(self, system: str, user: str, **extra: Any) -> str:
        client = self._get_client()

        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                temperature=self.temperature,
                **extra,
            )
        except APIStatusError as e:
            logger.error(f"OpenAI API error ({e.status_code}): {e.message}")
            raise UpstreamError("openai", e.message, status=e.status_code)
        except APITimeoutError:
            logger.error(f"OpenAI API timed out after {self.timeout}s")
            raise UpstreamError("openai", f"Request timed out after {self.timeout}s")
        except APIConnectionError as e:
            logger.error(f"OpenAI API connection failed: {e}")
            raise UpstreamError("openai", f"Connection failed: {e}")
        except OpenAIError as e:
            logger.error(f"OpenAI client error: {e}")
            raise UpstreamError("openai", str(e))

        content = response.choices[0].message.content if response.choices else None
        if content is None:
            raise UpstreamError("openai", "Completion returned no content")

        logger.debug(f"OpenAI response ({self.model}): {content[:200]}...")
        return content

    def complete(self, system: str, user: str) -> str:
        """
        Generate a reply for `user` under the `system` instruction.

        Raises:
            ConfigurationError: No API key configured
            UpstreamError: Non-success status, timeout or connection failure
        """
        return self._create(system, user, max_tokens=self.max_tokens)

    def complete_json(self, system: str, user: str) -> dict[str, Any]:
        """
        Generate a JSON object (JSON mode) and parse it.

        Raises:
            ConfigurationError: No API key configured
            UpstreamError: Call failed or the reply was not a JSON object
        """
        content = self._create(system, user, response_format={"type": "json_object"})

        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as e:
            raise UpstreamError("openai", f"Model returned invalid JSON: {e}")

        if not isinstance(parsed, dict):
            raise UpstreamError("openai", "Model returned JSON that is not an object")
        return parsed

    def check_connection(self) -> dict[str, Any]:
        """List models to verify the key works. Never raises."""
        try:
            self._get_client().models.list()
        except ConfigurationError:
            return {"status": "error", "error": "API key not configured"}
        except APIStatusError as e:
            return {"status": "error", "error": e.message}
        except OpenAIError as e:
            return {"status": "error", "error": str(e)}
        return {"status": "ok", "error": None}
