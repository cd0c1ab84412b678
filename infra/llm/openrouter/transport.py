#!/usr/bin/env python3
import requests
from typing import Dict, Any, Optional

from infra.config import Config
from infra.pipeline.logger import PipelineLogger

from .errors import MalformedResponseError, MissingAPIKeyError


OPENROUTER_CHAT_URL = "https://openrouter.ai/api/v1/chat/completions"


class OpenRouterTransport:
    def __init__(
        self,
        logger: Optional[PipelineLogger] = None,
        api_key: Optional[str] = None,
        site_url: str = None,
        site_name: str = None,
        base_url: str = OPENROUTER_CHAT_URL,
        session: Optional[requests.Session] = None,
    ):
        self.logger = logger or PipelineLogger("shelf", "transport")
        self._api_key = api_key
        self.site_url = site_url or Config.openrouter_site_url
        self.site_name = site_name or Config.openrouter_site_name
        self.base_url = base_url
        self.session = session or requests.Session()

    @property
    def api_key(self) -> str:
        key = self._api_key or Config.openrouter_api_key
        if not key:
            raise MissingAPIKeyError(
                "openrouter API key not configured. "
                "Set OPENROUTER_API_KEY or run: shelf config init"
            )
        return key

    def post(self, payload: Dict[str, Any], timeout: int = 120) -> Dict[str, Any]:
        model = payload.get('model', 'unknown')
        has_images = any(
            isinstance(msg.get('content'), list) and
            any(c.get('type') == 'image_url' for c in msg['content'])
            for msg in payload.get('messages', [])
        )

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.site_url,
            "X-Title": self.site_name
        }

        self.logger.debug(
            "OpenRouter API request",
            model=model,
            timeout=timeout,
            has_images=has_images,
            num_messages=len(payload.get('messages', []))
        )

        response = self.session.post(
            self.base_url,
            headers=headers,
            json=payload,
            timeout=timeout
        )

        self.logger.debug(
            "OpenRouter API response",
            model=model,
            status_code=response.status_code,
            ok=response.ok
        )

        response.raise_for_status()

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(f"OpenRouter returned non-JSON body: {e}") from e
