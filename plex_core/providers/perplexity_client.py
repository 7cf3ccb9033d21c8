"""Perplexity Provider 适配器。

接口与 OpenAI 风格一致，使用 chat/completions 端点：
- URL: {base_url}/chat/completions
- 认证: Authorization: Bearer <token>

请求体固定为 model/messages/stream/max_tokens，不做重试。
"""

from contextlib import contextmanager
from typing import Iterator

import httpx

from plex_core.config.settings import settings
from plex_core.domain.exceptions import ApiError, NetworkError, RateLimitError, ValidationError
from plex_core.domain.models import ChatRequest
from plex_core.infrastructure.logging.logger import logger
from plex_core.providers.event_stream import DEFAULT_MAX_EVENT_BYTES, EventStreamReader
from plex_core.providers.registry import PERPLEXITY_CONFIG


class PerplexityClient:
    """Perplexity Provider 客户端实现。"""

    name = "perplexity"

    def __init__(self, cfg=settings):
        self._settings = cfg

    @contextmanager
    def open_stream(self, req: ChatRequest) -> Iterator[EventStreamReader]:
        token = getattr(self._settings, "perplexity_api_token", None)
        if not token:
            raise ValidationError(code="MISSING_API_TOKEN", message="PERPLEXITY_API_TOKEN not set")
        if req.model not in PERPLEXITY_CONFIG.models:
            raise ValidationError(code="UNKNOWN_MODEL", message=f"unknown model: {req.model}")
        base = getattr(self._settings, "perplexity_base_url", None) or PERPLEXITY_CONFIG.base_url
        max_event_bytes = getattr(self._settings, "max_event_bytes", DEFAULT_MAX_EVENT_BYTES)
        payload = req.to_payload()
        logger.debug(
            "completion request",
            extra={"extra": {"model": req.model, "messages": len(req.messages)}},
        )
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                with client.stream(
                    "POST",
                    f"{base}/chat/completions",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {token}",
                        "Content-Type": "application/json",
                        "Accept": "text/event-stream",
                    },
                ) as resp:
                    if resp.status_code == 429:
                        raise RateLimitError(code="RATE_LIMIT", message="Perplexity rate limit", http_status=429)
                    if resp.status_code != 200:
                        raise ApiError(
                            code="API_ERROR",
                            message=f"bad status: {resp.status_code}",
                            http_status=resp.status_code,
                        )
                    yield EventStreamReader(resp.iter_bytes(), max_event_bytes=max_event_bytes)
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=f"request execute: {e}")
