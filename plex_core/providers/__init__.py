"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护 Provider 与模型配置 (registry)。
- 把 HTTP 响应体切分为 SSE 帧 (event_stream)。
- 提供具体实现 (perplexity_client)。
"""

from typing import Optional

from plex_core.config.settings import settings
from plex_core.providers.base import ProviderClient
from plex_core.providers.perplexity_client import PerplexityClient
from plex_core.providers.registry import get_provider_config


def create_provider(name: Optional[str] = None) -> ProviderClient:
    """根据名称创建 Provider 实例，默认取配置中的 provider。"""

    provider_name = (name or getattr(settings, "default_provider", "perplexity")).lower()
    get_provider_config(provider_name)
    return PerplexityClient(settings)
