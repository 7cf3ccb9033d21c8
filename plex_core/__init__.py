"""plex_core 顶层包。

提供 Perplexity 流式补全客户端的核心实现：
配置加载、领域模型、Provider 适配、SSE 帧重组、
逐字输出与会话持久化。
"""

from plex_core.api.service import run_query
from plex_core.streaming.orchestrator import StreamOrchestrator

__all__ = ["StreamOrchestrator", "run_query"]
