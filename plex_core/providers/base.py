"""Provider 抽象接口。

Orchestrator 不直接依赖具体厂商的 HTTP 细节，而是依赖此协议：

- 负责把 ChatRequest 转成具体 API 请求并发起 POST。
- 非 200 响应在流式读取开始前就以 ApiError 抛出。
- 成功时返回一个 EventStreamReader，逐帧读取 SSE 事件。
"""

from typing import ContextManager, Optional, Protocol

from plex_core.domain.models import ChatRequest


class FrameReader(Protocol):
    """传输层协议：逐个返回原始帧，流结束时返回 None。"""

    def read_event(self) -> Optional[bytes]:
        ...


class ProviderClient(Protocol):
    """LLM Provider 客户端协议。"""

    name: str

    def open_stream(self, req: ChatRequest) -> ContextManager[FrameReader]:
        """发起一次流式请求，返回在 with 块内有效的帧读取器。"""

        ...
