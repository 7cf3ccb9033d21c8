"""统一的消息与流式结果数据模型。

- Message: 一条对话消息（user/assistant）。
- ChatRequest: 发给 Provider 的完整流式请求。
- StreamChunk: 从一个或多个传输帧中重组出的单条结构化增量。
- StreamResult: 一次流式调用的最终结果。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from plex_core.domain.conversation import Conversation


# 会话中允许的消息角色
Role = Literal["user", "assistant"]
ROLES = ("user", "assistant")


@dataclass
class Message:
    """一条对话消息，追加到会话后不再修改。"""

    role: Role
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class ChatRequest:
    """一次流式聊天请求。

    max_tokens 为 None 或 <= 0 时不写入请求体。
    """

    model: str
    messages: List[Message]
    max_tokens: Optional[int] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [m.to_dict() for m in self.messages],
            "stream": True,
        }
        if self.max_tokens and self.max_tokens > 0:
            payload["max_tokens"] = self.max_tokens
        return payload


@dataclass
class StreamChunk:
    """流式返回中的单条增量。

    - content: 本次增量文本，可能为空。
    - citations: 完整替换式的引用列表（不是增量）。
    - finish_reason: 结束标记，非空表示模型已完成输出。
    - raw: 原始 JSON，用于调试日志。
    """

    content: str = ""
    citations: List[str] = field(default_factory=list)
    finish_reason: Optional[str] = None
    raw: Optional[dict] = None


@dataclass
class StreamResult:
    """一次流式调用的结果。

    persisted 为 False 表示本轮没有写盘（例如回复为空）。
    """

    content: str
    citations: List[str]
    conversation: "Conversation"
    persisted: bool = False
