import hashlib
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

import base58

from .exceptions import DecodeError
from .models import Message, ROLES


@dataclass
class Conversation:
    id: str
    messages: List[Message] = field(default_factory=list)

    def append(self, role: str, content: str) -> Message:
        msg = Message(role=role, content=content)
        self.messages.append(msg)
        return msg

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "messages": [m.to_dict() for m in self.messages]}

    @classmethod
    def from_dict(cls, data: Any) -> "Conversation":
        if not isinstance(data, dict):
            raise DecodeError(code="DECODE_ERROR", message="conversation record is not an object")
        cid = data.get("id")
        if not isinstance(cid, str) or not cid:
            raise DecodeError(code="DECODE_ERROR", message="conversation record has no id")
        raw_msgs = data.get("messages") or []
        if not isinstance(raw_msgs, list):
            raise DecodeError(code="DECODE_ERROR", message=f"messages of {cid} is not a list")
        messages: List[Message] = []
        for item in raw_msgs:
            if not isinstance(item, dict):
                raise DecodeError(code="DECODE_ERROR", message=f"bad message in {cid}")
            role = item.get("role")
            content = item.get("content", "")
            if role not in ROLES or not isinstance(content, str):
                raise DecodeError(code="DECODE_ERROR", message=f"bad message in {cid}")
            messages.append(Message(role=role, content=content))
        return cls(id=cid, messages=messages)


def new_conversation_id(messages: List[Message], now: Optional[str] = None) -> str:
    """基于首条消息内容与当前时间生成会话 ID（base58 编码的 SHA-256）。"""

    if not messages:
        return base58.b58encode(b"empty").decode("ascii")
    stamp = now if now is not None else repr(time.time_ns())
    digest = hashlib.sha256((messages[0].content + stamp).encode("utf-8")).digest()
    return base58.b58encode(digest).decode("ascii")


class ConversationStore(Protocol):
    def load(self, id_prefix: str) -> Conversation:
        ...

    def save(self, conversation: Conversation) -> None:
        ...

    def list(self) -> List[Conversation]:
        ...
