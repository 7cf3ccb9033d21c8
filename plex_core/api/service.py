"""对外服务函数。

提供会话续写逻辑以及线程列表/详情的格式化，供 CLI 调用。
"""

import threading
from typing import List, Optional, Tuple

from plex_core.config.settings import settings
from plex_core.domain.conversation import Conversation, ConversationStore, new_conversation_id
from plex_core.domain.models import Message, StreamResult
from plex_core.infrastructure.logging.logger import logger
from plex_core.infrastructure.storage.json_store import JsonConversationStore
from plex_core.providers import create_provider
from plex_core.streaming.orchestrator import StreamOrchestrator

ID_TRUNC_LEN = 8
SNIPPET_LEN = 50


_store: Optional[ConversationStore] = None


def get_default_store() -> ConversationStore:
    """获取默认的会话存储实例（单例）。"""
    global _store
    if _store is None:
        _store = JsonConversationStore(root=settings.storage_root)
    return _store


def start_or_continue(store: ConversationStore, query: str, thread_id: Optional[str] = None) -> Conversation:
    """按前缀续写已有会话，或为新问题创建会话。"""

    if thread_id:
        conv = store.load(thread_id)
        conv.append("user", query)
        return conv
    messages = [Message(role="user", content=query)]
    return Conversation(id=new_conversation_id(messages), messages=messages)


def run_query(
    query: str,
    *,
    thread_id: Optional[str] = None,
    model: Optional[str] = None,
    max_tokens: Optional[int] = None,
    store: Optional[ConversationStore] = None,
    orchestrator: Optional[StreamOrchestrator] = None,
    cancel: Optional[threading.Event] = None,
) -> StreamResult:
    """运行一次查询：续写/创建会话，流式输出回复并保存。

    Raises:
        各种 domain.exceptions 中定义的异常
    """
    store = store or get_default_store()
    conv = start_or_continue(store, query, thread_id)
    orchestrator = orchestrator or StreamOrchestrator(create_provider(), store)
    try:
        return orchestrator.stream_completion(
            conv,
            model=model or settings.default_model,
            max_tokens=max_tokens,
            cancel=cancel,
        )
    except Exception as e:
        logger.error(f"Query failed: {e}", extra={"extra": {
            "thread_id": conv.id,
            "error": str(e),
        }})
        raise


def short_id(thread_id: str) -> str:
    return thread_id[:ID_TRUNC_LEN]


def snippet(text: str) -> str:
    if len(text) > SNIPPET_LEN:
        return text[:SNIPPET_LEN] + "..."
    return text


def list_threads(store: ConversationStore, filter_text: str = "") -> List[Tuple[str, str]]:
    """列出会话，返回 (短 ID, 首条消息摘要)。

    没有消息的会话被跳过；filter_text 匹配完整 ID 或首条消息。
    """
    rows: List[Tuple[str, str]] = []
    for conv in store.list():
        if not conv.messages:
            continue
        first = conv.messages[0].content
        if filter_text and filter_text not in conv.id and filter_text not in first:
            continue
        rows.append((short_id(conv.id), snippet(first)))
    return rows


def format_thread_table(rows: List[Tuple[str, str]], padding: int = 2) -> str:
    header = ("THREAD ID", "FIRST USER MESSAGE")
    width = max(len(r[0]) for r in [header, *rows]) + padding
    lines = [f"{a:<{width}}{b}".rstrip() for a, b in [header, *rows]]
    return "\n".join(lines) + "\n"


def format_thread(conv: Conversation) -> str:
    parts = [f"THREAD: {short_id(conv.id)}\n"]
    for i, msg in enumerate(conv.messages):
        parts.append(f"[{i}] {msg.role.upper()}:\n{msg.content}\n")
    return "\n".join(parts) + "\n"


def format_citations(citations: List[str]) -> str:
    if not citations:
        return ""
    lines = ["\n\nCitations:"]
    lines.extend(f"[{i}] {c}" for i, c in enumerate(citations, start=1))
    return "\n".join(lines) + "\n"
