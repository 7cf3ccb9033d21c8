import json
import os
from pathlib import Path
from typing import List

from plex_core.config.settings import settings
from plex_core.domain.conversation import ConversationStore, Conversation
from plex_core.domain.exceptions import (
    AmbiguousPrefixError,
    BusinessError,
    ConversationNotFoundError,
    DecodeError,
    StoreError,
)
from plex_core.infrastructure.logging.logger import logger

from .safe_path import DIR_PERM, safe_read_bytes, safe_write_bytes

SUFFIX = ".json"


class JsonConversationStore(ConversationStore):
    """每个会话一个 JSON 文件，平铺在根目录下，文件名为 ``<id>.json``。"""

    def __init__(self, root: str | Path | None = None):
        self._root = Path(root or settings.storage_root).expanduser().resolve()
        try:
            self._root.mkdir(mode=DIR_PERM, parents=True, exist_ok=True)
        except OSError as e:
            raise StoreError(code="STORE_INIT_ERROR", message=f"failed to init store: {e}")

    @property
    def root(self) -> Path:
        return self._root

    def load(self, id_prefix: str) -> Conversation:
        matches = [name for name in self._snapshot() if name.startswith(id_prefix)]
        if not matches:
            raise ConversationNotFoundError(code="CONVERSATION_NOT_FOUND", message="no matching thread found")
        if len(matches) > 1:
            raise AmbiguousPrefixError(
                code="AMBIGUOUS_PREFIX",
                message=f"prefix '{id_prefix}' matched more than one thread",
                matches=[_strip_suffix(m) for m in matches],
            )
        try:
            data = safe_read_bytes(self._root, self._root / matches[0])
        except OSError as e:
            raise StoreError(code="STORE_READ_ERROR", message=str(e))
        return self._decode(data)

    def save(self, conversation: Conversation) -> None:
        payload = json.dumps(conversation.to_dict(), ensure_ascii=False, indent=2)
        try:
            safe_write_bytes(self._root, self._root / f"{conversation.id}{SUFFIX}", payload.encode("utf-8"))
        except BusinessError:
            raise
        except OSError as e:
            raise StoreError(code="STORE_WRITE_ERROR", message=str(e))
        logger.debug(f"saved thread {conversation.id}", extra={"extra": {"messages": len(conversation.messages)}})

    def list(self) -> List[Conversation]:
        items: List[Conversation] = []
        for name in self._snapshot():
            if not name.endswith(SUFFIX):
                continue
            try:
                items.append(self._decode(safe_read_bytes(self._root, self._root / name)))
            except (BusinessError, OSError) as e:
                logger.debug(f"skip unreadable thread file {name}: {e}")
                continue
        return items

    def _snapshot(self) -> List[str]:
        """根目录当前的常规文件名列表（排序后）。"""
        try:
            with os.scandir(self._root) as it:
                return sorted(e.name for e in it if e.is_file() and not e.name.startswith("."))
        except OSError as e:
            raise StoreError(code="STORE_READ_ERROR", message=str(e))

    @staticmethod
    def _decode(data: bytes) -> Conversation:
        try:
            raw = json.loads(data)
        except ValueError as e:
            raise DecodeError(code="DECODE_ERROR", message=f"invalid thread file: {e}")
        return Conversation.from_dict(raw)


def _strip_suffix(name: str) -> str:
    return name[: -len(SUFFIX)] if name.endswith(SUFFIX) else name
