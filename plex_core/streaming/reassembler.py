"""SSE 帧重组器。

两级缓冲：
1. 一条记录的开头先定位 ``data: `` 前缀，丢弃前缀及其之前的内容；
   前缀本身也可能被拆在多帧里，此时先缓存，等拼出完整前缀再定位。
   没有前缀、直接以 JSON 开头的帧整帧即负载。
2. 记录开始后，后续帧原样追加，不再查找前缀（正文里可能出现 ``data: ``），
   每次尝试按一条 JSON 记录解析；解析失败不算错误，保留缓冲区等待后续帧补齐。

这样即使一条记录被拆成任意多次物理读取也不会丢数据。
"""

import json
from typing import Any, List, Optional

from plex_core.domain.models import StreamChunk

DATA_PREFIX = b"data: "
DONE_SENTINEL = b"[DONE]"
_JSON_START = (b"{", b"[")


class EventReassembler:
    """单次流式调用内的 JSON 重组缓冲区。"""

    def __init__(self) -> None:
        self._buf = bytearray()
        self._started = False

    @property
    def pending(self) -> int:
        """缓冲区中尚未成功解析的字节数。"""
        return len(self._buf)

    @staticmethod
    def is_terminal(raw: bytes) -> bool:
        return DONE_SENTINEL in raw

    def feed(self, raw: bytes) -> Optional[StreamChunk]:
        """处理一帧，成功重组出完整记录时返回 StreamChunk，否则返回 None。"""

        if not raw:
            return None
        self._buf.extend(raw)
        if not self._started and not self._locate_payload():
            return None

        try:
            data = json.loads(bytes(self._buf))
        except ValueError:
            # 记录尚不完整（或含半个 UTF-8 字符），等待下一帧
            return None
        if not isinstance(data, dict):
            return None
        self.reset()
        return parse_chunk(data)

    def reset(self) -> None:
        self._buf.clear()
        self._started = False

    def _locate_payload(self) -> bool:
        idx = self._buf.find(DATA_PREFIX)
        if idx != -1:
            del self._buf[: idx + len(DATA_PREFIX)]
            self._started = True
        elif self._buf.lstrip()[:1] in _JSON_START:
            self._started = True
        return self._started


def parse_chunk(data: dict) -> StreamChunk:
    content = ""
    finish_reason = None
    choices = data.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        first = choices[0]
        delta = first.get("delta")
        if isinstance(delta, dict) and isinstance(delta.get("content"), str):
            content = delta["content"]
        if isinstance(first.get("finish_reason"), str) and first["finish_reason"]:
            finish_reason = first["finish_reason"]
    return StreamChunk(
        content=content,
        citations=_citations(data.get("citations")),
        finish_reason=finish_reason,
        raw=data,
    )


def _citations(raw: Any) -> List[str]:
    if not isinstance(raw, list):
        return []
    return [c for c in raw if isinstance(c, str)]
