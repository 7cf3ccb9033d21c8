"""SSE 事件帧读取器。

把 HTTP 响应体的字节流按空行切分为事件帧。帧边界由传输层决定，
不保证与 JSON 记录边界对齐，重组由 EventReassembler 负责。
"""

import re
from typing import Iterable, Iterator, Optional

import httpx

from plex_core.domain.exceptions import TransportError

# 事件之间以空行分隔（兼容 \n、\r\n、\r 三种换行）
_EVENT_BOUNDARY = re.compile(rb"\r\n\r\n|\n\n|\r\r")

DEFAULT_MAX_EVENT_BYTES = 1 << 16


class EventStreamReader:
    """逐个返回 SSE 事件帧。

    - read_event() 返回下一帧（去掉结尾换行），流结束时返回 None。
    - 流结束时缓冲区中残留的未终止数据作为最后一帧返回。
    - 单帧超过 max_event_bytes 或底层读取失败时抛出 TransportError。
    """

    def __init__(self, source: Iterable[bytes], max_event_bytes: int = DEFAULT_MAX_EVENT_BYTES):
        self._source: Iterator[bytes] = iter(source)
        self._max = max_event_bytes
        self._buf = bytearray()
        self._eof = False

    def read_event(self) -> Optional[bytes]:
        while True:
            match = _EVENT_BOUNDARY.search(self._buf)
            size = match.start() if match else len(self._buf)
            if size > self._max:
                raise TransportError(code="SSE_EVENT_TOO_LARGE", message=f"event exceeds {self._max} bytes")
            if match:
                frame = bytes(self._buf[: match.start()])
                del self._buf[: match.end()]
                return frame
            if self._eof:
                if not self._buf:
                    return None
                frame = bytes(self._buf).rstrip(b"\r\n")
                self._buf.clear()
                return frame
            self._fill()

    def _fill(self) -> None:
        try:
            data = next(self._source)
        except StopIteration:
            self._eof = True
            return
        except httpx.HTTPError as e:
            raise TransportError(code="SSE_READ_ERROR", message=f"SSE read: {e}") from e
        self._buf.extend(data)
