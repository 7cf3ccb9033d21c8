"""单次流式调用的编排。

INIT -> READING -> DONE：
- INIT: 通过 Provider 发起请求，拿到帧读取器；连接/状态码错误直接终止本次调用。
- READING: 逐帧读取，交给 EventReassembler；文本累积并逐字交给 SmoothPrinter，
  非空引用列表整体替换之前的列表。
- DONE: 遇到 EOF、[DONE] 或 finish_reason 时结束；任何退出路径都先关闭并
  join 输出线程，再返回或抛错。
"""

import sys
import threading
from typing import List, Optional, TextIO, Tuple

from plex_core.config.settings import settings
from plex_core.domain.conversation import Conversation, ConversationStore
from plex_core.domain.exceptions import BusinessError, PersistenceError, StreamCancelledError, TransportError
from plex_core.domain.models import ChatRequest, StreamResult
from plex_core.infrastructure.logging.logger import logger
from plex_core.providers.base import FrameReader, ProviderClient
from plex_core.streaming.pacer import SmoothPrinter
from plex_core.streaming.reassembler import EventReassembler

STOP_CURSOR = "\x1b[?25l"
START_CURSOR = "\x1b[?25h"


class StreamOrchestrator:
    """驱动一次流式补全：读帧、重组、逐字输出、累积并持久化。"""

    def __init__(
        self,
        provider: ProviderClient,
        store: ConversationStore,
        sink: Optional[TextIO] = None,
        interval: Optional[float] = None,
        buffer_size: Optional[int] = None,
        hide_cursor: bool = True,
    ):
        self._provider = provider
        self._store = store
        self._sink = sink
        self._interval = interval if interval is not None else settings.smooth_print_interval_ms / 1000.0
        self._buffer_size = buffer_size or settings.smooth_print_buffer_size
        self._hide_cursor = hide_cursor

    @property
    def sink(self) -> TextIO:
        return self._sink or sys.stdout

    def stream_completion(
        self,
        conversation: Conversation,
        model: str,
        max_tokens: Optional[int] = None,
        cancel: Optional[threading.Event] = None,
    ) -> StreamResult:
        """对会话发起一次流式补全，成功时把助手回复追加到会话并保存。

        Raises:
            ValidationError / NetworkError / ApiError: 请求阶段失败。
            TransportError: 读取过程中传输失败，或输出端写入失败。
            StreamCancelledError: 调用被取消。
            PersistenceError: 流式输出成功但保存失败，``result`` 中带有已输出结果。
        """
        req = ChatRequest(model=model, messages=list(conversation.messages), max_tokens=max_tokens)
        with self._provider.open_stream(req) as reader:
            content, citations = self.read_stream(reader, cancel)
        return self.finalize(conversation, content, citations)

    def read_stream(
        self,
        reader: FrameReader,
        cancel: Optional[threading.Event] = None,
    ) -> Tuple[str, List[str]]:
        cancel = cancel or threading.Event()
        reassembler = EventReassembler()
        parts: List[str] = []
        citations: List[str] = []

        if self._hide_cursor:
            self._emit(STOP_CURSOR)
        printer = SmoothPrinter(self.sink, cancel, interval=self._interval, buffer_size=self._buffer_size)
        printer.start()
        try:
            while True:
                if cancel.is_set():
                    raise StreamCancelledError(code="STREAM_CANCELLED", message="stream cancelled")
                raw = reader.read_event()
                if raw is None:
                    logger.debug("Received EOF from server.")
                    break
                if raw:
                    logger.debug(f"Raw SSE event: {raw!r}")
                if reassembler.is_terminal(raw):
                    logger.debug("Got [DONE] sentinel.")
                    break
                chunk = reassembler.feed(raw)
                if chunk is None:
                    continue
                if chunk.citations:
                    citations = list(chunk.citations)
                if chunk.content:
                    parts.append(chunk.content)
                    printer.write(chunk.content)
                if chunk.finish_reason:
                    logger.debug(f"finish_reason: {chunk.finish_reason}")
                    break
        except KeyboardInterrupt:
            cancel.set()
            raise StreamCancelledError(code="STREAM_CANCELLED", message="stream interrupted") from None
        finally:
            printer.close()
            printer.join()
            if self._hide_cursor and printer.error is None:
                self._emit(START_CURSOR)
        printer.raise_for_error()
        return "".join(parts), citations

    def finalize(self, conversation: Conversation, content: str, citations: List[str]) -> StreamResult:
        """把非空回复追加到会话并保存；空回复视为本轮无输出，不保存。"""

        result = StreamResult(content=content, citations=list(citations), conversation=conversation)
        if not content:
            logger.debug("empty response, nothing to save")
            return result
        conversation.append("assistant", content)
        try:
            self._store.save(conversation)
        except BusinessError as e:
            raise PersistenceError(code="SAVE_FAILED", message=f"save thread: {e.message}", result=result) from e
        result.persisted = True
        return result

    def _emit(self, text: str) -> None:
        try:
            self.sink.write(text)
            self.sink.flush()
        except OSError as e:
            raise TransportError(code="OUTPUT_WRITE_ERROR", message=f"output write failed: {e}") from e
