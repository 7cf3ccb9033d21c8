"""逐字输出（打字机效果）。

网络到达的文本是突发的，这里用一个有界 FIFO 队列和单个消费线程，
以固定间隔逐字写到输出端，与网络读取解耦。
"""

import queue
import threading
import time
from typing import Optional, TextIO

from plex_core.domain.exceptions import StreamCancelledError, TransportError

DEFAULT_INTERVAL = 0.003
DEFAULT_BUFFER_SIZE = 1024
# 阻塞等待时检查取消信号的间隔（秒）
POLL_INTERVAL = 0.05

_CLOSED = object()


class SmoothPrinter:
    """有界、可取消的逐字输出器。

    - put(): 队列满时阻塞直到有空位；期间取消信号被设置则抛出 StreamCancelledError。
    - close(): 正常结束时投递结束标记，消费线程输出完已排队字符后退出。
    - join(): 等待消费线程结束；任何退出路径上调用方都必须调用。
    - finished: 消费线程退出时被设置。
    - error: 输出端写入失败时保存的异常；此后 put() 抛出 TransportError。
    """

    def __init__(
        self,
        sink: TextIO,
        cancel: Optional[threading.Event] = None,
        interval: float = DEFAULT_INTERVAL,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
    ):
        self._sink = sink
        self._cancel = cancel or threading.Event()
        self._interval = interval
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=buffer_size)
        self._thread = threading.Thread(target=self._run, name="smooth-printer", daemon=True)
        self._closed = False
        self.error: Optional[BaseException] = None
        self.finished = threading.Event()

    @property
    def cancel_event(self) -> threading.Event:
        return self._cancel

    def start(self) -> "SmoothPrinter":
        self._thread.start()
        return self

    def put(self, ch: str) -> None:
        if self._closed:
            raise RuntimeError("SmoothPrinter is closed")
        self._offer(ch)

    def write(self, text: str) -> None:
        for ch in text:
            self.put(ch)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._offer(_CLOSED)
        except (StreamCancelledError, TransportError):
            # 已取消或消费线程已退出，无需结束标记
            pass

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread.is_alive():
            self._thread.join(timeout)

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise TransportError(
                code="OUTPUT_WRITE_ERROR",
                message=f"output write failed: {self.error}",
            ) from self.error

    def _offer(self, item: object) -> None:
        while True:
            if self._cancel.is_set():
                raise StreamCancelledError(code="STREAM_CANCELLED", message="stream cancelled")
            self.raise_for_error()
            if self.finished.is_set():
                raise TransportError(code="OUTPUT_CLOSED", message="output printer stopped")
            try:
                self._queue.put(item, timeout=POLL_INTERVAL)
                return
            except queue.Full:
                continue

    def _run(self) -> None:
        try:
            while not self._cancel.is_set():
                try:
                    item = self._queue.get(timeout=POLL_INTERVAL)
                except queue.Empty:
                    continue
                if item is _CLOSED:
                    return
                try:
                    self._sink.write(item)  # type: ignore[arg-type]
                    self._sink.flush()
                except (OSError, ValueError) as e:
                    self.error = e
                    return
                if self._interval > 0:
                    time.sleep(self._interval)
        finally:
            self.finished.set()
