"""流式输出管线。

- reassembler: 把分片到达的 SSE 帧重组为 StreamChunk。
- pacer: 有界、可取消的逐字输出线程。
- orchestrator: 读帧、重组、逐字输出、累积结果并持久化。
"""

from plex_core.streaming.orchestrator import StreamOrchestrator
from plex_core.streaming.pacer import SmoothPrinter
from plex_core.streaming.reassembler import EventReassembler

__all__ = ["EventReassembler", "SmoothPrinter", "StreamOrchestrator"]
