"""领域层模型与协议。

包含：
- models: Message / ChatRequest / StreamChunk / StreamResult 模型。
- conversation: 会话记录、ConversationStore 抽象与 ID 生成。
- exceptions: 业务异常类型定义。
"""
