"""领域层模型与协议。

包含：
- models: 统一的 ChatMessage / Product / ChatRequest / ChatResult 模型。
- conversation: 对话状态 ConversationState 及 ConversationStore 抽象。
- exceptions: 业务异常类型定义。
"""
