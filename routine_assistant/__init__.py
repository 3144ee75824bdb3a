"""Routine Assistant 顶层包。

该包提供商品 routine 推荐助手的核心实现，
包括配置加载、领域模型、补全 Provider 适配、商品目录、
对话管理器（话题门控、持久化、撤销）以及隐藏密钥的补全网关。
"""

from routine_assistant.assistant import ConversationManager

__all__ = ["ConversationManager"]
