"""对话管理器及其配套：话题门控、撤销、渲染投影、命令分发与控制台前端。"""

from routine_assistant.assistant.manager import ConversationManager
from routine_assistant.assistant.render import DisplayLine, escape_html, render, render_html
from routine_assistant.assistant.topic_gate import TopicGate
from routine_assistant.assistant.undo import UndoAction

__all__ = [
    "ConversationManager",
    "DisplayLine",
    "TopicGate",
    "UndoAction",
    "escape_html",
    "render",
    "render_html",
]
