"""聊天窗口的渲染投影。

render() 是 ConversationState 与提示消息到显示行的纯函数，
对话管理器在每次状态变更后调用它，再交给具体 UI（控制台、网页等）展示。
"""

from dataclasses import dataclass
from typing import Iterable, List

from routine_assistant.domain.conversation import ConversationState


@dataclass(frozen=True)
class DisplayLine:
    """一行聊天显示内容。

    - markup=False: 普通聊天内容，按纯文本展示，不做 HTML 解释。
    - markup=True: 已经过 escape_html 的文本（错误信息等），可直接作为 HTML 插入。
    """

    role: str
    text: str
    markup: bool = False


@dataclass(frozen=True)
class Notice:
    """不进入会话记录的提示消息；position 表示它出现在第几条消息之后。"""

    position: int
    line: DisplayLine


def escape_html(value: object) -> str:
    return (
        str(value)
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )


def render(state: ConversationState, notices: Iterable[Notice] = ()) -> List[DisplayLine]:
    pending = list(notices)
    lines: List[DisplayLine] = []
    for idx, msg in enumerate(state.conversation):
        while pending and pending[0].position <= idx:
            lines.append(pending.pop(0).line)
        # system 消息不展示
        if msg.role in ("user", "assistant"):
            lines.append(DisplayLine(role=msg.role, text=msg.content))
    lines.extend(n.line for n in pending)
    return lines


def render_html(lines: Iterable[DisplayLine]) -> str:
    """把显示行转成聊天窗口的 HTML 片段。"""

    parts = []
    for line in lines:
        body = line.text if line.markup else escape_html(line.text)
        parts.append(f'<div class="chat-message chat-{escape_html(line.role)}">{body}</div>')
    return "\n".join(parts)
