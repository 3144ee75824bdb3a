from copy import deepcopy
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol

from .models import ChatMessage, Product


@dataclass
class ConversationState:
    """对话管理器持有的全部可变状态。"""

    conversation: List[ChatMessage]
    routine_generated: bool = False
    selected_products: Dict[int, Product] = field(default_factory=dict)

    def snapshot(self) -> "ConversationState":
        return ConversationState(
            conversation=deepcopy(self.conversation),
            routine_generated=self.routine_generated,
            selected_products=deepcopy(self.selected_products),
        )


class ConversationStore(Protocol):
    """按固定键名保存整段会话的持久化抽象（等价于浏览器 localStorage）。"""

    def load(self, key: str) -> Optional[str]:
        ...

    def save(self, key: str, raw: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...
