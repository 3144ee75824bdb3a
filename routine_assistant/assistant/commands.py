"""把 UI 事件映射到对话管理器操作的命令分发器。"""

from typing import Any, Callable, Dict, Optional

from routine_assistant.assistant.manager import ConversationManager
from routine_assistant.catalog import ProductCatalog
from routine_assistant.domain.exceptions import BusinessError


CommandHandler = Callable[..., Any]


class CommandDispatcher:
    """命令名 -> 处理函数。

    内置命令：submit / generate / clear / undo / select / deselect。
    select / deselect 接收商品 id，需要提供 ProductCatalog 才能按 id 查找商品。
    """

    def __init__(self, manager: ConversationManager, catalog: Optional[ProductCatalog] = None):
        self._manager = manager
        self._catalog = catalog
        self._handlers: Dict[str, CommandHandler] = {
            "submit": manager.append_user_turn,
            "generate": lambda: manager.append_generated_routine_turn(),
            "clear": manager.clear_conversation,
            "undo": manager.undo,
            "select": self._select,
            "deselect": self._deselect,
        }

    @property
    def commands(self) -> list[str]:
        return sorted(self._handlers)

    def register(self, name: str, handler: CommandHandler) -> None:
        self._handlers[name] = handler

    def dispatch(self, name: str, *args: Any) -> Any:
        handler = self._handlers.get(name)
        if handler is None:
            raise BusinessError(code="UNKNOWN_COMMAND", message=f"Unknown command: {name}")
        return handler(*args)

    def _select(self, product_id: int) -> bool:
        if self._catalog is None:
            raise BusinessError(code="NO_CATALOG", message="No product catalog configured")
        product = self._catalog.get(int(product_id))
        if product is None:
            raise BusinessError(code="PRODUCT_NOT_FOUND", message=f"No product with id {product_id}")
        self._manager.select_product(product)
        return True

    def _deselect(self, product_id: int) -> bool:
        return self._manager.deselect_product(int(product_id))
