"""routine 助手的行式控制台前端。

普通文本作为追问提交；以 "/" 开头的行是命令：

    /products [category] [query]   列出商品目录
    /select <id>  /deselect <id>   修改已选商品
    /generate                      为已选商品生成 routine
    /web on|off                    开关网页搜索增强（仅经网关时生效）
    /clear  /undo                  清空会话，在时间窗口内可撤销
    /quit
"""

from __future__ import annotations

import sys
from typing import List, Optional, TextIO

from routine_assistant.assistant.commands import CommandDispatcher
from routine_assistant.assistant.manager import ConversationManager
from routine_assistant.assistant.render import DisplayLine
from routine_assistant.catalog import ProductCatalog
from routine_assistant.config.settings import settings
from routine_assistant.domain.exceptions import BusinessError
from routine_assistant.infrastructure.storage.json_store import JsonConversationStore


class ConsoleApp:
    """把输入行交给 CommandDispatcher，并把渲染结果增量打印到 out。"""

    def __init__(
        self,
        manager: ConversationManager,
        catalog: ProductCatalog,
        out: TextIO = sys.stdout,
    ):
        self.manager = manager
        self.catalog = catalog
        self.out = out
        self.dispatcher = CommandDispatcher(manager, catalog)
        self._shown = 0

    def show(self, lines: List[DisplayLine]) -> None:
        # 只打印新增的行；清空/撤销后行数变少时整体重绘
        if len(lines) < self._shown:
            self._shown = 0
            self.out.write("-" * 40 + "\n")
        for line in lines[self._shown:]:
            self.out.write(f"[{line.role}] {line.text}\n")
        self._shown = len(lines)

    def handle(self, raw: str) -> bool:
        """处理一行输入；返回 False 表示退出。"""

        line = raw.strip()
        if not line:
            return True
        if not line.startswith("/"):
            self.dispatcher.dispatch("submit", line)
            return True

        cmd, *args = line[1:].split()
        try:
            if cmd in ("quit", "exit"):
                return False
            if cmd == "products":
                self._list_products(args)
            elif cmd == "web":
                self.manager.set_include_web_results(bool(args) and args[0].lower() in {"on", "1", "true"})
                self.out.write(f"web results: {'on' if self.manager.include_web_results else 'off'}\n")
            elif cmd == "undo":
                if not self.dispatcher.dispatch("undo"):
                    self.out.write("Nothing to undo.\n")
            elif cmd in ("select", "deselect"):
                if not args:
                    self.out.write(f"usage: /{cmd} <id>\n")
                else:
                    self.dispatcher.dispatch(cmd, args[0])
                    self._list_selection()
            else:
                self.dispatcher.dispatch(cmd, *args)
        except (BusinessError, ValueError, TypeError) as e:
            self.out.write(f"error: {getattr(e, 'message', e)}\n")
        return True

    def _list_products(self, args: List[str]) -> None:
        categories = set(self.catalog.categories())
        category = args[0] if args and args[0] in categories else None
        query = " ".join(args[1:] if category else args)
        for p in self.catalog.filter(category=category, query=query):
            mark = "*" if p.id in self.manager.selected_products else " "
            self.out.write(f"{mark} {p.id:>4}  {p.brand} - {p.name} ({p.category})\n")

    def _list_selection(self) -> None:
        names = [p.name for p in self.manager.selected_products.values()]
        self.out.write("selected: " + (", ".join(names) if names else "none") + "\n")


def main(argv: Optional[List[str]] = None) -> int:
    store = JsonConversationStore(root=settings.storage_root)
    catalog = ProductCatalog(argv[0] if argv else None)
    app: Optional[ConsoleApp] = None

    def on_render(lines: List[DisplayLine]) -> None:
        if app is not None:
            app.show(lines)

    manager = ConversationManager(store=store, on_render=on_render)
    app = ConsoleApp(manager, catalog)
    manager.load_from_persistence()
    app.show(manager.render())
    try:
        for p in catalog.random_sample(6):
            app.out.write(f"  {p.id:>4}  {p.brand} - {p.name}\n")
    except BusinessError as e:
        app.out.write(f"catalog unavailable: {e.message}\n")

    while True:
        try:
            raw = input("> ")
        except (EOFError, KeyboardInterrupt):
            break
        if not app.handle(raw):
            break
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
