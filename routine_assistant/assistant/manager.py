"""对话管理器核心模块。

维护有序的消息记录、话题门控、持久化与撤销，
并决定把请求发往网关还是直连 API。所有错误都在这里就地恢复，
以 assistant 角色的提示消息展示给用户，不会中断会话。
"""

import json
import threading
import time
from types import MappingProxyType
from typing import Callable, Iterable, List, Mapping, Optional

from routine_assistant.assistant.render import DisplayLine, Notice, escape_html, render
from routine_assistant.assistant.topic_gate import TopicGate
from routine_assistant.assistant.undo import UndoAction
from routine_assistant.config.settings import settings
from routine_assistant.domain.conversation import ConversationState, ConversationStore
from routine_assistant.domain.exceptions import (
    BusinessError,
    ConfigMissing,
    EmptySelection,
    PersistenceFailure,
    RequestPending,
    TopicRejected,
    TransportFailure,
    UpstreamError,
)
from routine_assistant.domain.models import ChatMessage, ChatRequest, Product
from routine_assistant.infrastructure.logging.logger import logger
from routine_assistant.prompts import build_routine_request, load_system_prompt
from routine_assistant.providers import ProviderClient, create_provider


TOPIC_REJECTED_MESSAGE = (
    "Please ask questions related to the generated routine or to topics like "
    "skincare, haircare, makeup, or fragrance."
)
EMPTY_SELECTION_MESSAGE = "Please select one or more products before generating a routine."
PENDING_MESSAGE = "Still working on the previous request. Please wait for the reply before sending another."
NO_RESPONSE_MESSAGE = "No response from the API."
CLEARED_MESSAGE = "Conversation cleared."

RenderCallback = Callable[[List[DisplayLine]], None]


class ConversationManager:
    """单个会话的控制器。

    对外只暴露 load_from_persistence / append_user_turn /
    append_generated_routine_turn / clear_conversation / undo 以及商品选择操作；
    存储与 Provider 通过构造参数注入。

    同一时刻只允许一个请求在途：上一个请求未完成时，新的提交会被忽略并提示用户。
    """

    def __init__(
        self,
        store: ConversationStore,
        provider_client: Optional[ProviderClient] = None,
        cfg=settings,
        topic_gate: Optional[TopicGate] = None,
        on_render: Optional[RenderCallback] = None,
        clock: Callable[[], float] = time.monotonic,
        provider_factory: Callable[..., ProviderClient] = create_provider,
    ):
        self._store = store
        self._provider_client = provider_client
        self._provider_factory = provider_factory
        self._settings = cfg
        self._storage_key = getattr(cfg, "storage_key", "loreal.routineConversation.v1")
        self._undo_window = float(getattr(cfg, "undo_window_seconds", 10.0))
        self._include_web = bool(getattr(cfg, "include_web_results", False))
        self._gate = topic_gate or TopicGate.from_settings(cfg)
        self._on_render = on_render
        self._clock = clock
        self._state = ConversationState(conversation=[self._system_message()])
        self._notices: List[Notice] = []
        self._undo: Optional[UndoAction] = None
        self._pending = threading.Lock()

    # ---- 只读视图 ----

    @property
    def conversation(self) -> List[ChatMessage]:
        return list(self._state.conversation)

    @property
    def routine_generated(self) -> bool:
        return self._state.routine_generated

    @property
    def selected_products(self) -> Mapping[int, Product]:
        return MappingProxyType(self._state.selected_products)

    @property
    def include_web_results(self) -> bool:
        return self._include_web

    @property
    def undo_available(self) -> bool:
        return self._undo is not None and self._undo.available

    def set_include_web_results(self, enabled: bool) -> None:
        self._include_web = bool(enabled)

    def render(self) -> List[DisplayLine]:
        return render(self._state, self._notices)

    # ---- 持久化 ----

    def load_from_persistence(self) -> None:
        """从存储恢复会话；数据缺失或损坏时保持默认状态。"""

        try:
            raw = self._store.load(self._storage_key)
        except PersistenceFailure as e:
            self._log_persistence_failure("Failed to load conversation", e)
            return
        if not raw:
            return
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Failed to load conversation", extra={"extra": {"error": str(e)}})
            return
        if not isinstance(parsed, list):
            logger.warning("Stored conversation is not a list, ignored")
            return

        messages: List[ChatMessage] = []
        for item in parsed:
            try:
                messages.append(ChatMessage.from_dict(item))
            except ValueError:
                continue

        system = self._system_message()
        if not messages or messages[0].role != "system":
            messages.insert(0, system)
        elif messages[0] != system:
            messages[0] = system

        self._state.conversation = messages
        self._state.routine_generated = any(m.role == "assistant" for m in messages)
        self._notices = []
        logger.info(
            "Loaded conversation",
            extra={"extra": {"messages": len(messages), "routine_generated": self._state.routine_generated}},
        )
        self._render()

    # ---- 用户操作 ----

    def append_user_turn(self, text: str) -> bool:
        """追加一条用户追问并发送；返回是否真正发出了请求。"""

        text = (text or "").strip()
        if not text:
            return False

        if not self._gate.is_on_topic(text, self._state.selected_products.values()):
            self._reject(TopicRejected(code="TOPIC_REJECTED", message=TOPIC_REJECTED_MESSAGE))
            return False

        if not self._pending.acquire(blocking=False):
            self._reject(RequestPending(code="REQUEST_PENDING", message=PENDING_MESSAGE))
            return False
        try:
            self._state.conversation.append(ChatMessage(role="user", content=text))
            self._persist()
            self._render()
            web_queries = [text] if self._include_web else None
            self._dispatch("chat", web_queries)
        finally:
            self._pending.release()
        return True

    def append_generated_routine_turn(self, products: Optional[Iterable[Product]] = None) -> bool:
        """基于所选商品生成 routine；products 省略时使用当前选择。"""

        items = list(products) if products is not None else list(self._state.selected_products.values())
        if not items:
            self._reject(EmptySelection(code="EMPTY_SELECTION", message=EMPTY_SELECTION_MESSAGE))
            return False

        if not self._pending.acquire(blocking=False):
            self._reject(RequestPending(code="REQUEST_PENDING", message=PENDING_MESSAGE))
            return False
        try:
            content = build_routine_request([p.summary() for p in items])
            conversation = self._state.conversation
            # 连续点击生成且选择未变化时，不重复追加同样的请求
            if conversation[-1].content != content:
                conversation.append(ChatMessage(role="user", content=content))
                self._persist()
            self._render()
            web_queries = [p.name for p in items] if self._include_web else None
            self._dispatch("routine", web_queries)
        finally:
            self._pending.release()
        return True

    def clear_conversation(self) -> UndoAction:
        """清空会话与已选商品，返回可在时间窗口内执行一次的撤销动作。"""

        snapshot = self._state.snapshot()
        if self._undo is not None:
            self._undo.invalidate()

        try:
            self._store.remove(self._storage_key)
        except PersistenceFailure as e:
            self._log_persistence_failure("Failed to remove conversation from storage", e)

        self._state = ConversationState(conversation=[self._system_message()])
        self._notices = [Notice(position=1, line=DisplayLine(role="assistant", text=CLEARED_MESSAGE))]
        self._undo = UndoAction(
            lambda: self._restore(snapshot),
            window_seconds=self._undo_window,
            clock=self._clock,
        )
        logger.info("Cleared conversation", extra={"extra": {"messages": len(snapshot.conversation)}})
        self._render()
        return self._undo

    def undo(self) -> bool:
        """执行最近一次清空的撤销；不可用时什么也不做。"""

        if self._undo is None:
            return False
        return self._undo()

    # ---- 商品选择 ----

    def select_product(self, product: Product) -> None:
        self._state.selected_products[product.id] = product
        self._render()

    def deselect_product(self, product_id: int) -> bool:
        removed = self._state.selected_products.pop(product_id, None) is not None
        if removed:
            self._render()
        return removed

    def toggle_product(self, product: Product) -> bool:
        """切换选择状态；返回切换后是否处于选中状态。"""

        if product.id in self._state.selected_products:
            self.deselect_product(product.id)
            return False
        self.select_product(product)
        return True

    # ---- 内部实现 ----

    def _dispatch(self, model: str, web_queries: Optional[List[str]]) -> None:
        try:
            provider = self._provider_client or self._provider_factory(self._settings)
        except ConfigMissing as e:
            self._reject(e)
            return

        req = ChatRequest(
            model=model,
            messages=list(self._state.conversation),
            include_web_results=self._include_web,
            web_queries=web_queries,
        )
        log_ctx = {"provider": provider.name, "model": model, "messages": len(req.messages)}
        start_time = time.time()
        try:
            result = provider.chat(req)
        except ConfigMissing as e:
            self._reject(e)
            return
        except UpstreamError as e:
            status = f"{e.http_status} {e.extra.get('reason') or ''}".strip()
            logger.error("Completion API error", extra={"extra": {**log_ctx, "status": e.http_status}})
            self._notify(f"API error: {status} - {escape_html(e.message)}", markup=True)
            return
        except TransportFailure as e:
            logger.error("Completion request failed", extra={"extra": {**log_ctx, "error": e.message}})
            self._notify(f"Request failed: {escape_html(e.message)}", markup=True)
            return

        reply = result.reply_text or NO_RESPONSE_MESSAGE
        self._state.conversation.append(ChatMessage(role="assistant", content=reply))
        self._state.routine_generated = True
        self._persist()
        logger.info(
            "Completed dispatch",
            extra={"extra": {**log_ctx, "elapsed_seconds": round(time.time() - start_time, 2)}},
        )
        self._render()

    def _restore(self, snapshot: ConversationState) -> None:
        self._state = ConversationState(
            conversation=snapshot.conversation or [self._system_message()],
            routine_generated=snapshot.routine_generated,
            selected_products=snapshot.selected_products,
        )
        self._notices = []
        self._persist()
        logger.info("Restored cleared conversation", extra={"extra": {"messages": len(snapshot.conversation)}})
        self._render()

    def _persist(self) -> None:
        raw = json.dumps([m.to_dict() for m in self._state.conversation], ensure_ascii=False)
        try:
            self._store.save(self._storage_key, raw)
        except PersistenceFailure as e:
            self._log_persistence_failure("Failed to save conversation", e)

    def _reject(self, err: BusinessError) -> None:
        logger.info("Rejected action", extra={"extra": {"code": err.code}})
        self._notify(err.message)

    def _notify(self, text: str, markup: bool = False) -> None:
        line = DisplayLine(role="assistant", text=text, markup=markup)
        self._notices.append(Notice(position=len(self._state.conversation), line=line))
        self._render()

    def _render(self) -> None:
        if self._on_render is not None:
            self._on_render(self.render())

    @staticmethod
    def _system_message() -> ChatMessage:
        return ChatMessage(role="system", content=load_system_prompt())

    @staticmethod
    def _log_persistence_failure(msg: str, err: PersistenceFailure) -> None:
        logger.warning(msg, extra={"extra": {"code": err.code, "error": err.message}})
