import io
import json
import tempfile
from pathlib import Path

import pytest

from routine_assistant.assistant.commands import CommandDispatcher
from routine_assistant.assistant.console import ConsoleApp
from routine_assistant.assistant.manager import ConversationManager
from routine_assistant.catalog import ProductCatalog
from routine_assistant.domain.exceptions import BusinessError
from routine_assistant.domain.models import ChatChoice, ChatMessage, ChatResult
from routine_assistant.infrastructure.storage.json_store import MemoryConversationStore


class SettingsStub:
    proxy_url = None
    openai_api_key = None
    storage_key = "test.conversation"
    undo_window_seconds = 10.0
    include_web_results = False


class FakeProvider:
    name = "fake"

    def chat(self, req):
        msg = ChatMessage(role="assistant", content="1. Cleanse 2. Moisturize")
        return ChatResult(provider="fake", model=req.model, choices=[ChatChoice(index=0, message=msg)])


def _setup(d):
    path = Path(d) / "products.json"
    path.write_text(
        json.dumps(
            {
                "products": [
                    {"id": 1, "name": "Foaming Cleanser", "brand": "CeraVe", "category": "cleanser", "description": "Foam"},
                    {"id": 2, "name": "Daily Lotion", "brand": "CeraVe", "category": "moisturizer", "description": "Lotion"},
                ]
            }
        ),
        encoding="utf-8",
    )
    catalog = ProductCatalog(path)
    manager = ConversationManager(
        store=MemoryConversationStore(),
        provider_client=FakeProvider(),
        cfg=SettingsStub(),
    )
    return manager, catalog


def test_dispatcher_routes_commands():
    with tempfile.TemporaryDirectory() as d:
        manager, catalog = _setup(d)
        dispatcher = CommandDispatcher(manager, catalog)
        assert set(dispatcher.commands) == {"submit", "generate", "clear", "undo", "select", "deselect"}

        dispatcher.dispatch("select", "1")
        dispatcher.dispatch("select", 2)
        assert list(manager.selected_products) == [1, 2]
        dispatcher.dispatch("deselect", 2)
        assert list(manager.selected_products) == [1]

        dispatcher.dispatch("generate")
        assert manager.conversation[-1].content == "1. Cleanse 2. Moisturize"

        dispatcher.dispatch("clear")
        assert len(manager.conversation) == 1
        assert dispatcher.dispatch("undo") is True
        assert manager.conversation[-1].content == "1. Cleanse 2. Moisturize"


def test_dispatcher_errors():
    with tempfile.TemporaryDirectory() as d:
        manager, catalog = _setup(d)
        dispatcher = CommandDispatcher(manager, catalog)
        with pytest.raises(BusinessError) as ei:
            dispatcher.dispatch("teleport")
        assert ei.value.code == "UNKNOWN_COMMAND"
        with pytest.raises(BusinessError) as ei:
            dispatcher.dispatch("select", 42)
        assert ei.value.code == "PRODUCT_NOT_FOUND"


def test_console_session():
    with tempfile.TemporaryDirectory() as d:
        manager, catalog = _setup(d)
        out = io.StringIO()
        app = ConsoleApp(manager, catalog, out=out)

        assert app.handle("/products cleanser") is True
        assert "Foaming Cleanser" in out.getvalue()
        assert "Daily Lotion" not in out.getvalue()

        app.handle("/select 1")
        assert "selected: Foaming Cleanser" in out.getvalue()
        app.handle("/generate")
        app.show(manager.render())
        assert "[assistant] 1. Cleanse 2. Moisturize" in out.getvalue()

        app.handle("/select 99")
        assert "error: No product with id 99" in out.getvalue()
        app.handle("/web on")
        assert manager.include_web_results is True
        assert app.handle("/quit") is False
