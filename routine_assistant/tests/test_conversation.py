import pytest

from routine_assistant.domain.conversation import ConversationState
from routine_assistant.domain.models import ChatMessage, Product


def test_models_exist():
    cm = ChatMessage(role="user", content="hi")
    assert cm.to_dict() == {"role": "user", "content": "hi"}
    assert ChatMessage.from_dict({"role": "assistant", "content": "ok"}) == ChatMessage(role="assistant", content="ok")


def test_message_from_dict_rejects_unknown_role():
    with pytest.raises(ValueError):
        ChatMessage.from_dict({"role": "tool", "content": "x"})
    with pytest.raises(ValueError):
        ChatMessage.from_dict("not a message")


def test_product_from_dict_and_summary():
    p = Product.from_dict(
        {
            "id": 7,
            "name": "Hydrating Serum",
            "brand": "CeraVe",
            "category": "skincare",
            "description": "Hyaluronic acid serum",
            "image": "serum.png",
            "keywords": ["serum", "hydration"],
        }
    )
    assert p.keywords == "serum hydration"
    assert p.summary() == {
        "name": "Hydrating Serum",
        "brand": "CeraVe",
        "category": "skincare",
        "description": "Hyaluronic acid serum",
    }


def test_state_snapshot_is_deep_copy():
    p = Product(id=1, name="Cleanser")
    state = ConversationState(
        conversation=[ChatMessage(role="system", content="sys")],
        selected_products={1: p},
    )
    snap = state.snapshot()
    state.conversation.append(ChatMessage(role="user", content="x"))
    state.selected_products[1].name = "changed"
    assert len(snap.conversation) == 1
    assert snap.selected_products[1].name == "Cleanser"
