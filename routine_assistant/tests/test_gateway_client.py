from routine_assistant.domain.models import ChatMessage, ChatRequest
from routine_assistant.providers.gateway_client import GatewayClient


class SettingsStub:
    proxy_url = "https://gateway.example/"
    http_timeout = 1.0


def _capture_client(captured, data):
    class Resp:
        status_code = 200
        text = ""
        reason_phrase = "OK"

        def json(self):
            return data

    class Client:
        def __init__(self, *a, **kw):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def post(self, url, json=None, **_):
            captured["url"] = url
            captured["payload"] = json
            return Resp()

    return Client


def test_gateway_client_sends_web_fields(monkeypatch):
    captured = {}
    data = {"choices": [{"message": {"role": "assistant", "content": "routine"}}]}
    monkeypatch.setattr("httpx.Client", _capture_client(captured, data))
    req = ChatRequest(
        model="chat",
        messages=[ChatMessage(role="user", content="how often?")],
        include_web_results=True,
        web_queries=["how often?"],
    )
    res = GatewayClient(SettingsStub()).chat(req)
    assert res.reply_text == "routine"
    assert captured["url"] == "https://gateway.example/"
    payload = captured["payload"]
    assert payload["model"] == "gpt-4o"
    assert payload["max_tokens"] == 600
    assert payload["temperature"] == 0.7
    assert payload["include_web_results"] is True
    assert payload["web_queries"] == ["how often?"]


def test_gateway_client_omits_queries_when_web_disabled(monkeypatch):
    captured = {}
    monkeypatch.setattr("httpx.Client", _capture_client(captured, {"choices": []}))
    req = ChatRequest(model="routine", messages=[ChatMessage(role="user", content="x")], web_queries=["ignored"])
    GatewayClient(SettingsStub()).chat(req)
    assert captured["payload"]["include_web_results"] is False
    assert "web_queries" not in captured["payload"]
