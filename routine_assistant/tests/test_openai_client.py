import httpx
import pytest

from routine_assistant.domain.exceptions import ConfigMissing, TransportFailure, UpstreamError
from routine_assistant.domain.models import ChatMessage, ChatRequest
from routine_assistant.providers.openai_client import OpenAIClient


class SettingsStub:
    openai_api_key = "sk-test-1234567890"
    http_timeout = 1.0
    openai_base_url = "https://api.openai.com/v1"


def _fake_client(resp=None, exc=None, captured=None):
    class Client:
        def __init__(self, *a, **kw):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def post(self, url, json=None, headers=None, **_):
            if captured is not None:
                captured["url"] = url
                captured["payload"] = json
                captured["headers"] = headers
            if exc is not None:
                raise exc
            return resp

    return Client


class Resp:
    def __init__(self, status_code=200, data=None, text="", reason_phrase="OK"):
        self.status_code = status_code
        self._data = data
        self.text = text
        self.reason_phrase = reason_phrase

    def json(self):
        return self._data


def _req(model="chat"):
    return ChatRequest(model=model, messages=[ChatMessage(role="system", content="sys"), ChatMessage(role="user", content="hi")])


def test_openai_client_payload_and_parse(monkeypatch):
    captured = {}
    data = {
        "choices": [{"message": {"role": "assistant", "content": "ok"}, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 1, "completion_tokens": 1, "total_tokens": 2},
    }
    monkeypatch.setattr("httpx.Client", _fake_client(Resp(data=data), captured=captured))
    res = OpenAIClient(SettingsStub()).chat(_req("routine"))
    assert res.reply_text == "ok"
    assert res.usage.total_tokens == 2
    assert captured["url"] == "https://api.openai.com/v1/chat/completions"
    assert captured["headers"]["Authorization"] == "Bearer sk-test-1234567890"
    assert captured["payload"] == {
        "model": "gpt-4o",
        "messages": [{"role": "system", "content": "sys"}, {"role": "user", "content": "hi"}],
        "max_tokens": 700,
        "temperature": 0.7,
    }


def test_openai_client_falls_back_to_text_shape(monkeypatch):
    data = {"choices": [{"text": "legacy reply"}]}
    monkeypatch.setattr("httpx.Client", _fake_client(Resp(data=data)))
    res = OpenAIClient(SettingsStub()).chat(_req())
    assert res.reply_text == "legacy reply"


def test_openai_client_empty_choices(monkeypatch):
    monkeypatch.setattr("httpx.Client", _fake_client(Resp(data={"choices": []})))
    res = OpenAIClient(SettingsStub()).chat(_req())
    assert res.reply_text is None


def test_openai_client_missing_key():
    class NoKey(SettingsStub):
        openai_api_key = None

    with pytest.raises(ConfigMissing):
        OpenAIClient(NoKey()).chat(_req())


def test_openai_client_error_status(monkeypatch):
    resp = Resp(status_code=401, text='{"error": "bad key"}', reason_phrase="Unauthorized")
    monkeypatch.setattr("httpx.Client", _fake_client(resp))
    with pytest.raises(UpstreamError) as ei:
        OpenAIClient(SettingsStub()).chat(_req())
    assert ei.value.http_status == 401
    assert ei.value.message == '{"error": "bad key"}'
    assert ei.value.extra["reason"] == "Unauthorized"


def test_openai_client_transport_failure(monkeypatch):
    monkeypatch.setattr("httpx.Client", _fake_client(exc=httpx.ConnectError("boom")))
    with pytest.raises(TransportFailure) as ei:
        OpenAIClient(SettingsStub()).chat(_req())
    assert "boom" in ei.value.message
