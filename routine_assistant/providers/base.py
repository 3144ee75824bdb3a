"""Provider 抽象接口。

对话管理器不直接依赖具体的 HTTP 调用方式，而是依赖此协议：

- GatewayClient: 发往自建的 Completion Gateway（密钥留在服务端）。
- OpenAIClient: 直连 OpenAI Chat Completions（密钥在本地配置）。

两者都负责：将 ChatRequest 转成请求体，并把响应 JSON 解析为 ChatResult。
"""

from typing import Any, Dict, List, Protocol

from routine_assistant.domain.models import ChatChoice, ChatMessage, ChatRequest, ChatResult, ChatUsage
from routine_assistant.providers.registry import ModelConfig


class ProviderClient(Protocol):
    """补全 Provider 客户端协议。

    实现者需要提供：
    - name: Provider 名称，用于日志/统计。
    - chat(req): 执行一次非流式对话调用，返回统一的 ChatResult。
    """

    name: str

    def chat(self, req: ChatRequest) -> ChatResult:
        ...


def build_completion_payload(req: ChatRequest, model_cfg: ModelConfig) -> Dict[str, Any]:
    """两种 Provider 共用的请求体：{model, messages, max_tokens, temperature}。"""

    temperature = req.temperature if req.temperature is not None else model_cfg.default_temperature
    return {
        "model": model_cfg.provider_model,
        "messages": [m.to_dict() for m in req.messages],
        "max_tokens": req.max_tokens or model_cfg.max_tokens,
        "temperature": temperature,
    }


def parse_completion_response(data: Any, provider: str, req: ChatRequest) -> ChatResult:
    """将补全 API 的原始响应 JSON 解析为统一的 ChatResult。

    兼容两种形态：chat 形态的 choices[i].message.content，
    以及旧版 completions 形态的 choices[i].text。
    """

    if not isinstance(data, dict):
        return ChatResult(provider=provider, model=req.model, raw=None)
    choices: List[ChatChoice] = []
    for i, ch in enumerate(data.get("choices") or []):
        if not isinstance(ch, dict):
            continue
        msg = ch.get("message") or {}
        content = msg.get("content") if isinstance(msg, dict) else None
        if not content:
            content = ch.get("text") or ""
        choices.append(
            ChatChoice(
                index=ch.get("index", i),
                message=ChatMessage(role="assistant", content=str(content)),
                finish_reason=ch.get("finish_reason"),
            )
        )
    usage = None
    usage_raw = data.get("usage") or {}
    if usage_raw:
        usage = ChatUsage(
            prompt_tokens=usage_raw.get("prompt_tokens", 0),
            completion_tokens=usage_raw.get("completion_tokens", 0),
            total_tokens=usage_raw.get("total_tokens", 0),
        )
    return ChatResult(provider=provider, model=req.model, choices=choices, usage=usage, raw=data)
