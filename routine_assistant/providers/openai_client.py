"""OpenAI Provider 适配器（直连）。

- URL: {base_url}/chat/completions
- 认证: Authorization: Bearer <api_key>

仅在未配置网关时使用；密钥由本地部署配置提供。
"""

import httpx

from routine_assistant.config.settings import settings
from routine_assistant.domain.exceptions import ConfigMissing, TransportFailure, UpstreamError
from routine_assistant.domain.models import ChatRequest, ChatResult
from routine_assistant.providers.base import build_completion_payload, parse_completion_response
from routine_assistant.providers.registry import OPENAI_CONFIG, get_model_config


MISSING_KEY_MESSAGE = (
    "OpenAI API key not found. Set OPENAI_API_KEY in your environment, .env or config.yaml, "
    "or configure PROXY_URL to use the completion gateway."
)


class OpenAIClient:
    """OpenAI Chat Completions 客户端实现。"""

    name = "openai"

    def __init__(self, cfg=settings):
        self._settings = cfg

    def chat(self, req: ChatRequest) -> ChatResult:
        api_key = getattr(self._settings, "openai_api_key", None)
        if not api_key:
            raise ConfigMissing(code="MISSING_API_KEY", message=MISSING_KEY_MESSAGE)
        model_cfg = get_model_config(req.model)
        payload = build_completion_payload(req, model_cfg)
        base = getattr(self._settings, "openai_base_url", None) or OPENAI_CONFIG.base_url
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = client.post(
                    f"{base.rstrip('/')}/chat/completions",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {api_key}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            # DNS 失败、连接超时等
            raise TransportFailure(code="NETWORK_ERROR", message=str(e))
        if resp.status_code >= 400:
            raise UpstreamError(
                code="API_ERROR",
                message=resp.text,
                http_status=resp.status_code,
                reason=resp.reason_phrase,
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError(code="BAD_RESPONSE", message=str(e), http_status=resp.status_code)
        return parse_completion_response(data, self.name, req)
