"""Completion Gateway 客户端。

请求体与 OpenAI 相同，额外携带 include_web_results / web_queries 两个字段，
由网关决定是否附加网页搜索摘要。客户端不持有任何密钥。
"""

import httpx

from routine_assistant.config.settings import settings
from routine_assistant.domain.exceptions import ConfigMissing, TransportFailure, UpstreamError
from routine_assistant.domain.models import ChatRequest, ChatResult
from routine_assistant.providers.base import build_completion_payload, parse_completion_response
from routine_assistant.providers.registry import get_model_config


class GatewayClient:
    """经由网关转发的补全客户端。"""

    name = "gateway"

    def __init__(self, cfg=settings):
        self._settings = cfg

    def chat(self, req: ChatRequest) -> ChatResult:
        url = getattr(self._settings, "proxy_url", None)
        if not url:
            raise ConfigMissing(code="MISSING_PROXY_URL", message="PROXY_URL not set")
        payload = build_completion_payload(req, get_model_config(req.model))
        payload["include_web_results"] = bool(req.include_web_results)
        # 未启用搜索时不发送 web_queries，与浏览器端 JSON.stringify 丢弃 undefined 的行为一致
        if req.include_web_results and req.web_queries:
            payload["web_queries"] = list(req.web_queries)
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = client.post(url, json=payload, headers={"Content-Type": "application/json"})
        except httpx.RequestError as e:
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
