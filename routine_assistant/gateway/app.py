"""Completion Gateway：隐藏 OpenAI 密钥的轻量转发服务。

- POST /: 请求体与 OpenAI Chat Completions 相同，另可带 include_web_results / web_queries。
- OPTIONS /: CORS 预检，返回 204。
- 其他方法: 405。

上游的状态码与响应体原样返回，只去掉逐跳头并重新设置 CORS 头。
鉴权、限流等防滥用措施不在本服务范围内。
"""

import json
import time
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response

from routine_assistant.config.settings import settings
from routine_assistant.domain.exceptions import BadRequestBody, TransportFailure
from routine_assistant.gateway.enrichment import enrich_payload
from routine_assistant.gateway.search import BingSearchClient, WebSearchClient
from routine_assistant.gateway.upstream import forward_completion, relay_headers
from routine_assistant.infrastructure.logging.logger import logger


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def _plain(text: str, status_code: int) -> PlainTextResponse:
    return PlainTextResponse(text, status_code=status_code, headers=CORS_HEADERS)


def _parse_body(raw: bytes) -> Dict[str, Any]:
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise BadRequestBody(code="INVALID_JSON", message="Invalid JSON body")
    if not isinstance(payload, dict):
        raise BadRequestBody(code="INVALID_JSON", message="Invalid JSON body")
    return payload


def create_app(cfg=settings, searcher: Optional[WebSearchClient] = None) -> FastAPI:
    """创建网关应用；searcher 省略时按配置中的 bing_api_key 决定是否启用搜索。"""

    app = FastAPI(
        title="Routine Completion Gateway",
        description="Forwards chat completion requests upstream without exposing the API key.",
        version="0.1.0",
    )

    def get_searcher() -> Optional[WebSearchClient]:
        if searcher is not None:
            return searcher
        key = getattr(cfg, "bing_api_key", None)
        if not key:
            return None
        return BingSearchClient(key, cfg.bing_endpoint, timeout=cfg.http_timeout)

    @app.options("/")
    async def preflight() -> Response:
        return Response(status_code=204, headers=CORS_HEADERS)

    @app.api_route("/", methods=["GET", "HEAD", "PUT", "PATCH", "DELETE"])
    async def method_not_allowed() -> Response:
        return _plain("Method Not Allowed", 405)

    @app.post("/")
    async def complete(request: Request) -> Response:
        api_key = getattr(cfg, "gateway_openai_api_key", None)
        if not api_key:
            logger.error("Gateway API key not configured")
            return _plain("Server error: API key not configured", 500)

        try:
            payload = _parse_body(await request.body())
        except BadRequestBody as e:
            logger.warning("Rejected request body", extra={"extra": {"code": e.code}})
            return _plain(e.message, e.http_status)

        body = await enrich_payload(payload, get_searcher())

        start_time = time.time()
        try:
            upstream = await forward_completion(
                body,
                api_key,
                base_url=getattr(cfg, "openai_base_url", None) or "https://api.openai.com/v1",
                timeout=cfg.http_timeout,
            )
        except TransportFailure as e:
            logger.error("Upstream request failed", extra={"extra": {"error": e.message}})
            return _plain("Upstream request failed", e.http_status)

        logger.info(
            "Forwarded completion",
            extra={"extra": {
                "status": upstream.status_code,
                "model": body.get("model"),
                "elapsed_seconds": round(time.time() - start_time, 2),
            }},
        )
        response = Response(content=upstream.content, status_code=upstream.status_code)
        for k, v in relay_headers(upstream):
            response.headers.append(k, v)
        response.headers["Access-Control-Allow-Origin"] = CORS_HEADERS["Access-Control-Allow-Origin"]
        response.headers["Access-Control-Allow-Methods"] = CORS_HEADERS["Access-Control-Allow-Methods"]
        response.headers["Access-Control-Allow-Headers"] = CORS_HEADERS["Access-Control-Allow-Headers"]
        return response

    return app


app = create_app()


def main() -> None:
    import uvicorn

    uvicorn.run(app, host=settings.gateway_host, port=settings.gateway_port)


if __name__ == "__main__":
    main()
