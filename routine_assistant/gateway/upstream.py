"""转发到上游 OpenAI Chat Completions。"""

from typing import Any, Dict, List, Tuple

import httpx

from routine_assistant.domain.exceptions import TransportFailure
from routine_assistant.providers.registry import OPENAI_CONFIG


# 不应透传给浏览器的逐跳头；content-encoding/content-length 由重新组装的响应决定
DROPPED_RESPONSE_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
    "content-encoding",
    "content-length",
}


async def forward_completion(
    payload: Dict[str, Any],
    api_key: str,
    base_url: str = OPENAI_CONFIG.base_url,
    timeout: float = 30.0,
) -> httpx.Response:
    try:
        async with httpx.AsyncClient(timeout=timeout, trust_env=False) as client:
            return await client.post(
                f"{base_url.rstrip('/')}/chat/completions",
                json=payload,
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json",
                },
            )
    except httpx.RequestError as e:
        raise TransportFailure(code="UPSTREAM_NETWORK_ERROR", message=str(e), http_status=502)


def relay_headers(resp: httpx.Response) -> List[Tuple[str, str]]:
    return [
        (k, v)
        for k, v in resp.headers.multi_items()
        if k.lower() not in DROPPED_RESPONSE_HEADERS
    ]
