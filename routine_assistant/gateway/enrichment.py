"""在转发前为补全请求附加网页搜索摘要。

搜索失败按查询粒度吞掉，只记录 warning；所有查询都没有结果时请求保持原样。
"""

from typing import Any, Dict, List, Optional

from routine_assistant.domain.exceptions import TransportFailure, UpstreamError
from routine_assistant.gateway.search import SearchSummary, WebSearchClient
from routine_assistant.infrastructure.logging.logger import logger


MAX_QUERY_CHARS = 500
TOP_RESULTS = 3
CLIENT_ONLY_FIELDS = ("include_web_results", "web_queries")


async def collect_web_summaries(searcher: WebSearchClient, queries: List[Any]) -> List[SearchSummary]:
    summaries: List[SearchSummary] = []
    for q in queries:
        qstr = str(q)[:MAX_QUERY_CHARS]
        try:
            hits = await searcher.search(qstr, top=TOP_RESULTS)
        except (UpstreamError, TransportFailure) as e:
            logger.warning(
                "Web search failed",
                extra={"extra": {"provider": searcher.name, "code": e.code, "error": e.message[:200]}},
            )
            continue
        except Exception as e:
            logger.warning(
                "Web search failed",
                extra={"extra": {"provider": searcher.name, "error": repr(e)[:200]}},
            )
            continue
        summaries.append(SearchSummary(query=qstr, results=hits))
    return summaries


def build_web_system_message(summaries: List[SearchSummary]) -> Optional[Dict[str, str]]:
    """把搜索结果汇总成一条 system 消息；没有任何结果时返回 None。"""

    blocks = []
    for s in summaries:
        if not s.results:
            continue
        top = "\n".join(f"- {r.name}: {r.snippet} ({r.url})" for r in s.results)
        blocks.append(f'Web search for "{s.query}":\n{top}')
    if not blocks:
        return None
    content = (
        "Included web search results (top matches):\n"
        + "\n\n".join(blocks)
        + "\n\nUse these findings to inform your reply when relevant."
    )
    return {"role": "system", "content": content}


async def enrich_payload(payload: Dict[str, Any], searcher: Optional[WebSearchClient]) -> Dict[str, Any]:
    """返回发往上游的请求体：按需前置搜索摘要，并去掉仅供网关使用的字段。"""

    body = {k: v for k, v in payload.items() if k not in CLIENT_ONLY_FIELDS}
    queries = payload.get("web_queries")
    if not (payload.get("include_web_results") and isinstance(queries, list) and searcher is not None):
        return body

    summaries = await collect_web_summaries(searcher, queries)
    web_system = build_web_system_message(summaries)
    if web_system is None:
        return body

    messages = body.get("messages")
    body["messages"] = [web_system, *messages] if isinstance(messages, list) else [web_system]
    logger.info(
        "Attached web search results",
        extra={"extra": {"queries": len(queries), "with_results": sum(1 for s in summaries if s.results)}},
    )
    return body
