"""话题门控：拒绝与护肤/美妆 routine 无关的追问。"""

from typing import Iterable, Optional, Sequence

from routine_assistant.config.settings import DEFAULT_TOPIC_KEYWORDS, DEFAULT_TOPIC_PREFIXES
from routine_assistant.domain.models import Product


class TopicGate:
    """基于关键词与已选商品名的启发式判断。

    满足任一条件即视为切题：
    1. 文本（小写）包含任一关键词；
    2. 文本包含任一已选商品的名称（大小写不敏感）；
    3. 去掉首尾空白后的小写文本以允许的简短前缀开头（如 "why"、"can i"）。
    """

    def __init__(
        self,
        keywords: Optional[Sequence[str]] = None,
        prefixes: Optional[Sequence[str]] = None,
    ):
        source_keywords = DEFAULT_TOPIC_KEYWORDS if keywords is None else keywords
        source_prefixes = DEFAULT_TOPIC_PREFIXES if prefixes is None else prefixes
        self._keywords = [k.lower() for k in source_keywords if k]
        self._prefixes = [p.lower() for p in source_prefixes if p]

    @classmethod
    def from_settings(cls, cfg) -> "TopicGate":
        return cls(
            keywords=getattr(cfg, "topic_keywords", None),
            prefixes=getattr(cfg, "topic_prefixes", None),
        )

    def is_on_topic(self, text: str, selected_products: Iterable[Product] = ()) -> bool:
        if not text:
            return False
        lower = text.lower()

        if any(kw in lower for kw in self._keywords):
            return True

        for product in selected_products:
            name = (product.name or "").lower()
            if name and name in lower:
                return True

        stripped = lower.strip()
        return any(stripped.startswith(prefix) for prefix in self._prefixes)
