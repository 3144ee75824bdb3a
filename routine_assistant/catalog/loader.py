from __future__ import annotations

import json
import random
from pathlib import Path
from typing import Dict, List, Optional

from routine_assistant.config.settings import settings
from routine_assistant.domain.exceptions import BusinessError
from routine_assistant.domain.models import Product
from routine_assistant.infrastructure.logging.logger import logger


class ProductCatalog:
    """静态 JSON 商品目录 {"products": [...]}。

    首次访问时读取文件，之后复用缓存，不会重复读盘。
    """

    def __init__(self, path: str | Path | None = None):
        self._path = Path(path or settings.catalog_path)
        self._products: Optional[List[Product]] = None

    def all(self) -> List[Product]:
        if self._products is None:
            self._products = self._read()
        return list(self._products)

    def get(self, product_id: int) -> Optional[Product]:
        for p in self.all():
            if p.id == product_id:
                return p
        return None

    def categories(self) -> List[str]:
        seen: Dict[str, None] = {}
        for p in self.all():
            if p.category:
                seen.setdefault(p.category, None)
        return list(seen)

    def filter(self, category: Optional[str] = None, query: str = "") -> List[Product]:
        """按分类（精确）与关键字（在 name/brand/description/keywords 中子串匹配）过滤。"""

        results = self.all()
        if category:
            results = [p for p in results if p.category == category]
        q = (query or "").strip().lower()
        if q:
            results = [
                p
                for p in results
                if q in f"{p.name} {p.brand} {p.description} {p.keywords}".lower()
            ]
        return results

    def random_sample(self, count: int, rng: Optional[random.Random] = None) -> List[Product]:
        """不放回地随机取最多 count 个商品，用于首屏展示。"""

        items = self.all()
        n = max(0, min(count, len(items)))
        return (rng or random).sample(items, n)

    def _read(self) -> List[Product]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(
                "Failed to load product catalog",
                extra={"extra": {"path": str(self._path), "error": str(e)}},
            )
            raise BusinessError(code="CATALOG_READ_ERROR", message=str(e))
        raw = data.get("products") if isinstance(data, dict) else None
        if not isinstance(raw, list):
            raise BusinessError(code="CATALOG_READ_ERROR", message="catalog has no 'products' array")
        products: List[Product] = []
        for item in raw:
            try:
                products.append(Product.from_dict(item))
            except (KeyError, TypeError, AttributeError):
                continue
        logger.info("Loaded product catalog", extra={"extra": {"count": len(products)}})
        return products
