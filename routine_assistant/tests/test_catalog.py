import json
import random
import tempfile
from pathlib import Path

import pytest

from routine_assistant.catalog import ProductCatalog
from routine_assistant.domain.exceptions import BusinessError


PRODUCTS = {
    "products": [
        {"id": 1, "name": "Foaming Cleanser", "brand": "CeraVe", "category": "cleanser", "description": "Gentle foam", "image": "a.png"},
        {"id": 2, "name": "Hydrating Serum", "brand": "La Roche-Posay", "category": "moisturizer", "description": "Hyaluronic", "keywords": "hydration"},
        {"id": 3, "name": "Volume Mascara", "brand": "Maybelline", "category": "makeup", "description": "Lash boost"},
    ]
}


def _catalog(d: str, data=PRODUCTS) -> ProductCatalog:
    path = Path(d) / "products.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return ProductCatalog(path)


def test_catalog_loads_once_and_caches():
    with tempfile.TemporaryDirectory() as d:
        catalog = _catalog(d)
        assert [p.id for p in catalog.all()] == [1, 2, 3]
        (Path(d) / "products.json").unlink()
        # 缓存后不再读盘
        assert catalog.get(2).name == "Hydrating Serum"
        assert catalog.get(99) is None


def test_catalog_filter_by_category_and_query():
    with tempfile.TemporaryDirectory() as d:
        catalog = _catalog(d)
        assert [p.id for p in catalog.filter(category="makeup")] == [3]
        assert [p.id for p in catalog.filter(query="HYDRATION")] == [2]
        assert [p.id for p in catalog.filter(query="cerave")] == [1]
        assert catalog.filter(category="makeup", query="cleanser") == []
        assert catalog.categories() == ["cleanser", "moisturizer", "makeup"]


def test_catalog_random_sample():
    with tempfile.TemporaryDirectory() as d:
        catalog = _catalog(d)
        picked = catalog.random_sample(2, rng=random.Random(0))
        assert len(picked) == 2
        assert len({p.id for p in picked}) == 2
        assert len(catalog.random_sample(10)) == 3


def test_catalog_malformed_file():
    with tempfile.TemporaryDirectory() as d:
        path = Path(d) / "products.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(BusinessError) as ei:
            ProductCatalog(path).all()
        assert ei.value.code == "CATALOG_READ_ERROR"
        with pytest.raises(BusinessError):
            _catalog(d, data={"items": []}).all()
