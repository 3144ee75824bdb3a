"""商品目录：加载一次并在会话内缓存，提供分类/关键字过滤与随机展示。"""

from routine_assistant.catalog.loader import ProductCatalog

__all__ = ["ProductCatalog"]
