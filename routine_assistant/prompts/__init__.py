"""提示词加载工具。

按语言(locale) 从 prompts/<locale> 目录读取：
- routine_system.md: 固定的 system 消息（会话的第一条）。
- routine_request.md: 生成 routine 时的用户指令模板，{products_json} 为占位符。
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List


PROMPTS_DIR = Path(__file__).resolve().parent


@lru_cache(maxsize=None)
def load_system_prompt(locale: str = "en") -> str:
    """加载规范的 system 消息文本；结果缓存，保证每次加载得到完全相同的内容。"""

    fname = PROMPTS_DIR / locale / "routine_system.md"
    return fname.read_text(encoding="utf-8").strip()


@lru_cache(maxsize=None)
def _load_request_template(locale: str) -> str:
    return (PROMPTS_DIR / locale / "routine_request.md").read_text(encoding="utf-8").strip()


def build_routine_request(products: List[Dict[str, Any]], locale: str = "en") -> str:
    """把商品摘要列表嵌入 routine 指令模板。"""

    products_json = json.dumps(products, indent=2, ensure_ascii=False)
    # 用 replace 而不是 format，商品描述里可能出现花括号
    return _load_request_template(locale).replace("{products_json}", products_json)
