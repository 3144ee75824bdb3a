"""统一的对话、商品与结果数据模型。

本模块定义了客户端与网关之间共享的标准数据结构：

- ChatMessage: 一条对话消息（system/user/assistant）。
- Product: 商品目录中的一条只读记录。
- ChatRequest: 发给 Provider（网关或直连 API）的完整请求。
- ChatResult: 从 Provider 解析后的统一响应结果。

所有 Provider 适配器都只依赖这些模型，
并负责在各自的 API JSON 和这些模型之间做转换。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional


# 消息角色类型（与 OpenAI Chat Completions 的 role 字段对应）
Role = Literal["system", "user", "assistant"]

ROLES = ("system", "user", "assistant")


@dataclass
class ChatMessage:
    """一条对话消息，既可用于请求，也可用于持久化。"""

    role: Role
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatMessage":
        """从持久化的 {role, content} 结构恢复消息。

        role 不合法或结构不是 dict 时抛出 ValueError，由调用方决定是否跳过。
        """

        if not isinstance(data, dict):
            raise ValueError(f"message must be an object, got {type(data).__name__}")
        role = data.get("role")
        if role not in ROLES:
            raise ValueError(f"unknown role: {role!r}")
        content = data.get("content")
        return cls(role=role, content="" if content is None else str(content))


@dataclass
class Product:
    """商品目录中的一条记录（对核心逻辑只读）。"""

    id: int
    name: str
    brand: str = ""
    category: str = ""
    description: str = ""
    image: str = ""
    keywords: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        keywords = data.get("keywords") or ""
        if isinstance(keywords, (list, tuple)):
            keywords = " ".join(str(k) for k in keywords)
        return cls(
            id=data["id"],
            name=str(data.get("name") or ""),
            brand=str(data.get("brand") or ""),
            category=str(data.get("category") or ""),
            description=str(data.get("description") or ""),
            image=str(data.get("image") or ""),
            keywords=str(keywords),
        )

    def summary(self) -> Dict[str, str]:
        """生成 routine 请求时发给模型的商品摘要。"""

        return {
            "name": self.name,
            "brand": self.brand,
            "category": self.category,
            "description": self.description,
        }


@dataclass
class ChatRequest:
    """一次完整的补全请求。

    Provider 适配层负责把本结构转换成网关或 OpenAI 的 JSON 请求体。
    include_web_results / web_queries 只对网关有意义，直连时会被忽略。
    """

    model: str  # 逻辑模型名，如 "chat"、"routine"（由 registry 映射为真实模型名）
    messages: List[ChatMessage]
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    include_web_results: bool = False
    web_queries: Optional[List[str]] = None


@dataclass
class ChatUsage:
    """Provider 返回的 token 统计信息（统一格式）。"""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class ChatChoice:
    """单个候选回答（目前只用 index=0 的一条）。"""

    index: int
    message: ChatMessage
    finish_reason: Optional[str] = None


@dataclass
class ChatResult:
    """一次补全调用的最终结果。"""

    provider: str
    model: str
    choices: List[ChatChoice] = field(default_factory=list)
    usage: Optional[ChatUsage] = None
    raw: Optional[dict] = None

    @property
    def reply_text(self) -> Optional[str]:
        """第一个候选回答的文本；没有候选或内容为空时返回 None。"""

        if not self.choices:
            return None
        return self.choices[0].message.content or None
