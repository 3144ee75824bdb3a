"""配置管理模块。

支持从 .env、config.yaml 以及环境变量加载配置。
客户端（对话管理器）与网关共享同一份 Settings，各自只读取与自己相关的字段。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# 话题门控的默认关键词（子串匹配，大小写不敏感）
DEFAULT_TOPIC_KEYWORDS = [
    "skin",
    "skincare",
    "moistur",
    "cleanser",
    "serum",
    "retinol",
    "sunscreen",
    "spf",
    "hydration",
    "hyaluronic",
    "niacinamide",
    "ceramide",
    "acne",
    "sensitive",
    "oil",
    "dry",
    "hair",
    "shampoo",
    "conditioner",
    "styling",
    "color",
    "makeup",
    "foundation",
    "mascara",
    "fragrance",
    "perfume",
    "scent",
    "routine",
    "step",
    "am",
    "pm",
    "night",
    "morning",
    "ingredient",
]

# 允许的简短追问前缀，例如 "Why?"、"How often?"
DEFAULT_TOPIC_PREFIXES = ["why", "how", "when", "frequency", "can i", "should i"]


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("ROUTINE_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
        Path(__file__).resolve().parents[1] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class Settings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- 客户端：请求发往何处 ----
    proxy_url: Optional[str] = Field(
        default=None,
        description="Completion Gateway 地址；设置后优先走网关，客户端无需密钥",
    )
    openai_api_key: Optional[str] = Field(default=None, description="直连时使用的 OpenAI API 密钥")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI API 基础URL",
    )
    include_web_results: bool = Field(
        default=False,
        description="是否请求网关附带实时网页搜索结果",
    )

    # ---- 网关：服务端持有的密钥 ----
    gateway_openai_api_key: Optional[str] = Field(
        default=None,
        description="网关转发上游时使用的 OpenAI API 密钥",
    )
    bing_api_key: Optional[str] = Field(default=None, description="Bing Web Search 密钥")
    bing_endpoint: str = Field(
        default="https://api.bing.microsoft.com/v7.0/search",
        description="Bing Web Search 端点",
    )
    gateway_host: str = Field(default="127.0.0.1", description="网关监听地址")
    gateway_port: int = Field(default=8787, ge=1, le=65535, description="网关监听端口")

    http_timeout: float = Field(default=30.0, ge=1.0, description="HTTP 超时时间（秒）")
    storage_root: str = Field(default=".storage", description="存储根目录")
    storage_key: str = Field(
        default="loreal.routineConversation.v1",
        description="会话持久化使用的固定键名",
    )
    catalog_path: str = Field(default="products.json", description="商品目录 JSON 文件")
    log_dir: str = Field(default="logs", description="日志目录")
    log_file: str = Field(default="assistant.log", description="日志文件名（位于 log_dir 下）")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")
    undo_window_seconds: float = Field(default=10.0, gt=0, description="清空会话后可撤销的时间窗口（秒）")

    # ---- 话题门控 ----
    topic_keywords: List[str] = Field(default_factory=lambda: list(DEFAULT_TOPIC_KEYWORDS))
    topic_prefixes: List[str] = Field(default_factory=lambda: list(DEFAULT_TOPIC_PREFIXES))

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("openai_api_key", "gateway_openai_api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v and len(v) < 10:
            raise ValueError("API key seems too short")
        return v

    @field_validator("proxy_url")
    @classmethod
    def blank_proxy_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )


settings = Settings()
