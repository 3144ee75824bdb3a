"""Provider 与模型配置。

本模块将“逻辑模型名”与“具体厂商模型名”解耦：

- 逻辑名（logical_name）：在代码里使用的统一名称，例如 "chat"、"routine"。
- provider_model：厂商实际提供的模型 ID，例如 "gpt-4o"。

追问与生成 routine 使用不同的 token 上限，集中配置在这里。"""

from dataclasses import dataclass
from typing import Dict


@dataclass
class ModelConfig:
    """单个逻辑模型的配置。"""

    logical_name: str
    provider_model: str
    max_tokens: int
    default_temperature: float


@dataclass
class ProviderConfig:
    """某个 Provider 的整体配置。"""

    name: str
    base_url: str
    models: Dict[str, ModelConfig]


OPENAI_CONFIG = ProviderConfig(
    name="openai",
    base_url="https://api.openai.com/v1",
    models={
        "chat": ModelConfig(
            logical_name="chat",
            provider_model="gpt-4o",
            max_tokens=600,
            default_temperature=0.7,
        ),
        "routine": ModelConfig(
            logical_name="routine",
            provider_model="gpt-4o",
            max_tokens=700,
            default_temperature=0.7,
        ),
    },
)


def get_model_config(logical_name: str) -> ModelConfig:
    """按逻辑名取模型配置，未知名称抛出 KeyError。"""

    try:
        return OPENAI_CONFIG.models[logical_name]
    except KeyError:
        raise KeyError(f"Unknown model {logical_name!r}") from None
