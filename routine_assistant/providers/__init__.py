"""补全 Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护模型配置 (registry)。
- 提供具体实现 (gateway_client、openai_client)。
"""

from routine_assistant.config.settings import settings
from routine_assistant.domain.exceptions import ConfigMissing
from routine_assistant.providers.base import ProviderClient
from routine_assistant.providers.gateway_client import GatewayClient
from routine_assistant.providers.openai_client import MISSING_KEY_MESSAGE, OpenAIClient


def create_provider(cfg=None) -> ProviderClient:
    """按配置选择 Provider：优先网关，其次直连密钥，都没有则抛出 ConfigMissing。"""

    cfg = cfg or settings
    if getattr(cfg, "proxy_url", None):
        return GatewayClient(cfg)
    if getattr(cfg, "openai_api_key", None):
        return OpenAIClient(cfg)
    raise ConfigMissing(code="MISSING_API_KEY", message=MISSING_KEY_MESSAGE)
