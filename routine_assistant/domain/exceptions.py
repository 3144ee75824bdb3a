"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在对话管理器或网关层做统一捕获与用户提示。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "STORE_READ_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 trace_id、provider 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class ConfigMissing(BusinessError):
    """未配置可用凭据（客户端或网关任一侧）。"""


class BadRequestBody(BusinessError):
    """网关收到无法解析的 JSON 请求体。"""


class UpstreamError(BusinessError):
    """补全 API 或搜索 API 返回非 2xx；message 保存原始响应体。"""


class TransportFailure(BusinessError):
    """网络层错误，例如连接失败、超时等。"""


class PersistenceFailure(BusinessError):
    """持久化读写失败，只记录日志，不影响会话。"""


class TopicRejected(BusinessError):
    """用户追问未通过话题门控。"""


class EmptySelection(BusinessError):
    """未选择任何商品就请求生成 routine。"""


class RequestPending(BusinessError):
    """上一次请求尚未完成时又发起了新的请求。"""
