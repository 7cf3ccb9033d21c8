"""统一业务异常模型。

所有跨模块抛出的业务级错误都继承自 BusinessError，
便于 CLI 层统一捕获并输出一次错误信息。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "STORE_READ_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 matches、path 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class PathViolationError(BusinessError):
    """解析后的路径逃出了存储根目录。"""


class ConversationNotFoundError(BusinessError):
    """没有任何会话 ID 匹配给定前缀。"""


class AmbiguousPrefixError(BusinessError):
    """前缀匹配到多个会话，拒绝任意挑选其一。"""


class DecodeError(BusinessError):
    """存储记录无法解析。"""


class StoreError(BusinessError):
    """会话存储读写失败（文件系统层面）。"""


class TransportError(BusinessError):
    """流式读取过程中的传输错误（非正常 EOF）。"""


class StreamCancelledError(BusinessError):
    """流式调用在阻塞期间被取消。"""


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(BusinessError):
    """远端返回非 200 状态码时抛出。"""


class RateLimitError(ApiError):
    """Provider 限流错误，本客户端不做重试。"""


class ValidationError(BusinessError):
    """参数或配置校验失败。"""


class PersistenceError(BusinessError):
    """流式输出已完成，但会话保存失败。

    ``result`` 保存已经成功流式输出的结果，调用方可以据此区分
    "流式成功" 与 "持久化成功"。
    """

    def __init__(self, code: str, message: str, result=None, **extra):
        super().__init__(code=code, message=message, **extra)
        self.result = result
