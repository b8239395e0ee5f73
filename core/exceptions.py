"""
Sector Review 异常定义模块。

定义系统中所有自定义异常的层次结构：
- ReviewError: 基类，所有已知错误
- ConfigError: 配置文件错误
- ValidationFailure: 请求或输入校验失败 (HTTP 400)
- UpstreamError: 外部服务 (Hevy / 模型) 调用失败 (HTTP 500)
- ModelOutputError: 模型输出无法解析为 JSON (HTTP 500)
"""
from typing import Optional


class ReviewError(Exception):
    """Sector Review 基础异常类。

    所有系统内已知错误都继承自此类。
    status_code 用于 HTTP 层把异常映射为 {"error": message} 响应。
    """

    status_code: int = 500

    def __init__(self, message: str, hint: Optional[str] = None):
        """
        Args:
            message: 错误描述
            hint: 对用户的操作建议
        """
        super().__init__(message)
        self.message = message
        self.hint = hint

    def get_user_message(self) -> str:
        """返回用户友好的错误消息。"""
        if self.hint:
            return f"{self.message}\nHint: {self.hint}"
        return self.message


class ConfigError(ReviewError):
    """配置文件错误。

    当配置文件缺失、格式错误或内容非法时抛出。
    """

    def __init__(self, message: str, config_path: Optional[str] = None):
        hint = f"Check the config file: {config_path}" if config_path else "Check the config file format"
        super().__init__(message, hint)
        self.config_path = config_path


class ValidationFailure(ReviewError):
    """输入校验失败（缺少字段、答案类型不符、评分越界等）。"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class UpstreamError(ReviewError):
    """外部服务调用失败的基类。

    包含 provider 与 endpoint 上下文；message 原样返回给调用方。
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        endpoint: Optional[str] = None,
    ):
        self.provider = provider or "unknown"
        self.endpoint = endpoint
        super().__init__(message)

    def get_user_message(self) -> str:
        base = f"Upstream call failed ({self.provider}): {self.message}"
        if self.hint:
            return f"{base}\nHint: {self.hint}"
        return base


class UpstreamConnectionError(UpstreamError):
    """无法连接到外部服务。"""

    def __init__(self, provider: Optional[str] = None, endpoint: Optional[str] = None):
        super().__init__(f"Could not connect to {provider or 'upstream'}", provider, endpoint)
        self.hint = "Check network access and the configured base URL"


class UpstreamAuthError(UpstreamError):
    """外部服务鉴权失败。"""

    def __init__(
        self,
        provider: Optional[str] = None,
        endpoint: Optional[str] = None,
    ):
        super().__init__(f"{provider or 'upstream'} rejected the credentials", provider, endpoint)
        self.hint = "Check that the API key is configured correctly"


class UpstreamTimeoutError(UpstreamError):
    """外部服务调用超时。"""

    def __init__(
        self,
        provider: Optional[str] = None,
        endpoint: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ):
        message = f"{provider or 'upstream'} timed out"
        if timeout_seconds:
            message = f"{message} ({timeout_seconds}s)"
        super().__init__(message, provider, endpoint)
        self.timeout_seconds = timeout_seconds


class ModelOutputError(ReviewError):
    """模型返回内容中没有可解析的 JSON。"""

    def __init__(self, message: str, raw_output: Optional[str] = None):
        super().__init__(message)
        self.raw_output = raw_output
