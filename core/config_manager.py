"""
Configuration Manager for Sector Review.

集中管理系统常量和配置参数。

- SystemConfig: 评审流程的经验值，可由 config/runtime.yaml 覆盖
- ServerSettings: 代理服务的凭据与地址，从环境变量读取；缺失时走确定性降级，而不是启动失败

使用方式:
    from core.config_manager import config
    cap = config.MAX_ACTIVE_SECTORS
"""
import os
from dataclasses import dataclass
from typing import Mapping, Optional

import yaml

from core.paths import CONFIG_DIR

RUNTIME_CONFIG_PATH = CONFIG_DIR / "runtime.yaml"


@dataclass
class SystemConfig:
    """
    系统运行时常量配置。
    """

    # 同时激活的 sector 上限
    # 经验值依据：7±2 法则，超过后每周评审会流于形式
    MAX_ACTIVE_SECTORS: int = 7

    # CLI 导出时默认的周标签
    DEFAULT_WEEK_LABEL: str = "This week"

    # 自由文本少于该长度时不调用模型提取 sector
    MIN_FREEFORM_FOR_MODEL: int = 16

    # 启发式提取最多返回的 sector 名称数
    MAX_FREEFORM_CANDIDATES: int = 8

    # 模型提取 sector 时的温度（低温更稳定）
    SECTOR_EXTRACTION_TEMPERATURE: float = 0.2


def _load_runtime_config() -> dict:
    """加载运行时配置覆盖（如果存在）。"""
    if not RUNTIME_CONFIG_PATH.exists():
        return {}

    try:
        with open(RUNTIME_CONFIG_PATH, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return data if isinstance(data, dict) else {}
    except (yaml.YAMLError, OSError):
        return {}


def get_config() -> SystemConfig:
    """
    获取系统配置实例。

    优先级：runtime.yaml > 默认值
    """
    base = SystemConfig()
    overrides = _load_runtime_config()

    for key, value in overrides.items():
        if hasattr(base, key):
            setattr(base, key, value)

    return base


# 全局配置实例（单例模式）
config = get_config()


DEFAULT_HEVY_BASE_URL = "https://api.hevyapp.com"
DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_OPENAI_MODEL = "gpt-4.1-mini"


def _env_flag(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class ServerSettings:
    """Credentials and bindings for the proxy server. Empty string means "not configured"."""

    hevy_api_key: str = ""
    hevy_base_url: str = DEFAULT_HEVY_BASE_URL
    hevy_webhook_secret: str = ""
    openai_api_key: str = ""
    openai_base_url: str = DEFAULT_OPENAI_BASE_URL
    openai_model: str = DEFAULT_OPENAI_MODEL
    withings_client_id: str = ""
    withings_redirect_uri: str = ""
    host: str = "0.0.0.0"
    port: int = 8787
    reload: bool = False
    allowed_origins: str = "*"
    http_timeout_seconds: float = 30.0

    def __post_init__(self):
        self.hevy_base_url = (self.hevy_base_url or DEFAULT_HEVY_BASE_URL).rstrip("/")
        self.openai_base_url = (self.openai_base_url or DEFAULT_OPENAI_BASE_URL).rstrip("/")
        self.openai_model = self.openai_model or DEFAULT_OPENAI_MODEL

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerSettings":
        env = os.environ if environ is None else environ
        try:
            port = int(env.get("PORT", "8787"))
        except ValueError:
            port = 8787
        return cls(
            hevy_api_key=env.get("HEVY_API_KEY", ""),
            hevy_base_url=env.get("HEVY_BASE_URL", DEFAULT_HEVY_BASE_URL),
            hevy_webhook_secret=env.get("HEVY_WEBHOOK_SECRET", ""),
            openai_api_key=env.get("OPENAI_API_KEY", ""),
            openai_base_url=env.get("OPENAI_BASE_URL", DEFAULT_OPENAI_BASE_URL),
            openai_model=env.get("OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
            withings_client_id=env.get("WITHINGS_CLIENT_ID", ""),
            withings_redirect_uri=env.get("WITHINGS_REDIRECT_URI", ""),
            host=env.get("HOST", "0.0.0.0"),
            port=port,
            reload=_env_flag(env.get("SECTOR_REVIEW_RELOAD", "0")),
            allowed_origins=env.get("SECTOR_REVIEW_ALLOWED_ORIGINS", "*"),
        )

    @property
    def origins(self) -> list:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]
