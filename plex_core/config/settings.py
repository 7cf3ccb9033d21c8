"""配置管理模块。

支持从环境变量、.env 以及 config.yaml 加载配置。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


PLEX_HOME = Path.home() / ".plexctl"


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("PLEX_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        PLEX_HOME / "config.yaml",
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


class PlexSettings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- Provider 相关配置 ----
    default_provider: str = Field(default="perplexity", description="默认使用的 Provider 名称")
    default_model: str = Field(default="sonar", description="默认模型名")
    perplexity_api_token: Optional[str] = Field(default=None, description="Perplexity API token")
    perplexity_base_url: str = Field(
        default="https://api.perplexity.ai",
        description="Perplexity API 基础URL",
    )
    http_timeout: float = Field(default=30.0, ge=1.0, description="HTTP 超时时间（秒）")

    # ---- 存储与日志 ----
    storage_root: str = Field(
        default_factory=lambda: str(PLEX_HOME / "threads"),
        description="会话文件存放目录",
    )
    log_dir: str = Field(default_factory=lambda: str(PLEX_HOME / "logs"), description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")
    debug: bool = Field(default=False, description="是否把调试日志同时输出到 stderr")

    # ---- 流式输出 ----
    smooth_print_interval_ms: float = Field(default=3.0, ge=0.0, description="逐字输出间隔（毫秒）")
    smooth_print_buffer_size: int = Field(default=1024, ge=1, description="逐字输出缓冲区大小")
    max_event_bytes: int = Field(default=1 << 16, ge=1024, description="单个 SSE 事件最大字节数")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("perplexity_api_token")
    @classmethod
    def validate_api_token(cls, v: Optional[str]) -> Optional[str]:
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


settings = PlexSettings()

# 类型别名，让外部代码可以使用 Settings 类型
Settings = PlexSettings
