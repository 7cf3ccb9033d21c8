"""Provider 与模型配置。

集中维护各 Provider 的基础 URL 与可用模型，CLI 传入的模型名
由 PerplexityClient 按这里的模型表校验，通过后原样发给远端。"""

from dataclasses import dataclass
from typing import Dict, Mapping


@dataclass
class ModelConfig:
    """单个模型的配置。"""

    name: str


@dataclass
class ProviderConfig:
    """某个 Provider 的整体配置。"""

    name: str
    base_url: str
    models: Dict[str, ModelConfig]


PERPLEXITY_CONFIG = ProviderConfig(
    name="perplexity",
    base_url="https://api.perplexity.ai",
    models={
        "sonar": ModelConfig(name="sonar"),
        "sonar-pro": ModelConfig(name="sonar-pro"),
        "sonar-reasoning": ModelConfig(name="sonar-reasoning"),
        "sonar-reasoning-pro": ModelConfig(name="sonar-reasoning-pro"),
        "sonar-deep-research": ModelConfig(name="sonar-deep-research"),
    },
)


PROVIDER_REGISTRY: Mapping[str, ProviderConfig] = {
    "perplexity": PERPLEXITY_CONFIG,
}


def get_provider_config(name: str) -> ProviderConfig:
    """根据名称获取 ProviderConfig，名称不区分大小写。"""

    key = name.lower()
    for k, cfg in PROVIDER_REGISTRY.items():
        if k.lower() == key:
            return cfg
    raise KeyError(f"Unknown provider: {name!r}")
