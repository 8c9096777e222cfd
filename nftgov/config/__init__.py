"""
nftgov Configuration

Loads all sections of config.toml.
Environment variables override TOML values.
"""

from .loader import (
    ChainConfig,
    GovernorConfig,
    HarnessConfig,
    ScenarioConfig,
    TokensConfig,
    load_config,
)

__all__ = [
    "ChainConfig",
    "GovernorConfig",
    "HarnessConfig",
    "ScenarioConfig",
    "TokensConfig",
    "load_config",
]
