from .loader import load_config
from .models import (
    ChainConfig,
    GitlockConfig,
    StoreConfig,
)

__all__ = [
    "ChainConfig",
    "GitlockConfig",
    "StoreConfig",
    "load_config",
]
