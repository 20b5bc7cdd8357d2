from pydantic import BaseModel, Field
from typing import Literal


class ChainConfig(BaseModel):
    evict_processed: bool = True
    progress_interval: float = Field(default=1.0, gt=0)


class StoreConfig(BaseModel):
    provider: Literal["sqlite", "memory"] = "sqlite"
    path: str = ".gitlock/locks.db"


class GitlockConfig(BaseModel):
    chain: ChainConfig = Field(default_factory=ChainConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
