from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/index.db"

    # Declarative node type and dimension configuration (JSON)
    node_types_path: Optional[str] = None
    dimensions_path: Optional[str] = None

    # Upper bound for ancestry walks during fulltext root resolution
    max_tree_depth: int = 1000

    # 1 = index dimension combinations sequentially
    reindex_max_workers: int = 1

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CR_INDEXER_",
        extra="ignore"
    )

settings = Settings()
