"""
Settings

Runtime configuration read from environment variables.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class Settings:
    """Runtime settings for the CLI and the HTTP service"""
    graph_dir: Path = Path("graphs")
    log_level: str = "INFO"
    max_concurrency: Optional[int] = None
    provider_url: str = "https://api.openai.com/v1"
    provider_model: str = "gpt-4o-mini"
    provider_timeout: float = 60.0
    provider_api_key: Optional[str] = None
    user_id: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 8000

    @classmethod
    def from_env(cls, prefix: str = "NODEFLOW") -> "Settings":
        """Create settings from environment variables"""
        concurrency = os.getenv(f"{prefix}_MAX_CONCURRENCY")
        return cls(
            graph_dir=Path(os.getenv(f"{prefix}_GRAPH_DIR", "graphs")),
            log_level=os.getenv(f"{prefix}_LOG_LEVEL", "INFO").upper(),
            max_concurrency=int(concurrency) if concurrency else None,
            provider_url=os.getenv(f"{prefix}_PROVIDER_URL", "https://api.openai.com/v1"),
            provider_model=os.getenv(f"{prefix}_PROVIDER_MODEL", "gpt-4o-mini"),
            provider_timeout=float(os.getenv(f"{prefix}_PROVIDER_TIMEOUT", "60")),
            provider_api_key=os.getenv("OPENAI_API_KEY"),
            user_id=os.getenv(f"{prefix}_USER_ID"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
        )
