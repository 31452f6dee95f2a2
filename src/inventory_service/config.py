"""
Runtime settings for the inventory service.
"""
from pathlib import Path

from pydantic import BaseModel, Field


class Settings(BaseModel):
    """Where the service listens and where it keeps photos."""
    host: str
    port: int = Field(gt=0, lt=65536)
    cache_dir: Path
