"""Unified settings for minihttpd."""

import importlib.metadata
import tomllib
from pathlib import Path
from typing import ClassVar, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


def read_pyproject(pyproject_path: Path) -> dict:
    """Read pyproject.toml into a dict, empty when the file is not shipped."""
    if not pyproject_path.is_file():
        return {}
    with pyproject_path.open("rb") as file_handle:
        return tomllib.load(file_handle)


def get_version(project: dict) -> str:
    """Get version from pyproject or fallback to package metadata."""
    version = project.get("project", {}).get("version")
    if version:
        return str(version)
    try:
        return importlib.metadata.version("minihttpd")
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0"


class Settings(BaseSettings):
    """Unified settings for the minihttpd server."""

    DEBUG: bool = True
    ENVIRONMENT: Literal["DEV", "PROD"] = "DEV"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # ClassVar to prevent Pydantic from trying to load from env
    BASE_DIR: ClassVar[Path] = Path(__file__).parent.parent.parent
    PROJECT: ClassVar[dict] = read_pyproject(BASE_DIR / "pyproject.toml")
    API_NAME: ClassVar[str] = PROJECT.get("project", {}).get("name", "minihttpd")
    API_DESCRIPTION: ClassVar[str] = PROJECT.get("project", {}).get("description", "Minimal HTTP-like server")
    API_VERSION: ClassVar[str] = get_version(PROJECT)

    # Server
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8080
    BACKLOG: int = 128

    # Served root layout
    PUBLIC_DIR: Path = Path("public")
    LOGIN_FILE: ClassVar[str] = "login.txt"
    UPLOAD_DIR: ClassVar[str] = "uploads"
    UPLOAD_SUFFIX: ClassVar[str] = ".png"
    INDEX_PATH: ClassVar[str] = "/index.html"

    # Workers and backpressure
    MAX_WORKERS: int = 10
    MAX_PENDING: int = 32
    READ_TIMEOUT: float = 30.0
    ACCEPT_POLL_INTERVAL: float = 0.5

    # I/O
    CHUNK_SIZE: int = 1024

    @property
    def admission_capacity(self) -> int:
        return self.MAX_WORKERS + self.MAX_PENDING

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()  # type: ignore
