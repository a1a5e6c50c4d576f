from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
        env_prefix="WORDREF_"
    )

    # ------------------------------------------------------------------
    # Core paths
    # ------------------------------------------------------------------
    DATA_DIR: Path = Field(
        default=Path("data"),
        description="Base directory for the library store and saved documents.",
    )

    DOCUMENT_NAME: str = Field(
        default="document",
        description="Default document name for data/documents/{name}.json",
    )

    # ------------------------------------------------------------------
    # Citation behaviour
    # ------------------------------------------------------------------
    DEFAULT_STYLE: str = Field(
        default="apa",
        description=(
            "Citation style used when none is given: "
            "apa, mla, harvard, acs, ieee, numeric or vancouver."
        ),
    )

    BIBLIOGRAPHY_HEADING: str = Field(
        default="References",
        description="Heading text created when the document has no bibliography anchor.",
    )

    style_debounce_seconds: float = Field(
        default=0.15,
        description="Window in which rapid style changes collapse into one refresh.",
    )

    force_append_end: bool = Field(
        default=False,
        description="Always insert new citations at the end of the document body.",
    )

    plain_text_fallback: bool = Field(
        default=True,
        description=(
            "If the host refuses to create a marker, insert the label as plain "
            "text instead of failing."
        ),
    )

    safe_mode_no_merge: bool = Field(
        default=False,
        description="Disable folding a new numeric citation into a neighbouring one.",
    )

    auto_merge_adjacent: bool = Field(
        default=True,
        description="Run the adjacent-merge tidy pass after inserts under numeric styles.",
    )

    # ------------------------------------------------------------------
    # API
    # ------------------------------------------------------------------
    API_KEY: Optional[SecretStr] = Field(
        default=None,
        description="API key for header-based auth. If None, auth is disabled.",
    )

    EDIT_RATE_LIMIT: int = Field(
        default=120,
        description="Document and library edits one client may make per window; 0 disables the limit.",
    )

    EDIT_RATE_WINDOW_SECONDS: float = Field(
        default=60.0,
        description="Length of the edit rate-limit window.",
    )

    # ------------------------------------------------------------------
    # Convenience derived paths
    # ------------------------------------------------------------------
    @property
    def store_path(self) -> Path:
        return self.DATA_DIR / "store.json"

    @property
    def documents_dir(self) -> Path:
        return self.DATA_DIR / "documents"

    @property
    def document_path(self) -> Path:
        return self.documents_dir / f"{self.DOCUMENT_NAME}.json"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Singleton-style accessor so we only construct Settings once and
    ensure directories exist on first access.
    """
    global _settings
    if _settings is None:
        _settings = Settings()

        _settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
        _settings.documents_dir.mkdir(parents=True, exist_ok=True)

    return _settings


settings = get_settings()
