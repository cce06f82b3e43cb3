"""Application configuration using pydantic-settings."""

import functools
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


def _find_project_root() -> Path:
    """Find project root by locating pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path(__file__).resolve().parent.parent.parent


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from settings.yaml."""

    def get_field_value(self, field_name: str) -> tuple[Any, str, bool]:
        """Not used - we implement __call__ instead."""
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        """Load settings from YAML file."""
        yaml_path = _find_project_root() / "config" / "settings.yaml"
        if not yaml_path.exists():
            return {}

        with open(yaml_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        # Flatten nested structure to match Settings field names
        flattened = {}
        if "server" in data:
            flattened["host"] = data["server"].get("host")
            flattened["port"] = data["server"].get("port")
        if "openai" in data:
            flattened["plan_model"] = data["openai"].get("plan_model")
        if "plan" in data:
            plan = data["plan"]
            flattened["plan_lesson_count"] = plan.get("lesson_count")
            flattened["plan_timeout_seconds"] = plan.get("timeout_seconds")
            flattened["plan_temperature"] = plan.get("temperature")
            flattened["plan_max_tokens"] = plan.get("max_tokens")
        if "progress" in data:
            flattened["monotonic_completion"] = data["progress"].get("monotonic_completion")

        return {k: v for k, v in flattened.items() if v is not None}


class Settings(BaseSettings):
    """Application settings loaded from environment and config files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OpenAI (None disables the AI plan generator)
    openai_api_key: str | None = Field(default=None)
    plan_model: str = Field(default="gpt-4o-mini")

    # Plan generation
    plan_lesson_count: int = Field(default=5, ge=1, le=10)
    plan_timeout_seconds: float = Field(default=30.0, gt=0)
    plan_temperature: float = Field(default=0.5)
    plan_max_tokens: int = Field(default=4000)

    # Progress
    monotonic_completion: bool = Field(default=False)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    allowed_origins: str = Field(default="http://localhost:5173,http://127.0.0.1:5173")

    # Paths
    project_root: Path = Field(default_factory=_find_project_root)
    data_root: Path | None = Field(default=None)

    @property
    def data_dir(self) -> Path:
        d = self.data_root or self.project_root / "data"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @property
    def curriculum_dir(self) -> Path:
        return self.project_root / "config" / "curriculum"

    @property
    def origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customise settings sources to include YAML file.

        Priority order (highest to lowest):
        1. init_settings (arguments passed to Settings())
        2. env_settings (environment variables)
        3. dotenv_settings (.env file)
        4. YamlSettingsSource (settings.yaml)
        5. file_secret_settings
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlSettingsSource(settings_cls),
            file_secret_settings,
        )


@functools.lru_cache
def get_settings() -> Settings:
    """Get application settings singleton."""
    return Settings()


def load_curriculum_file(filename: str) -> dict:
    """Load one curriculum table from config/curriculum/."""
    path = get_settings().curriculum_dir / filename
    if not path.exists():
        raise FileNotFoundError(f"Curriculum file not found: {path}")
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}
