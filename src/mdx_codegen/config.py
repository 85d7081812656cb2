"""Application configuration loading and validation."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

DEFAULT_PROMPT_URL = (
    "https://raw.githubusercontent.com/likhonsdev/Prompt-Engineering/"
    "main/sheikh-agent/prompt.md"
)
DEFAULT_REQUIRED_FILES = ("package.json", "src/app/layout.tsx")
TYPE_CHECK_CHOICES = ("none", "tsc", "mypy")


class ConfigError(ValueError):
    """Raised when configuration cannot be loaded safely."""


class Settings(BaseModel):
    """Runtime settings loaded from environment variables."""

    model_config = ConfigDict(frozen=True)

    gemini_api_key: str = ""
    gemini_api_key_file: Path = Path("~/.mdx_codegen_api_key").expanduser()
    gemini_model: str = "gemini-1.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    prompt_url: str = DEFAULT_PROMPT_URL
    prompt_cache_path: Path = Path("prompt.md")
    prompt_cache_ttl: int = Field(default=86400, ge=0)
    output_dir: Path = Path("generated_app")
    max_retries: int = Field(default=5, ge=1)
    request_timeout: float = Field(default=45.0, gt=0)
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    top_p: float = Field(default=0.95, ge=0.0, le=1.0)
    max_output_tokens: int = Field(default=8000, gt=0)
    cache_dir: Path = Path("~/.mdx_codegen_cache").expanduser()
    log_file: Path | None = None
    required_files: tuple[str, ...] = DEFAULT_REQUIRED_FILES
    type_check: str = "tsc"

    @field_validator("gemini_model", "gemini_base_url", "prompt_url")
    @classmethod
    def validate_non_empty(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("value cannot be empty.")
        return normalized

    @field_validator(
        "gemini_api_key_file",
        "prompt_cache_path",
        "output_dir",
        "cache_dir",
        mode="before",
    )
    @classmethod
    def validate_path(cls, value: str | Path) -> Path:
        path = Path(value).expanduser() if isinstance(value, str) else value
        if not str(path) or str(path) == ".":
            raise ValueError("path cannot be empty.")
        return path

    @field_validator("log_file", mode="before")
    @classmethod
    def validate_log_file(cls, value: str | Path | None) -> Path | None:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return Path(value).expanduser()

    @field_validator("required_files", mode="before")
    @classmethod
    def validate_required_files(cls, value: str | list[str] | tuple[str, ...]) -> tuple[str, ...]:
        items = value.split(",") if isinstance(value, str) else list(value)
        cleaned = tuple(item.strip() for item in items if item.strip())
        for item in cleaned:
            if Path(item).is_absolute():
                raise ValueError(f"required file must be relative: {item!r}")
        return cleaned

    @field_validator("type_check")
    @classmethod
    def validate_type_check(cls, value: str) -> str:
        normalized = value.strip().lower() or "none"
        if normalized not in TYPE_CHECK_CHOICES:
            raise ValueError(
                f"must be one of: {', '.join(TYPE_CHECK_CHOICES)}."
            )
        return normalized

    @property
    def resolved_log_file(self) -> Path:
        return self.log_file or self.cache_dir / "agent.log"

    @property
    def api_key(self) -> str:
        """Return the API key from the environment or the scoped key file."""
        if self.gemini_api_key.strip():
            return self.gemini_api_key.strip()
        try:
            return self.gemini_api_key_file.read_text(encoding="utf-8").strip()
        except OSError:
            return ""

    def validate_llm_requirements(self) -> None:
        """Fail with a friendly message when LLM credentials are required."""
        if not self.api_key:
            raise ConfigError(
                "GEMINI_API_KEY is required for generation commands "
                f"(or store the key in {self.gemini_api_key_file})."
            )


_ENV_FIELDS = {
    "gemini_api_key": "GEMINI_API_KEY",
    "gemini_api_key_file": "GEMINI_API_KEY_FILE",
    "gemini_model": "GEMINI_MODEL",
    "gemini_base_url": "GEMINI_BASE_URL",
    "prompt_url": "PROMPT_URL",
    "prompt_cache_path": "PROMPT_CACHE_PATH",
    "prompt_cache_ttl": "PROMPT_CACHE_TTL",
    "output_dir": "OUTPUT_DIR",
    "max_retries": "MAX_RETRIES",
    "request_timeout": "REQUEST_TIMEOUT",
    "temperature": "TEMPERATURE",
    "top_p": "TOP_P",
    "max_output_tokens": "MAX_OUTPUT_TOKENS",
    "cache_dir": "CACHE_DIR",
    "log_file": "LOG_FILE",
    "required_files": "REQUIRED_FILES",
    "type_check": "TYPE_CHECK",
}


def _env_value(name: str, default: str | None = None) -> str | None:
    import os

    value = os.getenv(name, default)
    if value is None:
        return None
    return value.strip()


def _format_errors(exc: ValidationError) -> str:
    messages = []
    for err in exc.errors():
        field = ".".join(str(item) for item in err["loc"]) or "settings"
        env_name = _ENV_FIELDS.get(field)
        label = f"{field} ({env_name})" if env_name else field
        messages.append(f"- {label}: {err['msg']}")
    return "Invalid configuration values:\n" + "\n".join(messages)


def load_settings() -> Settings:
    """Load settings from environment variables."""
    payload: dict[str, str] = {}
    for field, env_name in _ENV_FIELDS.items():
        value = _env_value(env_name)
        if value is not None:
            payload[field] = value

    try:
        return Settings.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(_format_errors(exc)) from exc


def override_settings(settings: Settings, **updates: object) -> Settings:
    """Return a validated copy of ``settings`` with non-None overrides applied."""
    changes = {key: value for key, value in updates.items() if value is not None}
    if not changes:
        return settings
    try:
        return Settings.model_validate({**settings.model_dump(), **changes})
    except ValidationError as exc:
        raise ConfigError(_format_errors(exc)) from exc
