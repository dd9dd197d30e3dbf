# backend/pinkifier/config.py
from functools import lru_cache
from typing import List, Optional, Tuple, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_ALLOWED_IMAGE_DOMAINS,
    DEFAULT_USER_AGENT,
    FETCH_CONNECT_TIMEOUT_SECONDS,
    FETCH_READ_TIMEOUT_SECONDS,
    FETCH_TOTAL_DEADLINE_SECONDS,
    MAX_IMAGE_BYTES,
    MAX_IMAGE_PIXELS,
    MAX_INLINE_IMAGE_BYTES,
    PNG_COMPRESS_LEVEL,
    PREVIEW_CACHE_SECONDS,
)
from .enums import ColorFallbackPolicy, LogLevel


def _split_csv(value: Union[str, List[str]]) -> List[str]:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return [str(item).strip() for item in value if str(item).strip()]


class Settings(BaseSettings):
    environment: str = "development"

    # API
    api_host: str = Field(default="0.0.0.0", description="API host to bind to")
    api_port: int = Field(
        default=8000, ge=1, le=65535, description="API port to bind to"
    )
    api_reload: bool = Field(
        default=False, description="Enable auto-reload for development"
    )

    # CORS - use Union to handle both string and list inputs
    # Can be set via CORS_ORIGINS env var as comma-separated string
    cors_origins: Union[str, List[str]] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins. Can be comma-separated string.",
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Convert cors_origins to a list of strings"""
        return _split_csv(self.cors_origins)

    # Public URL resolution (see resolve_public_base_url)
    public_url: Optional[str] = Field(
        default=None, description="Explicit public base URL of this deployment"
    )
    vercel_url: Optional[str] = Field(
        default=None, description="Deployment host provided by the hosting platform"
    )

    # ============= IMAGE ACQUISITION =============

    # Can be set via ALLOWED_IMAGE_DOMAINS env var as comma-separated string
    allowed_image_domains: Union[str, List[str]] = Field(
        default=list(DEFAULT_ALLOWED_IMAGE_DOMAINS),
        description="Hosts (and their subdomains) images may be fetched from",
    )

    @property
    def allowed_image_domains_list(self) -> List[str]:
        """Normalized allow-list: lowercase, no leading dots"""
        return [
            domain.lower().lstrip(".")
            for domain in _split_csv(self.allowed_image_domains)
        ]

    fetch_connect_timeout_seconds: float = Field(
        default=FETCH_CONNECT_TIMEOUT_SECONDS, gt=0, le=30
    )
    fetch_read_timeout_seconds: float = Field(
        default=FETCH_READ_TIMEOUT_SECONDS, gt=0, le=30
    )
    fetch_total_deadline_seconds: float = Field(
        default=FETCH_TOTAL_DEADLINE_SECONDS,
        gt=0,
        le=60,
        description="Wall-clock budget for downloading one source image",
    )

    @property
    def fetch_timeout(self) -> Tuple[float, float]:
        """(connect, read) timeout tuple for requests"""
        return (self.fetch_connect_timeout_seconds, self.fetch_read_timeout_seconds)

    fetch_user_agent: str = Field(default=DEFAULT_USER_AGENT)
    fetch_follow_redirects: bool = Field(
        default=False,
        description="Follow upstream redirects (bypasses the allow-list when enabled)",
    )
    max_image_bytes: int = Field(default=MAX_IMAGE_BYTES, ge=1024)
    max_inline_image_bytes: int = Field(default=MAX_INLINE_IMAGE_BYTES, ge=1024)
    max_image_pixels: int = Field(default=MAX_IMAGE_PIXELS, ge=1)
    allow_bare_base64: bool = Field(
        default=False,
        description="Accept raw base64 payloads without a data: URI prefix",
    )

    # Can be set via FETCH_PROXY_TEMPLATES env var as comma-separated string.
    # Each template must contain "{url}".
    fetch_proxy_templates: Union[str, List[str]] = Field(default=[])

    @property
    def fetch_proxy_templates_list(self) -> List[str]:
        return _split_csv(self.fetch_proxy_templates)

    placeholder_fallback_enabled: bool = Field(
        default=False,
        description="Serve an embedded placeholder image when every fetch fails",
    )

    # ============= OVERLAY / OUTPUT =============

    color_fallback_policy: ColorFallbackPolicy = Field(
        default=ColorFallbackPolicy.STRICT,
        description="strict rejects unknown colors, default falls back to Pink",
    )
    png_compress_level: int = Field(default=PNG_COMPRESS_LEVEL, ge=0, le=9)
    preview_cache_seconds: int = Field(default=PREVIEW_CACHE_SECONDS, ge=0, le=600)

    # Logging
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_file: Optional[str] = Field(
        default=None, description="Log file path (optional)"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: Union[str, LogLevel]) -> LogLevel:
        """Validate log level is one of the allowed values"""
        if isinstance(v, LogLevel):
            return v
        allowed_levels = LogLevel.__members__.keys()
        v_upper = str(v).upper()
        if v_upper not in allowed_levels:
            raise ValueError(
                f"Invalid log level '{v}'. Must be one of: {', '.join(allowed_levels)}"
            )
        return LogLevel[v_upper]

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is one of the allowed values"""
        allowed_envs = ["development", "staging", "production", "test"]
        v_lower = v.lower()
        if v_lower not in allowed_envs:
            raise ValueError(
                f"Invalid environment '{v}'. Must be one of: {', '.join(allowed_envs)}"
            )
        return v_lower

    @field_validator("fetch_proxy_templates")
    @classmethod
    def validate_proxy_templates(
        cls, v: Union[str, List[str]]
    ) -> Union[str, List[str]]:
        for template in _split_csv(v):
            if "{url}" not in template:
                raise ValueError(
                    f"Proxy template '{template}' must contain a {{url}} placeholder"
                )
        return v

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Build the process-wide settings once.

    lru_cache gives a thread-safe single initialization; call
    get_settings.cache_clear() in tests that change the environment.
    """
    return Settings()


def resolve_public_base_url(
    settings: Settings, request_origin: Optional[str] = None
) -> str:
    """
    Resolve the absolute base URL this deployment is reachable at.

    Precedence:
        1. PUBLIC_URL
        2. https://{VERCEL_URL}
        3. The origin of the current request
        4. http://{api_host}:{api_port}
    """
    if settings.public_url:
        return settings.public_url.rstrip("/")
    if settings.vercel_url:
        host = settings.vercel_url.strip().rstrip("/")
        if host.startswith(("http://", "https://")):
            return host
        return f"https://{host}"
    if request_origin:
        return request_origin.rstrip("/")
    return f"http://{settings.api_host}:{settings.api_port}"
