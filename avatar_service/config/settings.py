import json
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from avatar_service.utils.image_processing import ThumbnailSpec

BASE_DIR = Path(__file__).resolve().parent.parent.parent  # путь до корня проекта


class ConfigBase(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


class AppConfig(ConfigBase):
    model_config = SettingsConfigDict(env_prefix="APP_")

    environment: str = "dev"
    log_level: str = "DEBUG"
    service_name: str = "avatar-service"
    enable_docs: bool = True
    restrict_docs: bool = False
    allowed_ips: list[str] = ["127.0.0.1"]
    host: str = "0.0.0.0"
    port: int = 3000

    @property
    def is_production(self) -> bool:
        return self.environment == "prod"

    @property
    def is_development(self) -> bool:
        return self.environment in ["dev", "local"]

    @field_validator('allowed_ips', mode='before')
    def parse_json(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [ip.strip() for ip in v.split(",") if ip.strip()]
        return v


class DatabaseConfig(ConfigBase):
    model_config = SettingsConfigDict(env_prefix="DB_")

    host: str = "localhost"
    port: int = 5432
    user: str = "postgres"
    password: SecretStr = "postgres"
    database: str = "avatars"
    # Полный URL имеет приоритет над отдельными параметрами
    url: Optional[str] = None
    create_tables: bool = False

    @property
    def async_url(self) -> str:
        if self.url:
            return self.url
        return f"postgresql+asyncpg://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.database}"


class StorageConfig(ConfigBase):
    model_config = SettingsConfigDict(env_prefix="S3_")

    endpoint: str = "s3.amazonaws.com"
    access_key: SecretStr = ""
    secret_key: SecretStr = ""
    region: Optional[str] = None
    secure: bool = True
    media_bucket: str = "media"
    avatar_key_prefix: str = "avatars"
    # Базовый URL, по которому объекты доступны клиентам (CDN, публичный endpoint)
    public_base_url: Optional[str] = None
    create_bucket: bool = False


class ThumbnailConfig(ConfigBase):
    model_config = SettingsConfigDict(env_prefix="THUMBNAIL_")

    pixel_size: int = 128
    border_width: int = 4
    border_color: str = "#4F46E5"

    def to_spec(self) -> ThumbnailSpec:
        """Строит ThumbnailSpec; некорректные значения -> ConfigurationError."""
        return ThumbnailSpec(
            pixel_size=self.pixel_size,
            border_width=self.border_width,
            border_color=self.border_color,
        )


class LoggingConfig(ConfigBase):
    model_config = SettingsConfigDict(env_prefix="LOG_")

    # Настройки для Syslog
    syslog_host: str = "localhost"
    syslog_port: int = 1514
    syslog_enabled: bool = False

    # GRAYLOG
    graylog_host: str = "localhost"
    graylog_port: int = 12201
    graylog_enabled: bool = False


class SentryConfig(ConfigBase):
    model_config = SettingsConfigDict(env_prefix="SENTRY_")

    dsn: Optional[str] = None
    traces_sample_rate: float = 0.01


class Config(BaseSettings):
    app: AppConfig = Field(default_factory=AppConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    thumbnail: ThumbnailConfig = Field(default_factory=ThumbnailConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    sentry: SentryConfig = Field(default_factory=SentryConfig)

    @classmethod
    def load(cls) -> "Config":
        return cls()


config = Config.load()
