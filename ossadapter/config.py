import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from dotenv import load_dotenv

from ossadapter.core.errors import ConfigError


def _load_dotenv() -> None:
    # Prefer the .env next to the package root, then the cwd-based lookup
    env_path = Path(__file__).resolve().parent.parent / ".env"
    load_dotenv(dotenv_path=env_path, override=False)
    load_dotenv(override=False)


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class AdapterConfig:
    access_key: str
    secret_key: str
    bucket: str
    domain: str
    is_cname: bool = False
    prefix: str | None = None
    options: Mapping[str, Any] = field(default_factory=dict)
    region: str | None = None
    use_ssl: bool = True
    allow_url_stream: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))

    def validate(self) -> None:
        if not self.access_key:
            raise ConfigError("access_key is required")
        if not self.secret_key:
            raise ConfigError("secret_key is required")
        if not self.bucket:
            raise ConfigError("bucket is required")
        if not self.domain:
            raise ConfigError("domain is required")

    @property
    def scheme(self) -> str:
        return "https" if self.use_ssl else "http"

    @property
    def endpoint_url(self) -> str:
        if "://" in self.domain:
            return self.domain.rstrip("/")
        return f"{self.scheme}://{self.domain.rstrip('/')}"


@dataclass(frozen=True)
class Config:
    # OSS
    oss_access_key_id: str
    oss_access_key_secret: str
    oss_bucket: str
    oss_domain: str
    oss_is_cname: bool = False
    oss_prefix: str | None = None
    oss_region: str | None = None
    oss_use_ssl: bool = True
    oss_allow_url_stream: bool = True

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"
    log_file_path: str | None = None

    def validate(self) -> None:
        if not self.oss_access_key_id:
            raise ConfigError("OSS_ACCESS_KEY_ID is required")
        if not self.oss_access_key_secret:
            raise ConfigError("OSS_ACCESS_KEY_SECRET is required")
        if not self.oss_bucket:
            raise ConfigError("OSS_BUCKET is required")
        if not self.oss_domain:
            raise ConfigError("OSS_DOMAIN is required")

        if self.log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ConfigError("LOG_LEVEL must be DEBUG, INFO, WARNING, ERROR, or CRITICAL")

        if self.log_format not in {"json", "text"}:
            raise ConfigError("LOG_FORMAT must be 'json' or 'text'")

        if self.log_file_path:
            log_dir = Path(self.log_file_path).parent
            if not log_dir.exists():
                raise ConfigError(f"LOG_FILE_PATH directory does not exist: {log_dir}")
            if not os.access(log_dir, os.W_OK):
                raise ConfigError(f"LOG_FILE_PATH directory is not writable: {log_dir}")

    def adapter_config(self) -> AdapterConfig:
        return AdapterConfig(
            access_key=self.oss_access_key_id,
            secret_key=self.oss_access_key_secret,
            bucket=self.oss_bucket,
            domain=self.oss_domain,
            is_cname=self.oss_is_cname,
            prefix=self.oss_prefix,
            region=self.oss_region,
            use_ssl=self.oss_use_ssl,
            allow_url_stream=self.oss_allow_url_stream,
        )

    def create_storage_adapter(self):
        """
        Create the OSS storage adapter described by this configuration.

        Returns:
            AliyunOssAdapter logging through the "ossadapter.storage" logger
        """
        from ossadapter.core.logging import setup_logger
        from ossadapter.storage import AliyunOssAdapter

        logger = setup_logger("ossadapter.storage", self)
        return AliyunOssAdapter(self.adapter_config(), logger=logger)


def load_config() -> Config:
    _load_dotenv()

    config = Config(
        oss_access_key_id=os.environ.get("OSS_ACCESS_KEY_ID", "").strip(),
        oss_access_key_secret=os.environ.get("OSS_ACCESS_KEY_SECRET", "").strip(),
        oss_bucket=os.environ.get("OSS_BUCKET", "").strip(),
        oss_domain=os.environ.get("OSS_DOMAIN", "").strip(),
        oss_is_cname=_env_flag("OSS_IS_CNAME", "false"),
        oss_prefix=os.environ.get("OSS_PREFIX") or None,
        oss_region=os.environ.get("OSS_REGION") or None,
        oss_use_ssl=_env_flag("OSS_USE_SSL", "true"),
        oss_allow_url_stream=_env_flag("OSS_ALLOW_URL_STREAM", "true"),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        log_format=os.environ.get("LOG_FORMAT", "json"),
        log_file_path=os.environ.get("LOG_FILE_PATH") or None,
    )

    config.validate()
    return config
