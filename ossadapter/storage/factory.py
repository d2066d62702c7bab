"""Driver registration for filesystem hosts."""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Callable, Mapping

from ossadapter.config import AdapterConfig
from ossadapter.core.errors import ConfigError
from ossadapter.storage.adapter import FilesystemAdapter
from ossadapter.storage.oss_adapter import AliyunOssAdapter

DRIVER_NAME = "aliyun_oss"

REQUIRED_FIELDS = ("access_key", "secret_key", "bucket", "domain")


def create_adapter(record: Mapping[str, Any], **kwargs) -> AliyunOssAdapter:
    """
    Build an adapter from a driver configuration record.

    Args:
        record: Mapping with access_key, secret_key, bucket, domain and
            is_cname; prefix, region and options are optional
        **kwargs: Passed through to AliyunOssAdapter (client, logger)

    Raises:
        ConfigError: If a required field is missing
    """
    missing = [name for name in REQUIRED_FIELDS if not record.get(name)]
    if missing:
        raise ConfigError(f"Missing {DRIVER_NAME} driver settings: {', '.join(missing)}")

    config = AdapterConfig(
        access_key=record["access_key"],
        secret_key=record["secret_key"],
        bucket=record["bucket"],
        domain=record["domain"],
        is_cname=bool(record.get("is_cname", False)),
        prefix=record.get("prefix"),
        options=record.get("options") or {},
        region=record.get("region"),
    )
    return AliyunOssAdapter(config, **kwargs)


DRIVERS: Mapping[str, Callable[..., FilesystemAdapter]] = MappingProxyType(
    {DRIVER_NAME: create_adapter}
)


def get_driver(name: str) -> Callable[..., FilesystemAdapter]:
    driver = DRIVERS.get(name.lower())
    if driver is None:
        available = ", ".join(DRIVERS)
        raise ConfigError(f"Unknown storage driver: {name}. Available: {available}")
    return driver
