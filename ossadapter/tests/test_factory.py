import pytest

from ossadapter.core.errors import ConfigError
from ossadapter.storage import AliyunOssAdapter, DRIVER_NAME, create_adapter, get_driver

RECORD = {
    "access_key": "key",
    "secret_key": "secret",
    "bucket": "media",
    "domain": "static.example.com",
    "is_cname": True,
}


def test_create_adapter_from_record(fake_client):
    adapter = create_adapter(RECORD, client=fake_client)

    assert isinstance(adapter, AliyunOssAdapter)
    assert adapter.bucket == "media"
    assert adapter.config.is_cname is True
    assert adapter.prefixer.prefix == ""
    assert adapter.client is fake_client


def test_create_adapter_with_prefix_and_options(fake_client):
    record = dict(RECORD, prefix="site", options={"CacheControl": "max-age=300"})

    adapter = create_adapter(record, client=fake_client)
    adapter.write("index.html", "<html></html>")

    put = fake_client.calls_to("put_object")[0]
    assert put["Key"] == "site/index.html"
    assert put["CacheControl"] == "max-age=300"
    assert put["ContentType"] == "text/html"


def test_create_adapter_requires_fields():
    with pytest.raises(ConfigError, match="secret_key, bucket"):
        create_adapter({"access_key": "key", "domain": "d"})


def test_get_driver():
    assert DRIVER_NAME == "aliyun_oss"
    assert get_driver("aliyun_oss") is create_adapter
    assert get_driver("ALIYUN_OSS") is create_adapter


def test_get_driver_unknown():
    with pytest.raises(ConfigError, match="Unknown storage driver"):
        get_driver("ftp")
