import io
from datetime import datetime, timezone

import pytest
from botocore.exceptions import ClientError

from ossadapter.config import AdapterConfig
from ossadapter.storage import AliyunOssAdapter

LAST_MODIFIED = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def _client_error(code: str, status: int, operation: str) -> ClientError:
    return ClientError(
        {
            "Error": {"Code": code, "Message": f"{code} raised by fake"},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


class FakeOssClient:
    """In-memory stand-in for the boto3 S3 client calls the adapter makes."""

    def __init__(self):
        self.objects = {}
        self.calls = []
        self.fail_on = {}
        self.delete_errors = []
        self.ignore_deletes = False
        self.on_list = None

    def _record(self, operation, **params):
        self.calls.append((operation, params))
        if operation in self.fail_on:
            code, status = self.fail_on[operation]
            raise _client_error(code, status, operation)

    def calls_to(self, operation):
        return [params for name, params in self.calls if name == operation]

    def put_object(self, Bucket, Key, Body=b"", **kwargs):
        self._record("put_object", Bucket=Bucket, Key=Key, Body=Body, **kwargs)
        self.objects[Key] = {
            "Body": bytes(Body),
            "ContentType": kwargs.get("ContentType", "binary/octet-stream"),
            "LastModified": LAST_MODIFIED,
        }
        return {"ETag": '"fake"'}

    def copy_object(self, Bucket, Key, CopySource):
        self._record("copy_object", Bucket=Bucket, Key=Key, CopySource=CopySource)
        source = self.objects.get(CopySource["Key"])
        if source is None:
            raise _client_error("NoSuchKey", 404, "CopyObject")
        self.objects[Key] = dict(source)
        return {}

    def delete_object(self, Bucket, Key):
        self._record("delete_object", Bucket=Bucket, Key=Key)
        if not self.ignore_deletes:
            self.objects.pop(Key, None)
        return {}

    def delete_objects(self, Bucket, Delete):
        self._record("delete_objects", Bucket=Bucket, Delete=Delete)
        if self.delete_errors:
            return {"Errors": list(self.delete_errors)}
        for item in Delete["Objects"]:
            self.objects.pop(item["Key"], None)
        return {}

    def head_object(self, Bucket, Key):
        self._record("head_object", Bucket=Bucket, Key=Key)
        obj = self.objects.get(Key)
        if obj is None:
            raise _client_error("404", 404, "HeadObject")
        return {
            "ContentType": obj["ContentType"],
            "ContentLength": len(obj["Body"]),
            "LastModified": obj["LastModified"],
        }

    def get_object(self, Bucket, Key):
        self._record("get_object", Bucket=Bucket, Key=Key)
        obj = self.objects.get(Key)
        if obj is None:
            raise _client_error("NoSuchKey", 404, "GetObject")
        return {"Body": io.BytesIO(obj["Body"]), "ContentLength": len(obj["Body"])}

    def list_objects(self, Bucket, Prefix="", Delimiter="", MaxKeys=1000, Marker=""):
        self._record(
            "list_objects",
            Bucket=Bucket,
            Prefix=Prefix,
            Delimiter=Delimiter,
            MaxKeys=MaxKeys,
            Marker=Marker,
        )
        if self.on_list is not None:
            self.on_list()
        entries = []
        seen_prefixes = set()
        for key in sorted(self.objects):
            if not key.startswith(Prefix):
                continue
            rest = key[len(Prefix):]
            if Delimiter and Delimiter in rest:
                common = Prefix + rest.split(Delimiter, 1)[0] + Delimiter
                if common not in seen_prefixes:
                    seen_prefixes.add(common)
                    entries.append((common, "prefix"))
            else:
                entries.append((key, "object"))

        entries = [entry for entry in entries if entry[0] > Marker]
        page = entries[:MaxKeys]
        truncated = len(entries) > MaxKeys

        response = {"IsTruncated": truncated, "Prefix": Prefix, "MaxKeys": MaxKeys}
        contents = [
            {
                "Key": name,
                "Size": len(self.objects[name]["Body"]),
                "LastModified": self.objects[name]["LastModified"],
            }
            for name, kind in page
            if kind == "object"
        ]
        prefixes = [{"Prefix": name} for name, kind in page if kind == "prefix"]
        if contents:
            response["Contents"] = contents
        if prefixes:
            response["CommonPrefixes"] = prefixes
        if truncated:
            response["NextMarker"] = page[-1][0]
        return response


@pytest.fixture
def fake_client():
    return FakeOssClient()


@pytest.fixture
def adapter_config():
    return AdapterConfig(
        access_key="test-access-key",
        secret_key="test-secret-key",
        bucket="test-bucket",
        domain="oss-cn-hangzhou.aliyuncs.com",
    )


@pytest.fixture
def adapter(fake_client, adapter_config):
    return AliyunOssAdapter(adapter_config, client=fake_client)


@pytest.fixture
def prefixed_adapter(fake_client):
    config = AdapterConfig(
        access_key="test-access-key",
        secret_key="test-secret-key",
        bucket="test-bucket",
        domain="oss-cn-hangzhou.aliyuncs.com",
        prefix="tenant/data/",
    )
    return AliyunOssAdapter(config, client=fake_client)
