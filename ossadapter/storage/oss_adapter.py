"""Aliyun OSS storage adapter using the S3-compatible API."""

from __future__ import annotations

import functools
import inspect
import logging
import threading
from types import MappingProxyType
from typing import IO, Any, Dict, Iterator, List, Mapping, Optional
from urllib.parse import quote, urlsplit, urlunsplit

import boto3
import requests
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ossadapter.config import AdapterConfig
from ossadapter.core.errors import (
    AccessDeniedError,
    AdapterError,
    EnvironmentCapabilityError,
    InputStreamError,
    InvalidPathError,
    ObjectNotFoundError,
    RemoteProtocolError,
    from_client_error,
)
from ossadapter.core.result import Result
from ossadapter.storage.adapter import (
    DIR,
    FILE,
    FileContents,
    FileMetadata,
    FileStream,
    FilesystemAdapter,
)
from ossadapter.utils.filesystem import (
    content_size,
    guess_mime_type,
    read_stream_fully,
    to_bytes,
    to_timestamp,
)
from ossadapter.utils.paths import PathPrefix, normalize_path

# Config option names and the put_object arguments they stand for
OPTION_MAPPING: Mapping[str, str] = MappingProxyType(
    {
        "mimetype": "ContentType",
        "size": "ContentLength",
    }
)

DELIMITER = "/"
LIST_MAX_KEYS = 1000
DELETE_BATCH_SIZE = 1000
STREAM_TIMEOUT_SECONDS = 30

REMOTE_ERRORS = (ClientError, BotoCoreError)


def remote_operation(func):
    """Turn store and path failures raised by ``func`` into a failed Result."""
    target_name = list(inspect.signature(func).parameters)[1]

    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        target = args[0] if args else kwargs.get(target_name, "")
        try:
            return func(self, *args, **kwargs)
        except REMOTE_ERRORS as exc:
            error = from_client_error(exc, key=target)
        except AdapterError as exc:
            error = exc

        level = logging.DEBUG if isinstance(error, ObjectNotFoundError) else logging.WARNING
        self.logger.log(
            level,
            "OSS %s failed: %s",
            func.__name__,
            error,
            extra={"bucket": self.bucket, "key": target, "operation": func.__name__},
        )
        return Result.failure(error)

    return wrapper


def _http_error(status: int, path: str) -> RemoteProtocolError:
    message = f"HTTP {status} while streaming {path}"
    if status == 404:
        return ObjectNotFoundError(message, code=str(status), status=status, key=path)
    if status == 403:
        return AccessDeniedError(message, code=str(status), status=status, key=path)
    return RemoteProtocolError(message, code=str(status), status=status, key=path)


class AliyunOssAdapter(FilesystemAdapter):
    """Filesystem adapter for an Aliyun OSS bucket (S3-compatible endpoint)."""

    def __init__(
        self,
        config: AdapterConfig,
        client: Any = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize OSS storage adapter.

        Args:
            config: Bucket, endpoint domain, credentials and path prefix
            client: Pre-built boto3 S3 client; created on first use when omitted
            logger: Logger for failed store calls (default: "ossadapter.storage")
        """
        config.validate()
        self.config = config
        self.bucket = config.bucket
        self.prefixer = PathPrefix(config.prefix)
        self.logger = logger or logging.getLogger("ossadapter.storage")
        self._client = client
        self._client_lock = threading.Lock()

    @property
    def client(self):
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = self._create_client()
        return self._client

    def _create_client(self):
        # A custom domain is already bound to the bucket, so the bucket must
        # not show up in either the host or the path.
        addressing_style = "path" if self.config.is_cname else "virtual"
        client = boto3.client(
            "s3",
            endpoint_url=self.config.endpoint_url,
            aws_access_key_id=self.config.access_key,
            aws_secret_access_key=self.config.secret_key,
            region_name=self.config.region or self._region_from_domain(),
            config=BotoConfig(
                signature_version="s3v4",
                s3={"addressing_style": addressing_style},
            ),
        )
        if self.config.is_cname:
            client.meta.events.register("before-sign.s3", self._strip_bucket_from_path)
        self.logger.info(
            "OSS client initialized: endpoint=%s cname=%s",
            self.config.endpoint_url,
            self.config.is_cname,
            extra={"bucket": self.bucket},
        )
        return client

    def _region_from_domain(self) -> Optional[str]:
        host = urlsplit(self.config.endpoint_url).hostname or ""
        label = host.split(".", 1)[0]
        if label.startswith("oss-"):
            return label.replace("-internal", "")
        return None

    def _strip_bucket_from_path(self, request, **kwargs) -> None:
        parts = urlsplit(request.url)
        bucket_path = f"/{self.bucket}"
        if parts.path == bucket_path or parts.path.startswith(bucket_path + "/"):
            path = parts.path[len(bucket_path):] or "/"
            request.url = urlunsplit(parts._replace(path=path))

    def get_url(self, path: str) -> str:
        """Public URL of a file, used for direct streaming."""
        key = quote(self.prefixer.apply(path), safe="/")
        if self.config.is_cname:
            return f"{self.config.endpoint_url}/{key}"
        parts = urlsplit(self.config.endpoint_url)
        return f"{parts.scheme}://{self.bucket}.{parts.netloc}/{key}"

    def _options_from_config(self, config: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        options = {
            OPTION_MAPPING.get(name, name): value for name, value in self.config.options.items()
        }
        if not config:
            return options
        for option, oss_option in OPTION_MAPPING.items():
            if option in config:
                options[oss_option] = config[option]
        return options

    def _normalize_response(self, response: Mapping[str, Any], path: str) -> FileMetadata:
        return FileMetadata(
            type=FILE,
            path=path,
            mimetype=response.get("ContentType"),
            size=response.get("ContentLength"),
            timestamp=to_timestamp(response["LastModified"]) if "LastModified" in response else None,
        )

    @remote_operation
    def write(
        self, path: str, contents: bytes | str, config: Optional[Mapping[str, Any]] = None
    ) -> Result[FileMetadata]:
        key = self.prefixer.apply(path)
        body = to_bytes(contents)
        options = self._options_from_config(config)
        options.setdefault("ContentLength", content_size(body))
        options.setdefault("ContentType", guess_mime_type(path, body))
        self.client.put_object(Bucket=self.bucket, Key=key, Body=body, **options)
        return Result.success(self._normalize_response(options, normalize_path(path)))

    @remote_operation
    def write_stream(
        self, path: str, stream: IO, config: Optional[Mapping[str, Any]] = None
    ) -> Result[FileMetadata]:
        # The whole stream is buffered; uploads are single put_object calls
        try:
            contents = read_stream_fully(stream)
        except OSError as exc:
            raise InputStreamError(f"Failed to read source stream for {path}: {exc}") from exc
        return self.write(path, contents, config)

    def update(
        self, path: str, contents: bytes | str, config: Optional[Mapping[str, Any]] = None
    ) -> Result[FileMetadata]:
        # Not atomic: the object is absent between the two calls
        self.delete(path)
        return self.write(path, contents, config)

    def update_stream(
        self, path: str, stream: IO, config: Optional[Mapping[str, Any]] = None
    ) -> Result[FileMetadata]:
        self.delete(path)
        return self.write_stream(path, stream, config)

    def rename(self, path: str, new_path: str) -> Result[bool]:
        copied = self.copy(path, new_path)
        if not copied:
            return copied
        return self.delete(path)

    @remote_operation
    def copy(self, path: str, new_path: str) -> Result[bool]:
        self.client.copy_object(
            Bucket=self.bucket,
            Key=self.prefixer.apply(new_path),
            CopySource={"Bucket": self.bucket, "Key": self.prefixer.apply(path)},
        )
        return Result.success(True)

    @remote_operation
    def delete(self, path: str) -> Result[bool]:
        self.client.delete_object(Bucket=self.bucket, Key=self.prefixer.apply(path))
        if self.has(path):
            raise RemoteProtocolError(f"Object still present after delete: {path}", key=path)
        return Result.success(True)

    @remote_operation
    def delete_dir(self, dirname: str) -> Result[bool]:
        root = self.prefixer.apply_dir(dirname)
        keys = []
        for entry in self._list(root, recursive=True):
            key = self.prefixer.apply(entry.path)
            keys.append(key if entry.type == FILE else key + DELIMITER)
        if root and root not in keys:
            keys.append(root)

        for start in range(0, len(keys), DELETE_BATCH_SIZE):
            batch = keys[start:start + DELETE_BATCH_SIZE]
            response = self.client.delete_objects(
                Bucket=self.bucket,
                Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
            )
            errors = response.get("Errors", [])
            if errors:
                first = errors[0]
                raise RemoteProtocolError(
                    f"Failed to delete {len(errors)} object(s) under {dirname}: "
                    f"{first.get('Message', '')}",
                    code=first.get("Code"),
                    key=dirname,
                )
        self.logger.debug(
            "Deleted %d object(s)",
            len(keys),
            extra={"bucket": self.bucket, "key": dirname, "operation": "delete_dir"},
        )
        return Result.success(True)

    @remote_operation
    def create_dir(
        self, dirname: str, config: Optional[Mapping[str, Any]] = None
    ) -> Result[FileMetadata]:
        key = self.prefixer.apply_dir(dirname)
        if not key:
            raise InvalidPathError("Cannot create the bucket root as a directory")
        options = self._options_from_config(config)
        options["ContentLength"] = 0
        self.client.put_object(Bucket=self.bucket, Key=key, Body=b"", **options)
        return Result.success(FileMetadata(type=DIR, path=normalize_path(dirname)))

    def has(self, path: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=self.prefixer.apply(path))
        except REMOTE_ERRORS as exc:
            error = from_client_error(exc, key=path)
            level = logging.DEBUG if isinstance(error, ObjectNotFoundError) else logging.WARNING
            self.logger.log(
                level,
                "OSS existence check failed: %s",
                error,
                extra={"bucket": self.bucket, "key": path, "operation": "has"},
            )
            return False
        except InvalidPathError:
            return False
        return True

    @remote_operation
    def read(self, path: str) -> Result[FileContents]:
        response = self.client.get_object(Bucket=self.bucket, Key=self.prefixer.apply(path))
        body = response["Body"]
        try:
            contents = body.read()
        finally:
            body.close()
        return Result.success(FileContents(path=normalize_path(path), contents=contents))

    @remote_operation
    def read_stream(self, path: str) -> Result[FileStream]:
        if not self.config.allow_url_stream:
            raise EnvironmentCapabilityError("Direct URL streams are disabled for this adapter")

        url = self.get_url(path)
        try:
            response = requests.get(url, stream=True, timeout=STREAM_TIMEOUT_SECONDS)
        except requests.RequestException as exc:
            raise RemoteProtocolError(f"Failed to open stream for {path}: {exc}", key=path) from exc

        if response.status_code >= 400:
            response.close()
            raise _http_error(response.status_code, path)

        response.raw.decode_content = True
        return Result.success(FileStream(path=normalize_path(path), stream=response.raw))

    @remote_operation
    def list_contents(self, directory: str = "", recursive: bool = False) -> Result[List[FileMetadata]]:
        return Result.success(self._list(self.prefixer.apply_dir(directory), recursive))

    def _list(self, prefix: str, recursive: bool) -> List[FileMetadata]:
        result: List[FileMetadata] = []
        for page in self._list_pages(prefix):
            for info in page.get("Contents", []):
                key = info["Key"]
                size = info.get("Size", 0)
                timestamp = to_timestamp(info.get("LastModified"))
                if size == 0 and key == prefix:
                    dir_path = self.prefixer.remove(key).rstrip(DELIMITER)
                    if dir_path:
                        result.append(FileMetadata(type=DIR, path=dir_path, timestamp=timestamp))
                    continue
                result.append(
                    FileMetadata(
                        type=FILE,
                        path=self.prefixer.remove(key),
                        size=size,
                        timestamp=timestamp,
                    )
                )

            for info in page.get("CommonPrefixes", []):
                sub_prefix = info["Prefix"]
                if recursive:
                    result.extend(self._list(sub_prefix, recursive))
                else:
                    result.append(
                        FileMetadata(
                            type=DIR,
                            path=self.prefixer.remove(sub_prefix).rstrip(DELIMITER),
                            timestamp=0,
                        )
                    )
        return result

    def _list_pages(self, prefix: str) -> Iterator[Dict[str, Any]]:
        marker = ""
        while True:
            params = {
                "Bucket": self.bucket,
                "Prefix": prefix,
                "Delimiter": DELIMITER,
                "MaxKeys": LIST_MAX_KEYS,
            }
            if marker:
                params["Marker"] = marker
            response = self.client.list_objects(**params)
            yield response

            if not response.get("IsTruncated"):
                break
            marker = response.get("NextMarker") or self._last_listed(response)
            if not marker:
                break

    @staticmethod
    def _last_listed(response: Mapping[str, Any]) -> str:
        names = [info["Key"] for info in response.get("Contents", [])]
        names.extend(info["Prefix"] for info in response.get("CommonPrefixes", []))
        return max(names) if names else ""

    @remote_operation
    def get_metadata(self, path: str) -> Result[FileMetadata]:
        response = self.client.head_object(Bucket=self.bucket, Key=self.prefixer.apply(path))
        return Result.success(self._normalize_response(response, normalize_path(path)))
