"""Filesystem adapter backed by Aliyun OSS."""

from ossadapter.storage.adapter import FileContents, FileMetadata, FileStream, FilesystemAdapter
from ossadapter.storage.factory import DRIVER_NAME, create_adapter, get_driver
from ossadapter.storage.oss_adapter import AliyunOssAdapter

__all__ = [
    "FilesystemAdapter",
    "FileMetadata",
    "FileContents",
    "FileStream",
    "AliyunOssAdapter",
    "DRIVER_NAME",
    "create_adapter",
    "get_driver",
]
