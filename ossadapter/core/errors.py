from __future__ import annotations

from botocore.exceptions import BotoCoreError, ClientError


class AdapterError(Exception):
    error_type = "UNKNOWN"


class RemoteProtocolError(AdapterError):
    error_type = "REMOTE_PROTOCOL"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        status: int | None = None,
        key: str | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.status = status
        self.key = key


class ObjectNotFoundError(RemoteProtocolError):
    error_type = "NOT_FOUND"


class AccessDeniedError(RemoteProtocolError):
    error_type = "ACCESS_DENIED"


class EnvironmentCapabilityError(AdapterError):
    error_type = "ENVIRONMENT"


class InputStreamError(AdapterError):
    error_type = "INPUT_STREAM"


class InvalidPathError(AdapterError):
    error_type = "INVALID_PATH"


class ConfigError(AdapterError):
    error_type = "CONFIG"


NOT_FOUND_CODES = frozenset({"NoSuchKey", "NotFound", "404"})
ACCESS_DENIED_CODES = frozenset(
    {"AccessDenied", "InvalidAccessKeyId", "SignatureDoesNotMatch", "403"}
)


def from_client_error(error: Exception, key: str | None = None) -> RemoteProtocolError:
    """Convert a botocore failure into the matching RemoteProtocolError."""
    if isinstance(error, ClientError):
        details = error.response.get("Error", {})
        code = str(details.get("Code", ""))
        status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        message = details.get("Message") or str(error)
        if code in NOT_FOUND_CODES:
            return ObjectNotFoundError(message, code=code, status=status, key=key)
        if code in ACCESS_DENIED_CODES:
            return AccessDeniedError(message, code=code, status=status, key=key)
        return RemoteProtocolError(message, code=code or None, status=status, key=key)

    if isinstance(error, BotoCoreError):
        return RemoteProtocolError(str(error), code=type(error).__name__, key=key)

    return RemoteProtocolError(str(error), key=key)

