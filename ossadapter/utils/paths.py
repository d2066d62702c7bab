from __future__ import annotations

from ossadapter.core.errors import InvalidPathError


def normalize_path(path: str) -> str:
    """Canonical logical path: forward slashes, no empty/./.. segments, no edge slashes."""
    segments: list[str] = []
    for segment in path.replace("\\", "/").split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if not segments:
                raise InvalidPathError(f"Path is outside of the defined root: {path}")
            segments.pop()
            continue
        segments.append(segment)
    return "/".join(segments)


class PathPrefix:
    """Maps logical paths onto object keys below an optional bucket prefix."""

    def __init__(self, prefix: str | None = None):
        clean = normalize_path(prefix) if prefix else ""
        self.prefix = f"{clean}/" if clean else ""

    def apply(self, path: str) -> str:
        return self.prefix + normalize_path(path)

    def apply_dir(self, path: str) -> str:
        """Key of a directory, always ending with the delimiter unless it is the bucket root."""
        key = self.apply(path)
        if key and not key.endswith("/"):
            key += "/"
        return key

    def remove(self, key: str) -> str:
        if self.prefix and key.startswith(self.prefix):
            return key[len(self.prefix):]
        return key

    def __repr__(self) -> str:
        return f"PathPrefix({self.prefix!r})"
