import pytest

from ossadapter.core.errors import ObjectNotFoundError
from ossadapter.core.result import Result


def test_success_is_truthy():
    result = Result.success({"path": "a.txt"})

    assert result
    assert result.ok is True
    assert result.error_type is None
    assert result.unwrap() == {"path": "a.txt"}


def test_failure_is_falsy():
    error = ObjectNotFoundError("missing", key="a.txt")
    result = Result.failure(error)

    assert not result
    assert result.ok is False
    assert result.error is error
    assert result.error_type == "NOT_FOUND"
    with pytest.raises(ObjectNotFoundError):
        result.unwrap()


def test_success_without_value_is_truthy():
    assert Result.success(None)
