"""Tests for input validators."""

import pytest

from prodmill.utils.validators import validate_owner_repo, validate_task_id


@pytest.mark.parametrize("value", ["acme/widgets", "my-org/my.repo", "a_b/c-d"])
def test_valid_owner_repo(value):
    assert validate_owner_repo(value) == value


@pytest.mark.parametrize("value", ["", "acme", "acme/widgets/extra", "acme/..", "ac me/widgets"])
def test_invalid_owner_repo(value):
    with pytest.raises(ValueError):
        validate_owner_repo(value)


def test_valid_task_id():
    assert validate_task_id("pm-4.1") == "pm-4.1"


@pytest.mark.parametrize("value", ["", "   ", "pm 1"])
def test_invalid_task_id(value):
    with pytest.raises(ValueError):
        validate_task_id(value)
