"""Tests for the decommission redelivery policy."""

import pytest

from tablefed.application.services.retry_policy import RetryPolicy


def test_dead_letter_on_last_allowed_receive() -> None:
    policy = RetryPolicy(max_receives=3)
    assert not policy.should_dead_letter(1)
    assert not policy.should_dead_letter(2)
    assert policy.should_dead_letter(3)
    assert policy.should_dead_letter(7)


def test_backoff_doubles_and_caps() -> None:
    policy = RetryPolicy(backoff_base_seconds=30, backoff_max_seconds=100)
    assert [policy.backoff_seconds(n) for n in (1, 2, 3, 4)] == [30, 60, 100, 100]
    assert policy.backoff_seconds(0) == 30


@pytest.mark.parametrize(
    "kwargs",
    [{"max_receives": 0}, {"backoff_base_seconds": -1}, {"backoff_max_seconds": -5}],
)
def test_invalid_policy_rejected(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)
