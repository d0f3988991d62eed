from __future__ import annotations

import pytest

from zeusbridge.config import BridgeConfig
from zeusbridge.reconnect import ReconnectPolicy


@pytest.mark.parametrize("attempt", [1, 2, 3, 4, 5])
def test_next_delay_doubles_per_attempt(attempt: int) -> None:
    policy = ReconnectPolicy(base_delay=2.0, max_attempts=5)
    assert policy.next_delay(attempt) == 2.0 * 2 ** (attempt - 1)


def test_should_retry_stops_after_budget() -> None:
    policy = ReconnectPolicy(base_delay=2.0, max_attempts=5)
    assert policy.should_retry(5)
    assert not policy.should_retry(6)


def test_delays_lists_full_schedule() -> None:
    assert ReconnectPolicy(base_delay=2.0, max_attempts=5).delays() == [2.0, 4.0, 8.0, 16.0, 32.0]
    assert ReconnectPolicy(base_delay=1.0, max_attempts=0).delays() == []


def test_invalid_values_rejected() -> None:
    with pytest.raises(ValueError):
        ReconnectPolicy(base_delay=0)
    with pytest.raises(ValueError):
        ReconnectPolicy(max_attempts=-1)
    with pytest.raises(ValueError):
        ReconnectPolicy().next_delay(0)


def test_from_config() -> None:
    policy = ReconnectPolicy.from_config(BridgeConfig(reconnect_base_delay=0.5, reconnect_max_attempts=3))
    assert policy == ReconnectPolicy(base_delay=0.5, max_attempts=3)
