from app.utils.backoff import compute_retry_delay_seconds


def test_retry_delay_is_linear():
    assert compute_retry_delay_seconds(1, base=2.0) == 2.0
    assert compute_retry_delay_seconds(2, base=2.0) == 4.0
    assert compute_retry_delay_seconds(3, base=2.0) == 6.0


def test_retry_delay_uses_policy_default_and_clamps_attempt():
    assert compute_retry_delay_seconds(1) == 2.0
    assert compute_retry_delay_seconds(0) == compute_retry_delay_seconds(1)
