from mobile_api.services.rate_limiter import InMemoryRateLimiter


def test_limit_applies_per_key():
    limiter = InMemoryRateLimiter()
    assert limiter.allow("auth:1.2.3.4", 2, 60)
    assert limiter.allow("auth:1.2.3.4", 2, 60)
    assert not limiter.allow("auth:1.2.3.4", 2, 60)
    assert limiter.allow("auth:5.6.7.8", 2, 60)


def test_remaining_and_reset():
    limiter = InMemoryRateLimiter()
    limiter.allow("k", 3, 60)
    assert limiter.remaining("k", 3, 60) == 2
    limiter.reset()
    assert limiter.remaining("k", 3, 60) == 3


def test_window_expiry(monkeypatch):
    limiter = InMemoryRateLimiter()
    clock = [1000.0]
    monkeypatch.setattr("mobile_api.services.rate_limiter.time.time", lambda: clock[0])

    assert limiter.allow("k", 1, 10)
    assert not limiter.allow("k", 1, 10)
    clock[0] += 11
    assert limiter.allow("k", 1, 10)


def test_idle_keys_are_evicted(monkeypatch):
    limiter = InMemoryRateLimiter()
    clock = [1000.0]
    monkeypatch.setattr("mobile_api.services.rate_limiter.time.time", lambda: clock[0])

    for ip in ("10.0.0.1", "10.0.0.2", "10.0.0.3"):
        assert limiter.allow(f"api:{ip}", 5, 10)
    assert len(limiter) == 3

    clock[0] += 11
    assert limiter.allow("api:10.0.0.4", 5, 10)
    assert len(limiter) == 1

    # Reading the remaining budget of an unseen key does not track it.
    assert limiter.remaining("api:10.0.0.9", 5, 10) == 5
    assert len(limiter) == 1
