import time

from slowapi import Limiter

from courtside.core.rate_limiter import ClientRateLimit, build_limiter, window_limit


def _rate(max_requests: int, window_seconds: int) -> ClientRateLimit:
    return ClientRateLimit(build_limiter(max_requests, window_seconds), window_limit(max_requests, window_seconds))


def test_default_limit_is_100_per_15_minutes():
    assert window_limit() == "100/900 seconds"
    limiter = build_limiter()
    assert isinstance(limiter, Limiter)

    rate = ClientRateLimit(limiter, window_limit())
    assert rate.item.amount == 100
    assert rate.item.get_expiry() == 900


def test_allows_up_to_limit_then_rejects():
    rate = _rate(3, 60)

    decisions = [rate.hit("1.2.3.4") for _ in range(4)]

    assert [d.allowed for d in decisions] == [True, True, True, False]
    assert [d.remaining for d in decisions] == [2, 1, 0, 0]
    assert all(d.limit == 3 for d in decisions)


def test_reset_after_lies_inside_the_window():
    rate = _rate(2, 900)
    decision = rate.hit("a")
    assert 0 < decision.reset_after <= 900


def test_clients_are_tracked_separately():
    rate = _rate(1, 60)

    assert rate.hit("a").allowed
    assert rate.hit("b").allowed
    assert not rate.hit("a").allowed

    rate.reset()
    assert rate.hit("a").allowed


def test_window_moves_on():
    rate = _rate(2, 1)

    assert rate.hit("a").allowed
    assert rate.hit("a").allowed
    assert not rate.hit("a").allowed

    time.sleep(1.1)
    assert rate.hit("a").allowed


def test_idle_clients_are_evicted_from_storage():
    rate = _rate(2, 1)
    for client in ("10.0.0.1", "10.0.0.2", "10.0.0.3"):
        rate.hit(client)

    time.sleep(1.1)
    # Neuer Treffer stößt das Aufräumen im Speicher an
    rate.hit("10.0.0.4")
    time.sleep(0.2)

    events = rate.limiter.limiter.storage.events
    stale = [key for key, entries in events.items() if entries and "10.0.0.4" not in key]
    assert stale == []
