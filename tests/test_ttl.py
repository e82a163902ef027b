import pytest

from dns_rr import ExpiryState, ResourceRecord, ServeStalePolicy

POLICY = ServeStalePolicy(serve_stale_ttl=245, minimum_ttl=0)


def make(ttl=55, name="example.com"):
    return ResourceRecord.from_json({"name": name, "type": 1, "TTL": ttl, "data": "192.0.2.1"})


def test_static_ttl_ignores_time(clock):
    rec = make(300)
    assert rec.expiry is None
    for _ in range(3):
        clock.advance(10_000)
        assert rec.ttl_value == 300
    assert not rec.is_stale


def test_fresh_ttl_counts_down(clock):
    rec = make(55)
    rec.set_expiry(POLICY, clock)
    assert rec.expiry.fresh_until == clock.now + 55
    assert rec.expiry.stale_serve_until == clock.now + 300
    assert rec.ttl_value == 55
    clock.advance(10)
    assert rec.ttl_value == 45
    clock.advance(44.4)
    assert rec.ttl_value == 1
    assert not rec.is_stale


def test_stale_window_reports_floor(clock):
    rec = make(55)
    rec.set_expiry(POLICY, clock)
    clock.advance(55)
    assert rec.ttl_value == 30
    assert rec.is_stale
    clock.advance(200)
    assert rec.ttl_value == 30
    clock.advance(44)
    assert rec.ttl_value == 30


def test_expired_after_stale_window(clock):
    rec = make(55)
    rec.set_expiry(POLICY, clock)
    clock.advance(299.6)
    assert rec.ttl_value == 0
    clock.advance(1000)
    assert rec.ttl_value == 0


def test_stored_ttl_is_not_decayed(clock):
    rec = make(55)
    rec.set_expiry(POLICY, clock)
    clock.advance(20)
    assert rec.ttl == 55
    assert rec.ttl_value == 35


def test_policy_tunables(clock):
    policy = ServeStalePolicy(stale_answer_ttl=5, expiry_threshold=3, serve_stale_ttl=100, minimum_ttl=0)
    rec = make(60)
    rec.set_expiry(policy, clock)
    clock.advance(58)
    assert rec.ttl_value == 5
    clock.advance(100)
    assert rec.ttl_value == 0


def test_set_expiry_clamps_once(clock):
    short = make(5)
    short.set_expiry(ServeStalePolicy(minimum_ttl=10, maximum_ttl=100), clock)
    assert short.ttl == 10
    assert short.ttl_value == 10

    lengthy = make(86400)
    lengthy.set_expiry(ServeStalePolicy(minimum_ttl=10, maximum_ttl=100), clock)
    assert lengthy.ttl == 100


def test_set_expiry_only_once(clock):
    rec = make()
    rec.set_expiry(POLICY, clock)
    with pytest.raises(RuntimeError):
        rec.set_expiry(POLICY, clock)


def test_equality_ignores_expiry_clock(clock):
    cached = make(55)
    plain = make(55)
    cached.set_expiry(POLICY, clock)
    clock.advance(40)
    assert cached == plain
    assert hash(cached) == hash(plain)


@pytest.mark.parametrize(
    "elapsed, expected",
    [
        (53.5, 2),
        (54.4, 1),
        (54.5, 30),
        (54.6, 30),
        (299.4, 30),
        (299.5, 0),
        (299.6, 0),
    ],
)
def test_rounding_at_deadlines(clock, elapsed, expected):
    # half-way values round to even: 1.5 -> 2, 0.5 -> 0
    rec = make(55)
    rec.set_expiry(POLICY, clock)
    clock.advance(elapsed)
    assert rec.ttl_value == expected


def test_default_policy_keeps_short_ttl(clock):
    cached = make(5)
    plain = make(5)
    cached.set_expiry(clock=clock)
    assert cached.ttl == 5
    assert cached.ttl_value == 5
    assert cached == plain
    assert hash(cached) == hash(plain)


def test_expiry_state_directly(clock):
    state = ExpiryState(fresh_until=clock.now + 55, stale_serve_until=clock.now + 300, clock=clock)
    assert state.ttl_value() == 55


@pytest.mark.parametrize(
    "kwargs",
    [
        {"serve_stale_ttl": 0},
        {"minimum_ttl": 200, "maximum_ttl": 100},
        {"stale_answer_ttl": -1},
        {"expiry_threshold": 1.5},
        {"maximum_ttl": True},
    ],
)
def test_invalid_policy(kwargs):
    with pytest.raises(ValueError):
        ServeStalePolicy(**kwargs)


def test_policy_from_mapping():
    policy = ServeStalePolicy.from_mapping({"stale_answer_ttl": 10})
    assert policy.stale_answer_ttl == 10
    assert policy.expiry_threshold == 1
    with pytest.raises(ValueError):
        ServeStalePolicy.from_mapping({"stale_ttl": 10})
