import threading

from qr_event.infrastructure.otp.memory_store import InMemoryOTPStore, generate_code

PHONE = "+911234567890"


def test_issue_returns_six_digit_code(store):
    code = store.issue(PHONE)
    assert len(code) == 6
    assert code.isdigit()
    assert 100000 <= int(code) <= 999999


def test_generate_code_stays_in_range():
    for _ in range(500):
        assert 100000 <= int(generate_code()) <= 999999


def test_code_verifies_exactly_once(store):
    code = store.issue(PHONE)
    assert store.verify(PHONE, code) is True
    assert store.verify(PHONE, code) is False
    assert store.peek(PHONE) is None


def test_verify_without_entry_is_false(store):
    assert store.verify("+15550000000", "123456") is False


def test_wrong_code_keeps_entry(store):
    code = store.issue(PHONE)
    wrong = "000000" if code != "000000" else "111111"
    assert store.verify(PHONE, wrong) is False
    assert store.peek(PHONE) == code
    assert store.verify(PHONE, code) is True


def test_expired_code_is_rejected_and_purged(store, clock):
    code = store.issue(PHONE)
    clock.advance(60_001)
    assert store.verify(PHONE, code) is False
    assert store.peek(PHONE) is None


def test_code_still_valid_at_expiry_instant(store, clock):
    code = store.issue(PHONE)
    clock.advance(60_000)
    assert store.verify(PHONE, code) is True


def test_custom_ttl(store, clock):
    code = store.issue(PHONE, ttl_ms=1_000)
    clock.advance(1_001)
    assert store.verify(PHONE, code) is False


def test_expired_wrong_code_also_purges(store, clock):
    store.issue(PHONE)
    clock.advance(60_001)
    assert store.verify(PHONE, "not-it") is False
    assert len(store) == 0


def test_reissue_replaces_previous_code(store, monkeypatch):
    codes = iter(["111111", "222222"])
    monkeypatch.setattr("qr_event.infrastructure.otp.memory_store.generate_code", lambda: next(codes))
    old = store.issue(PHONE)
    new = store.issue(PHONE)
    assert store.verify(PHONE, old) is False
    assert store.verify(PHONE, new) is True


def test_peek_does_not_consume(store):
    code = store.issue(PHONE)
    assert store.peek(PHONE) == code
    assert store.peek(PHONE) == code
    assert store.verify(PHONE, code) is True


def test_purge_expired_only_drops_stale_entries(store, clock):
    store.issue("+10000000001", ttl_ms=1_000)
    store.issue("+10000000002", ttl_ms=10_000)
    clock.advance(5_000)
    assert store.purge_expired() == 1
    assert store.peek("+10000000001") is None
    assert store.peek("+10000000002") is not None


def test_issue_sweeps_once_threshold_reached(clock):
    store = InMemoryOTPStore(clock=clock, default_ttl_ms=1_000, sweep_threshold=3)
    for i in range(3):
        store.issue(f"+1000000000{i}")
    clock.advance(2_000)
    store.issue("+19999999999")
    assert len(store) == 1


def test_stores_are_independent(clock):
    a = InMemoryOTPStore(clock=clock)
    b = InMemoryOTPStore(clock=clock)
    code = a.issue(PHONE)
    assert b.peek(PHONE) is None
    assert b.verify(PHONE, code) is False
    assert a.verify(PHONE, code) is True


def test_concurrent_identifiers_do_not_interfere(store):
    results = {}

    def worker(i):
        phone = f"+1555000{i:04d}"
        code = store.issue(phone)
        results[phone] = (store.verify(phone, code), store.verify(phone, code))

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(50)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 50
    assert all(outcome == (True, False) for outcome in results.values())


def test_concurrent_verify_redeems_once(store):
    code = store.issue(PHONE)
    barrier = threading.Barrier(20)
    outcomes = []
    lock = threading.Lock()

    def worker():
        barrier.wait()
        ok = store.verify(PHONE, code)
        with lock:
            outcomes.append(ok)

    threads = [threading.Thread(target=worker) for _ in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count(True) == 1


def test_sweeps_stay_amortized_above_threshold(clock, monkeypatch):
    store = InMemoryOTPStore(clock=clock, default_ttl_ms=60_000, sweep_threshold=100)
    scans = []
    original = store._purge_locked

    def counting_purge(now):
        scans.append(len(store._entries))
        return original(now)

    monkeypatch.setattr(store, "_purge_locked", counting_purge)
    for i in range(100):
        store.issue(f"+1000000{i:04d}")
    for i in range(200):
        store.issue(f"+2000000{i:04d}")

    # all entries are live, so the map must double between scans
    assert scans == [100, 200]
    assert len(store) == 300
