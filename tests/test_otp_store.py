import threading
from datetime import datetime, timedelta, timezone

from app.services.otp import Challenge, OtpStore, generate_code

NOW = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def _challenge(identity: str = "a@x.com", code: str = "123456", now: datetime = NOW) -> Challenge:
    return Challenge.issue(identity, code, now, ttl_seconds=60)


def test_challenge_expiry_is_sixty_seconds_after_issue():
    challenge = _challenge()
    assert challenge.expires_at - challenge.issued_at == timedelta(seconds=60)
    assert not challenge.is_expired(NOW + timedelta(seconds=60))
    assert challenge.is_expired(NOW + timedelta(seconds=61))


def test_put_overwrites_existing_challenge():
    store = OtpStore()
    store.put("a@x.com", _challenge(code="111111"))
    store.put("a@x.com", _challenge(code="222222"))

    assert len(store) == 1
    assert store.get("a@x.com").code == "222222"


def test_get_does_not_consume():
    store = OtpStore()
    store.put("a@x.com", _challenge())

    assert store.get("a@x.com") is not None
    assert store.get("a@x.com") is not None


def test_remove_is_noop_for_unknown_identity():
    store = OtpStore()
    store.remove("nobody@x.com")
    store.put("a@x.com", _challenge())
    store.remove("a@x.com")

    assert store.get("a@x.com") is None


def test_consume_accepts_matching_code_once():
    store = OtpStore()
    store.put("a@x.com", _challenge())

    assert store.consume("a@x.com", "123456", NOW + timedelta(seconds=30))
    assert not store.consume("a@x.com", "123456", NOW + timedelta(seconds=31))


def test_consume_rejects_mismatch_without_removing():
    store = OtpStore()
    store.put("a@x.com", _challenge())

    assert not store.consume("a@x.com", "654321", NOW)
    assert not store.consume("a@x.com", "123456 ", NOW)
    assert "a@x.com" in store


def test_consume_rejects_expired_challenge():
    store = OtpStore()
    store.put("a@x.com", _challenge())

    assert not store.consume("a@x.com", "123456", NOW + timedelta(seconds=61))


def test_consume_handles_non_ascii_input():
    store = OtpStore()
    store.put("a@x.com", _challenge())

    assert not store.consume("a@x.com", "١٢٣٤٥٦", NOW)


def test_put_purges_expired_entries_for_other_identities():
    store = OtpStore()
    store.put("old@x.com", _challenge("old@x.com"))
    store.put("a@x.com", _challenge(now=NOW + timedelta(minutes=5)))

    assert "old@x.com" not in store
    assert "a@x.com" in store


def test_purge_expired_reports_count():
    store = OtpStore()
    store.put("one@x.com", _challenge("one@x.com"))
    store.put("two@x.com", _challenge("two@x.com"))

    assert store.purge_expired(NOW + timedelta(seconds=10)) == 0
    assert store.purge_expired(NOW + timedelta(seconds=90)) == 2
    assert len(store) == 0


def test_generate_code_is_fixed_width_numeric():
    for _ in range(200):
        code = generate_code(6)
        assert len(code) == 6
        assert code.isdigit()


def test_generate_code_preserves_leading_zeros(monkeypatch):
    monkeypatch.setattr("app.services.otp.secrets.randbelow", lambda bound: 42)
    assert generate_code(6) == "000042"


def test_concurrent_consume_accepts_exactly_one():
    store = OtpStore()
    store.put("a@x.com", _challenge())
    workers = 16
    barrier = threading.Barrier(workers)
    results = []
    results_lock = threading.Lock()

    def attempt():
        barrier.wait()
        accepted = store.consume("a@x.com", "123456", NOW + timedelta(seconds=5))
        with results_lock:
            results.append(accepted)

    threads = [threading.Thread(target=attempt) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert len(results) == workers
    assert results.count(True) == 1
    assert store.get("a@x.com") is None
