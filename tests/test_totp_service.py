import pyotp
import pytest
from totp_login.db import InMemoryDB
from totp_login.services.totp_service import Totp, calculate_code, provisioning_uri

SECRET = "JBSWY3DPEHPK3PXP"
NOW = 1_700_000_000.0


def make_totp(monkeypatch, max_failures=3, lockout_seconds=60):
    totp = Totp(InMemoryDB(), max_failures=max_failures, lockout_seconds=lockout_seconds)
    monkeypatch.setattr(totp, "_now", lambda: NOW)
    totp.enroll("alice", SECRET)
    return totp


def wrong_code(secret=SECRET, for_time=NOW):
    valid = {pyotp.TOTP(secret).at(for_time, counter_offset=o) for o in (-1, 0, 1)}
    return next(c for c in ("000000", "111111", "222222", "333333") if c not in valid)


def test_unknown_user_raises():
    totp = Totp(InMemoryDB(), max_failures=3, lockout_seconds=60)
    with pytest.raises(KeyError):
        totp.start_check("nobody")


def test_enroll_generates_secret():
    totp = Totp(InMemoryDB(), max_failures=3, lockout_seconds=60)
    secret = totp.enroll("bob")

    assert len(secret) == 32
    assert totp.start_check("bob").secret == secret


def test_start_check_not_locked(monkeypatch):
    totp = make_totp(monkeypatch)
    data = totp.start_check("alice")

    assert data.locked_out is False
    assert data.secret == SECRET


def test_correct_code_accepted(monkeypatch):
    totp = make_totp(monkeypatch)
    assert totp.finish_check("alice", pyotp.TOTP(SECRET).at(NOW)) is True


def test_lockout_after_max_failures(monkeypatch):
    totp = make_totp(monkeypatch, max_failures=3)
    bad = wrong_code()

    for _ in range(2):
        assert totp.finish_check("alice", bad) is False
    assert totp.start_check("alice").locked_out is False

    assert totp.finish_check("alice", bad) is False
    assert totp.start_check("alice").locked_out is True

    # Even the right code is refused while locked out
    assert totp.finish_check("alice", pyotp.TOTP(SECRET).at(NOW)) is False


def test_lockout_expires(monkeypatch):
    totp = make_totp(monkeypatch, max_failures=1, lockout_seconds=60)
    totp.finish_check("alice", wrong_code())
    assert totp.start_check("alice").locked_out is True

    monkeypatch.setattr(totp, "_now", lambda: NOW + 60)
    assert totp.start_check("alice").locked_out is False


def test_success_resets_failures(monkeypatch):
    totp = make_totp(monkeypatch, max_failures=2)
    totp.finish_check("alice", wrong_code())
    assert totp.finish_check("alice", pyotp.TOTP(SECRET).at(NOW)) is True

    totp.finish_check("alice", wrong_code())
    assert totp.start_check("alice").locked_out is False


def test_empty_code_counts_as_failure(monkeypatch):
    totp = make_totp(monkeypatch, max_failures=1)
    assert totp.finish_check("alice", "") is False
    assert totp.start_check("alice").locked_out is True


def test_calculate_code_offsets():
    assert calculate_code(SECRET, 0, for_time=NOW) == pyotp.TOTP(SECRET).at(NOW)
    assert calculate_code(SECRET, 1, for_time=NOW) == pyotp.TOTP(SECRET).at(NOW + 30)
    assert len(calculate_code(SECRET)) == 6


def test_provisioning_uri():
    uri = provisioning_uri(SECRET, "alice", "TOTP Login")
    assert uri.startswith("otpauth://totp/")
    assert f"secret={SECRET}" in uri
