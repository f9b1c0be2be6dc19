from totp_login.services.sessions import SessionStore


def test_create_and_get():
    store = SessionStore()
    s = store.create(60)
    s.put("username", "alice")

    found = store.get(s.key)
    assert found is s
    assert found.get_or_default("username", "") == "alice"
    assert found.get_or_default("errMsg", "") == ""


def test_fresh_keys_and_empty_fields():
    store = SessionStore()
    keys = {store.create(60).key for _ in range(50)}

    assert len(keys) == 50
    assert all(store.get(k).fields == {} for k in keys)


def test_missing_keys():
    store = SessionStore()
    assert store.get("nope") is None
    assert store.get(None) is None
    assert store.get("") is None


def test_session_expires_after_ttl(monkeypatch):
    store = SessionStore()
    short = store.create(10)
    long = store.create(100)
    start = short.created_at

    monkeypatch.setattr(store, "_now", lambda: start + 9)
    assert store.get(short.key) is short

    monkeypatch.setattr(store, "_now", lambda: start + 10)
    assert store.get(short.key) is None
    assert store.get(long.key) is long


def test_expired_sessions_are_swept_on_create(monkeypatch):
    store = SessionStore()
    old = store.create(10)
    monkeypatch.setattr(store, "_now", lambda: old.created_at + 11)

    store.create(10)

    assert old.key not in store._sessions


def test_pop_reads_and_clears():
    store = SessionStore()
    s = store.create(60)
    s.put("errMsg", "once")

    assert s.pop("errMsg", "") == "once"
    assert s.pop("errMsg", "") == ""
