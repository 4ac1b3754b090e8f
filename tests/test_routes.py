from utils.errors import PersistenceError
from utils.record_store import OTPRecordStore

EMAIL = "a@b.com"


def _send(client, email=EMAIL):
    return client.post("/auth/send-otp", json={"email": email})


def _verify(client, otp, email=EMAIL):
    return client.post("/auth/verify-otp", json={"email": email, "otp": otp})


def _wrong(code):
    return "000000" if code != "000000" else "111111"


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "ok"


def test_send_otp_never_returns_the_code(client, delivery):
    resp = _send(client)

    assert resp.status_code == 200
    assert resp.get_json()["success"] is True
    assert delivery.last_code not in resp.get_data(as_text=True)


def test_send_otp_accepts_form_data(client, delivery):
    resp = client.post("/auth/send-otp", data={"email": EMAIL})

    assert resp.status_code == 200
    assert delivery.sent[0][0] == EMAIL


def test_send_otp_rejects_bad_email(client, delivery):
    for body in ({"email": "nope"}, {}, {"email": 5}):
        resp = client.post("/auth/send-otp", json=body)
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "validation_error"
    assert delivery.sent == []


def test_send_otp_rate_limited(client, clock):
    _send(client)
    clock.advance(seconds=15)

    resp = _send(client)

    assert resp.status_code == 429
    body = resp.get_json()
    assert body["code"] == "rate_limited"
    assert body["cooldownSeconds"] == 45
    assert resp.headers["Retry-After"] == "45"


def test_send_otp_delivery_failure(client, store, delivery, smtp_down):
    delivery.fail = smtp_down

    resp = _send(client)

    assert resp.status_code == 502
    assert resp.get_json()["code"] == "delivery_error"
    assert store.find_latest_by_email(EMAIL) is None


def test_store_failure_returns_503(client, monkeypatch):
    def down(self, email, lock=False):
        raise PersistenceError("Record store lookup failed.", kind=PersistenceError.CONNECTION)

    monkeypatch.setattr(OTPRecordStore, "find_latest_by_email", down)

    assert _send(client).status_code == 503
    resp = _verify(client, "123456")
    assert resp.status_code == 503
    assert resp.get_json()["code"] == "persistence_error"


def test_verify_requires_email_and_code(client):
    assert client.post("/auth/verify-otp", json={"email": EMAIL}).status_code == 400
    assert client.post("/auth/verify-otp", json={"otp": "123456"}).status_code == 400


def test_verify_unknown_email(client):
    resp = _verify(client, "123456")
    assert resp.status_code == 404
    assert resp.get_json()["code"] == "not_found"


def test_verify_flow(client, delivery):
    _send(client)
    code = delivery.last_code

    wrong = _verify(client, _wrong(code))
    assert wrong.status_code == 400
    assert wrong.get_json()["code"] == "mismatch"
    assert wrong.get_json()["attemptsRemaining"] == 4

    ok = _verify(client, code)
    assert ok.status_code == 200
    assert ok.get_json()["success"] is True

    again = _verify(client, code)
    assert again.status_code == 409
    assert again.get_json()["code"] == "already_verified"


def test_verify_expired(client, delivery, clock):
    _send(client)
    clock.advance(minutes=5, seconds=1)

    resp = _verify(client, delivery.last_code)

    assert resp.status_code == 410
    assert resp.get_json()["code"] == "expired"


def test_error_bodies_carry_no_code_or_digest(client, store, delivery):
    _send(client)
    code = delivery.last_code
    digest = store.find_latest_by_email(EMAIL).code_digest

    text = _verify(client, _wrong(code)).get_data(as_text=True)

    assert code not in text
    assert digest not in text


def test_resend_lockout_scenario(client, delivery, clock):
    assert _send(client).status_code == 200
    clock.advance(seconds=61)
    assert _send(client).status_code == 200
    code = delivery.last_code
    assert len(delivery.sent) == 2

    for remaining in (4, 3, 2, 1, 0):
        resp = _verify(client, _wrong(code))
        assert resp.get_json()["attemptsRemaining"] == remaining

    resp = _verify(client, code)

    assert resp.status_code == 429
    assert resp.get_json()["code"] == "attempts_exhausted"
