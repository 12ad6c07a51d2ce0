from datetime import datetime, timedelta, timezone

import pytz

from app.application.services import session_service

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def claims_expiring_in(seconds, **extra):
    claims = {
        "sub": "abc",
        "preferred_username": "alice",
        "email": "a@x.com",
        "realm_access": {"roles": ["user", "manager"]},
        "iat": int((NOW - timedelta(minutes=5)).timestamp()),
        "exp": int((NOW + timedelta(seconds=seconds)).timestamp()),
        "iss": "http://issuer.test/realms/demo",
    }
    claims.update(extra)
    return claims


def test_session_info_projects_the_token():
    info = session_service.get_session_info(claims_expiring_in(300), now=NOW)

    assert info.user_id == "abc"
    assert info.username == "alice"
    assert info.roles == ["user", "manager"]
    assert info.issuer == "http://issuer.test/realms/demo"
    assert info.expires_at - info.issued_at == timedelta(minutes=10)


def test_session_info_serializes_with_camel_case_keys():
    payload = session_service.get_session_info(claims_expiring_in(300), now=NOW).model_dump(by_alias=True)

    assert {"userId", "issuedAt", "expiresAt"} <= set(payload)


def test_remaining_time_counts_down():
    claims = claims_expiring_in(300)

    assert session_service.get_remaining_session_time(claims, now=NOW) == 300
    assert session_service.is_session_valid(claims, now=NOW)


def test_remaining_time_is_zero_once_expired():
    claims = claims_expiring_in(-60)

    assert session_service.get_remaining_session_time(claims, now=NOW) == 0
    assert not session_service.is_session_valid(claims, now=NOW)


def test_remaining_time_at_exact_expiry():
    claims = claims_expiring_in(0)

    assert session_service.get_remaining_session_time(claims, now=NOW) == 0
    assert not session_service.is_session_valid(claims, now=NOW)


def test_missing_timestamps_fall_back_to_now():
    claims = claims_expiring_in(300)
    del claims["iat"], claims["exp"]

    info = session_service.get_session_info(claims, now=NOW)

    assert info.issued_at == NOW
    assert info.expires_at == NOW
    assert info.roles == ["user", "manager"]


def test_times_are_reported_in_the_configured_zone(monkeypatch):
    monkeypatch.setattr(session_service, "tz", pytz.timezone("America/Sao_Paulo"))

    info = session_service.get_session_info(claims_expiring_in(300), now=NOW)

    assert info.expires_at.utcoffset() == timedelta(hours=-3)
    assert info.expires_at == NOW + timedelta(seconds=300)
