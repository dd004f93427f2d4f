import pytest
from sqlalchemy.orm import Session

from hrdesk import models
from hrdesk.config import settings
from hrdesk.services import access as access_service

OFFICE = (settings.ALLOWED_LATITUDE, settings.ALLOWED_LONGITUDE)


def test_haversine_distance():
    assert access_service.haversine_km(*OFFICE, *OFFICE) == 0
    # One hundredth of a degree of latitude is a little over a kilometre.
    assert access_service.haversine_km(0.0, 0.0, 0.01, 0.0) == pytest.approx(1.112, abs=0.001)


def test_location_inside_radius_is_allowed(db_session: Session):
    result = access_service.verify_location(db_session, OFFICE[0] + 0.004, OFFICE[1], "203.0.113.9")

    assert result.access_allowed is True
    assert result.location_verified is True
    assert result.ip_verified is False
    assert result.message == access_service.ACCESS_GRANTED
    assert result.distance_km == pytest.approx(0.445, abs=0.001)


def test_location_outside_radius_is_denied(db_session: Session):
    result = access_service.verify_location(db_session, OFFICE[0] + 0.01, OFFICE[1], "203.0.113.9")

    assert result.access_allowed is False
    assert result.location_verified is False
    assert result.message == access_service.ACCESS_RESTRICTED


def test_allowed_ip_grants_access_without_location(db_session: Session):
    db_session.add(models.AllowedIP(ip_address="203.0.113.9", description="Head office"))
    db_session.commit()

    result = access_service.verify_location(db_session, None, None, "203.0.113.9")

    assert result.access_allowed is True
    assert result.ip_verified is True
    assert result.distance_km is None


def test_validate_ip_allows_everyone_unless_enforced(db_session: Session, monkeypatch):
    assert access_service.validate_ip(db_session, "198.51.100.1").allowed is True

    monkeypatch.setattr(settings, "IP_VALIDATION_ENFORCED", True)
    denied = access_service.validate_ip(db_session, "198.51.100.1")
    assert denied.allowed is False
    assert denied.message == access_service.IP_NOT_ALLOWED

    db_session.add(models.AllowedIP(ip_address="198.51.100.1"))
    db_session.commit()
    assert access_service.validate_ip(db_session, "198.51.100.1").allowed is True


def test_verify_location_endpoint_uses_forwarded_ip(client, db_session: Session):
    db_session.add(models.AllowedIP(ip_address="192.0.2.44"))
    db_session.commit()

    response = client.post(
        "/api/v1/access/verify-location",
        json={"latitude": 14.5995, "longitude": 120.9842},
        headers={"X-Forwarded-For": "192.0.2.44, 10.0.0.1"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["access_allowed"] is True
    assert body["ip_verified"] is True
    assert body["location_verified"] is False


def test_failed_login_report_is_recorded(client, db_session: Session):
    response = client.post("/api/v1/access/failed-login", json={"email": "intruder@example.com"})

    assert response.status_code == 201
    entry = db_session.query(models.AuditLog).one()
    assert entry.action == access_service.FAILED_LOGIN_ACTION
    assert entry.table_name == "accounts"
    assert entry.ip_address == "testclient"
