import pytest
from kombu.exceptions import OperationalError

from quickserve.core.config import EnvironmentMode, Settings
from quickserve.core.errors import ConflictError, ValidationFailed, format_validation_errors
from quickserve.main import enqueue


# =============================================================================
# Error shapes
# =============================================================================

def test_api_error_body_includes_extra_fields():
    error = ConflictError("Email already in use", field="email")

    assert error.status_code == 409
    assert error.to_dict() == {"success": False, "message": "Email already in use", "field": "email"}


def test_api_error_default_message():
    assert ValidationFailed().to_dict() == {"success": False, "message": "Validation failed"}


def test_format_validation_errors_strips_location_prefix():
    errors = [
        {"loc": ("body", "items", 0, "quantity"), "msg": "too small"},
        {"loc": ("query", "category"), "msg": "bad category"},
        {"loc": ("body", "items", 0, "quantity"), "msg": "second message"},
        {"loc": ("body",), "msg": "Field required"},
    ]

    assert format_validation_errors(errors) == {
        "items.0.quantity": "too small",
        "category": "bad category",
        "body": "Field required",
    }


def test_unknown_route_uses_error_shape(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Not Found"}


def test_wrong_method_uses_error_shape(client):
    response = client.delete("/api/menu")

    assert response.status_code == 405
    assert response.json()["success"] is False


def test_malformed_json_is_a_validation_error(client):
    response = client.post(
        "/api/auth/login",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Validation failed"


# =============================================================================
# Root, health and background queueing
# =============================================================================

def test_root(client):
    body = client.get("/").json()

    assert body["environment"] == "development"
    assert body["health"] == "/health"


def test_health_reports_degraded_without_redis(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["database"] == "healthy"
    assert body["notification_service"] == "healthy"
    assert body["redis"].startswith("unhealthy")
    assert body["status"] == "degraded"


def test_enqueue_swallows_broker_outage():
    class Unreachable:
        name = "quickserve.tasks.send_order_confirmation"

        def delay(self, payload):
            raise OperationalError("broker down")

    assert enqueue(Unreachable(), {"orderNumber": "ORD-202610-0001"}) is False


# =============================================================================
# Configuration
# =============================================================================

def test_settings_defaults(monkeypatch):
    for key in ("ENV_MODE", "JWT_SECRET", "DATABASE_URL"):
        monkeypatch.delenv(key, raising=False)

    settings = Settings(_env_file=None)

    assert settings.env_mode == EnvironmentMode.DEVELOPMENT
    assert settings.api_port == 5000
    assert settings.tax_rate == 0.08
    assert settings.jwt_expires_days == 7
    assert settings.validate_production_config() == []


def test_env_mode_is_case_insensitive():
    assert Settings(_env_file=None, env_mode="PRODUCTION").is_production


def test_invalid_env_mode_is_rejected():
    with pytest.raises(ValueError):
        Settings(_env_file=None, env_mode="qa")


def test_production_flags_missing_secrets(monkeypatch):
    for key in ("JWT_SECRET", "SENDGRID_API_KEY", "TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN"):
        monkeypatch.delenv(key, raising=False)

    settings = Settings(_env_file=None, env_mode="production")

    assert settings.use_real_services
    assert settings.validate_production_config() == [
        "JWT_SECRET",
        "SENDGRID_API_KEY",
        "TWILIO_ACCOUNT_SID/TWILIO_AUTH_TOKEN",
    ]


def test_production_config_complete():
    settings = Settings(
        _env_file=None,
        env_mode="staging",
        jwt_secret="s3cret",
        sendgrid_api_key="SG.key",
        twilio_account_sid="AC123",
        twilio_auth_token="token",
    )

    assert settings.validate_production_config() == []


def test_cors_origins_list():
    settings = Settings(_env_file=None, cors_origins="http://a.test, http://b.test,")
    assert settings.cors_origins_list == ["http://a.test", "http://b.test"]


def test_debug_is_flagged_in_production():
    settings = Settings(
        _env_file=None,
        env_mode="production",
        debug=True,
        jwt_secret="s3cret",
        sendgrid_api_key="SG.key",
        twilio_account_sid="AC123",
        twilio_auth_token="token",
    )

    assert settings.is_production
    assert settings.validate_production_config() == ["DEBUG"]


def test_debug_is_allowed_in_staging():
    settings = Settings(
        _env_file=None,
        env_mode="staging",
        debug=True,
        jwt_secret="s3cret",
        sendgrid_api_key="SG.key",
        twilio_account_sid="AC123",
        twilio_auth_token="token",
    )

    assert not settings.is_production
    assert settings.validate_production_config() == []
