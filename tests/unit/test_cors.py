"""Tests for CORS configuration, origin validation and middleware."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.cors import (
    ENVIRONMENT_CONFIG,
    CORSMiddleware,
    CORSPolicy,
    OriginValidator,
    get_cors_options,
    secure_config,
    validate_origin,
)
from app.core.exceptions import CORSOriginError


@pytest.mark.unit
class TestOriginValidator:

    def test_exact_match(self):
        validator = OriginValidator(["https://openchat.dev"])

        assert validator.is_allowed("https://openchat.dev") is True
        assert validator.is_allowed("https://openchat.dev.evil.com") is False

    def test_wildcard_matches_subdomains(self):
        validator = OriginValidator(["https://*.example.com"])

        assert validator.is_allowed("https://app.example.com") is True
        assert validator.is_allowed("https://a.b.example.com") is True
        assert validator.is_allowed("https://example.com") is False
        assert validator.is_allowed("https://appXexample.com") is False
        assert validator.is_allowed("http://app.example.com") is False

    def test_absent_origin_rejected(self):
        validator = OriginValidator(["https://openchat.dev", "https://*.openchat.dev"])

        assert validator.is_allowed("https://attacker.io") is False
        assert validator.is_allowed("") is False
        assert validator.is_allowed(None) is False

    def test_allow_all(self):
        assert OriginValidator(True).is_allowed("https://anything.io") is True
        assert OriginValidator(False).is_allowed("https://anything.io") is False

    def test_callable(self):
        validator = OriginValidator(lambda origin: origin.endswith(".internal"))

        assert validator.is_allowed("http://api.internal") is True
        assert validator.is_allowed("http://api.external") is False

    def test_validate_origin_helper(self):
        assert validate_origin("https://x.openchat.dev", ["https://*.openchat.dev"]) is True
        assert validate_origin("https://openchat.io", ["https://*.openchat.dev"]) is False


@pytest.mark.unit
class TestCORSOptions:

    def test_environment_defaults(self, make_settings):
        options = get_cors_options(make_settings(ENVIRONMENT="production"))

        assert options.strict_mode is True
        assert "https://openchat.dev" in options.origins
        assert options.max_age == 86400

    def test_unknown_environment_falls_back_to_development(self, make_settings):
        options = get_cors_options(make_settings(ENVIRONMENT="qa"))

        assert options.strict_mode is False
        assert "http://localhost:3001" in options.origins

    def test_env_overrides(self, make_settings):
        settings = make_settings(
            ENVIRONMENT="production",
            CORS_ORIGINS="https://a.example, https://b.example",
            CORS_METHODS="get, post",
            CORS_CREDENTIALS="false",
            CORS_MAX_AGE=60,
        )

        options = get_cors_options(settings)

        assert options.origins == ["https://a.example", "https://b.example"]
        assert options.methods == ["GET", "POST"]
        assert options.credentials is False
        assert options.max_age == 60
        assert options.strict_mode is True

    def test_zero_max_age_override_applied(self, make_settings):
        options = get_cors_options(make_settings(ENVIRONMENT="production", CORS_MAX_AGE=0))

        assert options.max_age == 0
        assert CORSPolicy(options).headers("https://openchat.dev", "OPTIONS")["Access-Control-Max-Age"] == "0"

    def test_overrides_do_not_mutate_table(self, make_settings):
        get_cors_options(make_settings(ENVIRONMENT="test", CORS_ORIGINS="https://only.example"))

        assert "https://only.example" not in ENVIRONMENT_CONFIG["test"].origins


@pytest.mark.unit
class TestCORSPolicy:

    def test_allowed_origin_echoed(self):
        policy = CORSPolicy(ENVIRONMENT_CONFIG["production"])

        headers = policy.headers("https://app.openchat.dev", "GET")

        assert headers["Access-Control-Allow-Origin"] == "https://app.openchat.dev"
        assert headers["Access-Control-Allow-Credentials"] == "true"
        assert headers["Vary"] == "Origin"
        assert "Access-Control-Max-Age" not in headers

    def test_preflight_includes_max_age(self):
        policy = CORSPolicy(ENVIRONMENT_CONFIG["production"])

        headers = policy.headers("https://openchat.dev", "OPTIONS")

        assert headers["Access-Control-Max-Age"] == "86400"
        assert "PATCH" in headers["Access-Control-Allow-Methods"]

    def test_unknown_origin_gets_wildcard_when_not_strict(self):
        policy = CORSPolicy(ENVIRONMENT_CONFIG["development"])

        assert policy.headers("https://elsewhere.io")["Access-Control-Allow-Origin"] == "*"

    def test_unknown_origin_without_allow_origin_when_strict(self):
        policy = CORSPolicy(ENVIRONMENT_CONFIG["production"])

        assert "Access-Control-Allow-Origin" not in policy.headers("https://elsewhere.io")

    def test_check_origin_strict(self):
        policy = CORSPolicy(ENVIRONMENT_CONFIG["production"])

        policy.check_origin("https://openchat.dev")
        policy.check_origin(None)
        with pytest.raises(CORSOriginError):
            policy.check_origin("https://elsewhere.io")

    def test_check_origin_lenient(self):
        CORSPolicy(ENVIRONMENT_CONFIG["development"]).check_origin("https://elsewhere.io")

    def test_update_recompiles_origins(self):
        policy = CORSPolicy(secure_config(["https://a.example"]))

        policy.update(origins=["https://*.b.example"])

        assert policy.validator.is_allowed("https://x.b.example") is True
        assert policy.validator.is_allowed("https://a.example") is False


@pytest.mark.unit
class TestCORSMiddleware:

    @pytest.fixture
    def strict_client(self):
        app = FastAPI()
        app.add_middleware(CORSMiddleware, options=ENVIRONMENT_CONFIG["production"])

        @app.get("/ping")
        async def ping():
            return {"pong": True}

        return TestClient(app)

    def test_allowed_origin(self, strict_client):
        response = strict_client.get("/ping", headers={"Origin": "https://openchat.dev"})

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "https://openchat.dev"
        assert response.headers["vary"] == "Origin"

    def test_disallowed_origin_rejected(self, strict_client):
        response = strict_client.get("/ping", headers={"Origin": "https://attacker.io"})

        assert response.status_code == 403
        assert "not allowed" in response.json()["detail"]

    def test_no_origin_passes(self, strict_client):
        response = strict_client.get("/ping")

        assert response.status_code == 200
        assert "access-control-allow-origin" not in response.headers

    def test_preflight(self, strict_client):
        response = strict_client.options(
            "/ping",
            headers={"Origin": "https://www.openchat.dev", "Access-Control-Request-Method": "POST"},
        )

        assert response.status_code == 204
        assert response.headers["access-control-max-age"] == "86400"
        assert response.headers["access-control-allow-origin"] == "https://www.openchat.dev"
