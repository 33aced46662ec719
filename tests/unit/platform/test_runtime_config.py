"""Unit tests for configuration loading and the configuration context."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from src.storefront.runtime.config.config_data import (
    ConfigData,
    DatabaseConfig,
    PayPalConfig,
)
from src.storefront.runtime.config.config_template import (
    apply_environment_overrides,
    load_templated_yaml,
    substitute_env_vars,
)
from src.storefront.runtime.context import get_config, with_context

SAMPLE_CONFIG = """
config:
  app:
    environment: ${APP_ENVIRONMENT:-development}
    public_url: ${PUBLIC_URL:-http://localhost:3000}
  stripe:
    secret_key: ${STRIPE_SECRET_KEY:-}
  paypal:
    environment: ${PAYPAL_ENV:-sandbox}
"""


class TestSubstituteEnvVars:
    """Test ${VAR} placeholder substitution."""

    def test_default_used_when_missing(self):
        """Missing variables fall back to the default."""
        with patch.dict(os.environ, {}, clear=True):
            assert substitute_env_vars("${MISSING:-eur}") == "eur"

    def test_value_wins_over_default(self):
        """Set variables replace the placeholder."""
        with patch.dict(os.environ, {"CURRENCY": "usd"}):
            assert substitute_env_vars("currency: ${CURRENCY:-eur}") == "currency: usd"

    def test_required_variable_missing(self):
        """Bare placeholders must be set."""
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValueError, match="MISSING not set"):
                substitute_env_vars("${MISSING}")

    def test_custom_error_message(self):
        """${VAR:?message} reports the message."""
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValueError, match="needed for payments"):
                substitute_env_vars("${STRIPE_SECRET_KEY:?needed for payments}")


class TestEnvironmentOverrides:
    """Test <ENV>_NAME variables."""

    def test_prefixed_variables_replace_plain_ones(self):
        """PRODUCTION_X is copied onto X."""
        with patch.dict(
            os.environ,
            {"PRODUCTION_STRIPE_SECRET_KEY": "sk_live_1", "STRIPE_SECRET_KEY": "sk_test_1"},
            clear=True,
        ):
            overridden = apply_environment_overrides("production")

            assert overridden == ["STRIPE_SECRET_KEY"]
            assert os.environ["STRIPE_SECRET_KEY"] == "sk_live_1"


class TestLoadTemplatedYaml:
    """Test loading config.yaml files."""

    def test_loads_sections(self, tmp_path: Path):
        """Placeholders are substituted before validation."""
        path = tmp_path / "config.yaml"
        path.write_text(SAMPLE_CONFIG)

        with patch.dict(
            os.environ,
            {"APP_ENVIRONMENT": "test", "STRIPE_SECRET_KEY": "sk_test_9", "PAYPAL_ENV": "live"},
            clear=True,
        ):
            config = load_templated_yaml(path)

        assert config.app.environment == "test"
        assert config.stripe.is_configured
        assert config.paypal.base_url == "https://api-m.paypal.com"

    def test_invalid_values_are_reported(self, tmp_path: Path):
        """Validation errors surface as ValueError."""
        path = tmp_path / "config.yaml"
        path.write_text("config:\n  paypal:\n    environment: moon\n")

        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValueError, match="Invalid configuration"):
                load_templated_yaml(path)

    def test_shipped_config_loads_without_provider_variables(self):
        """The repository config.yaml validates with no variables set."""
        path = Path(__file__).resolve().parents[3] / "config.yaml"

        with patch.dict(os.environ, {}, clear=True):
            config = load_templated_yaml(path)

        assert config.clerk.issuer is None
        assert config.clerk.jwks_uri is None
        assert not config.clerk.is_configured
        assert not config.stripe.is_configured
        assert config.frontend.revalidate_url is None

    def test_empty_file_is_rejected(self, tmp_path: Path):
        """An empty file is not a configuration."""
        path = tmp_path / "config.yaml"
        path.write_text("")

        with pytest.raises(ValueError):
            load_templated_yaml(path)


class TestConfigData:
    """Test derived configuration values."""

    def test_sandbox_paypal_url(self):
        """PayPal defaults to the sandbox API."""
        assert PayPalConfig().base_url == "https://api-m.sandbox.paypal.com"

    def test_password_file_is_injected(self, tmp_path: Path):
        """A password file completes the connection string."""
        secret = tmp_path / "db_password"
        secret.write_text("s3cret\n")
        db = DatabaseConfig(
            url="postgresql://shop@db:5432/shop", password_file=str(secret)
        )

        assert db.password == "s3cret"
        assert db.connection_string == "postgresql://shop:s3cret@db:5432/shop"

    def test_missing_password_env_var(self):
        """A named but unset password variable is an error."""
        with patch.dict(os.environ, {}, clear=True):
            db = DatabaseConfig(url="postgresql://shop@db/shop", password_env_var="DB_PW")
            with pytest.raises(ValueError, match="DB_PW"):
                _ = db.password


class TestWithContext:
    """Test temporary configuration overrides."""

    def test_override_is_scoped(self):
        """Overrides apply inside the block only and keep other sections."""
        before = get_config()
        override = ConfigData()
        override.stripe.secret_key = "sk_test_ctx"

        with with_context(override):
            inside = get_config()
            assert inside.stripe.secret_key == "sk_test_ctx"
            assert inside.database.url == before.database.url

        assert get_config().stripe.secret_key == before.stripe.secret_key

    def test_rejects_other_types(self):
        """Only ConfigData overrides are accepted."""
        with pytest.raises(ValueError):
            with with_context({"stripe": {}}):
                pass
