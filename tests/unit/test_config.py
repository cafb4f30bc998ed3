"""Tests for configuration loading and management."""

from datetime import timedelta
from decimal import Decimal

import pytest

from revcat_bridge.config import Config, ConfigurationError, get_config, reset_config
from revcat_bridge.models import PlanName

VALID_CATALOG = """
catalog:
  - name: monthly
    product_id: 7
    title: Monthly
    price: "4.50"
    billing_period: p1m
bridge:
  hook_name: custom_hook
  deduplicate_events: false
"""


@pytest.fixture
def config():
    """Create a Config instance for testing."""
    return Config()


@pytest.fixture
def write_config(tmp_path):
    """Write a catalog file and return its path."""

    def _write(content: str) -> str:
        path = tmp_path / "catalog.yaml"
        path.write_text(content, encoding="utf-8")
        return str(path)

    return _write


class TestConfigurationLoading:
    """Test loading the shipped catalog."""

    def test_config_loads_successfully(self, config):
        """Test that configuration loads without errors."""
        assert config.config_path.exists()
        assert str(config.config_path).endswith("catalog.yaml")

    def test_catalog_has_both_plans(self, config):
        """Test that the shipped catalog defines the monthly and annual plans."""
        names = {product.name for product in config.products}
        assert names == {PlanName.MONTHLY, PlanName.ANNUAL}

    def test_product_fields(self, config):
        monthly = next(p for p in config.products if p.name == PlanName.MONTHLY)
        assert monthly.product_id == 101
        assert monthly.price == Decimal("9.99")
        assert monthly.storefront_period == ("month", 1)

    def test_bridge_settings(self, config):
        """Test bridge settings accessors."""
        assert config.hook_name == "revenuecat_webhook"
        assert config.settings.deduplicate_events is True
        assert config.settings.created_via == "revenuecat"
        assert config.settings.event_retention == timedelta(days=7)


class TestConfigurationFiles:
    """Test loading from explicit paths and rejecting bad files."""

    def test_explicit_path_wins(self, write_config):
        config = Config(write_config(VALID_CATALOG))

        assert config.hook_name == "custom_hook"
        assert config.settings.deduplicate_events is False
        assert config.products[0].billing_period == "P1M"

    def test_bridge_section_is_optional(self, write_config):
        content = VALID_CATALOG.split("bridge:")[0]
        config = Config(write_config(content))
        assert config.hook_name == "revenuecat_webhook"

    def test_env_var_path(self, write_config, monkeypatch):
        monkeypatch.setenv("CONFIG_PATH", write_config(VALID_CATALOG))
        assert Config().hook_name == "custom_hook"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            Config(str(tmp_path / "missing.yaml"))

    def test_empty_file(self, write_config):
        with pytest.raises(ConfigurationError, match="empty"):
            Config(write_config(""))

    def test_invalid_yaml(self, write_config):
        with pytest.raises(ConfigurationError, match="parse"):
            Config(write_config("catalog: [unclosed"))

    def test_non_mapping_root(self, write_config):
        with pytest.raises(ConfigurationError, match="mapping"):
            Config(write_config("- just\n- a list\n"))

    def test_empty_catalog(self, write_config):
        with pytest.raises(ConfigurationError, match="validation"):
            Config(write_config("catalog: []\n"))

    def test_duplicate_plan_names(self, write_config):
        product = VALID_CATALOG.split("bridge:")[0].split("catalog:")[1]
        with pytest.raises(ConfigurationError, match="validation"):
            Config(write_config("catalog:" + product + product))

    def test_unsupported_billing_period(self, write_config):
        with pytest.raises(ConfigurationError, match="validation"):
            Config(write_config(VALID_CATALOG.replace("p1m", "monthly")))

    def test_zero_retention_keeps_ids_forever(self, write_config):
        config = Config(write_config(VALID_CATALOG + "  event_retention_days: 0\n"))
        assert config.settings.event_retention is None

    def test_reload_picks_up_changes(self, write_config):
        path = write_config(VALID_CATALOG)
        config = Config(path)

        write_config(VALID_CATALOG.replace("custom_hook", "other_hook"))
        config.reload()

        assert config.hook_name == "other_hook"


class TestGlobalConfig:
    """Test the global configuration instance."""

    @pytest.fixture(autouse=True)
    def fresh_global(self):
        reset_config()
        yield
        reset_config()

    def test_get_config_returns_singleton(self):
        assert get_config() is get_config()

    def test_reset_config_drops_instance(self):
        first = get_config()
        reset_config()
        assert get_config() is not first
