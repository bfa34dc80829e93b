import pytest

from postex_bridge.config import API_KEY_SOURCES, Settings

ENV_VARS = API_KEY_SOURCES + (
    "POSTEX_BASE_URL", "POSTEX_PICKUP_ADDRESS_CODE", "POSTEX_DEFAULT_WEIGHT",
    "POSTEX_DEFAULT_DIMENSIONS", "POSTEX_LEARNING_ENABLED", "POSTEX_CREATE_TIMEOUT", "POSTEX_LIST_TIMEOUT",
    "POSTEX_DOCUMENT_TIMEOUT", "POSTEX_SYNC_INTERVAL_HOURS", "POSTEX_SYNC_WINDOW_DAYS",
    "POSTEX_SCHEDULER_ENABLED", "POSTEX_STORE_BACKEND", "POSTEX_CARRIER_ADAPTER", "SUPABASE_URL", "SUPABASE_KEY",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("postex_bridge.config.load_dotenv", lambda **kwargs: None)


class TestFromEnv:
    def test_defaults(self):
        settings = Settings.from_env()

        assert settings.api_key == ""
        assert settings.base_url == "https://api.postex.pk/"
        assert settings.default_weight == 0.5
        assert settings.default_dimensions == "15x10x5"
        assert (settings.create_timeout, settings.list_timeout, settings.document_timeout) == (20, 20, 30)
        assert settings.sync_interval_hours == 12
        assert settings.sync_window_days == 30
        assert settings.learning_enabled is True
        assert settings.is_configured is False

    def test_api_key_precedence(self, monkeypatch):
        monkeypatch.setenv("POSTEX_API_KEY", "third")
        assert Settings.from_env().api_key == "third"

        monkeypatch.setenv("WOOCOMMERCE_POSTEX_API_KEY", "second")
        assert Settings.from_env().api_key == "second"

        monkeypatch.setenv("WOOCOMMERCE_SHIPPING_POSTEX_API_KEY", "first")
        assert Settings.from_env().api_key == "first"

    def test_empty_key_falls_through(self, monkeypatch):
        monkeypatch.setenv("WOOCOMMERCE_SHIPPING_POSTEX_API_KEY", "")
        monkeypatch.setenv("POSTEX_API_KEY", "third")
        assert Settings.from_env().api_key == "third"

    def test_no_pickup_city_setting(self):
        assert "pickup_city" not in Settings.model_fields

    @pytest.mark.parametrize("raw, expected", [("no", False), ("0", False), ("yes", True), ("TRUE", True)])
    def test_flags(self, monkeypatch, raw, expected):
        monkeypatch.setenv("POSTEX_LEARNING_ENABLED", raw)
        assert Settings.from_env().learning_enabled is expected

    def test_numeric_values_and_overrides(self, monkeypatch):
        monkeypatch.setenv("POSTEX_SYNC_INTERVAL_HOURS", "6")
        monkeypatch.setenv("POSTEX_PICKUP_ADDRESS_CODE", "KHI-9")

        settings = Settings.from_env(api_key="override")

        assert settings.sync_interval_hours == 6
        assert settings.pickup_address_code == "KHI-9"
        assert settings.api_key == "override"
        assert settings.is_configured is True

    def test_unknown_backend_is_rejected(self, monkeypatch):
        monkeypatch.setenv("POSTEX_STORE_BACKEND", "mysql")
        with pytest.raises(ValueError):
            Settings.from_env()
