from dataclasses import replace

import pytest

from src.core.config import Config


def test_load_reads_environment(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("NODE_ENV", "production")
    monkeypatch.delenv("APP_ENV", raising=False)
    monkeypatch.setenv("WEB3_PROVIDER_URL", "http://rpc.test")
    monkeypatch.delenv("CHAINLINK_RPC_URL", raising=False)
    monkeypatch.setenv("MOCK_PRICES", "yes")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.test, https://b.test")
    monkeypatch.setenv("RATE_LIMIT_MAX", "")

    cfg = Config.load(dotenv_path=str(tmp_path / "missing.env"))

    assert cfg.port == 8080
    assert cfg.environment == "production"
    assert not cfg.is_development
    assert cfg.chainlink_rpc_url == "http://rpc.test"
    assert cfg.mock_prices is True
    assert cfg.cors_origins == ("https://a.test", "https://b.test")
    assert cfg.rate_limit_max == 100
    assert cfg.rate_limit_window_seconds == 900.0
    cfg.validate()


@pytest.mark.parametrize(
    "overrides,message",
    [
        ({"port": 0}, "PORT"),
        ({"db_path": ""}, "DB_PATH"),
        ({"price_timeout_seconds": 0.0}, "PRICE_TIMEOUT_SECONDS"),
        ({"rate_limit_max": -1}, "RATE_LIMIT_MAX"),
        ({"rate_limit_window_seconds": 0.0}, "RATE_LIMIT_WINDOW_SECONDS"),
    ],
)
def test_validate_rejects_bad_settings(monkeypatch, tmp_path, overrides, message) -> None:
    cfg = replace(Config.load(dotenv_path=str(tmp_path / "missing.env")), **overrides)
    with pytest.raises(ValueError, match=message):
        cfg.validate()
