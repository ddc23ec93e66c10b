import pytest

from verifiable_lottery.config import Settings, to_display, to_raw
from verifiable_lottery.project_constants import DEFAULT_ENTRY_FEE, DEFAULT_INTERVAL_S

ENV_VARS = [
    "ENTRY_FEE",
    "DRAW_INTERVAL",
    "ORACLE_URL",
    "ORACLE_SECRET",
    "KEY_HASH",
    "SUBSCRIPTION_ID",
    "REQUEST_CONFIRMATIONS",
    "CALLBACK_GAS_LIMIT",
    "REQUEST_TIMEOUT",
    "POLL_INTERVAL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    # setenv first so the undo also removes values loaded from .env files
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def test_defaults():
    settings = Settings.from_env()
    assert settings.entry_fee == DEFAULT_ENTRY_FEE
    assert settings.interval_s == DEFAULT_INTERVAL_S
    assert settings.oracle.num_words == 1
    assert settings.request_timeout_s is None
    assert settings.oracle_url is None


def test_env_values(monkeypatch):
    monkeypatch.setenv("ENTRY_FEE", "0.5")
    monkeypatch.setenv("DRAW_INTERVAL", "3600")
    monkeypatch.setenv("SUBSCRIPTION_ID", "77")
    monkeypatch.setenv("REQUEST_TIMEOUT", "120")

    settings = Settings.from_env()
    assert settings.entry_fee == 5 * 10**17
    assert settings.interval_s == 3600
    assert settings.oracle.subscription_id == 77
    assert settings.request_timeout_s == 120.0


def test_overrides_win(monkeypatch):
    monkeypatch.setenv("DRAW_INTERVAL", "3600")
    settings = Settings.from_env(interval_s=10, entry_fee=None)
    assert settings.interval_s == 10
    assert settings.entry_fee == DEFAULT_ENTRY_FEE


def test_dotenv_file_is_read(tmp_path):
    (tmp_path / ".env").write_text("ORACLE_SECRET=from-dotenv\n", encoding="utf-8")
    assert Settings.from_env().oracle_secret == "from-dotenv"


@pytest.mark.parametrize("name, value", [("DRAW_INTERVAL", "soon"), ("ENTRY_FEE", "lots")])
def test_invalid_env_value(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(RuntimeError, match=name):
        Settings.from_env()


def test_non_positive_fee_rejected():
    with pytest.raises(RuntimeError, match="ENTRY_FEE"):
        Settings.from_env(entry_fee=0)


def test_amount_conversion():
    assert to_raw("0.01") == 10**16
    assert to_display(3 * 10**16) == "0.03"
    assert to_display(10**19) == "10"
    with pytest.raises(RuntimeError):
        to_raw("0.0000000000000000001")


@pytest.mark.parametrize("value", ["Infinity", "-Infinity", "NaN", "sNaN"])
def test_non_finite_fee_rejected(monkeypatch, value):
    monkeypatch.setenv("ENTRY_FEE", value)
    with pytest.raises(RuntimeError, match="ENTRY_FEE"):
        Settings.from_env()
