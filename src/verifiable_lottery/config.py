from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict

from dotenv import find_dotenv, load_dotenv

from .project_constants import (
    DECIMALS,
    DEFAULT_CALLBACK_GAS_LIMIT,
    DEFAULT_ENTRY_FEE,
    DEFAULT_INTERVAL_S,
    DEFAULT_KEY_HASH,
    DEFAULT_POLL_INTERVAL_S,
    DEFAULT_REQUEST_CONFIRMATIONS,
    DEFAULT_SUBSCRIPTION_ID,
    NUM_WORDS,
)


def to_raw(amount: str | int | Decimal) -> int:
    """Converts a display amount ("0.01") to base units."""
    try:
        value = Decimal(str(amount))
    except InvalidOperation as e:
        raise RuntimeError(f"Invalid amount: {amount!r}") from e
    if not value.is_finite():
        raise RuntimeError(f"Amount {amount!r} is not a finite number.")
    raw = value * (10**DECIMALS)
    if raw != raw.to_integral_value():
        raise RuntimeError(f"Amount {amount!r} has more than {DECIMALS} decimals.")
    return int(raw)


def to_display(raw_amount: int) -> str:
    value = Decimal(raw_amount) / (10**DECIMALS)
    return format(value.normalize(), "f")


@dataclass(frozen=True)
class OracleParams:
    key_hash: str = DEFAULT_KEY_HASH
    subscription_id: int = DEFAULT_SUBSCRIPTION_ID
    request_confirmations: int = DEFAULT_REQUEST_CONFIRMATIONS
    callback_gas_limit: int = DEFAULT_CALLBACK_GAS_LIMIT
    num_words: int = NUM_WORDS

    def as_payload(self) -> Dict[str, Any]:
        return {
            "keyHash": self.key_hash,
            "subId": self.subscription_id,
            "requestConfirmations": self.request_confirmations,
            "callbackGasLimit": self.callback_gas_limit,
            "numWords": self.num_words,
        }


@dataclass(frozen=True)
class Settings:
    entry_fee: int = DEFAULT_ENTRY_FEE
    interval_s: int = DEFAULT_INTERVAL_S
    oracle: OracleParams = OracleParams()
    oracle_url: str | None = None
    oracle_secret: str | None = None
    # None keeps a request outstanding until the oracle answers
    request_timeout_s: float | None = None
    poll_interval_s: float = DEFAULT_POLL_INTERVAL_S

    @staticmethod
    def from_env(**overrides: Any) -> "Settings":
        load_dotenv(find_dotenv(usecwd=True))

        def pick(name: str, env_name: str, convert: Callable[[str], Any], default: Any) -> Any:
            # Values passed on the command line win over the environment.
            if overrides.get(name) is not None:
                return overrides[name]
            raw = os.getenv(env_name, "").strip()
            if not raw:
                return default
            try:
                return convert(raw)
            except (ValueError, RuntimeError) as e:
                raise RuntimeError(f"Invalid {env_name}={raw!r}: {e}") from e

        oracle = OracleParams(
            key_hash=pick("key_hash", "KEY_HASH", str, DEFAULT_KEY_HASH),
            subscription_id=pick("subscription_id", "SUBSCRIPTION_ID", int, DEFAULT_SUBSCRIPTION_ID),
            request_confirmations=pick(
                "request_confirmations",
                "REQUEST_CONFIRMATIONS",
                int,
                DEFAULT_REQUEST_CONFIRMATIONS,
            ),
            callback_gas_limit=pick(
                "callback_gas_limit", "CALLBACK_GAS_LIMIT", int, DEFAULT_CALLBACK_GAS_LIMIT
            ),
        )

        settings = Settings(
            entry_fee=pick("entry_fee", "ENTRY_FEE", to_raw, DEFAULT_ENTRY_FEE),
            interval_s=pick("interval_s", "DRAW_INTERVAL", int, DEFAULT_INTERVAL_S),
            oracle=oracle,
            oracle_url=pick("oracle_url", "ORACLE_URL", str, None),
            oracle_secret=pick("oracle_secret", "ORACLE_SECRET", str, None),
            request_timeout_s=pick("request_timeout_s", "REQUEST_TIMEOUT", float, None),
            poll_interval_s=pick("poll_interval_s", "POLL_INTERVAL", float, DEFAULT_POLL_INTERVAL_S),
        )
        if settings.entry_fee <= 0:
            raise RuntimeError("ENTRY_FEE must be positive.")
        if settings.interval_s < 0:
            raise RuntimeError("DRAW_INTERVAL must not be negative.")
        return settings
