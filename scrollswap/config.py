# scrollswap/config.py — scrollswap configuration (Scroll mainnet + 0x Swap API v2)

from __future__ import annotations
import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import List, Mapping, Optional

from dotenv import load_dotenv
from web3 import Web3

from .errors import ConfigError

# -----------------------
# Chain / RPC / Contracts
# -----------------------

CHAIN_ID = 534352  # Scroll mainnet
CHAIN_NAME = "Scroll"

# Tokens (symbol -> address)
TOKENS = {
    "WETH":   "0x5300000000000000000000000000000000000004",
    "wstETH": "0xf610A9dfB7C89644979b4A0f27063E9e7d7Cda32",
}

# Permit2 (canonical deployment; the 0x quote spender)
PERMIT2_ADDR = "0x000000000022D473030F116dDEE9F6B43aC78BA3"

# Uniswap V3-style SwapRouter the settlement delegates to
ROUTER_ADDR = "0xfc30937f5cDe93Df8d48aCAF7e6f5D8D8A31F636"

# Fixed pool variant the settlement routes through (0.30%)
SETTLEMENT_FEE_TIER = 3000

# -----------------------
# 0x Swap API
# -----------------------

ZERO_EX_API = "https://api.0x.org"
ZERO_EX_API_VERSION = "v2"

DEFAULT_SELL_AMOUNT = "0.1"        # in sell-token units
AFFILIATE_FEE_BPS = 100            # 1% affiliate fee
SURPLUS_COLLECTION = True

# -----------------------
# Ops
# -----------------------

LOG_LEVEL = "INFO"
HTTP_TIMEOUT_SECONDS = 20
TX_RECEIPT_TIMEOUT_SECONDS = 180
GAS_CAP_GWEI = 0  # 0 = uncapped

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# -----------------------
# Settings
# -----------------------

REQUIRED_ENV = ("PRIVATE_KEY", "ZERO_EX_API_KEY", "ALCHEMY_HTTP_TRANSPORT_URL")


@dataclass(frozen=True)
class Settings:
    private_key: str
    zero_ex_api_key: str
    rpc_url: str
    chain_id: int = CHAIN_ID
    api_base: str = ZERO_EX_API
    sell_token: str = TOKENS["WETH"]
    buy_token: str = TOKENS["wstETH"]
    sell_amount: str = DEFAULT_SELL_AMOUNT
    affiliate_fee_bps: int = AFFILIATE_FEE_BPS
    surplus_collection: bool = SURPLUS_COLLECTION
    http_timeout: float = HTTP_TIMEOUT_SECONDS
    receipt_timeout: float = TX_RECEIPT_TIMEOUT_SECONDS
    gas_cap_gwei: int = GAS_CAP_GWEI
    log_level: str = LOG_LEVEL
    execute: bool = False

    def __repr__(self) -> str:
        # never echo secrets
        return (f"Settings(chain_id={self.chain_id}, rpc_url={self.rpc_url!r}, "
                f"sell_token={self.sell_token}, buy_token={self.buy_token}, "
                f"sell_amount={self.sell_amount!r}, execute={self.execute})")


def _normalize_key(pk: str) -> str:
    pk = pk.strip()
    return pk if pk.startswith("0x") else "0x" + pk


def _truthy(raw: Optional[str], default: bool) -> bool:
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_settings(env: Optional[Mapping[str, str]] = None, dotenv_path: Optional[str] = None,
                  **overrides) -> Settings:
    """
    Build Settings from the environment (or `env`), checking every required
    field once. Raises a single ConfigError listing all problems.

    When `env` is None, a .env file is loaded first (existing variables win).
    """
    if env is None:
        load_dotenv(dotenv_path, override=False)
        env = os.environ

    problems: List[str] = []
    for name in REQUIRED_ENV:
        if not (env.get(name) or "").strip():
            problems.append(f"{name} is not defined")

    pk = (env.get("PRIVATE_KEY") or "").strip()
    if pk:
        body = pk[2:] if pk.startswith("0x") else pk
        if len(body) != 64:
            problems.append("PRIVATE_KEY must be 32 bytes of hex")
        else:
            try:
                int(body, 16)
            except ValueError:
                problems.append("PRIVATE_KEY must be 32 bytes of hex")

    def _addr(name: str, default: str) -> str:
        raw = (env.get(name) or default).strip()
        try:
            return Web3.to_checksum_address(raw)
        except Exception:
            problems.append(f"{name} is not a valid address: {raw}")
            return raw

    sell_token = _addr("SCROLLSWAP_SELL_TOKEN", TOKENS["WETH"])
    buy_token = _addr("SCROLLSWAP_BUY_TOKEN", TOKENS["wstETH"])

    sell_amount = str(overrides.pop("sell_amount", None) or env.get("SCROLLSWAP_SELL_AMOUNT")
                      or DEFAULT_SELL_AMOUNT).strip()
    try:
        amount = Decimal(sell_amount)
        if not amount.is_finite():
            problems.append(f"SCROLLSWAP_SELL_AMOUNT must be finite: {sell_amount}")
        elif amount <= 0:
            problems.append("SCROLLSWAP_SELL_AMOUNT must be positive")
    except InvalidOperation:
        problems.append(f"SCROLLSWAP_SELL_AMOUNT is not a number: {sell_amount}")

    def _int(name: str, default: int) -> int:
        raw = env.get(name)
        if raw is None or raw.strip() == "":
            return default
        try:
            return int(raw)
        except ValueError:
            problems.append(f"{name} must be an integer: {raw}")
            return default

    chain_id = _int("SCROLLSWAP_CHAIN_ID", CHAIN_ID)
    fee_bps = _int("SCROLLSWAP_AFFILIATE_FEE_BPS", AFFILIATE_FEE_BPS)
    if not 0 <= fee_bps <= 10_000:
        problems.append("SCROLLSWAP_AFFILIATE_FEE_BPS must be within 0..10000")
    timeout = _int("SCROLLSWAP_HTTP_TIMEOUT", HTTP_TIMEOUT_SECONDS)
    receipt_timeout = _int("SCROLLSWAP_RECEIPT_TIMEOUT", TX_RECEIPT_TIMEOUT_SECONDS)
    for name, value in (("SCROLLSWAP_HTTP_TIMEOUT", timeout), ("SCROLLSWAP_RECEIPT_TIMEOUT", receipt_timeout)):
        if value <= 0:
            problems.append(f"{name} must be positive")
    gas_cap = _int("SCROLLSWAP_GAS_CAP_GWEI", GAS_CAP_GWEI)
    if gas_cap < 0:
        problems.append("SCROLLSWAP_GAS_CAP_GWEI must not be negative")
    log_level = (env.get("SCROLLSWAP_LOG_LEVEL") or LOG_LEVEL).strip().upper()
    if log_level not in LOG_LEVELS:
        problems.append(f"SCROLLSWAP_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")

    if problems:
        raise ConfigError(problems)

    values = dict(
        private_key=_normalize_key(pk),
        zero_ex_api_key=env["ZERO_EX_API_KEY"].strip(),
        rpc_url=env["ALCHEMY_HTTP_TRANSPORT_URL"].strip(),
        chain_id=chain_id,
        api_base=(env.get("SCROLLSWAP_API_BASE") or ZERO_EX_API).rstrip("/"),
        sell_token=sell_token,
        buy_token=buy_token,
        sell_amount=sell_amount,
        affiliate_fee_bps=fee_bps,
        surplus_collection=_truthy(env.get("SCROLLSWAP_SURPLUS_COLLECTION"), SURPLUS_COLLECTION),
        http_timeout=float(timeout),
        receipt_timeout=float(receipt_timeout),
        gas_cap_gwei=gas_cap,
        log_level=log_level,
        execute=_truthy(env.get("SCROLLSWAP_EXECUTE"), False),
    )
    values.update(overrides)
    return Settings(**values)
