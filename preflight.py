#!/usr/bin/env python3
# preflight.py — sanity checker for scrollswap (config, RPC, tokens, Permit2, router)
# Read-only: never signs or sends anything.

from __future__ import annotations
import sys
from decimal import Decimal
from typing import Any, Dict, List

from web3 import Web3

from scrollswap.chain import get_ctx
from scrollswap.config import PERMIT2_ADDR, ROUTER_ADDR, load_settings
from scrollswap.errors import ConfigError
from scrollswap.runner import sym_for
from scrollswap.wallet import Wallet


def _check(name: str, fn) -> Dict[str, Any]:
    try:
        return {"check": name, "ok": True, "detail": fn()}
    except Exception as e:
        return {"check": name, "ok": False, "detail": str(e)}


def run_sanity() -> Dict[str, Any]:
    """
    Returns:
      {
        "ok": bool,
        "items": [{"check": "rpc", "ok": True, "detail": "..."}, ...]
      }
    """
    try:
        settings = load_settings()
    except ConfigError as e:
        return {"ok": False, "items": [{"check": "config", "ok": False, "detail": str(e)}]}

    ctx = get_ctx(settings.rpc_url, timeout=settings.http_timeout)
    w3 = ctx.w3
    wallet = Wallet.from_settings(ctx, settings)

    def _rpc():
        rpc_chain_id = int(w3.eth.chain_id)
        if rpc_chain_id != settings.chain_id:
            raise RuntimeError(f"chainId mismatch: config={settings.chain_id}, rpc={rpc_chain_id}")
        return f"chainId {rpc_chain_id}, block {w3.eth.block_number}"

    def _token(addr: str):
        def inner():
            dec = wallet.decimals(addr)
            bal = Decimal(wallet.balance_of(addr)) / (Decimal(10) ** dec)
            return f"{sym_for(addr)} decimals={dec} balance={bal.normalize()}"
        return inner

    def _permit2():
        allowed = wallet.allowance(settings.sell_token, PERMIT2_ADDR)
        if allowed == 0:
            return f"no {sym_for(settings.sell_token)} allowance yet (the script approves on first run)"
        return f"{sym_for(settings.sell_token)} allowance {allowed}"

    def _router():
        code = w3.eth.get_code(Web3.to_checksum_address(ROUTER_ADDR))
        if not code:
            raise RuntimeError(f"no contract code at {ROUTER_ADDR}")
        return f"{len(code)} bytes of code"

    items: List[Dict[str, Any]] = [
        {"check": "config", "ok": True, "detail": f"taker {wallet.address}"},
        _check("rpc", _rpc),
        _check("sell_token", _token(settings.sell_token)),
        _check("buy_token", _token(settings.buy_token)),
        _check("permit2_allowance", _permit2),
        _check("router", _router),
    ]
    return {"ok": all(i["ok"] for i in items), "items": items}


def main() -> int:
    res = run_sanity()
    for item in res["items"]:
        badge = "✅" if item["ok"] else "❌"
        print(f"{badge} {item['check']}: {item['detail']}")
    print("\nOVERALL:", "✅ PASS" if res["ok"] else "❌ FAIL")
    return 0 if res["ok"] else 1


if __name__ == "__main__":
    sys.exit(main())
