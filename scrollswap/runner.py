# scrollswap/runner.py — 0x swap walkthrough on Scroll
"""
Strictly sequential; each step waits on the previous one:

  1. list liquidity sources for the chain
  2. read the sell token's decimals
  3. indicative price (affiliate fee + surplus collection attached)
  4. Permit2 approval if the price response reports an allowance issue
     (errors here are logged and the run continues)
  5. firm quote with the same query parameters
  6. print route / tax / affiliate fee / surplus metrics
  7. submit the swap (only with --execute / SCROLLSWAP_EXECUTE=true)

Any failure outside step 4 aborts the run.

Run:
    scrollswap               # dry run
    scrollswap --execute     # sign + broadcast the quote
"""

from __future__ import annotations
import argparse
import json
import logging
import sys
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Optional

from web3 import Web3

from .chain import MAX_UINT256, get_ctx
from .config import CHAIN_NAME, TOKENS, Settings, load_settings
from .errors import ConfigError
from .metrics import SwapMetrics
from .wallet import Wallet
from .zeroex import ZeroExClient, swap_params

log = logging.getLogger(__name__)

Printer = Callable[[str], Any]

ADDR_TO_SYMBOL = {Web3.to_checksum_address(a): s for s, a in TOKENS.items()}

def sym_for(addr: str) -> str:
    try:
        cs = Web3.to_checksum_address(addr)
    except Exception:
        return addr
    return ADDR_TO_SYMBOL.get(cs, cs)

def parse_units(amount: str, decimals: int) -> int:
    """'0.1', 18 -> 100000000000000000 (extra precision is truncated)"""
    try:
        d = Decimal(str(amount))
    except InvalidOperation:
        raise ValueError(f"not a number: {amount!r}") from None
    return int((d * (Decimal(10) ** int(decimals))).to_integral_value(rounding=ROUND_DOWN))

def _dump(payload: Any) -> str:
    return json.dumps(payload, indent=2, default=str)

# ---------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------
def fetch_liquidity_sources(client: ZeroExClient, chain_id: int, out: Printer = print) -> List[str]:
    sources = client.get_sources(chain_id)
    out(f"Liquidity Sources on {CHAIN_NAME}:")
    out(", ".join(sources))
    return sources

def ensure_permit2_allowance(wallet: Wallet, token: str, price: Dict[str, Any],
                             out: Printer = print) -> Optional[str]:
    """Approve the spender named in price.issues.allowance; None if not needed or failed."""
    symbol = sym_for(token)
    allowance = (price.get("issues") or {}).get("allowance")
    if allowance is None:
        out(f"No Permit2 approval required for {symbol}.")
        return None
    try:
        out(f"Initiating approval for Permit2 to use {symbol}...")
        txh = wallet.approve(token, allowance["spender"], MAX_UINT256)
        out(f"Permit2 approval transaction hash: {txh}")
        return txh
    except Exception as e:
        log.error("Permit2 approval error: %s", e)
        out(f"Permit2 approval error: {e}")
        return None

def run(settings: Settings, client: ZeroExClient, wallet: Wallet, out: Printer = print) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    sell_sym, buy_sym = sym_for(settings.sell_token), sym_for(settings.buy_token)

    result["sources"] = fetch_liquidity_sources(client, settings.chain_id, out)

    decimals = wallet.decimals(settings.sell_token)
    sell_amount = parse_units(settings.sell_amount, decimals)

    params = swap_params(
        chain_id=settings.chain_id,
        sell_token=settings.sell_token,
        buy_token=settings.buy_token,
        sell_amount=sell_amount,
        taker=wallet.address,
        affiliate_fee_bps=settings.affiliate_fee_bps,
        surplus_collection=settings.surplus_collection,
    )
    result["params"] = params

    price = client.get_price(params)
    out(f"Price data for swapping {settings.sell_amount} {sell_sym} for {buy_sym}:")
    out(_dump(price))
    result["price"] = price

    result["approval_tx"] = ensure_permit2_allowance(wallet, settings.sell_token, price, out)

    quote = client.get_quote(dict(params))
    out(f"Quote data for swapping {settings.sell_amount} {sell_sym} for {buy_sym}:")
    out(_dump(quote))
    result["quote"] = quote

    metrics = SwapMetrics.from_quote(quote)
    for line in metrics.lines():
        out(line)
    result["metrics"] = metrics

    if settings.execute:
        txh = wallet.submit_quote(quote)
        out(f"Swap transaction hash: {txh}")
        result["swap_tx"] = txh
    else:
        out("Dry run: not submitting the swap transaction.")
        result["swap_tx"] = None
    return result

# ---------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------
def _parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="scrollswap", description="0x swap walkthrough on Scroll")
    p.add_argument("--execute", action="store_true", help="sign and broadcast the quoted swap")
    p.add_argument("--sell-amount", help="amount of the sell token, in token units")
    p.add_argument("--env-file", help="path to a .env file")
    return p

def main(argv: Optional[List[str]] = None) -> int:
    args = _parser().parse_args(argv)

    overrides: Dict[str, Any] = {}
    if args.execute:
        overrides["execute"] = True
    if args.sell_amount:
        overrides["sell_amount"] = args.sell_amount
    try:
        settings = load_settings(dotenv_path=args.env_file, **overrides)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s:%(name)s:%(message)s")
    log.info("Loaded %r", settings)
    ctx = get_ctx(settings.rpc_url, timeout=settings.http_timeout)
    wallet = Wallet.from_settings(ctx, settings)
    client = ZeroExClient(settings.zero_ex_api_key, settings.api_base, timeout=settings.http_timeout)
    try:
        run(settings, client, wallet)
    finally:
        client.close()
    return 0

if __name__ == "__main__":
    sys.exit(main())
