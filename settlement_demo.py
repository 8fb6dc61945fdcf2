#!/usr/bin/env python3
# settlement_demo.py — walk the settlement through a filled and a rejected swap (in-memory)

from __future__ import annotations
import sys

from scrollswap.errors import Revert
from scrollswap.interfaces import ExactInputParams
from scrollswap.ledger import Chain
from scrollswap.router_v3 import SimulatedRouter, build_path_bytes, data_exact_input, data_exact_input_single
from scrollswap.settlement import SwapRequest, SwapSettlement, data_exchange, router_params

TOKEN_A    = "0x" + "aa" * 20
TOKEN_B    = "0x" + "bb" * 20
TOKEN_C    = "0x" + "cc" * 20
ROUTER     = "0x" + "01" * 20
SETTLEMENT = "0x" + "02" * 20
USER       = "0x" + "03" * 20
RECEIVER   = "0x" + "04" * 20


def _balances(chain: Chain) -> str:
    a, b = chain.token(TOKEN_A), chain.token(TOKEN_B)
    return (f"user A={a.balance_of(USER)} | settlement A={a.balance_of(SETTLEMENT)} | "
            f"router A={a.balance_of(ROUTER)} B={b.balance_of(ROUTER)} | receiver B={b.balance_of(RECEIVER)}")


def scenario(router_out: int, min_out: int = 95) -> bool:
    chain = Chain(timestamp=1_700_000_000)
    a = chain.deploy_token(TOKEN_A, "TKA")
    b = chain.deploy_token(TOKEN_B, "TKB")
    a.mint(USER, 100)
    b.mint(ROUTER, 1_000)

    router = SimulatedRouter(chain, ROUTER, quote=lambda p: router_out)
    settlement = SwapSettlement(chain, router, SETTLEMENT)
    a.approve(USER, SETTLEMENT, 100)

    print(f"\nexchange(100 TKA, minOut={min_out}) with router paying {router_out}")
    print("  before:", _balances(chain))
    try:
        settlement.exchange(USER, TOKEN_A, TOKEN_B, 100, min_out, RECEIVER)
        print("  OK")
        ok = True
    except Revert as e:
        print(f"  REVERT {e.reason}: {e}")
        ok = False
    print("  after: ", _balances(chain))
    return ok


def calldata() -> None:
    req = SwapRequest(TOKEN_A, TOKEN_B, 100, 95, RECEIVER)
    print("\nexchange calldata:", data_exchange(req, SETTLEMENT)[:74], "...")
    params = router_params(req, now=1_700_000_000)
    print("exactInputSingle deadline:", params.deadline, "(= block time)")
    print("exactInputSingle calldata:", data_exact_input_single(params)[:74], "...")
    path = build_path_bytes([(TOKEN_A, 3000, TOKEN_C), (TOKEN_C, 500, TOKEN_B)])
    multi = ExactInputParams(path, RECEIVER, params.deadline, 100, 95)
    print("exactInput path:", path.hex()[:40], "... len", len(path))
    print("exactInput calldata:", data_exact_input(multi)[:74], "...")


if __name__ == "__main__":
    filled = scenario(97)
    rejected = not scenario(90)
    calldata()
    sys.exit(0 if filled and rejected else 1)
