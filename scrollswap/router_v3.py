# scrollswap/router_v3.py — Uniswap V3 router calldata (deadline structs) + simulated router

from __future__ import annotations
import logging
from typing import Callable, List, Optional, Sequence, Tuple

from web3 import Web3

from .chain import encode_call, offline_ctx
from .errors import DeadlineExpired, InsufficientOutput, TransferFailed
from .interfaces import ExactInputParams, ExactInputSingleParams
from .ledger import Chain

log = logging.getLogger(__name__)

# Placeholder router address for offline encoding; calldata doesn't depend on it
_ENCODE_ADDR = "0x0000000000000000000000000000000000000001"

def _router():
    return offline_ctx().router(_ENCODE_ADDR)

# ---------------------------------------------------------------------
# Path building (standard)
# ---------------------------------------------------------------------
def build_path_bytes(legs: Sequence[Tuple[str, int, str]]) -> bytes:
    """
    legs = [(tokenA, feeAB, tokenB), (tokenB, feeBC, tokenC), ...]
    Returns canonical path bytes: tokenA (20) + fee (3) + tokenB (20) + ...
    """
    out = b""
    prev_out: Optional[str] = None
    for i, (a, fee, b) in enumerate(legs):
        a = Web3.to_checksum_address(a)
        b = Web3.to_checksum_address(b)
        if prev_out is not None and a != prev_out:
            raise ValueError(f"leg {i} starts at {a}, previous leg ended at {prev_out}")
        if not 0 <= int(fee) < 2**24:
            raise ValueError(f"fee out of uint24 range: {fee}")
        if i == 0:
            out += bytes.fromhex(a[2:])
        out += int(fee).to_bytes(3, "big")
        out += bytes.fromhex(b[2:])
        prev_out = b
    return out

def decode_path(path: bytes) -> List[Tuple[str, int, str]]:
    if len(path) < 43 or (len(path) - 20) % 23 != 0:
        raise ValueError(f"malformed path of {len(path)} bytes")
    legs = []
    pos = 0
    while pos + 20 < len(path):
        a = Web3.to_checksum_address("0x" + path[pos:pos + 20].hex())
        fee = int.from_bytes(path[pos + 20:pos + 23], "big")
        b = Web3.to_checksum_address("0x" + path[pos + 23:pos + 43].hex())
        legs.append((a, fee, b))
        pos += 23
    return legs

# ---------------------------------------------------------------------
# Calldata
# ---------------------------------------------------------------------
def data_exact_input_single(params: ExactInputSingleParams) -> str:
    """exactInputSingle((address,address,uint24,address,uint256,uint256,uint256,uint160))"""
    tup = (
        Web3.to_checksum_address(params.token_in),
        Web3.to_checksum_address(params.token_out),
        int(params.fee),
        Web3.to_checksum_address(params.recipient),
        int(params.deadline),
        int(params.amount_in),
        int(params.amount_out_minimum),
        int(params.sqrt_price_limit_x96),
    )
    return encode_call(_router().functions.exactInputSingle(tup))

def data_exact_input(params: ExactInputParams) -> str:
    """exactInput((bytes,address,uint256,uint256,uint256))"""
    tup = (bytes(params.path), Web3.to_checksum_address(params.recipient), int(params.deadline),
           int(params.amount_in), int(params.amount_out_minimum))
    return encode_call(_router().functions.exactInput(tup))

# ---------------------------------------------------------------------
# Simulated router (in-memory chain)
# ---------------------------------------------------------------------
Quote = Callable[[ExactInputSingleParams], int]

def fee_only_quote(params: ExactInputSingleParams) -> int:
    """1:1 price minus the pool fee (fee is in hundredths of a bip)."""
    return params.amount_in * (1_000_000 - params.fee) // 1_000_000


class SimulatedRouter:
    """
    Stand-in for the external router on a `Chain`. Pays out of its own
    balance of the output token, so tests must fund it. `quote` decides the
    realized output of each pool hop; intermediate hops of a multi-hop path
    never leave the router.
    """

    def __init__(self, chain: Chain, address: str, quote: Optional[Quote] = None) -> None:
        self.chain = chain
        self.address = Web3.to_checksum_address(address)
        self.quote: Quote = quote or fee_only_quote
        self.calls: List[object] = []

    def _swap(self, sender: str, token_in_addr: str, token_out_addr: str, amount_in: int,
              amount_out_minimum: int, recipient: str, deadline: int,
              hops: Callable[[int], int]) -> int:
        with self.chain.atomic():
            if self.chain.timestamp > deadline:
                raise DeadlineExpired(f"deadline {deadline} < block {self.chain.timestamp}")

            token_in = self.chain.token(token_in_addr)
            token_out = self.chain.token(token_out_addr)

            if not token_in.transfer_from(self.address, sender, self.address, amount_in):
                raise TransferFailed("STF")

            amount_out = int(hops(amount_in))
            if amount_out < amount_out_minimum:
                raise InsufficientOutput(amount_out, amount_out_minimum)

            if not token_out.transfer(self.address, recipient, amount_out):
                raise TransferFailed("ST")

        log.debug("swap %s -> %s in=%d out=%d", token_in.symbol, token_out.symbol, amount_in, amount_out)
        return amount_out

    def exact_input_single(self, params: ExactInputSingleParams, sender: str) -> int:
        out = self._swap(sender, params.token_in, params.token_out, params.amount_in,
                         params.amount_out_minimum, params.recipient, params.deadline,
                         lambda amount_in: self.quote(params))
        self.calls.append(params)
        return out

    def exact_input(self, params: ExactInputParams, sender: str) -> int:
        legs = decode_path(bytes(params.path))

        def hops(amount: int) -> int:
            for token_a, fee, token_b in legs:
                hop = ExactInputSingleParams(token_a, token_b, fee, self.address,
                                             params.deadline, amount, 0)
                amount = int(self.quote(hop))
            return amount

        out = self._swap(sender, legs[0][0], legs[-1][2], params.amount_in,
                         params.amount_out_minimum, params.recipient, params.deadline, hops)
        self.calls.append(params)
        return out
