# scrollswap/ledger.py — in-memory chain model (block time, ERC-20 accounting, atomic scopes)
"""
A deliberately small stand-in for the EVM execution environment the settlement
contract runs in:

- `Chain` holds the block timestamp and every token registered with it.
- `Chain.atomic()` snapshots all registered tokens and restores them if the
  body raises, which is the all-or-nothing guarantee a reverted transaction
  gives on-chain. Scopes nest.
- `MemoryERC20` does balance/allowance bookkeeping with the usual ERC-20
  semantics. transfer/transfer_from/approve report failure by returning False
  (the way older tokens do) rather than raising.
"""

from __future__ import annotations
import logging
import time
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Set, Tuple

from web3 import Web3

from .chain import MAX_UINT256

log = logging.getLogger(__name__)


def _addr(a: str) -> str:
    return Web3.to_checksum_address(a)


class MemoryERC20:
    def __init__(self, address: str, symbol: str = "TKN", decimals: int = 18) -> None:
        self.address = _addr(address)
        self.symbol = symbol
        self.decimals = int(decimals)
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}
        self._denied_spenders: Set[str] = set()

    def __repr__(self) -> str:
        return f"MemoryERC20({self.symbol}@{self.address})"

    # ---- views ----
    def balance_of(self, owner: str) -> int:
        return self._balances.get(_addr(owner), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((_addr(owner), _addr(spender)), 0)

    def total_supply(self) -> int:
        return sum(self._balances.values())

    # ---- test/demo helpers ----
    def mint(self, to: str, amount: int) -> None:
        to = _addr(to)
        self._balances[to] = self._balances.get(to, 0) + int(amount)

    def deny_spender(self, spender: str) -> None:
        """approve() to this spender will return False from now on."""
        self._denied_spenders.add(_addr(spender))

    # ---- mutations ----
    def _move(self, src: str, dst: str, amount: int) -> bool:
        if amount < 0 or self._balances.get(src, 0) < amount:
            return False
        self._balances[src] = self._balances.get(src, 0) - amount
        self._balances[dst] = self._balances.get(dst, 0) + amount
        return True

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        return self._move(_addr(sender), _addr(to), int(amount))

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool:
        spender, owner, to = _addr(spender), _addr(owner), _addr(to)
        amount = int(amount)
        allowed = self._allowances.get((owner, spender), 0)
        if allowed < amount:
            return False
        if not self._move(owner, to, amount):
            return False
        if allowed != MAX_UINT256:
            self._allowances[(owner, spender)] = allowed - amount
        return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        spender = _addr(spender)
        if spender in self._denied_spenders or not 0 <= int(amount) <= MAX_UINT256:
            return False
        self._allowances[(_addr(owner), spender)] = int(amount)
        return True

    # ---- snapshots (used by Chain.atomic) ----
    def snapshot(self) -> Tuple[Dict[str, int], Dict[Tuple[str, str], int]]:
        return dict(self._balances), dict(self._allowances)

    def restore(self, snap: Tuple[Dict[str, int], Dict[Tuple[str, str], int]]) -> None:
        balances, allowances = snap
        self._balances = dict(balances)
        self._allowances = dict(allowances)


class Chain:
    def __init__(self, timestamp: Optional[int] = None) -> None:
        self.timestamp = int(time.time()) if timestamp is None else int(timestamp)
        self._tokens: Dict[str, MemoryERC20] = {}
        self._depth = 0

    def register(self, token: MemoryERC20) -> MemoryERC20:
        self._tokens[token.address] = token
        return token

    def deploy_token(self, address: str, symbol: str = "TKN", decimals: int = 18) -> MemoryERC20:
        return self.register(MemoryERC20(address, symbol=symbol, decimals=decimals))

    def token(self, address: str) -> MemoryERC20:
        try:
            return self._tokens[_addr(address)]
        except KeyError:
            raise KeyError(f"token not deployed: {address}") from None

    def tokens(self) -> List[MemoryERC20]:
        return list(self._tokens.values())

    def advance(self, seconds: int) -> int:
        self.timestamp += int(seconds)
        return self.timestamp

    @contextmanager
    def atomic(self) -> Iterator["Chain"]:
        snaps = {addr: tok.snapshot() for addr, tok in self._tokens.items()}
        self._depth += 1
        try:
            yield self
        except BaseException as e:
            for addr, tok in self._tokens.items():
                if addr in snaps:
                    tok.restore(snaps[addr])
            log.debug("reverted at depth %d: %s", self._depth, e)
            raise
        finally:
            self._depth -= 1
