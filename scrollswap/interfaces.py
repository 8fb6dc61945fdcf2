# scrollswap/interfaces.py
"""
Capability declarations for the externally-deployed contracts the settlement
talks to. No behaviour lives here: an ERC-20 token, and a V3-style swap router
whose exact-input entry points take the 8-field single-hop struct and the
5-field path struct (both with a deadline).

`sender` is the msg.sender of the call being modelled.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Protocol, Tuple


class ERC20(Protocol):
    address: str

    def balance_of(self, owner: str) -> int: ...

    def allowance(self, owner: str, spender: str) -> int: ...

    def transfer(self, sender: str, to: str, amount: int) -> bool: ...

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool: ...

    def approve(self, owner: str, spender: str, amount: int) -> bool: ...


@dataclass(frozen=True)
class ExactInputSingleParams:
    token_in: str
    token_out: str
    fee: int
    recipient: str
    deadline: int
    amount_in: int
    amount_out_minimum: int
    sqrt_price_limit_x96: int = 0

    def as_tuple(self) -> Tuple[str, str, int, str, int, int, int, int]:
        return (self.token_in, self.token_out, int(self.fee), self.recipient,
                int(self.deadline), int(self.amount_in), int(self.amount_out_minimum),
                int(self.sqrt_price_limit_x96))


@dataclass(frozen=True)
class ExactInputParams:
    path: bytes
    recipient: str
    deadline: int
    amount_in: int
    amount_out_minimum: int

    def as_tuple(self) -> Tuple[bytes, str, int, int, int]:
        return (bytes(self.path), self.recipient, int(self.deadline),
                int(self.amount_in), int(self.amount_out_minimum))


class SwapRouter(Protocol):
    address: str

    def exact_input_single(self, params: ExactInputSingleParams, sender: str) -> int: ...

    # declared for completeness; the settlement flow never routes multi-hop
    def exact_input(self, params: ExactInputParams, sender: str) -> int: ...
