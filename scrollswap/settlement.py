# scrollswap/settlement.py — exact-input single-hop settlement with a minimum-output guard
"""
Model of the settlement contract:

    exchange(inputToken, outputToken, inputAmount, minOutputAmount, receiver)

1. pull inputAmount from the caller            -> TransferFailed
2. approve the router for exactly inputAmount  -> ApprovalFailed
3. router.exactInputSingle(fee 0.30%, no price limit, deadline = block time)
4. realized output < minOutputAmount           -> InsufficientOutput

Everything runs inside one Chain.atomic() scope, so any revert leaves every
balance and allowance as it was before the call.

The router deadline is the current block timestamp (DEADLINE_IS_NOW). A
router checks `block.timestamp <= deadline` in the same transaction, so this
never protects against delayed execution. It is kept as legacy behaviour;
pass `deadline_seconds` to get a real window.
"""

from __future__ import annotations
import enum
import logging
from dataclasses import dataclass
from typing import Optional

from web3 import Web3

from .chain import encode_call, offline_ctx
from .config import SETTLEMENT_FEE_TIER
from .errors import ApprovalFailed, InsufficientOutput, InvalidRequest, Revert, TransferFailed
from .interfaces import ExactInputSingleParams, SwapRouter
from .ledger import MAX_UINT256, Chain

log = logging.getLogger(__name__)

# Legacy: router deadline = block timestamp (no protection)
DEADLINE_IS_NOW = True

NO_PRICE_LIMIT = 0


class SettlementState(enum.Enum):
    IDLE = "idle"
    TRANSFERRING = "transferring"
    APPROVING = "approving"
    SWAPPING = "swapping"
    VERIFYING = "verifying"
    REVERTED = "reverted"


@dataclass(frozen=True)
class SwapRequest:
    input_token: str
    output_token: str
    input_amount: int
    min_output_amount: int
    receiver: str

    def validate(self) -> "SwapRequest":
        for name in ("input_amount", "min_output_amount"):
            v = getattr(self, name)
            if isinstance(v, bool) or not isinstance(v, int):
                raise InvalidRequest(f"{name} must be an integer, got {v!r}")
            if not 0 <= v <= MAX_UINT256:
                raise InvalidRequest(f"{name} out of uint256 range: {v}")
        if self.input_amount == 0:
            raise InvalidRequest("input_amount must be positive")
        for name in ("input_token", "output_token", "receiver"):
            if not Web3.is_address(getattr(self, name) or ""):
                raise InvalidRequest(f"{name} is not an address: {getattr(self, name)!r}")
        return self


def router_params(request: SwapRequest, now: int, fee: int = SETTLEMENT_FEE_TIER,
                  deadline_seconds: Optional[int] = None) -> ExactInputSingleParams:
    """
    The router call a settlement makes for `request` at block time `now`.
    amountOutMinimum is 0: the guard is enforced by the settlement after the call.
    """
    if deadline_seconds is None and DEADLINE_IS_NOW:
        deadline = int(now)
    else:
        deadline = int(now) + int(deadline_seconds or 0)
    return ExactInputSingleParams(
        token_in=Web3.to_checksum_address(request.input_token),
        token_out=Web3.to_checksum_address(request.output_token),
        fee=int(fee),
        recipient=Web3.to_checksum_address(request.receiver),
        deadline=deadline,
        amount_in=int(request.input_amount),
        amount_out_minimum=0,
        sqrt_price_limit_x96=NO_PRICE_LIMIT,
    )


class SwapSettlement:
    def __init__(self, chain: Chain, router: SwapRouter, address: str,
                 fee: int = SETTLEMENT_FEE_TIER, deadline_seconds: Optional[int] = None) -> None:
        self.chain = chain
        self.router = router
        self.address = Web3.to_checksum_address(address)
        self.fee = int(fee)
        self.deadline_seconds = deadline_seconds
        self.state = SettlementState.IDLE
        self.last_revert: Optional[Revert] = None

    def _enter(self, state: SettlementState) -> None:
        log.debug("settlement %s: %s -> %s", self.address, self.state.value, state.value)
        self.state = state

    def exchange(self, caller: str, input_token: str, output_token: str, input_amount: int,
                 min_output_amount: int, receiver: str) -> None:
        request = SwapRequest(input_token, output_token, input_amount, min_output_amount, receiver)
        self.last_revert = None
        try:
            self.settle(caller, request)
        except Revert as e:
            self._enter(SettlementState.REVERTED)
            self.last_revert = e
            raise
        finally:
            # a reverted call leaves nothing behind, so it ends idle too
            self._enter(SettlementState.IDLE)

    def settle(self, caller: str, request: SwapRequest) -> int:
        """Run one settlement; returns the realized output amount."""
        request.validate()
        caller = Web3.to_checksum_address(caller)

        with self.chain.atomic():
            token_in = self.chain.token(request.input_token)

            self._enter(SettlementState.TRANSFERRING)
            if not token_in.transfer_from(self.address, caller, self.address, request.input_amount):
                raise TransferFailed(f"{token_in.symbol} transferFrom {caller} -> {self.address}")

            self._enter(SettlementState.APPROVING)
            if not token_in.approve(self.address, self.router.address, request.input_amount):
                raise ApprovalFailed(f"{token_in.symbol} approve {self.router.address}")

            self._enter(SettlementState.SWAPPING)
            params = router_params(request, self.chain.timestamp, fee=self.fee,
                                   deadline_seconds=self.deadline_seconds)
            amount_out = int(self.router.exact_input_single(params, sender=self.address))

            self._enter(SettlementState.VERIFYING)
            if amount_out < request.min_output_amount:
                raise InsufficientOutput(amount_out, request.min_output_amount)

        log.info("settled %d %s -> %d out to %s", request.input_amount, token_in.symbol,
                 amount_out, request.receiver)
        return amount_out


def data_exchange(request: SwapRequest, settlement_addr: str) -> str:
    """Calldata for exchange(...) on a deployed settlement contract."""
    request.validate()
    c = offline_ctx().settlement(settlement_addr)
    fn = c.functions.exchange(
        Web3.to_checksum_address(request.input_token),
        Web3.to_checksum_address(request.output_token),
        int(request.input_amount),
        int(request.min_output_amount),
        Web3.to_checksum_address(request.receiver),
    )
    return encode_call(fn)
