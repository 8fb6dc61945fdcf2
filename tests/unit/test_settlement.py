"""
Unit tests for the exact-input settlement: success path, the all-or-nothing
rollback on every failure, and the router call it makes.
"""

import logging

import pytest
from web3 import Web3

from scrollswap import settlement as settlement_mod
from scrollswap.errors import (
    ApprovalFailed,
    DeadlineExpired,
    InsufficientOutput,
    InvalidRequest,
    TransferFailed,
)
from scrollswap.settlement import (
    DEADLINE_IS_NOW,
    SettlementState,
    SwapRequest,
    data_exchange,
    router_params,
)


def _approve(env, amount=100):
    env.a.approve(env.user, env.settlement_addr, amount)


def _exchange(env, amount_in=100, min_out=95):
    env.settlement.exchange(env.user, env.token_a, env.token_b, amount_in, min_out, env.receiver)


def test_filled_swap_moves_exact_amounts(env):
    _approve(env)
    _exchange(env)

    assert env.a.balance_of(env.user) == 0
    assert env.b.balance_of(env.receiver) == 97
    assert env.a.balance_of(env.settlement_addr) == 0
    assert env.a.balance_of(env.router_addr) == 100
    assert env.b.balance_of(env.router_addr) == 1_000 - 97
    # router consumed the exact approval
    assert env.a.allowance(env.settlement_addr, env.router_addr) == 0
    assert env.settlement.state is SettlementState.IDLE


def test_settle_returns_realized_output(env):
    _approve(env)
    req = SwapRequest(env.token_a, env.token_b, 100, 95, env.receiver)
    assert env.settlement.settle(env.user, req) == 97


def test_output_exactly_at_minimum_is_accepted(env):
    env.router_out = 95
    _approve(env)
    _exchange(env)
    assert env.b.balance_of(env.receiver) == 95


def test_insufficient_output_rolls_back_everything(env, caplog):
    caplog.set_level(logging.DEBUG, logger="scrollswap.settlement")
    env.router_out = 90
    _approve(env)
    before = env.snapshot()

    with pytest.raises(InsufficientOutput) as exc:
        _exchange(env)

    assert exc.value.reason == "InsufficientOutput"
    assert exc.value.amount_out == 90
    assert exc.value.min_output_amount == 95
    assert env.snapshot() == before
    assert env.a.allowance(env.user, env.settlement_addr) == 100
    assert env.settlement.state is SettlementState.IDLE
    assert env.settlement.last_revert is exc.value
    assert "verifying -> reverted" in caplog.text
    assert "reverted -> idle" in caplog.text


def test_short_allowance_fails_transfer(env):
    _approve(env, 99)
    before = env.snapshot()

    with pytest.raises(TransferFailed):
        _exchange(env)

    assert env.snapshot() == before
    assert env.router.calls == []


def test_short_balance_fails_transfer(env):
    _approve(env, 500)
    with pytest.raises(TransferFailed):
        _exchange(env, amount_in=101)
    assert env.a.balance_of(env.user) == 100


def test_refused_router_approval_fails(env):
    env.a.deny_spender(env.router_addr)
    _approve(env)
    before = env.snapshot()

    with pytest.raises(ApprovalFailed) as exc:
        _exchange(env)

    assert exc.value.reason == "ApprovalFailed"
    assert env.snapshot() == before


def test_router_out_of_liquidity_rolls_back(env):
    env.router_out = 5_000  # more than the router holds
    _approve(env)
    before = env.snapshot()
    with pytest.raises(TransferFailed):
        _exchange(env)
    assert env.snapshot() == before


@pytest.mark.parametrize("amount_in,min_out", [(0, 0), (-1, 0), (10, -1), (2**256, 0)])
def test_invalid_amounts_rejected_before_any_transfer(env, amount_in, min_out):
    _approve(env)
    before = env.snapshot()
    with pytest.raises(InvalidRequest):
        _exchange(env, amount_in=amount_in, min_out=min_out)
    assert env.snapshot() == before
    assert env.settlement.state is SettlementState.IDLE
    assert isinstance(env.settlement.last_revert, InvalidRequest)


def test_invalid_receiver_rejected(env):
    _approve(env)
    with pytest.raises(InvalidRequest):
        env.settlement.exchange(env.user, env.token_a, env.token_b, 100, 95, "not-an-address")


def test_router_call_uses_fixed_fee_and_now_deadline(env):
    _approve(env)
    _exchange(env)

    (params,) = env.router.calls
    assert DEADLINE_IS_NOW is True
    assert params.deadline == env.now
    assert params.fee == 3000
    assert params.sqrt_price_limit_x96 == 0
    assert params.amount_out_minimum == 0
    assert params.amount_in == 100
    assert params.recipient == Web3.to_checksum_address(env.receiver)


def test_deadline_now_passes_router_check_at_any_block_time(env):
    env.chain.advance(3600)
    _approve(env)
    _exchange(env)
    assert env.router.calls[0].deadline == env.now + 3600


def test_explicit_deadline_window(env):
    env.settlement.deadline_seconds = 600
    _approve(env)
    _exchange(env)
    assert env.router.calls[0].deadline == env.now + 600


def test_router_params_without_legacy_flag(monkeypatch):
    monkeypatch.setattr(settlement_mod, "DEADLINE_IS_NOW", False)
    req = SwapRequest("0x" + "aa" * 20, "0x" + "bb" * 20, 1, 0, "0x" + "cc" * 20)
    assert router_params(req, now=100, deadline_seconds=30).deadline == 130
    assert router_params(req, now=100).deadline == 100


def test_router_rejects_stale_deadline(env):
    _approve(env)
    params = router_params(SwapRequest(env.token_a, env.token_b, 100, 0, env.receiver), now=env.now - 1)
    env.a.approve(env.settlement_addr, env.router_addr, 100)
    before = env.snapshot()
    with pytest.raises(DeadlineExpired):
        env.router.exact_input_single(params, sender=env.settlement_addr)
    assert env.snapshot() == before


def test_sequential_calls_are_independent(env):
    env.a.mint(env.user, 100)
    _approve(env, 200)
    env.router_out = 90
    with pytest.raises(InsufficientOutput):
        _exchange(env)
    env.router_out = 97
    _exchange(env)
    assert env.b.balance_of(env.receiver) == 97
    assert env.a.balance_of(env.user) == 100
    assert env.settlement.state is SettlementState.IDLE
    assert env.settlement.last_revert is None


def test_data_exchange_selector():
    req = SwapRequest("0x" + "aa" * 20, "0x" + "bb" * 20, 100, 95, "0x" + "cc" * 20)
    data = data_exchange(req, "0x" + "02" * 20)
    selector = Web3.keccak(text="exchange(address,address,uint256,uint256,address)")[:4].hex()
    selector = selector[2:] if selector.startswith("0x") else selector
    assert data.startswith("0x" + selector)
    assert len(data) == 2 + 2 * (4 + 5 * 32)
    assert data.endswith("cc" * 20)
