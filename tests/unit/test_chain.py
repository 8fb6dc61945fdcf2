"""
Unit tests for the web3 context and ABI helpers.
"""

from web3 import Web3

from scrollswap.chain import SETTLEMENT_ABI, SWAP_ROUTER_ABI, encode_call, get_ctx, offline_ctx


def test_ctx_cached_per_rpc():
    a = get_ctx("http://127.0.0.1:8545")
    assert get_ctx("http://127.0.0.1:8545") is a
    assert get_ctx("http://127.0.0.1:9545") is not a


def test_router_and_settlement_contracts_use_their_abis():
    ctx = offline_ctx()
    router = ctx.router("0x" + "11" * 20)
    settlement = ctx.settlement("0x" + "22" * 20)
    assert router.address == Web3.to_checksum_address("0x" + "11" * 20)
    assert router.abi == SWAP_ROUTER_ABI
    assert settlement.abi == SETTLEMENT_ABI


def test_encode_transfer_from():
    token = offline_ctx().erc20("0x5300000000000000000000000000000000000004")
    data = encode_call(token.functions.transferFrom("0x" + "11" * 20, "0x" + "22" * 20, 5))
    selector = Web3.keccak(text="transferFrom(address,address,uint256)")[:4].hex()
    selector = selector[2:] if selector.startswith("0x") else selector
    assert data.startswith("0x" + selector)
    assert int(data[-64:], 16) == 5
