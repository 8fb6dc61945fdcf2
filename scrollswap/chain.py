# scrollswap/chain.py — web3 context + minimal ABIs (ERC-20, V3 router, settlement)
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Optional
from web3 import Web3

# ---- Minimal ABIs ----

ERC20_ABI = [
    {"constant": True, "inputs": [], "name": "decimals", "outputs": [{"name":"","type":"uint8"}], "stateMutability": "view", "type": "function"},
    {"constant": True, "inputs": [], "name": "symbol", "outputs": [{"name":"","type":"string"}], "stateMutability": "view", "type": "function"},
    {"constant": True, "inputs": [{"name":"owner","type":"address"}], "name": "balanceOf", "outputs": [{"name":"","type":"uint256"}], "stateMutability": "view", "type": "function"},
    {"constant": True, "inputs": [{"name":"owner","type":"address"},{"name":"spender","type":"address"}], "name": "allowance", "outputs": [{"name":"","type":"uint256"}], "stateMutability": "view", "type": "function"},
    {"constant": False, "inputs": [{"name":"to","type":"address"},{"name":"amount","type":"uint256"}], "name": "transfer", "outputs": [{"name":"","type":"bool"}], "stateMutability": "nonpayable", "type": "function"},
    {"constant": False, "inputs": [{"name":"from","type":"address"},{"name":"to","type":"address"},{"name":"amount","type":"uint256"}], "name": "transferFrom", "outputs": [{"name":"","type":"bool"}], "stateMutability": "nonpayable", "type": "function"},
    {"constant": False, "inputs": [{"name":"spender","type":"address"},{"name":"amount","type":"uint256"}], "name": "approve", "outputs": [{"name":"","type":"bool"}], "stateMutability": "nonpayable", "type": "function"},
]

# V3 router with deadline in the structs:
#   exactInputSingle((address,address,uint24,address,uint256,uint256,uint256,uint160))
#   exactInput((bytes,address,uint256,uint256,uint256))
SWAP_ROUTER_ABI = [
    {
        "inputs": [{
            "components": [
                {"internalType":"address","name":"tokenIn","type":"address"},
                {"internalType":"address","name":"tokenOut","type":"address"},
                {"internalType":"uint24","name":"fee","type":"uint24"},
                {"internalType":"address","name":"recipient","type":"address"},
                {"internalType":"uint256","name":"deadline","type":"uint256"},
                {"internalType":"uint256","name":"amountIn","type":"uint256"},
                {"internalType":"uint256","name":"amountOutMinimum","type":"uint256"},
                {"internalType":"uint160","name":"sqrtPriceLimitX96","type":"uint160"},
            ],
            "internalType":"struct ISwapRouter.ExactInputSingleParams",
            "name":"params","type":"tuple"
        }],
        "name":"exactInputSingle",
        "outputs":[{"internalType":"uint256","name":"amountOut","type":"uint256"}],
        "stateMutability":"payable","type":"function"
    },
    {
        "inputs": [{
            "components": [
                {"internalType":"bytes","name":"path","type":"bytes"},
                {"internalType":"address","name":"recipient","type":"address"},
                {"internalType":"uint256","name":"deadline","type":"uint256"},
                {"internalType":"uint256","name":"amountIn","type":"uint256"},
                {"internalType":"uint256","name":"amountOutMinimum","type":"uint256"},
            ],
            "internalType":"struct ISwapRouter.ExactInputParams",
            "name":"params","type":"tuple"
        }],
        "name":"exactInput",
        "outputs":[{"internalType":"uint256","name":"amountOut","type":"uint256"}],
        "stateMutability":"payable","type":"function"
    },
]

# Deployed settlement contract: exchange(tokenIn, tokenOut, amountIn, minOut, receiver)
SETTLEMENT_ABI = [
    {
        "inputs": [
            {"internalType":"address","name":"inputToken","type":"address"},
            {"internalType":"address","name":"outputToken","type":"address"},
            {"internalType":"uint256","name":"inputAmount","type":"uint256"},
            {"internalType":"uint256","name":"minOutputAmount","type":"uint256"},
            {"internalType":"address","name":"receiver","type":"address"},
        ],
        "name":"exchange",
        "outputs":[],
        "stateMutability":"nonpayable","type":"function"
    },
]

MAX_UINT256 = 2**256 - 1


@dataclass
class ChainCtx:
    w3: Web3
    def erc20(self, addr: str):
        return self.w3.eth.contract(address=Web3.to_checksum_address(addr), abi=ERC20_ABI)
    def router(self, addr: str):
        return self.w3.eth.contract(address=Web3.to_checksum_address(addr), abi=SWAP_ROUTER_ABI)
    def settlement(self, addr: str):
        return self.w3.eth.contract(address=Web3.to_checksum_address(addr), abi=SETTLEMENT_ABI)

_ctx: Dict[str, ChainCtx] = {}

def get_ctx(rpc_url: str, timeout: float = 15) -> ChainCtx:
    ctx: Optional[ChainCtx] = _ctx.get(rpc_url)
    if ctx is None:
        w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
        ctx = ChainCtx(w3=w3)
        _ctx[rpc_url] = ctx
    return ctx

def offline_ctx() -> ChainCtx:
    """Provider-less context; enough for ABI encoding."""
    return ChainCtx(w3=Web3())

def encode_call(fn) -> str:
    """Hex calldata for a bound contract function."""
    return fn._encode_transaction_data()
