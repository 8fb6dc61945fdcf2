# scrollswap/wallet.py — signer, ERC-20 reads, Permit2 approval and quote submission
from __future__ import annotations
import logging
from typing import Any, Dict

from web3 import Web3

from .chain import MAX_UINT256, ChainCtx, encode_call
from .config import GAS_CAP_GWEI, TX_RECEIPT_TIMEOUT_SECONDS, Settings

log = logging.getLogger(__name__)

# ------------------------------------------------------------------------------
# Gas helpers (legacy gasPrice; optional cap)
# ------------------------------------------------------------------------------
def gwei_to_wei(g: int) -> int:
    return int(g) * 10**9

def suggest_gas_price_wei(w3: Web3, cap_gwei: int = GAS_CAP_GWEI) -> int:
    cap = gwei_to_wei(cap_gwei)
    network = int(w3.eth.gas_price)
    return min(network, cap) if cap > 0 else network

# ------------------------------------------------------------------------------
# Permit2 signature layout: data ‖ uint256(len(sig)) ‖ sig
# ------------------------------------------------------------------------------
def append_signature(data: str, signature: bytes) -> str:
    body = data[2:] if data.startswith("0x") else data
    sig = bytes(signature)
    return "0x" + body + len(sig).to_bytes(32, "big").hex() + sig.hex()


class Wallet:
    def __init__(self, ctx: ChainCtx, private_key: str, chain_id: int,
                 gas_cap_gwei: int = GAS_CAP_GWEI,
                 receipt_timeout: float = TX_RECEIPT_TIMEOUT_SECONDS) -> None:
        self.ctx = ctx
        self.w3 = ctx.w3
        self.account = self.w3.eth.account.from_key(private_key)
        self.chain_id = int(chain_id)
        self.gas_cap_gwei = int(gas_cap_gwei)
        self.receipt_timeout = receipt_timeout

    @classmethod
    def from_settings(cls, ctx: ChainCtx, settings: Settings) -> "Wallet":
        return cls(ctx, settings.private_key, settings.chain_id,
                   gas_cap_gwei=settings.gas_cap_gwei, receipt_timeout=settings.receipt_timeout)

    @property
    def address(self) -> str:
        return Web3.to_checksum_address(self.account.address)

    # ---- reads ----
    def decimals(self, token_addr: str) -> int:
        return int(self.ctx.erc20(token_addr).functions.decimals().call())

    def allowance(self, token_addr: str, spender: str) -> int:
        fn = self.ctx.erc20(token_addr).functions.allowance(self.address, Web3.to_checksum_address(spender))
        return int(fn.call())

    def balance_of(self, token_addr: str) -> int:
        return int(self.ctx.erc20(token_addr).functions.balanceOf(self.address).call())

    # ---- writes ----
    def _send(self, tx: Dict[str, Any], gas_floor: int) -> str:
        tx = dict(tx)
        tx.setdefault("chainId", self.chain_id)
        if "nonce" not in tx:
            tx["nonce"] = self.w3.eth.get_transaction_count(self.address)
        if "gasPrice" not in tx:
            tx["gasPrice"] = suggest_gas_price_wei(self.w3, self.gas_cap_gwei)
        if "gas" not in tx:
            try:
                est = self.w3.eth.estimate_gas({**tx, "from": self.address})
                tx["gas"] = max(int(est * 1.5), gas_floor)
            except Exception as e:
                log.warning("estimate_gas failed, using %d: %s", gas_floor, e)
                tx["gas"] = gas_floor
        signed = self.account.sign_transaction(tx)
        return Web3.to_hex(self.w3.eth.send_raw_transaction(signed.raw_transaction))

    def approve(self, token_addr: str, spender: str, amount: int = MAX_UINT256,
                gas_limit: int = 120_000) -> str:
        """
        Simulate approve(spender, amount) with eth_call, then sign and send it.
        Returns the transaction hash. Simulation reverts propagate.
        """
        token = self.ctx.erc20(token_addr)
        fn = token.functions.approve(Web3.to_checksum_address(spender), int(amount))
        fn.call({"from": self.address})

        tx = {
            "to": Web3.to_checksum_address(token_addr),
            "value": 0,
            "data": encode_call(fn),
        }
        txh = self._send(tx, gas_limit)
        log.info("approve %s for %s: %s", token_addr, spender, txh)
        return txh

    def sign_permit2(self, eip712: Dict[str, Any]) -> bytes:
        signed = self.account.sign_typed_data(full_message=eip712)
        return bytes(signed.signature)

    def submit_quote(self, quote: Dict[str, Any], wait: bool = True) -> str:
        """Sign the quote's Permit2 message (if any), append it to the calldata, and broadcast."""
        txq = quote.get("transaction") or {}
        if not txq.get("to") or not txq.get("data"):
            raise ValueError("quote has no transaction to submit")

        data = txq["data"]
        permit2 = quote.get("permit2") or {}
        if permit2.get("eip712"):
            data = append_signature(data, self.sign_permit2(permit2["eip712"]))

        tx: Dict[str, Any] = {
            "to": Web3.to_checksum_address(txq["to"]),
            "value": int(txq.get("value") or 0),
            "data": data,
        }
        if txq.get("gas"):
            tx["gas"] = int(txq["gas"])
        if txq.get("gasPrice"):
            tx["gasPrice"] = int(txq["gasPrice"])

        txh = self._send(tx, 300_000)
        if wait:
            receipt = self.w3.eth.wait_for_transaction_receipt(txh, timeout=self.receipt_timeout)
            log.info("swap %s mined in block %s (status=%s)", txh,
                     receipt.get("blockNumber"), receipt.get("status"))
        return txh
