import pytest

from scrollswap.ledger import Chain
from scrollswap.router_v3 import SimulatedRouter
from scrollswap.settlement import SwapSettlement

TOKEN_A    = "0x" + "aa" * 20
TOKEN_B    = "0x" + "bb" * 20
ROUTER     = "0x" + "01" * 20
SETTLEMENT = "0x" + "02" * 20
USER       = "0x" + "03" * 20
RECEIVER   = "0x" + "04" * 20
NOW        = 1_700_000_000


class Env:
    """Chain with two tokens, a funded router and a settlement."""

    def __init__(self, router_out: int = 97):
        self.token_a, self.token_b = TOKEN_A, TOKEN_B
        self.user, self.receiver = USER, RECEIVER
        self.router_addr, self.settlement_addr = ROUTER, SETTLEMENT
        self.now = NOW
        self.chain = Chain(timestamp=NOW)
        self.a = self.chain.deploy_token(TOKEN_A, "TKA")
        self.b = self.chain.deploy_token(TOKEN_B, "TKB")
        self.a.mint(USER, 100)
        self.b.mint(ROUTER, 1_000)
        self.router_out = router_out
        self.router = SimulatedRouter(self.chain, ROUTER, quote=lambda p: self.router_out)
        self.settlement = SwapSettlement(self.chain, self.router, SETTLEMENT)

    def snapshot(self):
        return {tok.symbol: tok.snapshot() for tok in self.chain.tokens()}


@pytest.fixture
def env():
    return Env()
