# scrollswap/metrics.py — derived metrics for a firm 0x quote
# route fill percentages, buy/sell taxes, affiliate fee, collected surplus

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple


def _int(x: Any) -> int:
    try:
        return int(str(x))
    except (TypeError, ValueError):
        return 0

def _dec(x: Any) -> Decimal:
    try:
        return Decimal(str(x))
    except (InvalidOperation, ValueError):
        return Decimal(0)

def bps_to_pct(bps: Any) -> str:
    """'150' -> '1.50'"""
    return f"{Decimal(_int(bps)) / 100:.2f}"


@dataclass
class TokenTax:
    buy_tax_bps: int = 0
    sell_tax_bps: int = 0

    @property
    def taxed(self) -> bool:
        return self.buy_tax_bps > 0 or self.sell_tax_bps > 0


@dataclass
class SwapMetrics:
    fills: List[Tuple[str, int]] = field(default_factory=list)
    buy_token_tax: Optional[TokenTax] = None
    sell_token_tax: Optional[TokenTax] = None
    affiliate_fee_bps: Optional[int] = None
    trade_surplus: Optional[Decimal] = None

    @classmethod
    def from_quote(cls, quote: Dict[str, Any]) -> "SwapMetrics":
        m = cls()
        route = quote.get("route") or {}
        for fill in route.get("fills") or []:
            m.fills.append((str(fill.get("source", "?")), _int(fill.get("proportionBps"))))

        meta = quote.get("tokenMetadata") or {}
        if meta:
            for key, attr in (("buyToken", "buy_token_tax"), ("sellToken", "sell_token_tax")):
                t = meta.get(key) or {}
                setattr(m, attr, TokenTax(_int(t.get("buyTaxBps")), _int(t.get("sellTaxBps"))))

        # "0" is reported as a fee; only an absent field is skipped
        if quote.get("affiliateFeeBps") not in (None, ""):
            m.affiliate_fee_bps = _int(quote["affiliateFeeBps"])
        if quote.get("tradeSurplus") is not None:
            m.trade_surplus = _dec(quote["tradeSurplus"])
        return m

    def liquidity_lines(self) -> List[str]:
        if not self.fills:
            return []
        out = [f"{len(self.fills)} Liquidity Sources:"]
        out += [f"{source}: {bps_to_pct(bps)}%" for source, bps in self.fills]
        return out

    def tax_lines(self) -> List[str]:
        out: List[str] = []
        for label, tax in (("Buy Token", self.buy_token_tax), ("Sell Token", self.sell_token_tax)):
            if tax is not None and tax.taxed:
                out.append(f"{label} Buy Tax: {bps_to_pct(tax.buy_tax_bps)}%")
                out.append(f"{label} Sell Tax: {bps_to_pct(tax.sell_tax_bps)}%")
        return out

    def fee_lines(self) -> List[str]:
        out: List[str] = []
        if self.affiliate_fee_bps is not None:
            out.append(f"Affiliate Fee: {bps_to_pct(self.affiliate_fee_bps)}%")
        if self.trade_surplus is not None and self.trade_surplus > 0:
            out.append(f"Collected Trade Surplus: {self.trade_surplus}")
        return out

    def lines(self) -> List[str]:
        return self.liquidity_lines() + self.tax_lines() + self.fee_lines()
