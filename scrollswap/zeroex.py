# scrollswap/zeroex.py — 0x Swap API client (sources, permit2 price/quote)

from __future__ import annotations
import logging
from typing import Any, Dict, List, Mapping, Optional

import requests

from .config import ZERO_EX_API, ZERO_EX_API_VERSION
from .errors import ZeroExAPIError

log = logging.getLogger(__name__)

SOURCES_PATH = "/swap/v1/sources"
PRICE_PATH = "/swap/permit2/price"
QUOTE_PATH = "/swap/permit2/quote"


def request_headers(api_key: str) -> Dict[str, str]:
    return {
        "Content-Type": "application/json",
        "0x-api-key": api_key,
        "0x-version": ZERO_EX_API_VERSION,
    }


def swap_params(chain_id: int, sell_token: str, buy_token: str, sell_amount: int, taker: str,
                affiliate_fee_bps: int, surplus_collection: bool) -> Dict[str, str]:
    """Query parameters shared by /price and /quote (insertion order is kept)."""
    return {
        "chainId": str(chain_id),
        "sellToken": sell_token,
        "buyToken": buy_token,
        "sellAmount": str(int(sell_amount)),
        "taker": taker,
        "affiliateFee": str(int(affiliate_fee_bps)),
        "surplusCollection": "true" if surplus_collection else "false",
    }


class ZeroExClient:
    """
    Thin blocking client. One request at a time, no retries; any transport
    error, non-2xx status or non-JSON body raises ZeroExAPIError.
    """

    def __init__(self, api_key: str, api_url: str = ZERO_EX_API, timeout: float = 20.0,
                 session: Optional[requests.Session] = None) -> None:
        self._api = api_url.rstrip("/")
        self._timeout = timeout
        self._http = session or requests.Session()
        self._http.headers.update(request_headers(api_key))

    def close(self) -> None:
        self._http.close()

    def _get(self, path: str, params: Mapping[str, str]) -> Dict[str, Any]:
        url = f"{self._api}{path}"
        try:
            r = self._http.get(url, params=dict(params), timeout=self._timeout)
        except requests.RequestException as e:
            raise ZeroExAPIError(f"request failed: {e}", url=url) from e
        if not 200 <= r.status_code < 300:
            raise ZeroExAPIError("0x API error", url=url, status_code=r.status_code, body=r.text or "")
        try:
            data = r.json()
        except ValueError as e:
            raise ZeroExAPIError("0x API returned a non-JSON body", url=url,
                                 status_code=r.status_code, body=r.text or "") from e
        log.debug("GET %s -> %s", path, r.status_code)
        return data

    def get_sources(self, chain_id: int) -> List[str]:
        data = self._get(SOURCES_PATH, {"chainId": str(chain_id)})
        sources = data.get("sources", data) if isinstance(data, dict) else data
        if isinstance(sources, dict):
            return list(sources.keys())
        if isinstance(sources, list):
            return [str(s) for s in sources]
        raise ZeroExAPIError(f"unexpected sources payload: {type(sources).__name__}")

    def get_price(self, params: Mapping[str, str]) -> Dict[str, Any]:
        return self._get(PRICE_PATH, params)

    def get_quote(self, params: Mapping[str, str]) -> Dict[str, Any]:
        return self._get(QUOTE_PATH, params)
