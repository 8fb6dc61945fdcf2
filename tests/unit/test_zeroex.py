"""
Unit tests for the 0x Swap API client (HTTP mocked at the session).
"""

from unittest.mock import MagicMock

import pytest
import requests

from scrollswap.errors import ZeroExAPIError
from scrollswap.zeroex import (
    PRICE_PATH,
    QUOTE_PATH,
    SOURCES_PATH,
    ZeroExClient,
    request_headers,
    swap_params,
)


def _response(status=200, payload=None, text="", json_error=False):
    r = MagicMock()
    r.status_code = status
    r.text = text
    if json_error:
        r.json.side_effect = ValueError("no json")
    else:
        r.json.return_value = payload
    return r


@pytest.fixture
def session():
    s = MagicMock()
    s.headers = {}
    return s


def test_headers_set_on_session(session):
    ZeroExClient("k", session=session)
    assert session.headers == {
        "Content-Type": "application/json",
        "0x-api-key": "k",
        "0x-version": "v2",
    }
    assert request_headers("k") == session.headers


def test_sources_keyed_by_chain(session):
    session.get.return_value = _response(payload={"sources": {"Uniswap_V3": {}, "Ambient": {}}})
    client = ZeroExClient("k", api_url="https://api.0x.org/", timeout=5, session=session)

    assert client.get_sources(534352) == ["Uniswap_V3", "Ambient"]
    session.get.assert_called_once_with(
        "https://api.0x.org" + SOURCES_PATH, params={"chainId": "534352"}, timeout=5)


def test_sources_list_payload(session):
    session.get.return_value = _response(payload={"sources": ["Uniswap_V3", "Nuri"]})
    assert ZeroExClient("k", session=session).get_sources(1) == ["Uniswap_V3", "Nuri"]


def test_price_and_quote_paths(session):
    session.get.return_value = _response(payload={"ok": True})
    client = ZeroExClient("k", session=session)
    params = swap_params(534352, "0xsell", "0xbuy", 10**17, "0xtaker", 100, True)

    client.get_price(params)
    client.get_quote(params)

    urls = [c.args[0] for c in session.get.call_args_list]
    assert urls == ["https://api.0x.org" + PRICE_PATH, "https://api.0x.org" + QUOTE_PATH]
    for c in session.get.call_args_list:
        assert c.kwargs["params"] == params


def test_swap_params_shape():
    p = swap_params(534352, "0xsell", "0xbuy", 10**17, "0xtaker", 100, True)
    assert list(p) == ["chainId", "sellToken", "buyToken", "sellAmount", "taker",
                       "affiliateFee", "surplusCollection"]
    assert p["sellAmount"] == "100000000000000000"
    assert p["affiliateFee"] == "100"
    assert p["surplusCollection"] == "true"
    assert swap_params(1, "a", "b", 1, "t", 0, False)["surplusCollection"] == "false"


def test_http_error_raises(session):
    session.get.return_value = _response(status=401, text='{"message":"Invalid API key"}')
    with pytest.raises(ZeroExAPIError) as exc:
        ZeroExClient("bad", session=session).get_price({})
    assert exc.value.status_code == 401
    assert "Invalid API key" in str(exc.value)
    assert exc.value.url.endswith(PRICE_PATH)


def test_non_json_raises(session):
    session.get.return_value = _response(text="<html>", json_error=True)
    with pytest.raises(ZeroExAPIError):
        ZeroExClient("k", session=session).get_quote({})


def test_transport_error_raises(session):
    session.get.side_effect = requests.ConnectionError("down")
    with pytest.raises(ZeroExAPIError) as exc:
        ZeroExClient("k", session=session).get_sources(1)
    assert exc.value.status_code is None
    assert "down" in str(exc.value)


def test_unexpected_sources_payload(session):
    session.get.return_value = _response(payload={"sources": 42})
    with pytest.raises(ZeroExAPIError):
        ZeroExClient("k", session=session).get_sources(1)
