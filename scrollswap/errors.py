# scrollswap/errors.py — exception hierarchy shared by the settlement model and the 0x script

from __future__ import annotations
from typing import Iterable, Optional


class ScrollSwapError(Exception):
    pass


# ---------------------------------------------------------------------
# Reverts (in-memory chain model)
# ---------------------------------------------------------------------
class Revert(ScrollSwapError):
    """
    A reverted call. `reason` is the revert string a caller would see
    on-chain; the enclosing atomic() scope has already rolled back.
    """
    reason = "Revert"

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        msg = f"{self.reason}: {detail}" if detail else self.reason
        super().__init__(msg)


class TransferFailed(Revert):
    reason = "TransferFailed"


class ApprovalFailed(Revert):
    reason = "ApprovalFailed"


class InsufficientOutput(Revert):
    reason = "InsufficientOutput"

    def __init__(self, amount_out: int, min_output_amount: int) -> None:
        self.amount_out = int(amount_out)
        self.min_output_amount = int(min_output_amount)
        super().__init__(f"got {self.amount_out}, need >= {self.min_output_amount}")


class InvalidRequest(Revert):
    reason = "InvalidRequest"


class DeadlineExpired(Revert):
    reason = "Transaction too old"


# ---------------------------------------------------------------------
# Script side
# ---------------------------------------------------------------------
class ConfigError(ScrollSwapError):
    """All missing/invalid settings, reported once."""

    def __init__(self, problems: Iterable[str]) -> None:
        self.problems = list(problems)
        super().__init__("Invalid configuration: " + "; ".join(self.problems))


class ZeroExAPIError(ScrollSwapError):
    def __init__(self, message: str, url: str = "", status_code: Optional[int] = None,
                 body: str = "") -> None:
        self.url = url
        self.status_code = status_code
        self.body = body[:500]
        text = message
        if status_code is not None:
            text = f"{message} (HTTP {status_code})"
        if self.body:
            text += f": {self.body}"
        super().__init__(text)
