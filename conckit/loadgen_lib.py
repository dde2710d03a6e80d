"""Core types shared by load generators: requests, results, callers and tickets."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional


@dataclass
class RawReq:
    """A request as raw bytes, tagged with an id."""

    id: int = 0
    req: bytes = b""


@dataclass
class RawResp:
    """A raw response, or the error that replaced it; *elapse* is in seconds."""

    id: int = 0
    resp: bytes = b""
    err: Optional[BaseException] = None
    elapse: float = 0.0


class RetCode(IntEnum):
    """Result codes; 1 to 1000 are left to the callee."""

    SUCCESS = 0
    WARNING_CALL_TIMEOUT = 1001
    ERROR_CALL = 2001
    ERROR_RESPONSE = 2002
    ERROR_CALEE = 2003
    FATAL_CALL = 3001


_RET_CODE_PLAIN = {
    RetCode.SUCCESS: "Success",
    RetCode.WARNING_CALL_TIMEOUT: "Call Timeout Warning",
    RetCode.ERROR_CALL: "Call Error",
    RetCode.ERROR_RESPONSE: "Response Error",
    RetCode.ERROR_CALEE: "Callee Error",
    RetCode.FATAL_CALL: "Call Fatal Error",
}


def ret_code_plain(code: int) -> str:
    """Return a short English description of a result code."""
    return _RET_CODE_PLAIN.get(code, "Unknown result code")


@dataclass
class CallResult:
    """The outcome of one call; *elapse* is in seconds."""

    id: int = 0
    req: RawReq = field(default_factory=RawReq)
    resp: RawResp = field(default_factory=RawResp)
    code: int = RetCode.SUCCESS
    msg: str = ""
    elapse: float = 0.0


class GeneratorStatus(IntEnum):
    """Life-cycle states of a load generator."""

    ORIGINAL = 0
    STARTING = 1
    STARTED = 2
    STOPPING = 3
    STOPPED = 4


class Caller(ABC):
    """Builds requests, sends them to the system under load and checks responses."""

    @abstractmethod
    def build_req(self) -> RawReq:
        """Build a new request."""

    @abstractmethod
    def call(self, req: bytes, timeout: float) -> bytes:
        """Send *req* and return the raw response; *timeout* is in seconds."""

    @abstractmethod
    def check_resp(self, raw_req: RawReq, raw_resp: RawResp) -> CallResult:
        """Judge *raw_resp* against *raw_req*."""


class TicketPool:
    """A fixed number of tickets limiting how many calls run at once.

    ``take`` blocks while no ticket is left; ``release`` blocks while every
    ticket is already back in the pool. Used as a context manager it holds
    one ticket for the duration of the block.
    """

    def __init__(self, total: int) -> None:
        if total <= 0:
            raise ValueError(
                f"The goroutine ticket pool can NOT be initialized! (total={total})"
            )
        self._total = total
        self._remainder = total
        self._cond = threading.Condition()

    @property
    def active(self) -> bool:
        return True

    @property
    def total(self) -> int:
        return self._total

    @property
    def remainder(self) -> int:
        with self._cond:
            return self._remainder

    def take(self) -> None:
        """Take a ticket, waiting for one if none is left."""
        with self._cond:
            self._cond.wait_for(lambda: self._remainder > 0)
            self._remainder -= 1
            self._cond.notify_all()

    def release(self) -> None:
        """Return a ticket, waiting while the pool is full."""
        with self._cond:
            self._cond.wait_for(lambda: self._remainder < self._total)
            self._remainder += 1
            self._cond.notify_all()

    def __enter__(self) -> "TicketPool":
        self.take()
        return self

    def __exit__(self, *args) -> None:
        self.release()