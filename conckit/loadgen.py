"""A load generator that calls a target at a fixed rate and reports every outcome."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterator, Optional

from conckit.loadgen_lib import (
    CallResult,
    Caller,
    GeneratorStatus,
    RawReq,
    RawResp,
    RetCode,
    TicketPool,
)

_log = logging.getLogger(__name__)

_MAX_INT32 = 2**31 - 1
_NS_PER_SECOND = 1_000_000_000


class ResultChannel:
    """A bounded, closable queue of call results.

    Producers never block: :meth:`offer` refuses a result when the channel is
    full or closed. Iterating yields results until the channel is closed and
    drained.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError(f"Invalid capacity: {capacity}")
        self._capacity = capacity
        self._items: Deque[CallResult] = deque()
        self._closed = False
        self._cond = threading.Condition()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def offer(self, result: CallResult) -> bool:
        """Queue *result* unless the channel is full or closed; return whether it was queued."""
        with self._cond:
            if self._closed or len(self._items) >= self._capacity:
                return False
            self._items.append(result)
            self._cond.notify_all()
            return True

    def close(self) -> None:
        """Close the channel; queued results can still be read."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def __iter__(self) -> Iterator[CallResult]:
        while True:
            with self._cond:
                self._cond.wait_for(lambda: self._items or self._closed)
                if not self._items:
                    return
                item = self._items.popleft()
            yield item

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)


@dataclass
class ParamSet:
    """Parameters of a load generator; *timeout* and *duration* are in seconds."""

    caller: Optional[Caller] = None
    timeout: float = 0.0
    lps: int = 0
    duration: float = 0.0
    result_ch: Optional[ResultChannel] = None

    def check(self) -> None:
        """Raise ValueError naming every invalid field."""
        problems = []
        if self.caller is None:
            problems.append("Invalid caller!")
        if self.timeout <= 0:
            problems.append("Invalid timeout!")
        if self.lps <= 0:
            problems.append("Invalid lps(load per second)!")
        if self.duration <= 0:
            problems.append("Invalid duration!")
        if self.result_ch is None:
            problems.append("Invalid result channel!")
        if problems:
            message = " ".join(problems)
            _log.info("Checking the parameters...NOT passed! (%s)", message)
            raise ValueError(message)
        _log.info(
            "Checking the parameters...Passed. (timeout=%ss, lps=%d, duration=%ss)",
            self.timeout,
            self.lps,
            self.duration,
        )


class _CallState:
    """Settles a call once: either it completed or it timed out."""

    def __init__(self) -> None:
        self._settled = False
        self._lock = threading.Lock()

    def settle(self) -> bool:
        with self._lock:
            if self._settled:
                return False
            self._settled = True
            return True


class LoadGenerator:
    """Calls a :class:`Caller` *lps* times a second for *duration* seconds.

    Every call's outcome is offered to the result channel, which is closed
    when the generator stops.
    """

    def __init__(self, params: ParamSet) -> None:
        _log.info("New a load generator...")
        params.check()
        self._caller = params.caller
        self._timeout = params.timeout
        self._lps = params.lps
        self._duration = params.duration
        self._result_ch = params.result_ch
        self._state_lock = threading.Lock()
        self._status = GeneratorStatus.ORIGINAL
        self._call_count = 0
        self._cancel = threading.Event()
        self._stopped = threading.Event()
        self._deadline = 0.0

        interval_ns = _NS_PER_SECOND // self._lps
        if interval_ns == 0:
            raise ValueError(f"Invalid lps(load per second)! ({self._lps})")
        timeout_ns = round(self._timeout * _NS_PER_SECOND)
        self._concurrency = min(timeout_ns // interval_ns + 1, _MAX_INT32)
        self._tickets = TicketPool(self._concurrency)
        _log.info(
            "Initializing the load generator...Done. (concurrency=%d)",
            self._concurrency,
        )

    @property
    def concurrency(self) -> int:
        """Most calls that may be in flight at once."""
        return self._concurrency

    @property
    def status(self) -> GeneratorStatus:
        with self._state_lock:
            return self._status

    @property
    def call_count(self) -> int:
        """Calls made since the last start."""
        with self._state_lock:
            return self._call_count

    def _compare_and_set(self, old: GeneratorStatus, new: GeneratorStatus) -> bool:
        with self._state_lock:
            if self._status != old:
                return False
            self._status = new
            return True

    def start(self) -> bool:
        """Start generating load; return False unless the generator was new or stopped."""
        _log.info("Starting load generator...")
        with self._state_lock:
            if self._status not in (GeneratorStatus.ORIGINAL, GeneratorStatus.STOPPED):
                return False
            self._status = GeneratorStatus.STARTING
        interval = 1.0 / self._lps
        _log.info("Setting throttle (%ss)...", interval)
        self._cancel = threading.Event()
        self._stopped = threading.Event()
        self._deadline = time.monotonic() + self._duration
        with self._state_lock:
            self._call_count = 0
            self._status = GeneratorStatus.STARTED
        threading.Thread(target=self._run, args=(interval,), daemon=True).start()
        return True

    def stop(self) -> bool:
        """Stop a running generator and wait until it has stopped."""
        if not self._compare_and_set(GeneratorStatus.STARTED, GeneratorStatus.STOPPING):
            return False
        self._cancel.set()
        self._stopped.wait()
        return True

    def _run(self, interval: float) -> None:
        _log.info("Generating loads...")
        self._gen_load(interval)
        _log.info("Stopped. (call count: %d)", self.call_count)

    def _stop_cause(self) -> Optional[str]:
        if self._cancel.is_set():
            return "context canceled"
        if time.monotonic() >= self._deadline:
            return "context deadline exceeded"
        return None

    def _await_tick(self, next_tick: float) -> Optional[str]:
        while True:
            cause = self._stop_cause()
            if cause is not None:
                return cause
            now = time.monotonic()
            if now >= next_tick:
                return None
            self._cancel.wait(min(next_tick, self._deadline) - now)

    def _gen_load(self, interval: float) -> None:
        next_tick = time.monotonic() + interval
        while True:
            cause = self._stop_cause()
            if cause is not None:
                self._prepare_to_stop(cause)
                return
            self._async_call()
            cause = self._await_tick(next_tick)
            if cause is not None:
                self._prepare_to_stop(cause)
                return
            # Missed ticks are dropped rather than replayed in a burst.
            next_tick = max(next_tick + interval, time.monotonic())

    def _prepare_to_stop(self, cause: str) -> None:
        _log.info("Prepare to stop load generator (cause: %s)...", cause)
        self._compare_and_set(GeneratorStatus.STARTED, GeneratorStatus.STOPPING)
        _log.info("Closing result channel...")
        self._result_ch.close()
        with self._state_lock:
            self._status = GeneratorStatus.STOPPED
        self._stopped.set()

    def _call_one(self, raw_req: Optional[RawReq]) -> RawResp:
        with self._state_lock:
            self._call_count += 1
        if raw_req is None:
            return RawResp(id=-1, err=ValueError("Invalid raw request."))
        start = time.perf_counter()
        try:
            resp = self._caller.call(raw_req.req, self._timeout)
        except Exception as exc:  # noqa: BLE001
            elapsed = time.perf_counter() - start
            return RawResp(
                id=raw_req.id,
                err=RuntimeError(f"Sync Call Error: {exc}."),
                elapse=elapsed,
            )
        return RawResp(id=raw_req.id, resp=resp, elapse=time.perf_counter() - start)

    def _async_call(self) -> None:
        self._tickets.take()
        threading.Thread(target=self._call_in_background, daemon=True).start()

    def _call_in_background(self) -> None:
        try:
            raw_req = self._caller.build_req()
            state = _CallState()

            def on_timeout() -> None:
                if not state.settle():
                    return
                self._send_result(
                    CallResult(
                        id=raw_req.id,
                        req=raw_req,
                        code=RetCode.WARNING_CALL_TIMEOUT,
                        msg=f"Timeout! (expected: < {self._timeout}s)",
                        elapse=self._timeout,
                    )
                )

            timer = threading.Timer(self._timeout, on_timeout)
            timer.daemon = True
            timer.start()
            raw_resp = self._call_one(raw_req)
            if not state.settle():
                return
            timer.cancel()
            if raw_resp.err is not None:
                result = CallResult(
                    id=raw_resp.id,
                    req=raw_req,
                    code=RetCode.ERROR_CALL,
                    msg=str(raw_resp.err),
                    elapse=raw_resp.elapse,
                )
            else:
                result = self._caller.check_resp(raw_req, raw_resp)
                result.elapse = raw_resp.elapse
            self._send_result(result)
        except Exception as exc:  # noqa: BLE001
            message = f"Async Call Panic! (error: {exc})"
            _log.error(message)
            self._send_result(
                CallResult(id=-1, code=RetCode.FATAL_CALL, msg=message)
            )
        finally:
            self._tickets.release()

    def _send_result(self, result: CallResult) -> bool:
        if self.status != GeneratorStatus.STARTED:
            self._log_ignored(result, "stopped load generator")
            return False
        if not self._result_ch.offer(result):
            self._log_ignored(result, "full result channel")
            return False
        return True

    @staticmethod
    def _log_ignored(result: CallResult, cause: str) -> None:
        _log.warning(
            "Ignored result: ID=%d, Code=%d, Msg=%s, Elapse=%ss. (cause: %s)",
            result.id,
            result.code,
            result.msg,
            result.elapse,
            cause,
        )