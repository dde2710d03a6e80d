"""A tiny TCP arithmetic service and the caller that puts load on it."""

from __future__ import annotations

import json
import logging
import random
import socket
import threading
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

from conckit.loadgen_lib import CallResult, Caller, RawReq, RawResp, RetCode

_log = logging.getLogger(__name__)

DELIM = b"\n"
OPERATORS = ("+", "-", "*", "/")

_ACCEPT_POLL = 0.1


@dataclass
class ServerReq:
    """A calculation request."""

    id: int = 0
    operands: List[int] = field(default_factory=list)
    operator: str = ""


@dataclass
class ServerResp:
    """A calculation response; *err* carries the server's error message."""

    id: int = 0
    formula: str = ""
    result: int = 0
    err: Optional[str] = None


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b >= 0) else -quotient


def op(operands: Sequence[int], operator: str) -> int:
    """Fold *operands* with *operator*; an unknown operator gives 0.

    While the running result is 0 the next operand replaces it.
    """
    combine = {
        "+": lambda a, b: a + b,
        "-": lambda a, b: a - b,
        "*": lambda a, b: a * b,
        "/": _trunc_div,
    }.get(operator)
    if combine is None:
        return 0
    result = 0
    for value in operands:
        result = value if result == 0 else combine(result, value)
    return result


def gen_formula(
    operands: Sequence[int], operator: str, result: int, equal: bool
) -> str:
    """Render a formula such as ``1 + 2 = 3`` (or ``!=`` when not *equal*)."""
    left = f" {operator} ".join(str(v) for v in operands)
    relation = " = " if equal else " != "
    return f"{left}{relation}{result}"


def _delim_byte(delim: Union[bytes, int]) -> int:
    if isinstance(delim, int):
        return delim
    if len(delim) != 1:
        raise ValueError(f"delimiter must be a single byte: {delim!r}")
    return delim[0]


def read_until(sock: socket.socket, delim: Union[bytes, int] = DELIM) -> bytes:
    """Read from *sock* up to *delim*, which is consumed but not returned.

    Raises EOFError if the peer closes the connection first.
    """
    stop = _delim_byte(delim)
    buffer = bytearray()
    while True:
        chunk = sock.recv(1)
        if not chunk:
            raise EOFError("connection closed before delimiter")
        if chunk[0] == stop:
            return bytes(buffer)
        buffer += chunk


def write_with_delim(
    sock: socket.socket, content: bytes, delim: Union[bytes, int] = DELIM
) -> int:
    """Send *content* followed by *delim*; return the length of *content*."""
    sock.sendall(bytes(content) + bytes([_delim_byte(delim)]))
    return len(content)


def _split_address(addr: str) -> Tuple[str, int]:
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid address: {addr}")
    return host, int(port)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _load_object(data: bytes) -> dict:
    obj = json.loads(data.decode("utf-8"))
    if not isinstance(obj, dict):
        raise ValueError("JSON value is not an object")
    return obj


def _encode_req(req: ServerReq) -> bytes:
    body = {"ID": req.id, "Operands": list(req.operands), "Operator": req.operator}
    return json.dumps(body, separators=(",", ":")).encode("utf-8")


def _decode_req(data: bytes) -> ServerReq:
    obj = _load_object(data)
    req_id = obj.get("ID", 0)
    operands = obj.get("Operands") or []
    operator = obj.get("Operator", "")
    if not _is_int(req_id):
        raise ValueError("ID is not an integer")
    if not isinstance(operands, list) or not all(_is_int(v) for v in operands):
        raise ValueError("Operands is not a list of integers")
    if not isinstance(operator, str):
        raise ValueError("Operator is not a string")
    return ServerReq(id=req_id, operands=operands, operator=operator)


def _encode_resp(resp: ServerResp) -> bytes:
    body = {
        "ID": resp.id,
        "Formula": resp.formula,
        "Result": resp.result,
        "Err": resp.err,
    }
    return json.dumps(body, separators=(",", ":")).encode("utf-8")


def _decode_resp(data: bytes) -> ServerResp:
    obj = _load_object(data)
    resp_id = obj.get("ID", 0)
    formula = obj.get("Formula", "")
    result = obj.get("Result", 0)
    err = obj.get("Err")
    if not _is_int(resp_id) or not _is_int(result):
        raise ValueError("ID or Result is not an integer")
    if not isinstance(formula, str):
        raise ValueError("Formula is not a string")
    if err is not None and not isinstance(err, str):
        raise ValueError("Err is not a string")
    return ServerResp(id=resp_id, formula=formula, result=result, err=err)


class TCPComm(Caller):
    """Sends random calculation requests to a :class:`TCPServer`."""

    def __init__(self, addr: str) -> None:
        self._addr = addr

    @property
    def addr(self) -> str:
        return self._addr

    def build_req(self) -> RawReq:
        req_id = time.time_ns()
        sreq = ServerReq(
            id=req_id,
            operands=[random.randint(1, 1000), random.randint(1, 1000)],
            operator=random.choice(OPERATORS),
        )
        return RawReq(id=req_id, req=_encode_req(sreq))

    def call(self, req: bytes, timeout: float) -> bytes:
        with socket.create_connection(_split_address(self._addr), timeout) as conn:
            write_with_delim(conn, req, DELIM)
            return read_until(conn, DELIM)

    def check_resp(self, raw_req: RawReq, raw_resp: RawResp) -> CallResult:
        result = CallResult(id=raw_resp.id, req=raw_req, resp=raw_resp)
        try:
            sreq = _decode_req(raw_req.req)
        except ValueError:
            result.code = RetCode.FATAL_CALL
            text = raw_req.req.decode("utf-8", errors="replace")
            result.msg = f"Incorrectly formatted Req: {text}!\n"
            return result
        try:
            sresp = _decode_resp(raw_resp.resp)
        except ValueError:
            result.code = RetCode.ERROR_RESPONSE
            text = raw_resp.resp.decode("utf-8", errors="replace")
            result.msg = f"Incorrectly formatted Resp: {text}!\n"
            return result
        if sresp.id != sreq.id:
            result.code = RetCode.ERROR_RESPONSE
            result.msg = f"Inconsistent raw id! ({raw_req.id} != {raw_resp.id})\n"
            return result
        if sresp.err is not None:
            result.code = RetCode.ERROR_CALEE
            result.msg = f"Abnormal server: {sresp.err}!\n"
            return result
        if sresp.result != op(sreq.operands, sreq.operator):
            result.code = RetCode.ERROR_RESPONSE
            formula = gen_formula(sreq.operands, sreq.operator, sresp.result, False)
            result.msg = f"Incorrect result: {formula}!\n"
            return result
        result.code = RetCode.SUCCESS
        result.msg = f"Success. ({sresp.formula})"
        return result


def _handle_request(conn: socket.socket) -> None:
    sresp = ServerResp()
    err_msg = ""
    try:
        raw = read_until(conn, DELIM)
    except (OSError, EOFError) as exc:
        err_msg = f"Server: Req Read Error: {exc}"
    else:
        try:
            sreq = _decode_req(raw)
        except ValueError as exc:
            err_msg = f"Server: Req Unmarshal Error: {exc}"
        else:
            sresp.id = sreq.id
            try:
                sresp.result = op(sreq.operands, sreq.operator)
            except ZeroDivisionError as exc:
                err_msg = f"Server: Req Calculation Error: {exc}"
            else:
                sresp.formula = gen_formula(
                    sreq.operands, sreq.operator, sresp.result, True
                )
    if err_msg:
        sresp.err = err_msg
    try:
        write_with_delim(conn, _encode_resp(sresp), DELIM)
    except OSError as exc:
        _log.error("Server: Resp Write error: %s", exc)


class TCPServer:
    """Answers calculation requests, one request per connection."""

    def __init__(self) -> None:
        self._listener: Optional[socket.socket] = None
        self._active = False
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        return self._active

    @property
    def address(self) -> Optional[str]:
        """The bound ``host:port`` while listening, else None."""
        listener = self._listener
        if not self._active or listener is None:
            return None
        host, port = listener.getsockname()[:2]
        return f"{host}:{port}"

    def listen(self, addr: str) -> None:
        """Start serving on *addr*; does nothing if already serving."""
        with self._lock:
            if self._active:
                return
            listener = socket.create_server(_split_address(addr))
            listener.settimeout(_ACCEPT_POLL)
            self._listener = listener
            self._active = True
        threading.Thread(target=self._accept_loop, args=(listener,), daemon=True).start()

    def _accept_loop(self, listener: socket.socket) -> None:
        while self._active:
            try:
                conn, _ = listener.accept()
            except socket.timeout:
                continue
            except OSError as exc:
                if self._active:
                    _log.error("Server: Request Acception Error: %s", exc)
                    continue
                _log.warning(
                    "Server: Broken acception because of closed network connection."
                )
                break
            conn.settimeout(None)
            threading.Thread(
                target=self._serve_connection, args=(conn,), daemon=True
            ).start()

    @staticmethod
    def _serve_connection(conn: socket.socket) -> None:
        with conn:
            _handle_request(conn)

    def close(self) -> bool:
        """Stop serving; return False if the server was not serving."""
        with self._lock:
            if not self._active:
                return False
            self._active = False
            listener, self._listener = self._listener, None
        if listener is not None:
            listener.close()
        return True

    def __enter__(self) -> "TCPServer":
        return self

    def __exit__(self, *args) -> None:
        self.close()