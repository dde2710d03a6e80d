"""A TCP service that answers integers with their cube roots, and its client."""

from __future__ import annotations

import argparse
import math
import random
import re
import socket
import sys
import threading
import time
from typing import List, Optional, Tuple

DELIMITER = b"\t"
SERVER_ADDRESS = "127.0.0.1:8085"

_INT32_MIN, _INT32_MAX = -(2**31), 2**31 - 1
_INT64_MIN, _INT64_MAX = -(2**63), 2**63 - 1
_INTEGER = re.compile(r"[+-]?[0-9]+")
_READ_TIMEOUT = 10.0
_ACCEPT_POLL = 0.2
_DIAL_TIMEOUT = 2.0
_CLIENT_DEADLINE = 0.005
_REQUEST_NUMBER = 5


def _print_log(role: str, sn: int, message: str) -> None:
    print(f"{role}[{sn}]: {message}", flush=True)


def _server_log(message: str) -> None:
    _print_log("Server", 0, message)


def _client_log(sn: int, message: str) -> None:
    _print_log("Client", sn, message)


def str_to_int32(text: str) -> int:
    """Parse *text* as a decimal 32-bit integer; raise ValueError otherwise."""
    if not _INTEGER.fullmatch(text):
        raise ValueError(f'"{text}" is not integer')
    number = int(text)
    if not _INT64_MIN <= number <= _INT64_MAX:
        raise ValueError(f'"{text}" is not integer')
    if not _INT32_MIN <= number <= _INT32_MAX:
        raise ValueError(f"{number} is not 32-bit integer")
    return number


def cube_root(value: int) -> float:
    """Return the real cube root of *value*."""
    magnitude = abs(value)
    root = magnitude ** (1.0 / 3.0)
    nearest = round(root)
    if nearest**3 == magnitude:
        root = float(nearest)
    return math.copysign(root, value) if value else 0.0


def read_message(sock: socket.socket) -> str:
    """Read one tab-terminated message; raise EOFError if the peer closes first."""
    buffer = bytearray()
    while True:
        chunk = sock.recv(1)
        if not chunk:
            raise EOFError("connection closed by peer")
        if chunk == DELIMITER:
            return buffer.decode("utf-8", errors="replace")
        buffer += chunk


def write_message(sock: socket.socket, content: str) -> int:
    """Send *content* and the delimiter; return the number of bytes sent."""
    payload = content.encode("utf-8") + DELIMITER
    sock.sendall(payload)
    return len(payload)


def handle_connection(sock: socket.socket) -> None:
    """Answer requests on *sock* until the peer closes it or a read fails."""
    with sock:
        while True:
            sock.settimeout(_READ_TIMEOUT)
            try:
                request = read_message(sock)
            except EOFError:
                _server_log("The connection is closed by another side.")
                break
            except OSError as exc:
                _server_log(f"Read Error: {exc}")
                break
            _server_log(f"Received request: {request}.")
            try:
                number = str_to_int32(request)
            except ValueError as exc:
                try:
                    written = write_message(sock, str(exc))
                except OSError as write_exc:
                    _server_log(f"Write Error: {write_exc}")
                else:
                    _server_log(
                        f"Sent error message (written {written} bytes): {exc}."
                    )
                continue
            response = f"The cube root of {number} is {cube_root(number):f}."
            try:
                written = write_message(sock, response)
            except OSError as exc:
                _server_log(f"Write Error: {exc}")
                written = 0
            _server_log(f"Sent response (written {written} bytes): {response}.")


def _address_text(address) -> str:
    host, port = address[:2]
    return f"{host}:{port}"


def serve(listener: socket.socket) -> None:
    """Accept connections on *listener* until it is closed, one thread each."""
    _server_log(
        f"Got listener for the server. (local address: "
        f"{_address_text(listener.getsockname())})"
    )
    listener.settimeout(_ACCEPT_POLL)
    while listener.fileno() != -1:
        try:
            conn, remote = listener.accept()
        except socket.timeout:
            continue
        except OSError as exc:
            if listener.fileno() == -1:
                break
            _server_log(f"Accept Error: {exc}")
            continue
        conn.settimeout(None)
        _server_log(
            "Established a connection with a client application. "
            f"(remote address: {_address_text(remote)})"
        )
        threading.Thread(target=handle_connection, args=(conn,), daemon=True).start()


def _split_address(address: str) -> Tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid address: {address}")
    return host, int(port)


def _apply_deadline(sock: socket.socket, deadline: float) -> None:
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise socket.timeout("i/o timeout")
    sock.settimeout(remaining)


def run_client(client_id: int, address: str) -> List[str]:
    """Send five random requests to *address* and return the responses received.

    All I/O after connecting shares one short deadline, so a slow server
    yields fewer than five responses.
    """
    try:
        conn = socket.create_connection(_split_address(address), _DIAL_TIMEOUT)
    except OSError as exc:
        _client_log(client_id, f"Dial Error: {exc}")
        return []
    responses: List[str] = []
    with conn:
        _client_log(
            client_id,
            "Connected to server. (remote address: "
            f"{_address_text(conn.getpeername())}, local address: "
            f"{_address_text(conn.getsockname())})",
        )
        time.sleep(0.2)
        deadline = time.monotonic() + _CLIENT_DEADLINE
        for _ in range(_REQUEST_NUMBER):
            request = random.randrange(2**31)
            try:
                _apply_deadline(conn, deadline)
                written = write_message(conn, str(request))
            except OSError as exc:
                _client_log(client_id, f"Write Error: {exc}")
                continue
            _client_log(client_id, f"Sent request (written {written} bytes): {request}.")
        for _ in range(_REQUEST_NUMBER):
            try:
                _apply_deadline(conn, deadline)
                response = read_message(conn)
            except EOFError:
                _client_log(client_id, "The connection is closed by another side.")
                break
            except OSError as exc:
                _client_log(client_id, f"Read Error: {exc}")
                break
            _client_log(client_id, f"Received response: {response}.")
            responses.append(response)
    return responses


def main(argv: Optional[List[str]] = None) -> int:
    """Run the server and one client against it."""
    parser = argparse.ArgumentParser(description="Cube-root TCP server and client.")
    parser.add_argument("--address", default=SERVER_ADDRESS, help="host:port to serve on")
    args = parser.parse_args(argv)
    try:
        listener = socket.create_server(_split_address(args.address))
    except (OSError, ValueError) as exc:
        _server_log(f"Listen Error: {exc}")
        return 1
    server = threading.Thread(target=serve, args=(listener,), daemon=True)
    server.start()
    time.sleep(0.5)
    run_client(1, _address_text(listener.getsockname()))
    listener.close()
    server.join(2 * _ACCEPT_POLL + 1)
    return 0


if __name__ == "__main__":
    sys.exit(main())