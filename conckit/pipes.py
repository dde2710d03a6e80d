"""Passing data between processes and threads through anonymous and in-memory pipes."""

from __future__ import annotations

import argparse
import os
import subprocess
import sys
import threading
from functools import partial
from typing import List, Optional, Sequence, Tuple

_READ_SIZE = 100


def read_command_output(args: Sequence[str], chunk_size: int = 5) -> bytes:
    """Run *args* and collect its standard output, *chunk_size* bytes at a time."""
    if chunk_size <= 0:
        raise ValueError(f"Invalid chunk size: {chunk_size}")
    with subprocess.Popen(list(args), stdout=subprocess.PIPE) as proc:
        chunks = list(iter(partial(proc.stdout.read1, chunk_size), b""))
    return b"".join(chunks)


def run_piped(first: Sequence[str], second: Sequence[str]) -> bytes:
    """Run *first*, feed its output to *second* and return the output of *second*.

    Raises CalledProcessError when either command exits with a non-zero status.
    """
    first_out = subprocess.run(
        list(first), stdout=subprocess.PIPE, check=True
    ).stdout
    return subprocess.run(
        list(second), input=first_out, stdout=subprocess.PIPE, check=True
    ).stdout


def file_based_pipe(data: bytes) -> Tuple[int, int]:
    """Write *data* into an OS pipe while a thread reads it once.

    The reader takes at most 100 bytes. Returns ``(written, read)`` byte counts.
    """
    read_fd, write_fd = os.pipe()
    received: List[int] = [0]

    def reader() -> None:
        try:
            received[0] = len(os.read(read_fd, _READ_SIZE))
        finally:
            os.close(read_fd)

    thread = threading.Thread(target=reader, daemon=True)
    thread.start()
    written = 0
    view = memoryview(bytes(data))
    try:
        while written < len(view):
            written += os.write(write_fd, view[written:])
    except BrokenPipeError:
        pass
    finally:
        os.close(write_fd)
    thread.join()
    return written, received[0]


class _SyncPipe:
    """A synchronous in-memory pipe: a write returns once a reader has taken the data."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._pending = memoryview(b"")
        self._offset = 0
        self._writer_closed = False
        self._reader_closed = False

    def write(self, data: bytes) -> int:
        with self._cond:
            if self._reader_closed or self._writer_closed:
                raise BrokenPipeError("write on closed pipe")
            self._pending = memoryview(bytes(data))
            self._offset = 0
            self._cond.notify_all()
            self._cond.wait_for(
                lambda: self._offset >= len(self._pending) or self._reader_closed
            )
            written = self._offset
            self._pending = memoryview(b"")
            self._offset = 0
            self._cond.notify_all()
            return written

    def read(self, size: int) -> bytes:
        with self._cond:
            self._cond.wait_for(
                lambda: self._offset < len(self._pending)
                or self._reader_closed
                or self._writer_closed
            )
            if self._offset >= len(self._pending):
                return b""
            chunk = bytes(self._pending[self._offset : self._offset + size])
            self._offset += len(chunk)
            self._cond.notify_all()
            return chunk

    def close_writer(self) -> None:
        with self._cond:
            self._writer_closed = True
            self._cond.notify_all()

    def close_reader(self) -> None:
        with self._cond:
            self._reader_closed = True
            self._cond.notify_all()


def in_memory_pipe(data: bytes) -> Tuple[int, int]:
    """Hand *data* to a thread through a synchronous in-memory pipe.

    The reader takes at most 100 bytes once; the writer's count is what the
    reader consumed. Returns ``(written, read)`` byte counts.
    """
    pipe = _SyncPipe()
    received: List[int] = [0]

    def reader() -> None:
        try:
            received[0] = len(pipe.read(_READ_SIZE))
        finally:
            pipe.close_reader()

    thread = threading.Thread(target=reader, daemon=True)
    thread.start()
    try:
        written = pipe.write(data)
    except BrokenPipeError:
        written = 0
    finally:
        pipe.close_writer()
    thread.join()
    return written, received[0]


def main(argv: Optional[List[str]] = None) -> int:
    """Demonstrate command output pipes, command chaining and in-process pipes."""
    parser = argparse.ArgumentParser(description="Pipe demonstrations.")
    parser.add_argument("--pattern", default="pipes", help="what to grep for in ps output")
    args = parser.parse_args(argv)

    message = "My first command comes from conckit."
    print(f'Run command `echo -n "{message}"`: ')
    try:
        print(read_command_output(["echo", "-n", message]).decode(errors="replace"))
    except OSError as exc:
        print(f"Error: The command No.0 can not be startup: {exc}")
    print()

    print(f"Run command `ps aux | grep {args.pattern}`: ")
    try:
        output = run_piped(["ps", "aux"], ["grep", args.pattern])
    except (OSError, subprocess.SubprocessError) as exc:
        print(f"Error: {exc}")
    else:
        print(output.decode(errors="replace"))

    alphabet = bytes(range(ord("A"), ord("Z") + 1))
    written, read = file_based_pipe(alphabet)
    print(f"Written {written} byte(s). [file-based pipe]")
    print(f"Read {read} byte(s). [file-based pipe]")
    written, read = in_memory_pipe(alphabet)
    print(f"Written {written} byte(s). [in-memory pipe]")
    print(f"Read {read} byte(s). [in-memory pipe]")
    return 0


if __name__ == "__main__":
    sys.exit(main())