"""Running command chains, finding processes by name and receiving signals."""

from __future__ import annotations

import argparse
import os
import queue
import re
import shutil
import signal
import subprocess
import sys
import threading
import time
from typing import Dict, List, Optional, Sequence, Tuple

_PID = re.compile(r"[+-]?[0-9]+")
_SIGQUIT = getattr(signal, "SIGQUIT", signal.SIGTERM)
_STOP = object()


class CommandError(Exception):
    """Raised when a command in a chain cannot run or fails."""


def command_plaintext(command: Sequence[str]) -> str:
    """Render *command* as its resolved program path followed by its arguments."""
    if not command:
        raise ValueError("empty command")
    path = shutil.which(command[0]) or command[0]
    return " ".join([path, *command[1:]])


def _command_error(err: object, command: Sequence[str]) -> CommandError:
    path = shutil.which(command[0]) or command[0]
    return CommandError(f"{err}  [{path} [{' '.join(command)}]]")


def run_commands(commands: Sequence[Sequence[str]]) -> List[str]:
    """Run *commands* as a chain, each fed the previous one's output.

    Returns the newline-terminated lines of the last output, newlines kept.
    """
    if not commands:
        raise CommandError("The cmd slice is invalid!")
    output: Optional[bytes] = None
    for command in commands:
        print(f"Run command: {command_plaintext(command)}")
        try:
            completed = subprocess.run(
                list(command), input=output, stdout=subprocess.PIPE
            )
        except OSError as exc:
            raise _command_error(exc, command) from exc
        if completed.returncode != 0:
            raise _command_error(f"exit status {completed.returncode}", command)
        output = completed.stdout
    text = (output or b"").decode("utf-8", errors="replace")
    return [line for line in text.splitlines(keepends=True) if line.endswith("\n")]


def get_pids(lines: Sequence[str]) -> List[int]:
    """Parse each line, surrounding whitespace removed, as a process id."""
    pids = []
    for line in lines:
        stripped = line.strip()
        if not _PID.fullmatch(stripped):
            raise ValueError(f'invalid syntax: "{stripped}"')
        pids.append(int(stripped))
    return pids


def send_signal(pattern: str, sig: int = _SIGQUIT) -> List[int]:
    """Send *sig* to every process whose ``ps aux`` line mentions *pattern*.

    Returns the ids of the processes signalled.
    """
    commands = [
        ["ps", "aux"],
        ["grep", pattern],
        ["grep", "-v", "grep"],
        ["awk", "{print $2}"],
    ]
    pids = get_pids(run_commands(commands))
    print(f"Target PID(s):\n{pids}")
    name = signal.Signals(sig).name
    for pid in pids:
        print(f"Send signal '{name}' to the process (pid={pid})...")
        os.kill(pid, sig)
    return pids


def _receive(label: str, inbox: "queue.SimpleQueue", log: List[signal.Signals]) -> None:
    while True:
        sig = inbox.get()
        if sig is _STOP:
            break
        print(f"Received a signal from {label}: {sig.name}")
        log.append(sig)
    print(f"End. [{label}]")


def handle_signals(
    duration: float,
) -> Tuple[List[signal.Signals], List[signal.Signals]]:
    """Receive signals with two receivers and return what each of them got.

    The first receiver listens for SIGINT and SIGQUIT and is stopped after
    *duration* seconds; the second listens for SIGQUIT alone and is stopped
    *duration* seconds later. Previous handlers are restored on return.
    Must be called from the main thread.
    """
    sigs1 = [signal.SIGINT, _SIGQUIT]
    sigs2 = [_SIGQUIT]
    inbox1: queue.SimpleQueue = queue.SimpleQueue()
    inbox2: queue.SimpleQueue = queue.SimpleQueue()
    log1: List[signal.Signals] = []
    log2: List[signal.Signals] = []
    subscribers: Dict[int, List[queue.SimpleQueue]] = {}

    def subscribe(sigs, inbox):
        for sig in sigs:
            subscribers.setdefault(int(sig), []).append(inbox)

    def unsubscribe(inbox):
        for inboxes in subscribers.values():
            if inbox in inboxes:
                inboxes.remove(inbox)

    def dispatch(signum, _frame):
        for inbox in list(subscribers.get(signum, ())):
            inbox.put(signal.Signals(signum))

    print(f"Set notification for {[s.name for s in sigs1]}... [sigRecv1]")
    subscribe(sigs1, inbox1)
    print(f"Set notification for {[s.name for s in sigs2]}... [sigRecv2]")
    subscribe(sigs2, inbox2)
    previous = {sig: signal.signal(sig, dispatch) for sig in set(sigs1 + sigs2)}
    receivers = [
        threading.Thread(target=_receive, args=("sigRecv1", inbox1, log1), daemon=True),
        threading.Thread(target=_receive, args=("sigRecv2", inbox2, log2), daemon=True),
    ]
    try:
        for receiver in receivers:
            receiver.start()
        print(f"Wait for {duration} seconds... ")
        time.sleep(duration)
        print("Stop notification...", end="")
        unsubscribe(inbox1)
        inbox1.put(_STOP)
        print("done. [sigRecv1]")
        time.sleep(duration)
        unsubscribe(inbox2)
        inbox2.put(_STOP)
        for receiver in receivers:
            receiver.join()
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
    return log1, log2


def main(argv: Optional[List[str]] = None) -> int:
    """Send SIGQUIT to processes matching a pattern while receiving signals."""
    parser = argparse.ArgumentParser(description="Signal demonstration.")
    parser.add_argument("--pattern", default="signals", help="text to find in ps output")
    parser.add_argument("--delay", type=float, default=3.0, help="seconds before sending")
    parser.add_argument("--duration", type=float, default=2.0, help="receiving window")
    args = parser.parse_args(argv)

    def sender() -> None:
        time.sleep(args.delay)
        try:
            send_signal(args.pattern)
        except CommandError as exc:
            print(f"Command Execution Error: {exc}")
        except ValueError as exc:
            print(f"PID Parsing Error: {exc}")
        except OSError as exc:
            print(f"Signal Sending Error: {exc}")

    threading.Thread(target=sender, daemon=True).start()
    handle_signals(args.duration)
    return 0


if __name__ == "__main__":
    sys.exit(main())