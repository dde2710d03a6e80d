"""Command-line conversation with a registered chatbot."""

from __future__ import annotations

import argparse
import sys
from contextlib import suppress
from typing import Iterable, List, Optional, TextIO

from conckit import chatbot
from conckit.chatbot import Chatbot, ChatbotError, SimpleCN, SimpleEN


def _say(output: TextIO, text: str) -> None:
    output.write(text + "\n")


def converse(bot: Chatbot, lines: Iterable[str], output: TextIO) -> int:
    """Hold a conversation with *bot* over *lines*, writing replies to *output*.

    Returns 0 once the bot ends the conversation and 1 when input runs out first.
    """
    _say(output, bot.begin())
    source = iter(lines)
    name = next(source, None)
    if name is None:
        _say(output, bot.report_error("EOF"))
        return 1
    _say(output, bot.hello(name.rstrip("\n")))
    for line in source:
        try:
            reply, finished = bot.talk(line)
        except Exception as exc:  # noqa: BLE001
            _say(output, bot.report_error(exc))
            continue
        if reply:
            _say(output, reply)
        if finished:
            try:
                bot.end()
            except Exception as exc:  # noqa: BLE001
                _say(output, bot.report_error(exc))
            return 0
    _say(output, bot.report_error("EOF"))
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Run a conversation on standard input and output."""
    parser = argparse.ArgumentParser(description="Talk with a chatbot.")
    parser.add_argument(
        "-chatbot",
        "--chatbot",
        dest="chatbot",
        default="simple.en",
        help="The chatbot's name for dialogue.",
    )
    args = parser.parse_args(argv)
    for bot in (SimpleEN("simple.en"), SimpleCN("simple.cn")):
        with suppress(ChatbotError):
            chatbot.register(bot)
    selected = chatbot.get(args.chatbot)
    if selected is None:
        print(f"Fatal error: Unsupported chatbot named {args.chatbot}")
        return 1
    return converse(selected, sys.stdin, sys.stdout)


if __name__ == "__main__":
    sys.exit(main())