"""Simple chatbots and a registry to look them up by name."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Dict, FrozenSet, Optional, Protocol, Tuple


class ChatbotError(Exception):
    """Raised when a chatbot cannot be registered."""


class _Talk(Protocol):
    def hello(self, user_name: str) -> str: ...

    def talk(self, heard: str) -> Tuple[str, bool]: ...


@dataclass(frozen=True)
class _Phrases:
    prompt: str
    greeting: str
    farewell_words: FrozenSet[str]
    farewell: str
    not_understood: str
    error_report: str


class Chatbot:
    """A chatbot with a name; it may hand greeting and talking to a delegate.

    Concrete bots are :class:`SimpleEN` and :class:`SimpleCN`.
    """

    _phrases: ClassVar[Optional[_Phrases]] = None

    def __init__(self, name: str, talk: Optional[_Talk] = None) -> None:
        if self._phrases is None:
            raise TypeError("Chatbot has no phrases; use SimpleEN or SimpleCN")
        self._name = name
        self._delegate = talk
        self._ended = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def ended(self) -> bool:
        """Whether :meth:`end` has been called since the last :meth:`begin`."""
        return self._ended

    def begin(self) -> str:
        """Return the opening prompt asking for the user's name."""
        self._ended = False
        return self._phrases.prompt

    def hello(self, user_name: str) -> str:
        """Greet the user by name."""
        user_name = user_name.strip()
        if self._delegate is not None:
            return self._delegate.hello(user_name)
        return self._phrases.greeting.format(user_name)

    def talk(self, heard: str) -> Tuple[str, bool]:
        """Answer *heard*; return the reply and whether the conversation ends."""
        heard = heard.strip()
        if self._delegate is not None:
            return self._delegate.talk(heard)
        if heard == "":
            return "", False
        if heard in self._phrases.farewell_words:
            return self._phrases.farewell, True
        return self._phrases.not_understood, False

    def report_error(self, err: object) -> str:
        """Describe *err* for the user."""
        return self._phrases.error_report.format(err)

    def end(self) -> None:
        """Finish the conversation and mark the bot as ended."""
        self._ended = True


class SimpleEN(Chatbot):
    """A chatbot that speaks English."""

    _phrases = _Phrases(
        prompt="Please input your name:",
        greeting="Hello, {}! What can I do for you?",
        farewell_words=frozenset({"nothing", "bye"}),
        farewell="Bye!",
        not_understood="Sorry, I didn't catch you.",
        error_report="An error occurred: {}\n",
    )


class SimpleCN(Chatbot):
    """A chatbot that speaks Chinese."""

    _phrases = _Phrases(
        prompt="请输入你的名字：",
        greeting="你好，{}！我可以为你做些什么？",
        farewell_words=frozenset({"没有", "再见"}),
        farewell="再见！",
        not_understood="对不起，我没听懂你说的。",
        error_report="发生了一个错误: {}\n",
    )


_registry: Dict[str, Chatbot] = {}


def register(chatbot: Optional[Chatbot]) -> None:
    """Register *chatbot* under its name."""
    if chatbot is None:
        raise ChatbotError("Invalid chatbot")
    name = chatbot.name
    if not name:
        raise ChatbotError("Invalid chatbot name")
    if name in _registry:
        raise ChatbotError("Existing chatbot")
    _registry[name] = chatbot


def get(name: str) -> Optional[Chatbot]:
    """Return the chatbot registered under *name*, or None."""
    return _registry.get(name)