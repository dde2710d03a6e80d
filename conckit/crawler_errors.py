"""Error types raised by the web crawler's components."""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union


class ErrorType(str, Enum):
    """The crawler component an error came from."""

    DOWNLOADER = "downloader error"
    ANALYZER = "analyzer error"
    PIPELINE = "pipeline error"
    SCHEDULER = "scheduler error"


class CrawlerError(Exception):
    """An error raised by a crawler component, tagged with its type."""

    def __init__(
        self, error_type: Optional[Union[ErrorType, str]], message: str
    ) -> None:
        self.type = error_type
        self.message = message.strip()
        prefix = "crawler error: "
        if error_type:
            kind = error_type.value if isinstance(error_type, ErrorType) else error_type
            prefix += f"{kind}: "
        super().__init__(prefix + self.message)

    @classmethod
    def from_error(
        cls, error_type: Optional[Union[ErrorType, str]], err: BaseException
    ) -> "CrawlerError":
        """Build a crawler error carrying the message of *err*."""
        return cls(error_type, str(err))


class IllegalParameterError(ValueError):
    """Raised when a crawler component receives an invalid argument."""

    def __init__(self, message: str) -> None:
        super().__init__(f"illegal parameter: {message.strip()}")