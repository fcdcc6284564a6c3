"""Enumerations for domain models."""

from enum import Enum


class MessageRole(str, Enum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"


class TradeStatus(str, Enum):
    """Status filter for trade listings."""

    ALL = "all"
    OPEN = "open"  # exit_price is None
    CLOSED = "closed"


class TradeSortField(str, Enum):
    """Sort keys for trade listings."""

    DATE = "date"  # entry_date
    PROFIT = "profit"  # profit_loss, None sorts as 0
    TICKER = "ticker"


class SortOrder(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


class LogLevel(str, Enum):
    """Severity of an internal-console log entry."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    SUCCESS = "success"
