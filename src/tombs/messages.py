from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Sequence, Tuple

logger = logging.getLogger(__name__)


class Severity(Enum):
    INFO = "info"
    GOOD = "good"
    WARNING = "warning"
    DANGER = "danger"


@dataclass(frozen=True)
class Message:
    text: str
    severity: Severity = Severity.INFO

    def to_dict(self) -> Dict[str, str]:
        return {"text": self.text, "severity": self.severity.value}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Message":
        return Message(str(data["text"]), Severity(data.get("severity", Severity.INFO.value)))


class MessageLog:
    """Append-only game message log.

    Presentation reads through ``read_new`` which returns everything appended
    since its previous call. Entries are never edited or removed.
    """

    def __init__(self) -> None:
        self._entries: List[Message] = []
        self._cursor = 0

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> Tuple[Message, ...]:
        return tuple(self._entries)

    def add(self, text: str, severity: Severity = Severity.INFO) -> Message:
        msg = Message(text, severity)
        self._entries.append(msg)
        logger.debug("[%s] %s", severity.value, text)
        return msg

    def extend(self, messages: Sequence[Message]) -> None:
        for m in messages:
            self.add(m.text, m.severity)

    def read_new(self) -> List[Message]:
        new = self._entries[self._cursor:]
        self._cursor = len(self._entries)
        return list(new)

    def tail(self, n: int) -> List[Message]:
        if n <= 0:
            return []
        return list(self._entries[-n:])

    def to_dict(self) -> Dict[str, Any]:
        return {"cursor": self._cursor, "entries": [m.to_dict() for m in self._entries]}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "MessageLog":
        log = MessageLog()
        log._entries = [Message.from_dict(d) for d in data.get("entries", [])]
        log._cursor = max(0, min(int(data.get("cursor", 0)), len(log._entries)))
        return log
