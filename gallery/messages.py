import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

SUCCESS = "success"
ERROR = "error"
INFO = "info"


@dataclass
class Message:
    text: str
    level: str
    expires_at: float

    @property
    def is_error(self) -> bool:
        return self.level == ERROR


@dataclass
class Notifier:
    """Single-slot message banner; a new message replaces the previous one."""
    display_seconds: float = 5.0
    clock: Callable[[], float] = time.monotonic
    history: List[Message] = field(default_factory=list)

    def show(self, text: str, level: str = INFO) -> Message:
        message = Message(text=text, level=level, expires_at=self.clock() + self.display_seconds)
        self.history.append(message)
        if level == ERROR:
            logger.error(text)
        else:
            logger.info(text)
        return message

    def success(self, text: str) -> Message:
        return self.show(text, SUCCESS)

    def error(self, text: str) -> Message:
        return self.show(text, ERROR)

    def info(self, text: str) -> Message:
        return self.show(text, INFO)

    @property
    def current(self) -> Optional[Message]:
        if not self.history:
            return None
        last = self.history[-1]
        if self.clock() >= last.expires_at:
            return None
        return last

    @property
    def last_text(self) -> Optional[str]:
        return self.history[-1].text if self.history else None
