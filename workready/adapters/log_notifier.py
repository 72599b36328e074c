"""Log notification adapter — implements NotificationPort.

Writes team-leader notifications to the application log. Used when no
delivery channel is wired in (CLI runs, local development). The most
recent messages are also kept in `sent`, capped at `history` entries.
"""

from __future__ import annotations

import logging
from collections import deque

logger = logging.getLogger(__name__)

SENT_HISTORY_LIMIT = 100


class LogNotifier:
    """Logging implementation of NotificationPort."""

    def __init__(self, level: int = logging.INFO, history: int = SENT_HISTORY_LIMIT) -> None:
        self._level = level
        self.sent: deque[tuple[str, str]] = deque(maxlen=history)

    async def send_message(self, user_id: str, text: str) -> None:
        self.sent.append((user_id, text))
        logger.log(self._level, "Notify %s: %s", user_id, text)
