# -*- coding: utf-8 -*-
"""Console notifier (print-based)."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Any, Iterable, Optional, TextIO

from marketplace_indexer.notifications.strategies.base import BaseNotificationStrategy
from marketplace_indexer.notifications.types import NotificationMessage

if TYPE_CHECKING:  # pragma: no cover
    from marketplace_indexer.config import Settings
    from marketplace_indexer.notifications.types import NotificationStyler


class ConsoleNotifier(BaseNotificationStrategy):
    """Print plain-text notifications to a stream (stdout by default)."""

    def __init__(
        self,
        settings: "Settings",
        styler: "NotificationStyler",
        *,
        stream: TextIO | None = None,
        event_types: Optional[Iterable[str]] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(settings, styler, event_types=event_types, **kwargs)
        self._stream = stream

    async def _deliver(self, text: str, message: NotificationMessage) -> None:
        print(text, file=self._stream or sys.stdout)
