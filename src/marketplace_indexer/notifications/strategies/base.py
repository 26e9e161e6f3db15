# -*- coding: utf-8 -*-
"""Base notification channel.

A channel renders indexer messages (sales, lifecycle) with the shared styler and
hands the text to _deliver(). Channels can be limited to a subset of event types,
e.g. Telegram for sales only while the console also shows start/stop.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any, Optional

import structlog

from marketplace_indexer.notifications.types import NotificationMessage

if TYPE_CHECKING:  # pragma: no cover
    from marketplace_indexer.config.config import Settings
    from marketplace_indexer.notifications.types import NotificationStyler


class BaseNotificationStrategy(ABC):
    """Delivery channel: filter by event type, render, deliver."""

    parse_html: bool = False
    """Whether the channel renders the styler's HTML variant."""

    def __init__(
        self,
        settings: "Settings",
        styler: "NotificationStyler",
        *,
        event_types: Optional[Iterable[str]] = None,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """
        Args:
            settings: Global configuration (Settings).
            styler: Renders messages to text.
            event_types: Event types this channel forwards; None or empty means all.
            get_logger: Logger factory (injected).
            logger_name: Optional logger name (defaults to class name).
        """
        self.settings = settings
        self._styler = styler
        self._event_types = frozenset(event_types or ())
        self._running = False
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def event_types(self) -> frozenset[str]:
        return self._event_types

    def accepts(self, message: NotificationMessage) -> bool:
        return not self._event_types or message.event_type in self._event_types

    async def initialize(self) -> None:
        self._running = True

    async def shutdown(self) -> None:
        self._running = False

    async def send_notification(self, message: NotificationMessage) -> None:
        """Render and deliver one message; skipped when stopped or filtered out."""
        if not self._running:
            self._logger.debug(
                "notification_channel_not_running",
                notification_event_type=message.event_type,
            )
            return
        if not self.accepts(message):
            return
        await self._deliver(self._styler.render(message, parse_html=self.parse_html), message)

    @abstractmethod
    async def _deliver(self, text: str, message: NotificationMessage) -> None:
        """Push rendered text to the channel."""
