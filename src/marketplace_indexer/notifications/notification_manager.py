"""Notification service: fan messages out to every configured channel in the background."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import structlog

from marketplace_indexer.notifications.strategies import BaseNotificationStrategy
from marketplace_indexer.notifications.types import NotificationMessage

_STOP = object()


@dataclass
class NotificationService:
    """Dispatch notifications to all configured channels.

    notify() only enqueues; a worker task delivers. Delivery errors are logged per
    channel and never reach the caller.
    """

    notifiers: list[BaseNotificationStrategy]
    queue_size: int = 1000
    get_logger: Callable[[str], Any] = field(default=structlog.get_logger)
    _queue: asyncio.Queue[Any] | None = field(init=False, default=None)
    _worker_task: asyncio.Task[None] | None = field(init=False, default=None)
    _logger: Any = field(init=False)

    def __post_init__(self) -> None:
        self._logger = self.get_logger("NotificationService")

    async def initialize(self) -> None:
        """Initialize all notifiers and start the delivery worker."""
        self._logger.debug(
            "notification_init_started",
            notification_notifiers_count=len(self.notifiers),
        )
        for notifier in self.notifiers:
            await notifier.initialize()
        if not self.notifiers:
            self._logger.info("notification_init_no_notifiers")
            return
        self._queue = asyncio.Queue(maxsize=self.queue_size)
        self._worker_task = asyncio.create_task(self._worker_loop())
        self._logger.debug(
            "notification_init_complete",
            notification_queue_size=self.queue_size,
        )

    async def shutdown(self) -> None:
        """Drain pending messages, stop the worker and shut notifiers down."""
        self._logger.debug("notification_shutdown_started")
        queue, task = self._queue, self._worker_task
        self._queue = None
        self._worker_task = None
        if queue is not None and task is not None:
            await queue.put(_STOP)
            await task
            self._logger.debug("notification_shutdown_queue_drained")
        for notifier in self.notifiers:
            await notifier.shutdown()
        self._logger.debug("notification_shutdown_complete")

    def notify(self, message: NotificationMessage) -> None:
        """Enqueue a notification (non-blocking for callers)."""
        queue = self._queue
        if queue is None:
            if not self.notifiers:
                return
            raise RuntimeError("NotificationService not initialized")
        try:
            queue.put_nowait(message)
        except asyncio.QueueFull:
            self._logger.warning(
                "notification_queue_full_dropped",
                notification_event_type=message.event_type,
            )

    async def _worker_loop(self) -> None:
        queue = self._queue
        if queue is None:
            return
        while True:
            msg = await queue.get()
            try:
                if msg is _STOP:
                    self._logger.debug("notification_worker_shutting_down")
                    return
                await self._dispatch(msg)
            finally:
                queue.task_done()

    async def _dispatch(self, message: NotificationMessage) -> None:
        self._logger.debug(
            "notification_dispatch",
            notification_event_type=message.event_type,
            notification_notifiers_count=len(self.notifiers),
        )
        for notifier in self.notifiers:
            try:
                await notifier.send_notification(message)
            except Exception as e:
                self._logger.warning(
                    "notification_delivery_failed",
                    notification_event_type=message.event_type,
                    notifier=type(notifier).__name__,
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
