# -*- coding: utf-8 -*-
"""Dependency injection container (dependency-injector)."""

from __future__ import annotations

from dependency_injector import containers, providers

from marketplace_indexer.chain import RpcChainLogSource
from marketplace_indexer.clients.http import AsyncHttpClient
from marketplace_indexer.clients.rpc_client import RpcClient
from marketplace_indexer.config import Settings, get_settings
from marketplace_indexer.notifications.notification_manager import NotificationService
from marketplace_indexer.notifications.strategies.base import BaseNotificationStrategy
from marketplace_indexer.notifications.strategies.console import ConsoleNotifier
from marketplace_indexer.notifications.strategies.telegram import TelegramNotifier
from marketplace_indexer.notifications.stylers.notification_styler import EventNotificationStyler
from marketplace_indexer.persistence.repositories.sql import SqlIndexStore
from marketplace_indexer.services.backfill import BackfillRunner
from marketplace_indexer.services.cursor import CursorResolver
from marketplace_indexer.services.event_processor import EventProcessor
from marketplace_indexer.services.health import HealthMonitor
from marketplace_indexer.services.notifications import SaleNotifier
from marketplace_indexer.services.poller import PurchasePoller


def _build_index_store(settings: Settings) -> SqlIndexStore:
    """Build the SQL store from settings.database."""
    return SqlIndexStore.from_url(settings.database.url, echo=settings.database.echo)


def _build_notification_notifiers(
    settings: Settings,
    styler: EventNotificationStyler,
) -> list[BaseNotificationStrategy]:
    notifiers: list[BaseNotificationStrategy] = []
    if settings.console.enabled:
        notifiers.append(
            ConsoleNotifier(
                settings=settings,
                styler=styler,
                event_types=settings.console.event_types,
            )
        )
    if settings.telegram.enabled:
        notifiers.append(
            TelegramNotifier(
                settings=settings,
                styler=styler,
                event_types=settings.telegram.event_types,
            )
        )
    return notifiers


def _build_cursor(settings: Settings, store: SqlIndexStore) -> CursorResolver:
    return CursorResolver(store.event_logs, cold_start_window=settings.indexer.cold_start_window)


def _build_health_monitor(settings: Settings, store: SqlIndexStore) -> HealthMonitor:
    return HealthMonitor(
        store.event_logs,
        stale_after_seconds=settings.indexer.stale_after_seconds,
    )


class Container(containers.DeclarativeContainer):
    """Application container. Wires settings, RPC access, store, notifications and indexer services."""

    config = providers.Callable(get_settings)

    http_client = providers.Singleton(
        AsyncHttpClient,
        settings=config,
    )

    rpc_client = providers.Singleton(
        RpcClient,
        http_client=http_client,
        settings=config,
    )

    log_source = providers.Singleton(
        RpcChainLogSource,
        rpc_client=rpc_client,
    )

    index_store = providers.Singleton(_build_index_store, config)

    notification_styler = providers.Singleton(EventNotificationStyler)

    notification_service = providers.Singleton(
        NotificationService,
        notifiers=providers.Callable(_build_notification_notifiers, config, notification_styler),
    )

    sale_notifier = providers.Singleton(
        SaleNotifier,
        notification_service=notification_service,
    )

    event_processor = providers.Singleton(
        EventProcessor,
        store=index_store,
        log_source=log_source,
        sale_notifier=sale_notifier,
        event_type=config.provided.indexer.event_type,
    )

    cursor_resolver = providers.Singleton(_build_cursor, config, index_store)

    purchase_poller = providers.Singleton(
        PurchasePoller,
        log_source=log_source,
        processor=event_processor,
        cursor=cursor_resolver,
        settings=config,
    )

    backfill_runner = providers.Singleton(
        BackfillRunner,
        log_source=log_source,
        processor=event_processor,
        settings=config,
    )

    health_monitor = providers.Singleton(_build_health_monitor, config, index_store)
