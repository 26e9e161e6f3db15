# -*- coding: utf-8 -*-
"""Domain models."""

from marketplace_indexer.models.event_log import EventLog
from marketplace_indexer.models.listing import Listing
from marketplace_indexer.models.purchase import Purchase
from marketplace_indexer.models.raw_log import RawLog

__all__ = [
    "EventLog",
    "Listing",
    "Purchase",
    "RawLog",
]
