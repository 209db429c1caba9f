"""Client-side settings access layer for the Kerzenwelt API."""

from kerzenwelt.client.http import ApiClient
from kerzenwelt.client.notifications import (
    LoggingNotifier,
    Notification,
    NotificationLog,
    Notifier,
    Variant,
)
from kerzenwelt.client.query_cache import (
    Mutation,
    QueryCache,
    QueryObserver,
    QueryOptions,
    QueryResult,
    QueryStatus,
)
from kerzenwelt.client.settings_api import (
    SETTINGS_QUERY_KEY,
    SettingsClient,
    get_query_cache,
    setting_query_key,
)
from kerzenwelt.client.shipping import ShippingQuote, ShippingSettings, calculate_shipping

__all__ = [
    "ApiClient",
    "LoggingNotifier",
    "Notification",
    "NotificationLog",
    "Notifier",
    "Variant",
    "Mutation",
    "QueryCache",
    "QueryObserver",
    "QueryOptions",
    "QueryResult",
    "QueryStatus",
    "SETTINGS_QUERY_KEY",
    "SettingsClient",
    "get_query_cache",
    "setting_query_key",
    "ShippingQuote",
    "ShippingSettings",
    "calculate_shipping",
]
