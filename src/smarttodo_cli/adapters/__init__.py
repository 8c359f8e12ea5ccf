"""Adapters - port implementations backed by the hosted backend."""

from .change_feed import InertSubscription, PollingSubscription
from .rest_api import RestApiSessionProvider, RestApiTaskStore

__all__ = [
    "RestApiTaskStore",
    "RestApiSessionProvider",
    "PollingSubscription",
    "InertSubscription",
]
