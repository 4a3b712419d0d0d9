"""Request-scoped dependencies. Tests override these with in-memory fakes."""

from typing import Callable

from algolia_sync.integrations.algolia_client import AlgoliaClient
from algolia_sync.integrations.kontent_client import KontentDeliveryClient

# environment_id -> async context manager yielding a delivery client
DeliveryClientFactory = Callable[[str], KontentDeliveryClient]
# (app_id, api_key) -> async context manager yielding a client with init_index()
SearchClientFactory = Callable[[str, str], AlgoliaClient]


def get_delivery_client_factory() -> DeliveryClientFactory:
    return KontentDeliveryClient


def get_search_client_factory() -> SearchClientFactory:
    return AlgoliaClient
