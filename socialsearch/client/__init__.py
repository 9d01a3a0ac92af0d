from socialsearch.client.controller import AsyncioScheduler, Scheduler, SearchController, SearchState
from socialsearch.client.transport import SearchApiClient, SearchClientError

__all__ = [
    "AsyncioScheduler",
    "Scheduler",
    "SearchApiClient",
    "SearchClientError",
    "SearchController",
    "SearchState",
]
