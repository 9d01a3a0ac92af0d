from socialsearch.services.providers.base import ProviderResult, SearchCriteria, SearchProvider
from socialsearch.services.providers.conversations import ConversationSearchProvider
from socialsearch.services.providers.posts import PostSearchProvider
from socialsearch.services.providers.users import UserSearchProvider

__all__ = [
    "ConversationSearchProvider",
    "PostSearchProvider",
    "ProviderResult",
    "SearchCriteria",
    "SearchProvider",
    "UserSearchProvider",
]
