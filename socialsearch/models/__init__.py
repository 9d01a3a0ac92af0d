from socialsearch.models.chat import Conversation, ConversationParticipant, Message
from socialsearch.models.search import SavedSearch, SearchHistory
from socialsearch.models.social import Post, PostComment, PostLike, PostShare
from socialsearch.models.user import Follow, User

__all__ = [
    "Conversation",
    "ConversationParticipant",
    "Follow",
    "Message",
    "Post",
    "PostComment",
    "PostLike",
    "PostShare",
    "SavedSearch",
    "SearchHistory",
    "User",
]
