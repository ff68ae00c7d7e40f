"""SQLModel table definitions. Importing this package registers every table."""
from promptpolish.models.conversation import Conversation, Message
from promptpolish.models.prompt import EnhancementFocus, Prompt, PromptType
from promptpolish.models.user import User

__all__ = [
    "Conversation",
    "EnhancementFocus",
    "Message",
    "Prompt",
    "PromptType",
    "User",
]
