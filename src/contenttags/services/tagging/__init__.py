""""""
from .repository import TagRepository, split_titles
from .service import TagService

__all__ = ["TagService", "TagRepository", "split_titles", "tagging_service"]

tagging_service = TagService()
