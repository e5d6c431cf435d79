""""""
from .base import AUDITABLE, EDITABLE, SYSTEM, IdMixin, Model, \
    TimestampedMixin
from .subjects import User
from .tag import CountedTag, EntityRef, Tag, Tagging, register, \
    supports_tagging, taggables

__all__ = (
    "AUDITABLE",
    "EDITABLE",
    "SYSTEM",
    "IdMixin",
    "Model",
    "TimestampedMixin",
    "User",
    "CountedTag",
    "EntityRef",
    "Tag",
    "Tagging",
    "register",
    "supports_tagging",
    "taggables",
)
