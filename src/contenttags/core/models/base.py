"""Declarative base and column mixins shared by the models."""
from datetime import datetime
from typing import Any

from sqlalchemy.schema import Column
from sqlalchemy.types import DateTime, Integer

from contenttags.core.extensions import db


#: Base Model class.
class Model(db.Model):
    __abstract__ = True


class Info(dict):
    """Column `info` flags. Combine them with `|`::

        Column(UnicodeText, info=EDITABLE | AUDITABLE)
    """

    def __or__(self, other: Any) -> "Info":
        merged = Info(self)
        merged.update(other)
        return merged


EDITABLE = Info(editable=True)
AUDITABLE = Info(auditable=True)

#: set by the system, never edited by hand
SYSTEM = Info(editable=False, auditable=False)


class IdMixin:
    id = Column(Integer, primary_key=True, info=SYSTEM)


class TimestampedMixin:
    #: creation date
    created_at = Column(DateTime, default=datetime.utcnow, info=SYSTEM)
    #: last modification date
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, info=SYSTEM
    )
