"""Users referenced by the audit fields of tags.

Authentication is handled by the hosting application; this model only
carries what tags need to record who created or last renamed them.
"""
from sqlalchemy.schema import Column, UniqueConstraint
from sqlalchemy.types import UnicodeText

from .base import EDITABLE, IdMixin, Model, TimestampedMixin

__all__ = ("User",)


class User(IdMixin, TimestampedMixin, Model):
    __tablename__ = "user"

    first_name = Column(UnicodeText, info=EDITABLE)
    last_name = Column(UnicodeText, info=EDITABLE)
    email = Column(UnicodeText, nullable=False, info=EDITABLE)

    __table_args__ = (UniqueConstraint("email"),)

    @property
    def name(self) -> str:
        name = "{first_name} {last_name}".format(
            first_name=self.first_name or "", last_name=self.last_name or ""
        )
        return name.strip() or self.email

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        cls = self.__class__
        return "<{mod}.{cls} id={u.id!r} email={u.email!r} at 0x{addr:x}>".format(
            mod=cls.__module__, cls=cls.__name__, u=self, addr=id(self)
        )
