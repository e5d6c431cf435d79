"""Tags, and the polymorphic taggings that attach them to content."""
from collections import namedtuple
from functools import total_ordering
from typing import Any, Callable, Dict, Iterable, List, Optional
from urllib.parse import quote

import sqlalchemy as sa
import sqlalchemy.orm
from sqlalchemy.orm import Session, relationship
from sqlalchemy.schema import CheckConstraint, Column, ForeignKey, Index, \
    UniqueConstraint
from sqlalchemy.types import DateTime, Integer, String, UnicodeText

from contenttags.core.exceptions import UnknownTaggable

from .base import AUDITABLE, EDITABLE, SYSTEM, IdMixin, Model, \
    TimestampedMixin
from .subjects import User

__all__ = (
    "EntityRef",
    "Tag",
    "CountedTag",
    "Tagging",
    "TaggableRegistry",
    "taggables",
    "register",
    "supports_tagging",
)

#: Discriminated reference to a tagged entity, as stored on a tagging row.
EntityRef = namedtuple("EntityRef", "kind id")

Loader = Callable[[Session, List[int]], Iterable[Any]]


class TaggableRegistry:
    """Maps entity kinds (the `tagged_type` stored on taggings) to model
    classes and to the functions loading their instances."""

    def __init__(self) -> None:
        self._classes: Dict[str, type] = {}
        self._loaders: Dict[str, Loader] = {}

    def register(
        self,
        cls: Optional[type] = None,
        kind: Optional[str] = None,
        loader: Optional[Loader] = None,
    ):
        """Register a model class as taggable.

        Can be used as a class decorator, with or without arguments:

        .. code-block:: python

            @register
            class Page(Model):
                ...

            @register(kind="asset")
            class Asset(Model):
                ...

        `kind` defaults to the class name. `loader(session, ids)` must return
        the instances for the given ids; the default one queries `cls` by
        primary key.
        """
        if cls is None:
            return lambda cls: self.register(cls, kind=kind, loader=loader)

        if not hasattr(cls, "id"):
            raise ValueError(f"{cls!r} has no 'id' attribute, cannot be tagged")

        kind = kind or cls.__name__
        self._classes[kind] = cls
        self._loaders[kind] = loader or _default_loader(cls)
        cls.__tagged_type__ = kind
        return cls

    def __contains__(self, kind: str) -> bool:
        return kind in self._classes

    @property
    def kinds(self) -> List[str]:
        return sorted(self._classes)

    def kind_of(self, obj: Any) -> str:
        """Kind of a taggable class or instance.

        Subclasses of a registered class share its kind.
        """
        cls = obj if isinstance(obj, type) else type(obj)
        for klass in cls.__mro__:
            kind = klass.__dict__.get("__tagged_type__")
            if kind is not None and self._classes.get(kind) is klass:
                return kind
        raise UnknownTaggable(f"{cls.__name__} is not registered as taggable")

    def class_for(self, kind: str) -> type:
        try:
            return self._classes[kind]
        except KeyError:
            raise UnknownTaggable(f"Unknown taggable kind: {kind!r}")

    def ref(self, entity: Any) -> EntityRef:
        """Reference to `entity`. Passing an :class:`EntityRef` returns it."""
        if isinstance(entity, EntityRef):
            return entity
        if entity.id is None:
            raise ValueError(f"{entity!r} must be flushed before being tagged")
        return EntityRef(self.kind_of(entity), entity.id)

    def load(self, session: Session, kind: str, ids: Iterable[int]) -> List[Any]:
        ids = list(ids)
        if not ids:
            return []
        self.class_for(kind)
        return list(self._loaders[kind](session, ids))

    def resolve(self, session: Session, refs: Iterable[EntityRef]) -> List[Any]:
        """Load entities for `refs`, preserving their order.

        References to deleted entities are skipped.
        """
        refs = list(refs)
        ids_by_kind: Dict[str, List[int]] = {}
        for ref in refs:
            ids_by_kind.setdefault(ref.kind, []).append(ref.id)

        loaded = {}
        for kind, ids in ids_by_kind.items():
            for entity in self.load(session, kind, ids):
                loaded[EntityRef(kind, entity.id)] = entity

        return [loaded[ref] for ref in refs if ref in loaded]


def _default_loader(cls: type) -> Loader:
    def load(session: Session, ids: List[int]) -> List[Any]:
        return session.query(cls).filter(cls.id.in_(ids)).all()

    return load


#: default registry
taggables = TaggableRegistry()


def register(cls: Optional[type] = None, kind: Optional[str] = None, loader=None):
    """Register a class as taggable in the default registry.

    See :meth:`TaggableRegistry.register`.
    """
    return taggables.register(cls, kind=kind, loader=loader)


def supports_tagging(obj: Any) -> bool:
    """
    :param obj: a class or instance
    """
    try:
        taggables.kind_of(obj)
    except UnknownTaggable:
        return False

    if isinstance(obj, type):
        return True

    return getattr(obj, "id", None) is not None


@total_ordering
class Tag(IdMixin, TimestampedMixin, Model):
    """Tags are text labels that can be attached to any taggable content.

    Titles are unique within a site. When the deployment is not site scoped
    every tag has `site_id == 0`.

    `use_count`, `cloud_band` and `cloud_size` are never persisted and are
    always `None` on tags of a session: aggregation queries return
    :class:`CountedTag` copies carrying them instead.
    """

    __tablename__ = "tag"

    #: Label visible to the user
    title = Column(UnicodeText(), nullable=False, info=EDITABLE | AUDITABLE)

    site_id = Column(
        Integer, nullable=False, default=0, server_default="0", info=SYSTEM
    )

    created_by_id = Column(ForeignKey(User.id), info=SYSTEM)
    created_by = relationship(User, foreign_keys=[created_by_id])

    updated_by_id = Column(ForeignKey(User.id), info=SYSTEM)
    updated_by = relationship(User, foreign_keys=[updated_by_id])

    taggings = relationship(
        "Tagging",
        back_populates="tag",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint(site_id, title),
        # title is not empty and is not surrounded by space characters
        CheckConstraint(
            sa.sql.and_(sa.sql.func.trim(title) == title, title != ""),
            name="tag_title_trimmed",
        ),
    )

    #: derived attributes
    use_count = None
    cloud_band = None
    cloud_size = None

    @property
    def clean_title(self) -> str:
        """Title escaped for use as an URL path segment."""
        return quote(self.title, safe="")

    def __str__(self) -> str:
        return self.title

    def __lt__(self, other: "Tag") -> bool:
        return str(self).lower().__lt__(str(other).lower())

    def __repr__(self) -> str:
        cls = self.__class__
        return (
            "<{mod}.{cls} id={t.id!r} site_id={t.site_id!r} "
            "title={t.title!r} at 0x{addr:x}>".format(
                mod=cls.__module__, cls=cls.__name__, t=self, addr=id(self)
            )
        )


@total_ordering
class CountedTag:
    """A :class:`Tag` with the derived attributes of one aggregation.

    Other attributes are read from the wrapped tag. A counted tag compares
    and hashes like its tag, so it can be used in place of it in sets and
    lookups.
    """

    def __init__(self, tag: Tag, use_count: Optional[int] = None) -> None:
        self.tag = tag
        self.use_count = use_count
        self.cloud_band: Optional[int] = None
        self.cloud_size: Optional[str] = None

    @classmethod
    def of(cls, tag: Any, use_count: Optional[int] = None) -> "CountedTag":
        """Fresh counted copy of `tag`, a :class:`Tag` or a counted tag."""
        return cls(getattr(tag, "tag", tag), use_count)

    def __getattr__(self, name: str) -> Any:
        if name == "tag":
            raise AttributeError(name)
        return getattr(self.tag, name)

    def __eq__(self, other: Any) -> bool:
        return self.tag is getattr(other, "tag", other)

    def __hash__(self) -> int:
        return hash(self.tag)

    def __lt__(self, other: Any) -> bool:
        return self.tag < getattr(other, "tag", other)

    def __str__(self) -> str:
        return str(self.tag)

    def __repr__(self) -> str:
        return (
            f"<CountedTag {self.tag.title!r} use_count={self.use_count!r} "
            f"cloud_band={self.cloud_band!r} cloud_size={self.cloud_size!r}>"
        )


class Tagging(IdMixin, Model):
    """Application of a tag on a tagged entity of any registered kind."""

    __tablename__ = "tagging"

    tag_id = Column(ForeignKey(Tag.id, ondelete="CASCADE"), nullable=False)
    tag = relationship(Tag, back_populates="taggings")

    #: kind of the tagged entity, see :class:`TaggableRegistry`
    tagged_type = Column(String(255), nullable=False)
    tagged_id = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=sa.func.now(), info=SYSTEM)

    __table_args__ = (
        UniqueConstraint(tag_id, tagged_type, tagged_id),
        Index("ix_tagging_tagged", tagged_type, tagged_id),
    )

    @property
    def ref(self) -> EntityRef:
        return EntityRef(self.tagged_type, self.tagged_id)

    @property
    def tagged(self) -> Any:
        """The tagged entity, or `None` if it doesn't exist anymore."""
        session = sa.orm.object_session(self)
        entities = taggables.resolve(session, [self.ref])
        return entities[0] if entities else None

    def __repr__(self) -> str:
        cls = self.__class__
        return "<{mod}.{cls} id={t.id!r} tag_id={t.tag_id!r} {t.tagged_type}:{t.tagged_id}>".format(
            mod=cls.__module__, cls=cls.__name__, t=self
        )
