"""Tags co-occurring on the same content, and content of a given kind
carrying a tag.

Everything here is read-only.
"""
from typing import Any, Iterable, List, Set, Union

import sqlalchemy as sa
from sqlalchemy.orm import Session, aliased
from sqlalchemy.sql import functions as func

from contenttags.core.models import EntityRef, Tag, Tagging, taggables
from contenttags.core.util import unique

from .aggregation import entities_clause

__all__ = (
    "attached_tags_of",
    "tags_coincident_with_one",
    "entities_tagged_with_all",
    "tags_coincident_with_all",
    "taggings_of_type",
    "entities_of_type",
    "count_of_type",
)


def attached_tags_of(session: Session, entity: Any) -> Set[Tag]:
    """Tags applied on `entity`."""
    ref = taggables.ref(entity)
    query = (
        session.query(Tag)
        .join(Tagging, Tagging.tag_id == Tag.id)
        .filter(Tagging.tagged_type == ref.kind, Tagging.tagged_id == ref.id)
    )
    return set(query)


def tags_coincident_with_one(session: Session, tag: Tag) -> Set[Tag]:
    """Tags applied on any entity tagged with `tag`, except `tag` itself."""
    tagged = aliased(Tagging)
    other = aliased(Tagging)
    query = (
        session.query(Tag)
        .join(other, other.tag_id == Tag.id)
        .join(
            tagged,
            sa.sql.and_(
                tagged.tagged_type == other.tagged_type,
                tagged.tagged_id == other.tagged_id,
            ),
        )
        .filter(tagged.tag_id == tag.id, Tag.id != tag.id)
        .distinct()
    )
    return set(query)


def entities_tagged_with_all(session: Session, tags: Iterable[Tag]) -> List[EntityRef]:
    """References to the entities carrying every one of `tags`."""
    tag_ids = unique(tag.id for tag in tags)
    if not tag_ids:
        return []

    query = (
        session.query(Tagging.tagged_type, Tagging.tagged_id)
        .filter(Tagging.tag_id.in_(tag_ids))
        .group_by(Tagging.tagged_type, Tagging.tagged_id)
        .having(func.count(sa.distinct(Tagging.tag_id)) == len(tag_ids))
        .order_by(Tagging.tagged_type, Tagging.tagged_id)
    )
    return [EntityRef(kind, entity_id) for kind, entity_id in query]


def tags_coincident_with_all(session: Session, tags: Iterable[Tag]) -> Set[Tag]:
    """Tags applied on the entities carrying all of `tags`, except `tags`
    themselves.

    This is what faceted navigation offers to narrow a selection further.
    """
    tags = list(tags)
    refs = entities_tagged_with_all(session, tags)
    if not refs:
        return set()

    query = (
        session.query(Tag)
        .join(Tagging, Tagging.tag_id == Tag.id)
        .filter(entities_clause(refs))
        .filter(Tag.id.notin_([tag.id for tag in tags]))
        .distinct()
    )
    return set(query)


def _kind(kind: Union[str, type]) -> str:
    if isinstance(kind, str):
        taggables.class_for(kind)
        return kind
    return taggables.kind_of(kind)


def taggings_of_type(
    session: Session, tag: Tag, kind: Union[str, type]
) -> List[Tagging]:
    """Taggings of `tag` on entities of `kind` (a kind name or a registered
    class), oldest first."""
    query = (
        session.query(Tagging)
        .filter(Tagging.tag_id == tag.id, Tagging.tagged_type == _kind(kind))
        .order_by(Tagging.id)
    )
    return query.all()


def entities_of_type(session: Session, tag: Tag, kind: Union[str, type]) -> List[Any]:
    """Entities of `kind` tagged with `tag`, in tagging order."""
    refs = [tagging.ref for tagging in taggings_of_type(session, tag, kind)]
    return taggables.resolve(session, refs)


def count_of_type(session: Session, tag: Tag, kind: Union[str, type]) -> int:
    query = session.query(func.count(Tagging.id)).filter(
        Tagging.tag_id == tag.id, Tagging.tagged_type == _kind(kind)
    )
    return query.scalar()
