"""Usage counts of tags.

All queries count taggings with an inner join on tags, grouped by tag: tags
that are not used are left out by construction.

Functions take the session explicitly and return :class:`~.CountedTag`
copies annotated with `use_count`: tags of the session are never modified, so
the counts and weights of one call never show up in another one.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

import sqlalchemy as sa
from sqlalchemy.orm import Query, Session
from sqlalchemy.sql import functions as func

from contenttags.core.models import CountedTag, Tag, Tagging, taggables

from .cloud import WEIGHT_ATTRIBUTES, weigh

__all__ = (
    "count_query",
    "with_counts",
    "most_popular",
    "refresh_counts",
    "ensure_popularity",
    "attached_to",
)

logger = logging.getLogger(__name__)

_USE_COUNT = func.count(Tagging.id).label("use_count")


def entities_clause(entities: Iterable[Any]) -> sa.sql.ClauseElement:
    """SQL condition on taggings matching any of `entities` (instances of
    taggable classes or :class:`~.EntityRef`)."""
    ids_by_kind: Dict[str, List[int]] = {}
    for ref in map(taggables.ref, entities):
        ids_by_kind.setdefault(ref.kind, []).append(ref.id)

    if not ids_by_kind:
        return sa.sql.false()

    return sa.sql.or_(
        *(
            sa.sql.and_(Tagging.tagged_type == kind, Tagging.tagged_id.in_(ids))
            for kind, ids in sorted(ids_by_kind.items())
        )
    )


def count_query(
    session: Session,
    tag_ids: Optional[Iterable[int]] = None,
    entities: Optional[Iterable[Any]] = None,
    site_id: Optional[int] = None,
) -> Query:
    """Query yielding `(tag, use_count)` rows.

    :param tag_ids: only count these tags.
    :param entities: only count taggings on these entities.
    :param site_id: only count tags of this site.
    """
    query = (
        session.query(Tag, _USE_COUNT)
        .join(Tagging, Tagging.tag_id == Tag.id)
        .group_by(Tag.id)
    )

    if site_id is not None:
        query = query.filter(Tag.site_id == site_id)

    if tag_ids is not None:
        query = query.filter(Tag.id.in_(list(tag_ids)))

    if entities is not None:
        query = query.filter(entities_clause(entities))

    return query


def _annotated(rows: Iterable[Any]) -> List[CountedTag]:
    return [CountedTag.of(tag, use_count) for tag, use_count in rows]


def with_counts(session: Session, site_id: Optional[int] = None) -> List[CountedTag]:
    """All used tags, ordered by title, with their `use_count`."""
    query = count_query(session, site_id=site_id).order_by(Tag.title.asc())
    return _annotated(query)


def most_popular(
    session: Session, limit: int, site_id: Optional[int] = None
) -> List[CountedTag]:
    """At most `limit` tags, most used first.

    Tags used the same number of times are ordered by title.
    """
    if limit <= 0:
        return []

    query = (
        count_query(session, site_id=site_id)
        .order_by(_USE_COUNT.desc(), Tag.title.asc())
        .limit(limit)
    )
    return _annotated(query)


def attached_to(
    session: Session, entities: Iterable[Any], site_id: Optional[int] = None
) -> List[CountedTag]:
    """Tags applied on any of `entities`, ordered by title.

    `use_count` only counts taggings on these entities.
    """
    query = count_query(session, entities=list(entities), site_id=site_id)
    return _annotated(query.order_by(Tag.title.asc()))


def refresh_counts(session: Session, tags: Sequence[Any]) -> Sequence[Any]:
    """Counted copies of `tags`, in the same order (`0` for unused tags).

    `tags` itself is returned when empty or when already counted.
    """
    if not tags or tags[0].use_count is not None:
        return tags

    ids = [tag.id for tag in tags]
    query = (
        session.query(Tagging.tag_id, func.count(Tagging.id))
        .filter(Tagging.tag_id.in_(ids))
        .group_by(Tagging.tag_id)
    )
    counts = dict(query.all())
    logger.debug("Counted uses of %d tags", len(ids))

    return [CountedTag.of(tag, counts.get(tag.id, 0)) for tag in tags]


def ensure_popularity(
    session: Session, tags: Sequence[Any], weighting: str = "band", **options: Any
):
    """Make sure `tags` are counted and weighted for a tag cloud.

    Uncounted tags are replaced by counted copies before weighing, see
    :func:`refresh_counts`.

    `tags` is returned untouched when empty or when its first tag already has
    a weight for `weighting`.
    """
    try:
        weight_attr = WEIGHT_ATTRIBUTES[weighting]
    except KeyError:
        raise ValueError(f"Unknown tag cloud weighting: {weighting!r}")

    if not tags or getattr(tags[0], weight_attr) is not None:
        return tags

    return weigh(refresh_counts(session, tags), weighting, **options)
