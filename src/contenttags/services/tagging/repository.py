"""Lookup, creation and application of tags."""
import logging
import re
from typing import Any, Callable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from contenttags.core.exceptions import SiteNotResolved
from contenttags.core.models import EntityRef, Tag, Tagging, User, taggables
from contenttags.core.util import unique

__all__ = ("TagRepository", "split_titles")

logger = logging.getLogger(__name__)

#: separators in tag lists: a comma or a semicolon, with optional spaces
_SEPARATOR_RE = re.compile(r"[,;]\s*")


def split_titles(text: Optional[str]) -> List[str]:
    """Split a tag list such as `"red, blue;green"` into distinct titles, in
    order of first appearance.

    Titles are stripped and blank entries are dropped. Comparison is case
    sensitive.
    """
    if not text or not text.strip():
        return []

    titles = (title.strip() for title in _SEPARATOR_RE.split(text))
    return unique(title for title in titles if title)


def _clean_title(title: str) -> str:
    title = (title or "").strip()
    if not title:
        raise ValueError("Tag title cannot be empty")
    return title


class TagRepository:
    """Tags of a session, optionally partitioned by site.

    :param site_scoped: whether tag titles are unique per site rather than
        globally. This is a property of the deployment.
    :param site_resolver: callable returning the current site id, used by
        site scoped repositories when no `site_id` is passed explicitly.
    """

    def __init__(
        self,
        session: Session,
        site_scoped: bool = False,
        site_resolver: Optional[Callable[[], Optional[int]]] = None,
    ) -> None:
        self.session = session
        self.site_scoped = bool(site_scoped)
        self.site_resolver = site_resolver

    def is_site_scoped(self) -> bool:
        return self.site_scoped

    def current_site_id(self) -> int:
        """Site id to use for lookups: always `0` when not site scoped."""
        if not self.site_scoped:
            return 0

        site_id = self.site_resolver() if self.site_resolver else None
        if site_id is None:
            raise SiteNotResolved("Tags are site scoped but no current site is set")
        return site_id

    def site_id(self, site_id: Optional[int] = None) -> int:
        if not self.site_scoped:
            return 0
        return self.current_site_id() if site_id is None else site_id

    def query(self, site_id: Optional[int] = None) -> Query:
        return self.session.query(Tag).filter(Tag.site_id == self.site_id(site_id))

    def get(self, tag_id: int) -> Optional[Tag]:
        return self.session.get(Tag, tag_id)

    def all(self, site_id: Optional[int] = None) -> List[Tag]:
        return self.query(site_id).order_by(Tag.title).all()

    def find(self, title: str, site_id: Optional[int] = None) -> Optional[Tag]:
        """Tag with exact title `title`, or `None`.

        The title is not stripped, unlike in :meth:`find_or_create` and
        :meth:`parse_list`: `" python "` never matches a stored title.
        """
        return self.query(site_id).filter(Tag.title == title).first()

    def find_or_create(
        self, title: str, site_id: Optional[int] = None, user: Optional[User] = None
    ) -> Tag:
        """Tag with title `title`, created if needed.

        If another transaction creates the same tag concurrently, the
        unique constraint violation is caught and the other tag is returned.
        """
        title = _clean_title(title)
        site_id = self.site_id(site_id)
        tag = self.find(title, site_id)
        if tag is not None:
            return tag

        tag = Tag(title=title, site_id=site_id, created_by=user, updated_by=user)
        tag = self._insert(tag, lambda: self.find(title, site_id))
        logger.debug("Tag %r (site %d): %r", title, site_id, tag)
        return tag

    def parse_list(
        self,
        text: Optional[str],
        create: bool = True,
        site_id: Optional[int] = None,
        user: Optional[User] = None,
    ) -> List[Tag]:
        """Tags for a comma or semicolon separated list of titles, in order.

        When `create` is false, unknown titles are skipped.
        """
        tags = []
        for title in split_titles(text):
            if create:
                tag = self.find_or_create(title, site_id=site_id, user=user)
            else:
                tag = self.find(title, site_id=site_id)
            if tag is not None:
                tags.append(tag)
        return tags

    def rename(self, tag: Tag, title: str, user: Optional[User] = None) -> Tag:
        tag.title = _clean_title(title)
        if user is not None:
            tag.updated_by = user
        self.session.flush()
        return tag

    def delete(self, tag: Tag) -> None:
        """Delete `tag`, and all its taggings."""
        logger.info("Deleting tag %r", tag)
        self.session.delete(tag)
        self.session.flush()

    def tagging(self, tag: Tag, entity: Any) -> Optional[Tagging]:
        if tag.id is None:
            return None
        ref = taggables.ref(entity)
        query = self.session.query(Tagging).filter(
            Tagging.tag_id == tag.id,
            Tagging.tagged_type == ref.kind,
            Tagging.tagged_id == ref.id,
        )
        return query.first()

    def apply(self, tag: Tag, entity: Any) -> Tagging:
        """Tag `entity` (a flushed instance of a taggable class, or an
        :class:`~.EntityRef`) with `tag`. Does nothing if already tagged."""
        tagging = self.tagging(tag, entity)
        if tagging is not None:
            return tagging

        ref: EntityRef = taggables.ref(entity)
        if tag.id is None:
            self.session.add(tag)
            self.session.flush()

        # set by id: a failed insert must not linger in `tag.taggings`
        tagging = Tagging(tag_id=tag.id, tagged_type=ref.kind, tagged_id=ref.id)
        tagging = self._insert(tagging, lambda: self.tagging(tag, ref))
        self.session.expire(tag, ["taggings"])
        return tagging

    def remove(self, tag: Tag, entity: Any) -> bool:
        """Remove `tag` from `entity`. Returns whether it was applied."""
        tagging = self.tagging(tag, entity)
        if tagging is None:
            return False

        self.session.delete(tagging)
        self.session.flush()
        self.session.expire(tag, ["taggings"])
        return True

    def _insert(self, obj: Any, lookup: Callable[[], Any]) -> Any:
        try:
            with self.session.begin_nested():
                self.session.add(obj)
        except IntegrityError:
            existing = lookup()
            if existing is None:
                raise
            logger.info("%r was inserted concurrently, using it", existing)
            return existing
        return obj
