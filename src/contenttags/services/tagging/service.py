"""The tagging service.

Installed on an application, it binds the tag repository, the aggregation
and the co-occurrence queries to the current `db.session` and to the
application configuration:

- `TAGS_SITE_SCOPED`: whether tags are partitioned by site;
- `TAGS_SITE_RESOLVER`: callable returning the current site id (can also be
  passed to :meth:`TagService.init_app`);
- `TAGS_CLOUD_WEIGHTING`: `"band"` or `"size"`, used by tag clouds;
- `TAGS_CLOUD_BANDS`, `TAGS_CLOUD_THRESHOLD`, `TAGS_CLOUD_BIGGEST`,
  `TAGS_CLOUD_SMALLEST`: weighting options;
- `TAGS_POPULAR_LIMIT`: default number of tags in :meth:`most_popular`.
"""
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, \
    Set, Union

from flask import Flask, current_app

from contenttags.core.extensions import db
from contenttags.core.models import CountedTag, EntityRef, Tag, Tagging, User
from contenttags.services.base import Service, ServiceState

from . import aggregation, cloud, coincidence
from .repository import TagRepository

__all__ = ("TagService", "TagServiceState")

CONFIG_DEFAULTS = {
    "TAGS_SITE_SCOPED": False,
    "TAGS_SITE_RESOLVER": None,
    "TAGS_CLOUD_WEIGHTING": "band",
    "TAGS_CLOUD_BANDS": cloud.DEFAULT_BANDS,
    "TAGS_CLOUD_THRESHOLD": cloud.DEFAULT_THRESHOLD,
    "TAGS_CLOUD_BIGGEST": cloud.DEFAULT_BIGGEST,
    "TAGS_CLOUD_SMALLEST": cloud.DEFAULT_SMALLEST,
    "TAGS_POPULAR_LIMIT": 10,
}


class TagServiceState(ServiceState):
    #: callable returning the current site id
    site_resolver: Optional[Callable[[], Optional[int]]] = None


class TagService(Service):
    """Tags: lookup and creation, application on content, popularity and
    tag clouds."""

    name = "tagging"
    AppStateClass = TagServiceState

    def init_app(
        self, app: Flask, site_resolver: Optional[Callable[[], Optional[int]]] = None
    ) -> None:
        super().init_app(app)
        for key, value in CONFIG_DEFAULTS.items():
            app.config.setdefault(key, value)

        state = app.extensions[self.name]
        state.site_resolver = site_resolver or app.config["TAGS_SITE_RESOLVER"]

        weighting = app.config["TAGS_CLOUD_WEIGHTING"]
        if weighting not in cloud.WEIGHTINGS:
            raise ValueError(f"Invalid TAGS_CLOUD_WEIGHTING: {weighting!r}")

    #
    # Configuration
    #
    def is_site_scoped(self) -> bool:
        return bool(current_app.config["TAGS_SITE_SCOPED"])

    @property
    def repository(self) -> TagRepository:
        """Repository on the current session."""
        return TagRepository(
            db.session,
            site_scoped=self.is_site_scoped(),
            site_resolver=self.app_state.site_resolver,
        )

    def _site_id(self) -> Optional[int]:
        if not self.is_site_scoped():
            return None
        return self.repository.current_site_id()

    def default_weighting(self) -> str:
        return current_app.config["TAGS_CLOUD_WEIGHTING"]

    def weighting_options(self, weighting: str) -> Dict[str, Any]:
        config = current_app.config
        if weighting == "band":
            return {"bands": config["TAGS_CLOUD_BANDS"]}
        return {
            "threshold": config["TAGS_CLOUD_THRESHOLD"],
            "biggest": config["TAGS_CLOUD_BIGGEST"],
            "smallest": config["TAGS_CLOUD_SMALLEST"],
        }

    #
    # Repository
    #
    def get(self, tag_id: int) -> Optional[Tag]:
        return self.repository.get(tag_id)

    def all(self) -> List[Tag]:
        return self.repository.all()

    def find(self, title: str, site_id: Optional[int] = None) -> Optional[Tag]:
        return self.repository.find(title, site_id=site_id)

    def find_or_create(
        self, title: str, site_id: Optional[int] = None, user: Optional[User] = None
    ) -> Tag:
        return self.repository.find_or_create(title, site_id=site_id, user=user)

    def parse_list(
        self, text: Optional[str], create: bool = True, user: Optional[User] = None
    ) -> List[Tag]:
        return self.repository.parse_list(text, create=create, user=user)

    def rename(self, tag: Tag, title: str, user: Optional[User] = None) -> Tag:
        return self.repository.rename(tag, title, user=user)

    def delete(self, tag: Tag) -> None:
        self.repository.delete(tag)

    def tag(
        self, entity: Any, tag: Union[Tag, str], user: Optional[User] = None
    ) -> Tagging:
        """Apply a tag, or a tag title, on a taggable entity."""
        repository = self.repository
        if not isinstance(tag, Tag):
            tag = repository.find_or_create(tag, user=user)
        return repository.apply(tag, entity)

    def untag(self, entity: Any, tag: Union[Tag, str]) -> bool:
        """Remove the given tag from the given entity.

        See :meth:`tag`.
        """
        repository = self.repository
        if not isinstance(tag, Tag):
            tag = repository.find(tag)
            if tag is None:
                return False
        return repository.remove(tag, entity)

    def tags_of(self, entity: Any) -> List[Tag]:
        """Tags applied on a given entity, sorted."""
        return sorted(coincidence.attached_tags_of(db.session, entity))

    #
    # Popularity
    #
    def with_counts(self) -> List[CountedTag]:
        return aggregation.with_counts(db.session, site_id=self._site_id())

    def most_popular(self, limit: Optional[int] = None) -> List[CountedTag]:
        if limit is None:
            limit = current_app.config["TAGS_POPULAR_LIMIT"]
        return aggregation.most_popular(db.session, limit, site_id=self._site_id())

    def attached_to(self, entities: Iterable[Any]) -> List[CountedTag]:
        return aggregation.attached_to(db.session, entities, site_id=self._site_id())

    def refresh_counts(self, tags: Sequence[Any]) -> Sequence[Any]:
        return aggregation.refresh_counts(db.session, tags)

    def ensure_popularity(
        self, tags: Sequence[Any], weighting: Optional[str] = None
    ) -> Sequence[Any]:
        weighting = weighting or self.default_weighting()
        options = self.weighting_options(weighting)
        return aggregation.ensure_popularity(db.session, tags, weighting, **options)

    def cloud(
        self, tags: Optional[Sequence[Any]] = None, weighting: Optional[str] = None
    ) -> Sequence[Any]:
        """Weighted tags for a tag cloud.

        :param tags: tags to weigh; all used tags, ordered by title, when
            `None`. Plain tags are replaced by counted copies.
        """
        if tags is None:
            tags = self.with_counts()
        tags = self.ensure_popularity(tags, weighting=weighting)
        self.logger.debug("Tag cloud of %d tags", len(tags))
        return tags

    #
    # Co-occurrence
    #
    def coincident_with(
        self, tags: Union[Tag, CountedTag, Iterable[Any]]
    ) -> Set[Tag]:
        """Tags co-occurring with a tag, or with all of a set of tags."""
        if isinstance(tags, (Tag, CountedTag)):
            return coincidence.tags_coincident_with_one(db.session, tags)
        return coincidence.tags_coincident_with_all(db.session, tags)

    def entities_tagged_with_all(self, tags: Iterable[Tag]) -> List[EntityRef]:
        return coincidence.entities_tagged_with_all(db.session, tags)

    def entities_of_type(self, tag: Tag, kind: Union[str, type]) -> List[Any]:
        return coincidence.entities_of_type(db.session, tag, kind)

    def count_of_type(self, tag: Tag, kind: Union[str, type]) -> int:
        return coincidence.count_of_type(db.session, tag, kind)
