from pytest import fixture, raises
from sqlalchemy.exc import IntegrityError

from contenttags.core.exceptions import SiteNotResolved, UnknownTaggable
from contenttags.core.models import EntityRef, Tag, Tagging
from contenttags.services.tagging import TagRepository

from ..dummy import Note, Page


@fixture
def repository(session):
    return TagRepository(session)


@fixture
def page(session):
    page = Page(title="Home")
    session.add(page)
    session.flush()
    return page


def test_find_or_create(session, repository):
    assert repository.find("python") is None

    tag = repository.find_or_create("python")
    assert tag.id is not None
    assert tag.site_id == 0
    assert repository.find("python") is tag
    assert repository.find_or_create(" python ") is tag
    assert repository.find(" python ") is None
    assert session.query(Tag).count() == 1


def test_plain_lookup_has_no_derived_values(repository):
    repository.find_or_create("python")
    tag = repository.find("python")
    assert tag.use_count is None
    assert tag.cloud_band is None
    assert tag.cloud_size is None


def test_find_or_create_sets_creator(repository, user):
    tag = repository.find_or_create("python", user=user)
    assert tag.created_by is user
    assert tag.updated_by is user


def test_find_or_create_empty_title(repository):
    with raises(ValueError):
        repository.find_or_create("  ")


def test_find_or_create_concurrent_insert(session, repository, monkeypatch):
    existing = Tag(title="race")
    session.add(existing)
    session.flush()

    calls = []
    find = repository.find

    def racing_find(title, site_id=None):
        # first lookup happens before the other transaction commits
        calls.append(title)
        if len(calls) == 1:
            return None
        return find(title, site_id=site_id)

    monkeypatch.setattr(repository, "find", racing_find)

    tag = repository.find_or_create("race")
    assert tag is existing
    assert len(calls) == 2
    assert session.query(Tag).count() == 1

    # session is still usable
    other = repository.find_or_create("other")
    assert other.id is not None


def test_titles_are_trimmed_and_not_empty(session):
    session.add(Tag(title=" padded"))
    with raises(IntegrityError):
        session.flush()


def test_parse_list(session, repository):
    tags = repository.parse_list("red, blue;green")
    assert [t.title for t in tags] == ["red", "blue", "green"]
    assert len(set(tags)) == 3

    again = repository.parse_list("red, blue;green")
    assert again == tags
    assert session.query(Tag).count() == 3


def test_parse_list_blank(session, repository):
    assert repository.parse_list("") == []
    assert repository.parse_list("  ,  ") == []
    assert repository.parse_list(None) == []
    assert session.query(Tag).count() == 0


def test_parse_list_duplicates(repository):
    tags = repository.parse_list("red; Red, red")
    assert [t.title for t in tags] == ["red", "Red"]


def test_parse_list_without_create(session, repository):
    red = repository.find_or_create("red")
    tags = repository.parse_list("red, blue", create=False)
    assert tags == [red]
    assert session.query(Tag).count() == 1


def test_all_and_get(repository):
    b = repository.find_or_create("b")
    a = repository.find_or_create("a")
    assert repository.all() == [a, b]
    assert repository.get(a.id) is a
    assert repository.get(-1) is None


def test_rename(repository, user):
    tag = repository.find_or_create("pyhton")
    repository.rename(tag, "python ", user=user)
    assert tag.title == "python"
    assert tag.updated_by is user
    assert repository.find("python") is tag


def test_apply_and_remove(session, repository, page):
    tag = repository.find_or_create("python")

    tagging = repository.apply(tag, page)
    assert tagging.ref == EntityRef("Page", page.id)
    assert tagging.tagged is page
    assert repository.apply(tag, page) is tagging
    assert session.query(Tagging).count() == 1
    assert tag.taggings == [tagging]

    assert repository.remove(tag, page)
    assert not repository.remove(tag, page)
    assert session.query(Tagging).count() == 0
    assert tag.taggings == []


def test_apply_new_tag(session, repository, page):
    tag = Tag(title="fresh")
    repository.apply(tag, page)
    assert tag.id is not None
    assert session.query(Tagging).filter(Tagging.tag_id == tag.id).count() == 1


def test_apply_requires_taggable(session, repository, page):
    tag = repository.find_or_create("python")

    note = Note(body="not taggable")
    session.add(note)
    session.flush()
    with raises(UnknownTaggable):
        repository.apply(tag, note)

    with raises(ValueError):
        repository.apply(tag, Page(title="not flushed"))


def test_tagged_entity_deleted(session, repository, page):
    tag = repository.find_or_create("python")
    tagging = repository.apply(tag, page)
    session.delete(page)
    session.flush()
    assert tagging.tagged is None


def test_delete_cascades_to_taggings(session, repository, page):
    tag = repository.find_or_create("python")
    other = repository.find_or_create("other")
    repository.apply(tag, page)
    repository.apply(other, page)
    repository.apply(tag, EntityRef("Page", page.id + 1000))

    repository.delete(tag)
    assert repository.find("python") is None
    assert session.query(Tagging).count() == 1
    assert session.query(Tagging).one().tag_id == other.id


def test_not_site_scoped(repository):
    assert not repository.is_site_scoped()
    assert repository.current_site_id() == 0
    # site ids are ignored
    tag = repository.find_or_create("python", site_id=3)
    assert tag.site_id == 0
    assert repository.find("python", site_id=5) is tag


def test_site_scoped(session):
    repository = TagRepository(session, site_scoped=True, site_resolver=lambda: 1)
    assert repository.is_site_scoped()

    tag1 = repository.find_or_create("python")
    tag2 = repository.find_or_create("python", site_id=2)
    assert tag1 is not tag2
    assert (tag1.site_id, tag2.site_id) == (1, 2)
    assert repository.find("python") is tag1
    assert repository.find("python", site_id=2) is tag2
    assert repository.find("python", site_id=3) is None
    assert repository.all() == [tag1]


def test_site_scoped_without_site(session):
    repository = TagRepository(session, site_scoped=True)
    with raises(SiteNotResolved):
        repository.find("python")

    repository = TagRepository(session, site_scoped=True, site_resolver=lambda: None)
    with raises(SiteNotResolved):
        repository.find_or_create("python")

    # an explicit site id is enough
    assert repository.find_or_create("python", site_id=4).site_id == 4
