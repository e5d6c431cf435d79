from pytest import fixture, raises

from contenttags.core.models import Tag
from contenttags.services.tagging import TagRepository
from contenttags.services.tagging.aggregation import attached_to, count_query, \
    ensure_popularity, most_popular, refresh_counts, with_counts

from ..dummy import Asset, Page


@fixture
def repository(session):
    return TagRepository(session)


@fixture
def pages(session):
    pages = [Page(title=f"page {i}") for i in range(5)]
    session.add_all(pages)
    session.flush()
    return pages


@fixture
def tags(repository, pages):
    """Tags 'a' to 'e', used 5, 5, 3, 1 and 0 times."""
    tags = repository.parse_list("b, a, c, d, e")
    usage = {"a": 5, "b": 5, "c": 3, "d": 1, "e": 0}
    for tag in tags:
        for page in pages[: usage[tag.title]]:
            repository.apply(tag, page)
    return {tag.title: tag for tag in tags}


def test_most_popular(session, tags):
    popular = most_popular(session, 3)
    assert [t.title for t in popular] == ["a", "b", "c"]
    assert [t.use_count for t in popular] == [5, 5, 3]


def test_most_popular_excludes_unused(session, tags):
    popular = most_popular(session, 10)
    assert [t.title for t in popular] == ["a", "b", "c", "d"]
    assert most_popular(session, 0) == []


def test_with_counts(session, tags):
    counted = with_counts(session)
    assert [(t.title, t.use_count) for t in counted] == [
        ("a", 5),
        ("b", 5),
        ("c", 3),
        ("d", 1),
    ]


def test_site_filter(session, tags, pages, repository):
    other_site = Tag(title="elsewhere", site_id=2)
    session.add(other_site)
    session.flush()
    repository.apply(other_site, pages[0])

    assert [t.title for t in with_counts(session, site_id=2)] == ["elsewhere"]
    assert "elsewhere" not in [t.title for t in with_counts(session, site_id=0)]
    assert len(with_counts(session)) == 5


def test_count_query_restrictions(session, tags, pages):
    query = count_query(session, tag_ids=[tags["a"].id, tags["d"].id])
    assert sorted((tag.title, count) for tag, count in query) == [("a", 5), ("d", 1)]

    query = count_query(session, entities=pages[3:])
    assert sorted((tag.title, count) for tag, count in query) == [("a", 2), ("b", 2)]

    assert count_query(session, entities=[]).all() == []


def test_attached_to(session, tags, pages):
    attached = attached_to(session, pages[1:3])
    assert [(t.title, t.use_count) for t in attached] == [
        ("a", 2),
        ("b", 2),
        ("c", 2),
    ]


def test_attached_to_several_kinds(session, tags, pages, repository):
    asset = Asset(name="logo")
    session.add(asset)
    session.flush()
    repository.apply(tags["e"], asset)

    attached = attached_to(session, [pages[4], asset])
    assert [(t.title, t.use_count) for t in attached] == [("a", 1), ("b", 1), ("e", 1)]


def test_refresh_counts(session, tags, repository):
    plain = repository.all()
    assert [t.use_count for t in plain] == [None] * 5

    counted = refresh_counts(session, plain)
    assert counted == plain
    assert [(t.title, t.use_count) for t in counted] == [
        ("a", 5),
        ("b", 5),
        ("c", 3),
        ("d", 1),
        ("e", 0),
    ]
    # tags of the session are left alone
    assert [t.use_count for t in plain] == [None] * 5

    # already counted: untouched
    counted[0].use_count = 42
    assert refresh_counts(session, counted) is counted
    assert counted[0].use_count == 42


def test_refresh_counts_empty(session):
    empty = []
    assert refresh_counts(session, empty) is empty


def test_ensure_popularity_band(session, tags, repository):
    plain = repository.all()
    result = ensure_popularity(session, plain, "band", bands=6)
    assert result == plain
    # min 0, max 5: divisor = 5 // 6 + 1 = 1
    assert [t.cloud_band for t in result] == [5, 5, 3, 1, 0]
    assert [t.cloud_band for t in plain] == [None] * 5

    assert ensure_popularity(session, result, "band") is result


def test_ensure_popularity_size(session, tags):
    counted = with_counts(session)
    result = ensure_popularity(session, counted, "size")
    assert [t.cloud_size for t in result] == ["1.00", "1.00", "0.81", "0.40"]

    # already sized: untouched
    result[0].cloud_size = "9.99"
    assert ensure_popularity(session, result, "size") is result
    assert result[0].cloud_size == "9.99"


def test_ensure_popularity_invalid(session, tags):
    with raises(ValueError):
        ensure_popularity(session, with_counts(session), "bubble")

    assert ensure_popularity(session, [], "size") == []


def test_lookup_while_counted_tags_are_held(session, tags, repository):
    popular = most_popular(session, 3)
    tag = repository.find("a")
    assert tag == popular[0]
    assert tag is not popular[0]
    assert (tag.use_count, tag.cloud_band, tag.cloud_size) == (None, None, None)
    assert popular[0].use_count == 5
    assert [t.use_count for t in repository.all()] == [None] * 5


def test_successive_aggregations_are_independent(session, tags, pages):
    attached = ensure_popularity(session, attached_to(session, pages[4:]), "band")
    counted = ensure_popularity(session, with_counts(session), "band")

    assert [(t.title, t.use_count, t.cloud_band) for t in attached] == [
        ("a", 1, 0),
        ("b", 1, 0),
    ]
    # min 1, max 5: divisor = 4 // 6 + 1 = 1
    assert [(t.title, t.use_count, t.cloud_band) for t in counted] == [
        ("a", 5, 4),
        ("b", 5, 4),
        ("c", 3, 2),
        ("d", 1, 0),
    ]
