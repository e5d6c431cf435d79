""""""
import logging

import click
from flask.cli import AppGroup

from contenttags.core.extensions import db
from contenttags.services import get_service

logger = logging.getLogger(__name__)

tags_commands = AppGroup("tags", help="Tags, popularity and tag clouds.")


def _service():
    return get_service("tagging")


@tags_commands.command()
@click.option("--limit", type=int, default=None, help="Number of tags to show.")
def popular(limit=None):
    """Show the most used tags."""
    for tag in _service().most_popular(limit):
        click.echo(f"{tag.use_count:>6}  {tag.title}")


@tags_commands.command()
@click.option(
    "--weighting",
    type=click.Choice(["band", "size"]),
    default=None,
    help="Weighting to use instead of TAGS_CLOUD_WEIGHTING.",
)
def cloud(weighting=None):
    """Show the tag cloud: every used tag with its weight."""
    service = _service()
    tags = service.cloud(weighting=weighting)
    weighting = weighting or service.default_weighting()
    attr = "cloud_band" if weighting == "band" else "cloud_size"
    for tag in tags:
        click.echo(f"{getattr(tag, attr)!s:>6}  {tag.title} ({tag.use_count})")


@tags_commands.command()
@click.argument("titles", nargs=-1, required=True)
def coincident(titles):
    """Show the tags used together with all of the given tags."""
    service = _service()
    tags = []
    for title in titles:
        tag = service.find(title)
        if tag is None:
            raise click.ClickException(f"No such tag: {title!r}")
        tags.append(tag)

    for tag in sorted(service.coincident_with(tags)):
        click.echo(tag.title)


@tags_commands.command()
@click.argument("text")
@click.option("--create/--no-create", default=True, help="Create missing tags.")
def parse(text, create=True):
    """Resolve a comma or semicolon separated list of tags."""
    tags = _service().parse_list(text, create=create)
    if create:
        db.session.commit()
        logger.info("Resolved %d tags", len(tags))

    for tag in tags:
        click.echo(f"{tag.id:>6}  {tag.title}")
