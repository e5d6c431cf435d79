"""Exceptions raised by the tagging subsystem."""

__all__ = ("TaggingError", "UnknownTaggable", "SiteNotResolved")


class TaggingError(Exception):
    pass


class UnknownTaggable(TaggingError, KeyError):
    """Raised for an entity (or entity kind) that was never registered as
    taggable."""

    def __str__(self) -> str:
        # KeyError would repr() the argument
        return Exception.__str__(self)


class SiteNotResolved(TaggingError, RuntimeError):
    """Tags are site scoped but no current site id could be determined."""
