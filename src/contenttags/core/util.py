"""Various tools that don't belong some place specific."""
from typing import Hashable, Iterable, List, TypeVar

T = TypeVar("T", bound=Hashable)


def fqcn(cls: type) -> str:
    """Fully Qualified Class Name."""
    return str(cls.__module__ + "." + cls.__name__)


def unique(items: Iterable[T]) -> List[T]:
    """Remove duplicates from `items`, keeping first occurrences in order."""
    seen = set()
    result = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result
