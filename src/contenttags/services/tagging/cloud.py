"""Tag cloud weighting.

Both functions work on tags already annotated with `use_count` (see
:mod:`.aggregation`) and set a visual weight on each of them:

- :func:`band` puts tags into a fixed number of linear buckets
  (`cloud_band`, from `0` to `bands - 1`), to be used as CSS classes for
  example;
- :func:`size` computes a continuous, logarithmically scaled weight
  (`cloud_size`), formatted as a decimal string with 2 fractional digits, to
  be used as a font size in `em`.
"""
import logging
import math
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence

from contenttags.core.models import Tag

__all__ = ("band", "size", "weigh", "WEIGHTINGS", "DEFAULT_BANDS")

logger = logging.getLogger(__name__)

DEFAULT_BANDS = 6
DEFAULT_THRESHOLD = 0
DEFAULT_BIGGEST = 1.0
DEFAULT_SMALLEST = 0.4

_TWO_PLACES = Decimal("0.01")


def _counts(tags: Sequence[Tag]) -> List[int]:
    return [int(tag.use_count or 0) for tag in tags]


def band(tags: Optional[Sequence[Tag]], bands: int = DEFAULT_BANDS):
    """Set `cloud_band` on each tag: its linear bucket, from `0` (least used)
    to `bands - 1` (most used).

    Returns `tags`, which is returned untouched when `None` or empty.
    """
    if bands < 1:
        raise ValueError(f"bands must be a positive integer, got {bands!r}")

    if not tags:
        return tags

    counts = _counts(tags)
    max_use = max(counts)
    min_use = min(counts)
    divisor = (max_use - min_use) // bands + 1

    for tag, count in zip(tags, counts):
        tag.cloud_band = (count - min_use) // divisor

    return tags


def size(
    tags: Optional[Sequence[Tag]],
    threshold: int = DEFAULT_THRESHOLD,
    biggest: float = DEFAULT_BIGGEST,
    smallest: float = DEFAULT_SMALLEST,
):
    """Set `cloud_size` on each tag, a weight between `smallest` and
    `biggest` growing with the logarithm of its use count.

    Tags used less than `threshold` times are left out of the computation
    and of the returned list, and their `cloud_size` is reset to `None`.
    When all tags are equally used, they all get `smallest`.

    Returns a list of the sized tags (or `tags` itself when `None` or empty).
    """
    if biggest < smallest:
        raise ValueError(
            f"biggest ({biggest!r}) must not be lower than smallest ({smallest!r})"
        )

    if not tags:
        return tags

    sized = []
    for tag in tags:
        if int(tag.use_count or 0) >= threshold:
            sized.append(tag)
        else:
            tag.cloud_size = None

    if not sized:
        return sized

    counts = _counts(sized)
    max_use = max(counts)
    min_use = min(counts)
    span = biggest - smallest
    # 0 when all tags are equally used: ln(1)
    spread = math.log(max_use - (min_use - 1))
    steepness = spread / span if span else 0.0

    for tag, count in zip(sized, counts):
        if steepness:
            offset = math.log(count - (min_use - 1)) / steepness
        else:
            offset = 0.0
        tag.cloud_size = _format_size(smallest + offset)

    return sized


def _format_size(value: float) -> str:
    return str(Decimal(repr(value)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


#: available weightings, by name
WEIGHTINGS = {"band": band, "size": size}

#: attribute set by each weighting
WEIGHT_ATTRIBUTES = {"band": "cloud_band", "size": "cloud_size"}


def weigh(tags: Optional[Sequence[Tag]], weighting: str = "band", **options):
    """Apply the weighting named `weighting` ("band" or "size") to `tags`.

    `options` are passed to the weighting function.
    """
    try:
        func = WEIGHTINGS[weighting]
    except KeyError:
        raise ValueError(f"Unknown tag cloud weighting: {weighting!r}")

    logger.debug("Weighing %d tags using %r", len(tags or ()), weighting)
    return func(tags, **options)
