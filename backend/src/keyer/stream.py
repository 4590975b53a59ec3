"""Pixel source / pixel sink — the seam to whatever owns the image buffer.

A source is any iterable of colors; a sink is anything with write(alpha).
The host (row iterator, tile scheduler, test harness) drives the loop; the
keyer only maps one color to one alpha.
"""

import logging
from collections.abc import Iterable, Iterator
from typing import Protocol

from keyer.params import KeyParameters
from keyer.postprocess import key_alpha

logger = logging.getLogger(__name__)

PixelSource = Iterable


class PixelSink(Protocol):
    def write(self, alpha: float) -> None: ...


class ListSink:
    """Collects alphas in memory."""

    def __init__(self):
        self.alphas: list[float] = []

    def write(self, alpha: float) -> None:
        self.alphas.append(alpha)


def key_pixels(source: PixelSource, params: KeyParameters) -> Iterator[float]:
    """Lazily yield one final alpha per source pixel, in order."""
    for pixel in source:
        yield key_alpha(pixel, params)


def run(source: PixelSource, sink: PixelSink, params: KeyParameters) -> int:
    """Drain source into sink. Returns the number of pixels written."""
    count = 0
    for alpha in key_pixels(source, params):
        sink.write(alpha)
        count += 1
    logger.debug("Keyed %d pixels (method=%s)", count, params.method.value)
    return count
