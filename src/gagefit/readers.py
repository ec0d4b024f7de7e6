"""Interfaces for the gage and model-output readers.

Concrete readers (vendor text formats, NetCDF output with basin masks)
live outside this package; anything with these methods can feed
BasinEvaluator.from_readers.
"""

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Protocol

from .models import ModelOutput


class GageReader(Protocol):
    def read_gage(self, station: str) -> Iterable[Sequence]:
        """Return (timestamp, discharge m³/s) observations for a station."""
        ...


class ModelOutputReader(Protocol):
    def read_basin(self, station: str) -> ModelOutput:
        """Return basin-averaged accumulated runoff and the contributing cell count."""
        ...


def read_observed(reader: GageReader, station: str) -> list[tuple[datetime, float | None]]:
    """Materialise a gage record so the core never performs I/O."""
    return [tuple(record) for record in reader.read_gage(station)]
