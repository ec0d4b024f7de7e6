"""Exceptions raised by the gagefit evaluation pipeline."""


class GageFitError(Exception):
    """Base exception for streamflow evaluation errors.

    Attributes:
        station: Station code of the basin being processed, when known
        stage: Pipeline stage that failed, when known
    """

    def __init__(self, message: str, station: str | None = None, stage: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.station = station
        self.stage = stage

    def __str__(self) -> str:
        if self.station is None:
            return self.message
        return f"[{self.station}] {self.message}"


class InvalidDateError(GageFitError):
    """Calendar input outside the valid range (e.g. month 13)."""

    pass


class InvalidParameterError(GageFitError):
    """Non-positive area, time step, or another invalid numeric parameter."""

    pass


class IrregularTimestepError(GageFitError):
    """Model series whose time step is not uniform."""

    pass


class TimezoneMismatchError(GageFitError):
    """Timestamps in different or undeclared time zones."""

    pass


class InsufficientOverlapError(GageFitError):
    """Fewer than two valid observed/modeled pairs to compare."""

    pass
