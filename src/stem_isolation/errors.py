"""Exceptions raised by the separation pipeline.

None of these are retried: they signal a programming or configuration error
(wrong FFT size, mismatched tensor shapes, chunk out of bounds), not a
transient condition.
"""


class StemIsolationError(Exception):
    pass


class SizeError(StemIsolationError, ValueError):
    """FFT input length is not a power of two."""


class ShapeError(StemIsolationError, ValueError):
    """Tensor dimensions disagree between two stages or branches."""


class RangeError(StemIsolationError, ValueError):
    """A chunk offset/length or a padding target falls outside the tensor."""


class SeparationCancelled(StemIsolationError):
    """Raised between chunks when the caller sets the cancel event."""
