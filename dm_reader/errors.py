class DecodeError(Exception):
    """Fatal failure of the decoding pipeline."""


class InsufficientSignal(DecodeError):
    """No color transitions of a needed kind were found in the scanned region."""


class BoundaryNotFound(DecodeError):
    """No scanline reached the dark pixel threshold."""


class DimensionMismatch(RuntimeError):
    """Rows of a grid or matrix differ in length."""
