"""
Exception hierarchy for nbodyip.

All errors are raised at the point of detection and propagate to the
caller; nothing in the package catches and recovers from them.
"""
from typing import Optional, Union


class NBodyIPError(Exception):
    """Base class for all nbodyip errors."""


class ConfigurationError(NBodyIPError, ValueError):
    """
    Malformed descriptor or configuration payload.

    Raised at construction time, e.g. for an unparsable distance
    transform, an unknown cutoff shape, a tuple that does not fit the
    body order of its dictionary, or an invalid serialised record.
    """


class DimensionMismatch(NBodyIPError, ValueError):
    """
    Distance vector length does not match the expected number of edges.

    A distance vector for an N-body term must hold exactly N(N-1)/2
    entries. Vectors are never truncated or padded.
    """

    def __init__(
        self,
        expected: Union[int, str],
        got: int,
        body_order: Optional[int] = None,
    ) -> None:
        self.expected = expected
        self.got = got
        self.body_order = body_order
        where = f" for body order {body_order}" if body_order is not None else ""
        super().__init__(
            f"Distance vector must have {expected} entries{where}, got {got}"
        )


class NonMonotoneBoundError(NBodyIPError):
    """
    A tuple bound predicate was found to be non-monotone.

    Only raised by the opt-in verification pass of the basis generator.
    """
