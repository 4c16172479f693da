class InvalidDimensionError(ValueError):
    """Grid dimensions that leave no cells to rank."""


class InvariantViolation(RuntimeError):
    """
    The membership grid and the energy field disagree with the ranking
    protocol, e.g. a cluster search finds nothing while cells are still on.
    """


class RandomSourceExhausted(RuntimeError):
    """A replayed random source ran out of draws."""
