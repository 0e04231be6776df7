"""
Exception hierarchy for plate reduction jobs.

Every error here is fatal for a run except TileNotFoundError, which the
aggregator reads as "no tiles at this cell".
"""


class PlateReduceError(Exception):
    """Base class for all plate reduction failures."""
    pass


class ArgumentError(PlateReduceError, ValueError):
    """
    Malformed or missing job input.

    Examples:
        - Unknown reduction function name
        - Level outside [0, num_levels)
        - job_id not in [0, num_jobs)
    """
    pass


class UnsupportedFormatError(PlateReduceError):
    """The store's pixel format / channel type pair has no reduction path."""
    pass


class StoreError(PlateReduceError):
    """Read or write failure reported by the tile store."""
    pass


class TileNotFoundError(StoreError, LookupError):
    """No tile exists at the requested location or transaction range."""
    pass


class WriteProtocolError(StoreError):
    """write_request / write_update / write_complete called out of order."""
    pass
