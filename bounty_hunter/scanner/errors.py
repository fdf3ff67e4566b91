class ScanError(Exception):
    """Base class for scan pipeline errors."""


class OutputSetupError(ScanError):
    """Output directory or an output file could not be created. Aborts the run."""


class ChannelClosedError(ScanError):
    """Raised on put() after close(), and on get() once a closed channel is drained."""
