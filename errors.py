# Exceptions shared across the comparison pipeline


class BillTracerError(Exception):
    """Base class for errors raised by BillTracer."""


class FetchError(BillTracerError):
    """The legislative API could not supply versions (network, auth, payload)."""


class UnknownVersionError(BillTracerError, KeyError):
    """A requested version id is not part of the loaded versions."""

    def __init__(self, version_id: str):
        super().__init__(version_id)
        self.version_id = version_id

    def __str__(self) -> str:
        return f"unknown version: {self.version_id!r}"
