"""Errors raised by the non-blocking DTX decoder."""

from __future__ import annotations


class DtxError(Exception):
    """Base class for DTX decoding errors."""

    out_of_sync: bool = False
    incomplete: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class OutOfSyncError(DtxError):
    """Raised when a message does not start with the DTX magic bytes."""

    out_of_sync = True


class IncompleteError(DtxError):
    """Raised when more bytes are needed to decode a whole message."""

    incomplete = True


def is_out_of_sync(err: BaseException | None) -> bool:
    """Return True if ``err`` reports a stream that lost synchronisation."""
    return isinstance(err, DtxError) and err.out_of_sync


def is_incomplete(err: BaseException | None) -> bool:
    """Return True if ``err`` reports an incomplete message."""
    return isinstance(err, DtxError) and err.incomplete