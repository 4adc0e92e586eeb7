# raster/errors.py
from enum import IntEnum


class Status(IntEnum):
    SUCCESS = 0
    INVALID_ARGUMENT = 1
    FILE_NOT_FOUND = 2
    FILE_READ = 3
    FILE_WRITE = 4
    UNSUPPORTED_FORMAT = 5
    OUT_OF_MEMORY = 6
    INTERNAL = 7


class ImageProcError(Exception):
    """Base class for filter and I/O failures. Each subclass maps to one Status."""
    status = Status.INTERNAL


class InvalidArgument(ImageProcError, ValueError):
    status = Status.INVALID_ARGUMENT


class Unsupported(ImageProcError):
    status = Status.UNSUPPORTED_FORMAT


class OutOfMemory(ImageProcError, MemoryError):
    status = Status.OUT_OF_MEMORY


class Internal(ImageProcError):
    status = Status.INTERNAL


class FileNotFound(ImageProcError):
    status = Status.FILE_NOT_FOUND


class FileRead(ImageProcError):
    status = Status.FILE_READ


class FileWrite(ImageProcError):
    status = Status.FILE_WRITE


def status_of(exc: BaseException) -> Status:
    if isinstance(exc, ImageProcError):
        return exc.status
    if isinstance(exc, MemoryError):
        return Status.OUT_OF_MEMORY
    return Status.INTERNAL
