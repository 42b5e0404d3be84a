class StereographError(Exception):
    """Base class for errors raised while building a stereograph."""


class FileTypeRejected(StereographError):
    """The supplied file is not image data."""


class DecodeFailed(StereographError):
    """Image bytes could not be decoded into a bitmap."""


class DefaultLoadFailed(StereographError):
    """A default image could not be fetched or decoded."""


class NotReady(StereographError):
    """Generation was requested before both images were loaded."""


class InvalidScale(StereographError, ValueError):
    """The scale factor is not a usable positive number."""
