"""Errors that abort a conversion run."""


class FatalInputError(RuntimeError):
    """Raised when a conversion run cannot proceed; nothing is emitted."""


class InvalidNameError(FatalInputError):
    """Raised when a fully-qualified name cannot be parsed or is not allowed."""


class PackageNotFoundError(FatalInputError):
    """Raised when a requested package release does not exist."""


class NewerVersionError(FatalInputError):
    """Raised when a newer minor version exists and conversion was not forced."""


class ParseFailureError(FatalInputError):
    """Raised when a package release document cannot be read or resolved."""
