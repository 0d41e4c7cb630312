"""hidl2aidl - HIDL to AIDL conversion and translation code generator.

The command line tool lives in :mod:`hidl2aidl.cli`. For library use,
:func:`convert_package` runs a whole conversion and the lower level steps
(:func:`merge`, :func:`emit`, :class:`AidlEmitter`) are exported here too.
"""

import importlib.metadata

try:
    __version__ = importlib.metadata.version("hidl2aidl")
except importlib.metadata.PackageNotFoundError:
    __version__ = "(local)"

from .aidl import AidlEmitter
from .classify import classify
from .convert import ConversionResult, convert_package
from .errors import FatalInputError
from .fqname import parse_fqname
from .loader import Resolver, SchemaRepository
from .merge import merge
from .notes import NoteKind, Notes
from .replaced import ReplacedTypeRegistry
from .translate import emit

__all__ = [
    "AidlEmitter",
    "ConversionResult",
    "FatalInputError",
    "NoteKind",
    "Notes",
    "ReplacedTypeRegistry",
    "Resolver",
    "SchemaRepository",
    "__version__",
    "classify",
    "convert_package",
    "emit",
    "merge",
    "parse_fqname",
]
