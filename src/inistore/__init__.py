"""
inistore - An in-memory INI store with typed accessors
"""

from .errors import IniError, IniIOError, NoFilePathError
from .parser import populate_from, serialize_into
from .store import IniStore, SectionProxy, parse_args

__version__ = "0.1.0"
__all__ = [
    "IniStore",
    "SectionProxy",
    "IniError",
    "IniIOError",
    "NoFilePathError",
    "populate_from",
    "serialize_into",
    "parse_args",
]
