"""
INI text parsing and serialization

Line-oriented and permissive: lines that are neither a header, a comment nor
a key = value pair are skipped, so malformed content never fails a parse.
Only I/O errors do.

Example:
    ```python
    import io
    from inistore.parser import parse, write

    data = {}
    parse(io.StringIO('[server]\\nport = 8080\\n'), data)
    write(sys.stdout, data)
    ```
"""

import logging
from typing import Any, Dict, Optional, TextIO

from .errors import IniIOError

log = logging.getLogger(__name__)

WHITESPACE = ' \t\r\n'
COMMENT_PREFIXES = (';', '#')

IniData = Dict[str, Dict[str, str]]


def trim(text: str) -> str:
    """Strips spaces, tabs, CR and LF from both ends of text"""
    return text.strip(WHITESPACE)


def _stream_name(stream: Any) -> Optional[str]:
    name = getattr(stream, 'name', None)
    return name if isinstance(name, str) else None


def parse(stream: TextIO, data: IniData) -> None:
    """
    Reads INI text from stream into data.

    Existing sections and keys are kept; parsed pairs overwrite keys
    with the same name. Pairs before the first section header are dropped.

    Args:
        stream: Readable text stream
        data: Mapping of section name -> key -> value, updated in place

    Raises:
        IniIOError: If reading the stream fails. data may be partially updated.
    """
    section: Optional[Dict[str, str]] = None
    lines = 0
    try:
        for raw in stream:
            lines += 1
            line = trim(raw)

            if not line or line.startswith(COMMENT_PREFIXES):
                continue

            if line.startswith('[') and line.endswith(']'):
                section = data.setdefault(trim(line[1:-1]), {})
                continue

            key, sep, value = line.partition('=')
            if not sep or section is None:
                continue
            key = trim(key)
            if key:
                section[key] = trim(value)
    except (OSError, ValueError) as e:
        raise IniIOError(e, _stream_name(stream)) from e
    log.debug(f"Parsed {lines} lines from {_stream_name(stream) or 'stream'}")


def write(stream: TextIO, data: IniData) -> None:
    """
    Writes data to stream as INI text.

    Sections and keys are written in sorted order, every section followed
    by a blank line.

    Nothing is escaped. Names or values containing a line break, and keys
    containing '=', are written as is and read back as a different mapping.

    Raises:
        IniIOError: If writing to the stream fails. Output already written stays.
    """
    try:
        for name in sorted(data):
            stream.write(f'[{name}]\n')
            entries = data[name]
            for key in sorted(entries):
                stream.write(f'{key} = {entries[key]}\n')
            stream.write('\n')
        flush = getattr(stream, 'flush', None)
        if flush is not None:
            flush()
    except (OSError, ValueError) as e:
        raise IniIOError(e, _stream_name(stream)) from e


def populate_from(stream: TextIO, store: Any) -> bool:
    """
    Adds the contents of stream to store, stream style.

    Failures are logged instead of raised.

    Returns:
        True on success, False if reading failed
    """
    try:
        store.add_from_stream(stream)
    except IniIOError as e:
        log.error(f"Error reading INI data from {_stream_name(stream) or 'stream'}: {e}")
        return False
    return True


def serialize_into(stream: TextIO, store: Any) -> bool:
    """
    Writes store to stream, stream style.

    Failures are logged instead of raised.

    Returns:
        True on success, False if writing failed
    """
    try:
        store.write_stream(stream)
    except IniIOError as e:
        log.error(f"Error writing INI data to {_stream_name(stream) or 'stream'}: {e}")
        return False
    return True
