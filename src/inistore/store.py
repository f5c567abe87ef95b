"""
INI Store Module

This module provides an in-memory INI store with the following features:
- Parsing and writing INI text from files and streams
- Replace (load_*) and overlay (add_*) loading
- Typed reads with default fallback (str, bool, int, float and any type
  constructible from a string)
- Indexed access: store['section']['key']
- Overlays from mappings, environment variables and command line arguments
- YAML/JSON export
- Rich formatting output

Example:
    ```python
    from inistore import IniStore

    store = IniStore.from_file('settings.ini')
    port = store.get_value_or_default('server', 'port', 8080)
    store['server']['debug'] = True
    store.write_file()  # back to settings.ini
    ```
"""

import io
import json
import logging
import os
from typing import Any, Dict, Iterator, List, Mapping, Optional, TextIO

import yaml

from .convert import convert, format_value
from .errors import IniIOError, NoFilePathError
from .parser import IniData, parse, trim, write

KEY_COLOR = 'wheat1'
SECTION_COLOR = 'light_sky_blue3'

EXPORT_FORMATS = ('yaml', 'json')

log = logging.getLogger(__name__)


def parse_args(args: List[str]) -> Dict[str, Dict[str, str]]:
    """
    Parse command line arguments of the form --section.key=value

    Args:
        args: List of command line arguments

    Returns:
        Dictionary of section -> key -> value. Arguments of any other form are skipped.
    """
    result: Dict[str, Dict[str, str]] = {}
    for arg in args:
        if not arg.startswith('--') or '=' not in arg:
            continue
        name, value = arg[2:].split('=', 1)
        if '.' not in name:
            continue
        section, key = name.split('.', 1)
        if key:
            result.setdefault(section, {})[key] = value
    return result


class SectionProxy:
    """
    Live view of one section of an IniStore.

    Reads never create anything: a missing section or key reads as None.
    Writes create the section and key as needed.
    """

    def __init__(self, store: 'IniStore', name: str):
        self._store = store
        self.name = name

    def __getitem__(self, key: str) -> Optional[str]:
        return self._store.get_value(self.name, key)

    def __setitem__(self, key: str, value: Any) -> None:
        self._store.set_value(self.name, key, value)

    def __delitem__(self, key: str) -> None:
        self._store.remove_value(self.name, key)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._store.has_value(self.name, key)

    def __iter__(self) -> Iterator[str]:
        return iter(self._store.get_keys(self.name))

    def __len__(self) -> int:
        return len(self._store.get_keys(self.name))

    def get(self, key: str, default: Any = None, type_: Any = None) -> Any:
        """Same as IniStore.get_value_or_default for this section"""
        return self._store.get_value_or_default(self.name, key, default, type_)

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self.name!r})'


class IniStore:
    """
    In-memory INI store: section name -> key name -> string value.

    Sections and keys are always listed and written in sorted order.
    Values are stored as text and converted on read.

    An IniStore is a plain Python object, so assigning it to another name
    aliases it. Use copy() for an independent store. Section proxies
    returned by store[name] look the section up on every access and
    always see the current contents of the store.

    Args:
        data: Optional nested mapping to start from (see update())

    Example:
        ```python
        store = IniStore()
        store.set_value('db', 'pool_size', 5)
        store.get_value('db', 'pool_size', int)  # 5
        store.get_value('db', 'pool_size', bool)  # None
        store['db']['host'] = 'localhost'

        with open('db.ini', 'w') as f:
            store.write_stream(f)
        ```
    """

    def __init__(self, data: Optional[Mapping[str, Mapping[str, Any]]] = None):
        self._data: IniData = {}
        self._file_path: Optional[str] = None
        if data:
            self.update(data)

    # Construction

    @classmethod
    def from_file(cls, file_path: str, encoding: str = 'utf-8') -> 'IniStore':
        """
        Creates a store from an INI file and remembers its path for write_file()

        Raises:
            IniIOError: If the file can't be opened or read
        """
        store = cls()
        store.load_file(file_path, encoding)
        return store

    @classmethod
    def from_stream(cls, stream: TextIO) -> 'IniStore':
        """
        Creates a store from a readable text stream

        Raises:
            IniIOError: If reading the stream fails
        """
        store = cls()
        store.add_from_stream(stream)
        return store

    @classmethod
    def from_mapping(cls, data: Mapping[str, Mapping[str, Any]]) -> 'IniStore':
        """Creates a store from a nested section -> key -> value mapping"""
        return cls(data)

    @property
    def file_path(self) -> Optional[str]:
        """Path the store was last loaded from or saved to"""
        return self._file_path

    # Loading

    def _read_file(self, file_path: str, encoding: str) -> None:
        try:
            with open(file_path, 'r', encoding=encoding) as f:
                parse(f, self._data)
        except OSError as e:
            if isinstance(e, IniIOError):
                raise
            raise IniIOError(e, file_path) from e
        log.debug(f"Loaded INI data from {file_path}: {len(self._data)} sections")

    def load_file(self, file_path: str, encoding: str = 'utf-8') -> None:
        """
        Replaces all data with the contents of an INI file

        The path is remembered for write_file() even if loading fails.

        Args:
            file_path: Path to the INI file
            encoding: Text encoding of the file

        Raises:
            IniIOError: If the file can't be opened or read
        """
        self._data.clear()
        self._file_path = file_path
        self._read_file(file_path, encoding)

    def add_from_file(self, file_path: str, encoding: str = 'utf-8') -> None:
        """
        Adds the contents of an INI file to the current data

        Keys present in the file overwrite existing ones, everything else is kept.
        The remembered path is not changed.

        Raises:
            IniIOError: If the file can't be opened or read
        """
        self._read_file(file_path, encoding)

    def load_stream(self, stream: TextIO) -> None:
        """
        Replaces all data with INI text read from stream and forgets the file path

        Raises:
            IniIOError: If reading the stream fails
        """
        self._data.clear()
        self._file_path = None
        parse(stream, self._data)

    def add_from_stream(self, stream: TextIO) -> None:
        """
        Adds INI text read from stream to the current data

        Raises:
            IniIOError: If reading the stream fails
        """
        parse(stream, self._data)

    def update(self, data: Mapping[str, Mapping[str, Any]]) -> None:
        """
        Overlays a nested section -> key -> value mapping

        Args:
            data: Mapping of sections; values are formatted as by set_value()
        """
        for section, entries in data.items():
            if not isinstance(entries, Mapping):
                log.warning(f"Skipping '{section}': expected a mapping of keys, got {type(entries).__name__}")
                continue
            self.set_section(str(section))
            for key, value in entries.items():
                self.set_value(str(section), str(key), value)

    def add_from_env(self, prefix: str) -> None:
        """
        Overlays values from environment variables

        A variable PREFIX + 'SECTION__KEY' sets key 'key' in section 'section'
        (names are lowercased). Variables without '__' are ignored.

        Args:
            prefix: Environment variable prefix, e.g. 'MYAPP_'
        """
        env_data: Dict[str, Dict[str, str]] = {}
        for name, value in os.environ.items():
            if not name.startswith(prefix):
                continue
            section, sep, key = name[len(prefix):].lower().partition('__')
            if sep and key:
                env_data.setdefault(section, {})[key] = value
        log.debug(f"Environment overlay with prefix '{prefix}': {sorted(env_data)}")
        self.update(env_data)

    def add_from_args(self, args: List[str]) -> None:
        """
        Overlays values from command line arguments (--section.key=value)
        """
        self.update(parse_args(args))

    # Writing

    def write_stream(self, stream: TextIO) -> None:
        """
        Writes the store to a text stream as INI text

        Raises:
            IniIOError: If writing fails
        """
        write(stream, self._data)

    def write_file(self, file_path: Optional[str] = None, encoding: str = 'utf-8') -> None:
        """
        Writes the store to an INI file

        Args:
            file_path: Target file. If omitted, the path the store was last
                loaded from or saved to is used.
            encoding: Text encoding of the file

        Raises:
            NoFilePathError: If file_path is omitted and no path is known
            IniIOError: If the file can't be opened or written
        """
        if file_path is None:
            if self._file_path is None:
                raise NoFilePathError()
            file_path = self._file_path
        try:
            with open(file_path, 'w', encoding=encoding) as f:
                write(f, self._data)
        except OSError as e:
            if isinstance(e, IniIOError):
                raise
            raise IniIOError(e, file_path) from e
        self._file_path = file_path
        log.info(f"INI data successfully saved to {file_path}")

    def to_string(self) -> str:
        """Returns the store as INI text"""
        buf = io.StringIO()
        write(buf, self._data)
        return buf.getvalue()

    def export(self, format: str = 'yaml') -> str:
        """
        Returns the store as a YAML or JSON document

        Args:
            format: 'yaml' or 'json'

        Raises:
            ValueError: If format is not supported
        """
        data = self.to_dict()
        if format == 'yaml':
            return yaml.safe_dump(data, default_flow_style=False, allow_unicode=True)
        elif format == 'json':
            return json.dumps(data, indent=4, ensure_ascii=False)
        raise ValueError(f"Unsupported export format '{format}', expected one of: {', '.join(EXPORT_FORMATS)}")

    def save_as(self, file_path: str, format: str = 'yaml') -> None:
        """
        Saves the store to a YAML or JSON file. The remembered INI path is not changed.

        Raises:
            ValueError: If format is not supported
            IniIOError: If the file can't be written
        """
        text = self.export(format)
        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                f.write(text)
        except OSError as e:
            raise IniIOError(e, file_path) from e
        log.info(f"INI data successfully exported to {file_path} ({format})")

    # Accessors

    def set_value(self, section: str, key: str, value: Any) -> None:
        """Sets a value, creating the section if needed. The value is stored as text."""
        self._data.setdefault(section, {})[key] = format_value(value)

    def set_section(self, section: str) -> None:
        """Creates an empty section. An existing section is left untouched."""
        self._data.setdefault(section, {})

    def get_value(self, section: str, key: str, type_: Any = str) -> Any:
        """
        Returns a value converted to type_

        Args:
            section: Section name
            key: Key name
            type_: str (raw text), bool ('true'/'1', 'false'/'0') or any type
                that can be built from the whole value text, e.g. int or float

        Returns:
            Converted value, or None if the key is missing or can't be converted
        """
        entries = self._data.get(section)
        if entries is None:
            return None
        return convert(entries.get(key), type_)

    def get_value_or_default(self, section: str, key: str, default: Any, type_: Any = None) -> Any:
        """
        Returns a converted value, or default if it's missing or can't be converted

        The target type is type_ if given, otherwise the type of default.
        """
        if type_ is None:
            type_ = str if default is None else type(default)
        value = self.get_value(section, key, type_)
        return default if value is None else value

    def has_section(self, section: str) -> bool:
        return section in self._data

    def has_value(self, section: str, key: str) -> bool:
        return key in self._data.get(section, {})

    def remove_value(self, section: str, key: str) -> bool:
        """Removes a key. Returns False if the section or key doesn't exist."""
        entries = self._data.get(section)
        if entries is None or key not in entries:
            return False
        del entries[key]
        return True

    def remove_section(self, section: str) -> bool:
        """Removes a section with all its keys. Returns False if it doesn't exist."""
        return self._data.pop(section, None) is not None

    def get_sections(self) -> List[str]:
        return sorted(self._data)

    def get_keys(self, section: str) -> List[str]:
        return sorted(self._data.get(section, {}))

    def clear(self) -> None:
        """Removes all sections. The remembered file path is kept."""
        self._data.clear()

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        """Returns a sorted copy of the data"""
        return {name: {key: self._data[name][key] for key in sorted(self._data[name])}
                for name in sorted(self._data)}

    def copy(self) -> 'IniStore':
        """Returns an independent copy of the store, including the remembered path"""
        clone = type(self)()
        clone._data = {name: dict(entries) for name, entries in self._data.items()}
        clone._file_path = self._file_path
        return clone

    __copy__ = copy

    def __deepcopy__(self, memo: Dict[int, Any]) -> 'IniStore':
        return self.copy()

    def __getitem__(self, section: str) -> SectionProxy:
        return SectionProxy(self, section)

    def __delitem__(self, section: str) -> None:
        self.remove_section(section)

    def __contains__(self, section: object) -> bool:
        return isinstance(section, str) and section in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self.get_sections())

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IniStore):
            return NotImplemented
        return self._data == other._data

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f'{type(self).__name__}(sections={self.get_sections()!r}, file_path={self._file_path!r})'

    # Rich views

    def format_tree(self) -> str:
        """
        Prints the store as a tree and returns the printed text.

        Returns:
            str: Formatted representation of sections and keys
        """
        from rich.console import Console
        from rich.markup import escape
        from rich.tree import Tree

        console = Console(record=True)
        tree = Tree(f"📄 [bold {SECTION_COLOR}]INI store[/bold {SECTION_COLOR}]")
        for name in self.get_sections():
            branch = tree.add(f"[{SECTION_COLOR}]\\[{escape(name)}][/{SECTION_COLOR}]")
            for key in self.get_keys(name):
                value = self._data[name][key]
                key, shown = escape(key), escape(value)
                if _is_bool_text(value):
                    color = 'green' if convert(value, bool) else 'red'
                    branch.add(f"[{KEY_COLOR}]{key}[/{KEY_COLOR}]: [{color}]{shown}[/{color}]")
                elif convert(value, float) is not None:
                    branch.add(f"[{KEY_COLOR}]{key}[/{KEY_COLOR}]: [pale_green3]{shown}[/pale_green3]")
                elif not value:
                    branch.add(f"[{KEY_COLOR}]{key}[/{KEY_COLOR}]: [dim]<empty>[/dim]")
                else:
                    branch.add(f"[{KEY_COLOR}]{key}[/{KEY_COLOR}]: {shown}")
        tree.add(f"[dim]File:[/dim] {self._file_path or '-'}")

        console.print(tree)
        return console.export_text()

    def print_store(self) -> None:
        """Prints the store to the console as a tree"""
        self.format_tree()

    def get_table_view(self) -> str:
        """
        Prints the store as a table and returns the printed text.

        Returns:
            str: Tabular representation of the store
        """
        from rich.console import Console
        from rich.markup import escape
        from rich.table import Table

        console = Console(record=True)
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Section", style="dim")
        table.add_column("Key", style="yellow")
        table.add_column("Value", style="green")

        for name in self.get_sections():
            keys = self.get_keys(name)
            if not keys:
                table.add_row(escape(name), "", "")
            for key in keys:
                table.add_row(escape(name), escape(key), escape(self._data[name][key]))

        console.print(table)
        return console.export_text()


def _is_bool_text(value: str) -> bool:
    return trim(value).lower() in ('true', 'false')


if __name__ == '__main__':

    import sys

    from rich.logging import RichHandler

    logging.basicConfig(
        level="DEBUG",
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(markup=False, rich_tracebacks=True, show_path=False)],
    )

    store = IniStore()
    for path in sys.argv[1:]:
        try:
            store.add_from_file(path)
        except IniIOError as e:
            log.error(f"Error loading {path}: {e}")
    store.print_store()
