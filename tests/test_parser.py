import io
import logging
import sys
from pathlib import Path

import pytest

log = logging.getLogger(__name__)
log.setLevel(logging.DEBUG)
src_path = str(Path(__file__).parent.parent / 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from inistore import IniIOError
from inistore.parser import parse, trim, write


class BrokenReader(io.StringIO):
    """Yields one line, then fails like a disk read error"""

    def __iter__(self):
        yield '[ok]\n'
        yield 'a = 1\n'
        raise OSError(5, 'Input/output error')


class BrokenWriter(io.StringIO):
    def write(self, s):
        raise OSError(28, 'No space left on device')


def _parse(text, data=None):
    data = {} if data is None else data
    parse(io.StringIO(text), data)
    return data


def test_trim():
    """Only space, tab, CR and LF are stripped"""
    assert trim('  value  ') == 'value'
    assert trim('\tvalue\t') == 'value'
    assert trim('\rvalue\r') == 'value'
    assert trim('\nvalue\n') == 'value'
    assert trim(' \t\r\n value \t\r\n ') == 'value'
    assert trim('') == ''
    assert trim(' \t\r\n ') == ''
    assert trim('\fvalue') == '\fvalue'


def test_parse_sections_and_pairs():
    data = _parse(
        '[section1]\n'
        'key1 = value1\n'
        'key2 = value2\n'
        '\n'
        '[section2]\n'
        'key3 = value3\n'
    )
    assert data == {
        'section1': {'key1': 'value1', 'key2': 'value2'},
        'section2': {'key3': 'value3'},
    }


def test_parse_trims_everything():
    data = _parse('  [A]  \n  K  =  V  \n')
    assert data == {'A': {'K': 'V'}}


def test_parse_header_body_trimmed():
    data = _parse('[  spaced name  ]\nk=v\n')
    assert data == {'spaced name': {'k': 'v'}}


def test_parse_empty_section_name():
    data = _parse('[]\nk = v\n[ ]\nk2 = v2\n')
    assert data == {'': {'k': 'v', 'k2': 'v2'}}


def test_parse_comments_and_blank_lines():
    data = _parse('; comment\n# another comment\n  \t\r\n[s]\n  ; indented = comment\nk = v\n')
    assert data == {'s': {'k': 'v'}}


def test_parse_empty_stream():
    assert _parse('') == {}


def test_parse_header_creates_empty_section():
    data = _parse('[section1]\n[section2]\n')
    assert data == {'section1': {}, 'section2': {}}


def test_parse_pairs_before_header_dropped():
    data = _parse('orphan = 1\n[s]\nk = v\n')
    assert data == {'s': {'k': 'v'}}


def test_parse_invalid_lines_ignored():
    """Lines without '=' are skipped, not errors"""
    data = _parse('[S]\nnotakeyvalue\n')
    assert data == {'S': {}}


def test_parse_empty_key_dropped():
    data = _parse('[s]\n = value\nk = \n')
    assert data == {'s': {'k': ''}}


def test_parse_splits_at_first_equals():
    data = _parse('[s]\nurl = http://host/?a=b=c\n')
    assert data['s']['url'] == 'http://host/?a=b=c'


def test_parse_malformed_header_is_key_value():
    data = _parse('[s]\n[broken = yes\n')
    assert data == {'s': {'[broken': 'yes'}}


def test_parse_last_write_wins():
    data = _parse('[s]\nk = 1\nk = 2\n')
    assert data['s']['k'] == '2'


def test_parse_repeated_header_keeps_keys():
    data = _parse('[s]\na = 1\n[t]\nx = 0\n[s]\nb = 2\n')
    assert data['s'] == {'a': '1', 'b': '2'}


def test_parse_overlays_existing_data():
    data = {'S': {'K': 'old', 'Keep': 'yes'}}
    _parse('[S]\nK = new\n[T]\nX = 1\n', data)
    assert data == {'S': {'K': 'new', 'Keep': 'yes'}, 'T': {'X': '1'}}


def test_parse_crlf_lines():
    data = _parse('[s]\r\nk = v\r\n')
    assert data == {'s': {'k': 'v'}}


def test_parse_read_error():
    """A failing read aborts the parse with IniIOError, keeping what was read"""
    data = {}
    with pytest.raises(IniIOError) as exc_info:
        parse(BrokenReader(), data)
    assert exc_info.value.errno == 5
    assert data == {'ok': {'a': '1'}}


def test_write_format():
    buf = io.StringIO()
    write(buf, {'b': {'y': '2', 'x': '1'}, 'a': {}, 'c': {'k': 'v'}})
    assert buf.getvalue() == (
        '[a]\n'
        '\n'
        '[b]\n'
        'x = 1\n'
        'y = 2\n'
        '\n'
        '[c]\n'
        'k = v\n'
        '\n'
    )


def test_write_then_parse():
    data = {'server': {'host': 'localhost', 'port': '8080'}, 'db': {'url': 'a=b'}}
    buf = io.StringIO()
    write(buf, data)
    log.debug(f'Serialized: {buf.getvalue()!r}')
    assert _parse(buf.getvalue()) == data


def test_write_does_not_escape_line_breaks():
    """Multi-line values are written verbatim and re-read as separate lines"""
    buf = io.StringIO()
    write(buf, {'s': {'k': 'x\n[other]\na=1'}})
    assert _parse(buf.getvalue()) == {'s': {'k': 'x'}, 'other': {'a': '1'}}


def test_write_error():
    with pytest.raises(IniIOError) as exc_info:
        write(BrokenWriter(), {'s': {'k': 'v'}})
    assert exc_info.value.errno == 28
