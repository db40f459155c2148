"""Record line codec.

A record is written as one tab-separated line whose values follow the
header's field order. Paths are escaped so that they never contain a tab,
a newline or any other control character. Each control character, DEL and
backslash is replaced by a backslash, "x" and two upper-case hex digits
(a tab becomes `\\x09`, a backslash `\\x5C`).
"""

import re
from typing import List, Sequence

from .constants import FIELD_FILE, FIELD_TYPE
from .core import EntryType, MetadataRecord

_ESCAPE_RE = re.compile(r"[\x00-\x1f\\\x7f]")
_UNESCAPE_RE = re.compile(r"\\(?:x([0-9A-Fa-f]{2})|\\)")


def escape_path(path: str) -> str:
    """Escape control characters and backslashes as \\xHH."""
    return _ESCAPE_RE.sub(lambda m: "\\x%02X" % ord(m.group(0)), path)


def unescape_path(text: str) -> str:
    """Reverse escape_path.

    A doubled backslash is also decoded to a single one, as written by
    releases before 1.1.4.
    """
    def _replace(match):
        code = match.group(1)
        return chr(int(code, 16)) if code else "\\"
    return _UNESCAPE_RE.sub(_replace, text)


def line_path(line: str) -> str:
    """Escaped path of a record line (its first column)."""
    return line.split("\t", 1)[0]


def path_sort_key(path: str) -> bytes:
    """Byte-order sort key for an escaped path.

    Undecodable name bytes were read as surrogates; encoding them back
    gives the raw bytes, so the order matches a C-locale sort.
    """
    return path.encode("utf-8", "surrogateescape")


def format_record(record: MetadataRecord, fields: Sequence[str]) -> str:
    """Serialize a record to a line (without trailing newline)."""
    values = []
    for name in fields:
        if name == FIELD_FILE:
            values.append(escape_path(record.path))
        elif name == FIELD_TYPE:
            values.append(record.entry_type.value)
        else:
            values.append(record.get(name))
    return "\t".join(values)


def parse_record(line: str, fields: Sequence[str]) -> MetadataRecord:
    """Parse a record line written with the given field list.

    Missing trailing values are treated as empty strings.

    Raises:
        ValueError: If the type column holds an unknown entry type
    """
    values: List[str] = line.rstrip("\n").split("\t")
    if len(values) < len(fields):
        values.extend([""] * (len(fields) - len(values)))
    data = dict(zip(fields, values))
    return MetadataRecord(
        path=unescape_path(data.get(FIELD_FILE, "")),
        entry_type=EntryType(data.get(FIELD_TYPE, "")),
        fields={k: v for k, v in data.items() if k not in (FIELD_FILE, FIELD_TYPE)},
    )
