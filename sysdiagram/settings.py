from __future__ import annotations

from typing import Dict

from .sites import SysDiagram


class ConnectionStringError(ValueError):
    pass


def _split_segments(text: str) -> list[str]:
    segments: list[str] = []
    current: list[str] = []
    quote: str | None = None
    idx = 0
    while idx < len(text):
        ch = text[idx]
        if quote:
            current.append(ch)
            if ch == quote:
                # A doubled quote stays inside the value.
                if idx + 1 < len(text) and text[idx + 1] == quote:
                    current.append(ch)
                    idx += 1
                else:
                    quote = None
        elif ch in ("'", '"') and "".join(current).rstrip().endswith("="):
            quote = ch
            current.append(ch)
        elif ch == ";":
            segments.append("".join(current))
            current = []
        else:
            current.append(ch)
        idx += 1
    if quote:
        raise ConnectionStringError(f"unterminated {quote} quote in connection string")
    segments.append("".join(current))
    return segments


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        quote = value[0]
        return value[1:-1].replace(quote * 2, quote)
    return value


def parse_connection_string(text: str) -> Dict[str, str]:
    """
    Split an OLE DB / ADO style connection string into an ordered mapping.
    ``Data Source=.;Initial Catalog=Sales`` -> {"Data Source": ".", ...}
    """

    settings: Dict[str, str] = {}
    for segment in _split_segments(text):
        if not segment.strip():
            continue
        key, sep, value = segment.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ConnectionStringError(f"malformed connection string segment {segment!r}")
        settings[key] = _unquote(value.strip())
    return settings


def get_settings(diagram: SysDiagram) -> Dict[str, str]:
    """Connection settings stored in the name of the DsRef root node."""

    if diagram.dsref is None or diagram.dsref.root.name is None:
        raise ConnectionStringError("diagram has no DsRef root name")
    return parse_connection_string(diagram.dsref.root.name)
