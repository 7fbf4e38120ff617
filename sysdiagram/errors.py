from __future__ import annotations


class DecodeError(Exception):
    """Base class for every failure raised while decoding a diagram payload."""

    def __init__(self, message: str, *, offset: int | None = None) -> None:
        self.offset = offset
        if offset is not None:
            message = f"{message} (at 0x{offset:04X})"
        super().__init__(message)


class IncompleteError(DecodeError):
    """Fewer bytes remain than the field requires; the input is truncated."""

    def __init__(self, offset: int, needed: int, available: int, what: str = "field") -> None:
        self.needed = needed
        self.available = available
        super().__init__(
            f"truncated {what}: need {needed} byte(s), {available} available",
            offset=offset,
        )


class StructuralError(DecodeError):
    """Framing is inconsistent; everything after this offset is unaligned."""


class MagicMismatchError(StructuralError):
    def __init__(self, what: str, expected: int, actual: int, offset: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{what} magic mismatch: expected 0x{expected:08X}, got 0x{actual:08X}",
            offset=offset,
        )


class VersionMismatchError(StructuralError):
    def __init__(
        self,
        what: str,
        expected: tuple[int, int],
        actual: tuple[int, int],
        offset: int,
    ) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"unsupported {what} version {actual[1]}.{actual[0]} "
            f"(only {expected[1]}.{expected[0]} has been observed)",
            offset=offset,
        )


class EnumerantError(DecodeError):
    def __init__(self, what: str, value: int, offset: int) -> None:
        self.value = value
        super().__init__(f"unknown {what} value {value} (0x{value:X})", offset=offset)


class FlagError(DecodeError):
    def __init__(self, what: str, value: int, unknown_bits: int, offset: int) -> None:
        self.value = value
        self.unknown_bits = unknown_bits
        super().__init__(
            f"{what} 0x{value:X} has unrecognized bits 0x{unknown_bits:X}",
            offset=offset,
        )


class StringEncodingError(DecodeError):
    def __init__(self, raw: bytes, reason: str, offset: int) -> None:
        self.raw = raw
        self.reason = reason
        super().__init__(f"invalid UTF-16 string ({reason}): {raw[:32].hex()}", offset=offset)


class UnsupportedVariantError(DecodeError):
    def __init__(self, tag: int, offset: int) -> None:
        self.tag = tag
        super().__init__(f"unsupported VARIANT type 0x{tag:04X}", offset=offset)


class CaptionParseError(DecodeError):
    """The free-text relationship caption does not follow the observed pattern."""

    def __init__(self, caption: str, reason: str) -> None:
        self.caption = caption
        super().__init__(f"cannot parse relationship caption {caption!r}: {reason}")


class MissingStreamError(DecodeError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"compound file has no {name!r} stream")
