"""
seeds.py - Seed specifications and the seed codec

A seed is either a fixed Literal or an integer Range. Every seed value ends up
as a byte string before it is hashed; this module owns that conversion.
"""

from dataclasses import dataclass
from typing import Optional

import base58

from .errors import ValidationError

ADDRESS_LEN = 32
MAX_RANGE_SIZE = 100_000
INTEGER_WIDTHS = (1, 2, 4, 8)
MAX_U64 = 2 ** 64 - 1

# Literal encodings
STRING = "string"
ADDRESS = "address"
BYTES = "bytes"
INTEGER = "integer"
AUTO = "auto"
ENCODINGS = (STRING, ADDRESS, BYTES, INTEGER, AUTO)

_WIDTH_NAMES = {1: "u8", 2: "u16", 4: "u32", 8: "u64"}
_BASE58_CHARS = frozenset(base58.BITCOIN_ALPHABET.decode())


def parse_address(text):
    """Return the 32 raw bytes of a Base58 address, or None if text is not one"""
    if not isinstance(text, str):
        return None
    # b58decode trims trailing whitespace itself, so anything outside the
    # alphabet is rejected here first
    if not text or not _BASE58_CHARS.issuperset(text):
        return None
    try:
        raw = base58.b58decode(text)
    except ValueError:
        return None
    if len(raw) != ADDRESS_LEN:
        return None
    return raw


def decode_program_id(program_id):
    """Decode a program id given as Base58 text into its 32 bytes"""
    raw = parse_address(program_id)
    if raw is None:
        raise ValidationError(
            f"Invalid program ID {program_id!r}: must be Base58 text of a 32-byte address"
        )
    return raw


def encode_address(raw):
    """Render 32 raw bytes as Base58 text"""
    return base58.b58encode(raw).decode()


def integer_width(value):
    """Smallest of 1, 2, 4 or 8 bytes that holds value"""
    if value <= 0xFF:
        return 1
    elif value <= 0xFFFF:
        return 2
    elif value <= 0xFFFFFFFF:
        return 4
    return 8


def encode_integer(value, width=None):
    """Little-endian unsigned encoding, tiered by size unless width is fixed"""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"Integer seed value must be an int, got {value!r}")
    if value < 0:
        raise ValidationError(f"Integer seed value must not be negative, got {value}")
    if value > MAX_U64:
        raise ValidationError(f"Integer seed value {value} does not fit in 8 bytes")
    if width is None:
        width = integer_width(value)
    elif width not in INTEGER_WIDTHS:
        raise ValidationError(f"Integer width must be one of {INTEGER_WIDTHS}, got {width}")
    elif value >= 1 << (8 * width):
        raise ValidationError(f"Integer seed value {value} does not fit in {width} bytes")
    return value.to_bytes(width, "little")


def encode_value(value, encoding=AUTO, width=None):
    """Convert one seed value into the bytes that get hashed"""
    if encoding == STRING:
        if not isinstance(value, str):
            raise ValidationError(f"String seed value must be text, got {value!r}")
        return value.encode("utf-8")

    if encoding == ADDRESS:
        if isinstance(value, (bytes, bytearray)) and len(value) == ADDRESS_LEN:
            return bytes(value)
        raw = parse_address(value)
        if raw is None:
            raise ValidationError(f"Address seed value {value!r} is not a valid 32-byte address")
        return raw

    if encoding == BYTES:
        if isinstance(value, str):
            raise ValidationError("Bytes seed value must be a byte string, not text")
        try:
            return bytes(value)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Bytes seed value {value!r} is not a byte sequence: {e}") from e

    if encoding == INTEGER:
        return encode_integer(value, width)

    if encoding == AUTO:
        # Text is tried as an address first, then falls back to UTF-8
        if isinstance(value, str):
            raw = parse_address(value)
            return raw if raw is not None else value.encode("utf-8")
        if isinstance(value, int) and not isinstance(value, bool):
            return encode_integer(value, width)
        return encode_value(value, BYTES)

    raise ValidationError(f"Unknown seed encoding {encoding!r}; expected one of {ENCODINGS}")


@dataclass(frozen=True)
class Literal:
    """A seed whose value is the same in every combination"""

    value: object = None
    encoding: str = STRING
    width: Optional[int] = None
    description: str = ""

    kind = "literal"

    @property
    def cardinality(self):
        return 1

    @property
    def label(self):
        if self.encoding == INTEGER and self.width:
            return _WIDTH_NAMES[self.width]
        return self.encoding

    def value_at(self, index):
        return self.value

    def encode_value(self, value):
        return encode_value(value, self.encoding, self.width)

    def validate(self, index):
        """Check this literal and return its encoded bytes"""
        if self.value is None:
            raise ValidationError(f"Literal seed at index {index} must have a value")
        if self.encoding not in ENCODINGS:
            raise ValidationError(
                f"Literal seed at index {index} has unknown encoding {self.encoding!r}"
            )
        try:
            return self.encode_value(self.value)
        except ValidationError as e:
            raise ValidationError(f"Literal seed at index {index}: {e}") from e


@dataclass(frozen=True)
class Range:
    """An integer seed that takes every value from min to max inclusive"""

    min: int
    max: int
    integer_width: Optional[int] = None
    description: str = ""

    kind = "range"

    @property
    def cardinality(self):
        return max(0, self.max - self.min + 1)

    @property
    def label(self):
        return _WIDTH_NAMES.get(self.integer_width, "range")

    def value_at(self, index):
        return self.min + index

    def encode_value(self, value):
        return encode_integer(value, self.integer_width)

    def validate(self, index):
        for name in ("min", "max"):
            bound = getattr(self, name)
            if isinstance(bound, bool) or not isinstance(bound, int):
                raise ValidationError(f"Range seed at index {index}: {name} must be an int")
        if self.min > self.max:
            raise ValidationError(
                f"Invalid range for seed at index {index}: min > max ({self.min} > {self.max})"
            )
        if self.cardinality > MAX_RANGE_SIZE:
            raise ValidationError(
                f"Range too large for seed at index {index}: {self.cardinality:,} values "
                f"(max {MAX_RANGE_SIZE:,})"
            )
        if self.min < 0:
            raise ValidationError(f"Range seed at index {index}: min must not be negative")
        if self.integer_width is not None and self.integer_width not in INTEGER_WIDTHS:
            raise ValidationError(
                f"Range seed at index {index}: integer width must be one of {INTEGER_WIDTHS}"
            )
        try:
            self.encode_value(self.max)
        except ValidationError as e:
            raise ValidationError(f"Range seed at index {index}: {e}") from e
