from collections.abc import Mapping

# Each list/dict level counts as one.
DEFAULT_MAX_DEPTH = 64

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1
INT64_MAX_DIGITS = len(str(INT64_MAX))

_DIGITS = b'0123456789'


class DecodeError(ValueError):
    """Base class for everything the decoder can reject."""
    def __init__(self, message, position=None):
        if position is not None:
            message = f"{message} (at index {position})"
        super().__init__(message)
        self.position = position


class IncompleteError(DecodeError):
    """The buffer ended before the value was finished."""


class MalformedError(DecodeError):
    """The bytes present break the grammar. More input will not help."""


class NestingTooDeep(MalformedError):
    pass


class Dictionary(Mapping):
    """
    Read-only mapping of byte-string keys to values.
    Items are sorted by key when the dictionary is built, so iteration
    (and therefore encoding) always walks keys in ascending byte order.
    """
    __slots__ = ('_items',)

    def __init__(self, items=()):
        if isinstance(items, Mapping):
            items = items.items()

        pairs = []
        for key, value in items:
            if isinstance(key, str):
                key = key.encode('utf-8')
            elif isinstance(key, (bytearray, memoryview)):
                key = bytes(key)
            elif not isinstance(key, bytes):
                raise TypeError(f"Dictionary keys must be bytes, not {type(key).__name__}")
            pairs.append((key, value))

        pairs.sort(key=lambda pair: pair[0])
        for (prev, _), (key, _) in zip(pairs, pairs[1:]):
            if prev == key:
                raise ValueError(f"Duplicate dictionary key: {key!r}")

        self._items = dict(pairs)

    def __getitem__(self, key):
        if isinstance(key, str):
            key = key.encode('utf-8')
        return self._items[key]

    def __iter__(self):
        return iter(self._items)

    def __len__(self):
        return len(self._items)

    def __repr__(self):
        return f"Dictionary({self._items!r})"


class Decoder:
    """
    Decodes Bencoded data (d, l, i, s) used in torrent files.
    Uses a recursive descent parser that only accepts canonical input.
    """
    def __init__(self, data: bytes, max_depth: int = DEFAULT_MAX_DEPTH):
        if isinstance(data, str):
            raise TypeError("Decoder expects bytes, not str")
        self._data = bytes(data)
        self._index = 0
        self._depth = 0
        self.max_depth = max_depth

    def decode(self):
        """Decodes one value starting at the current position."""
        char = self._peek()

        if char == b'i':
            return self._decode_int()
        elif char in _DIGITS:
            return self._decode_string()
        elif char == b'l':
            return self._decode_list()
        elif char == b'd':
            return self._decode_dict()
        else:
            raise MalformedError(f"Unexpected byte {char!r}", self._index)

    def remaining(self) -> bytes:
        """Bytes after the last decoded value."""
        return self._data[self._index:]

    def _peek(self):
        if self._index >= len(self._data):
            raise IncompleteError("Unexpected end of data", self._index)
        return self._data[self._index:self._index + 1]

    def _read_digits(self):
        # Returns the run of ASCII digits at the cursor, without the terminator.
        start = self._index
        while self._peek() in _DIGITS:
            self._index += 1
        return self._data[start:self._index]

    def _decode_int(self):
        start = self._index
        self._index += 1  # Skip 'i'

        negative = self._peek() == b'-'
        if negative:
            self._index += 1

        digits_at = self._index
        digits = self._read_digits()
        if not digits:
            raise MalformedError("Integer has no digits", digits_at)
        if digits[0:1] == b'0' and (negative or len(digits) > 1):
            raise MalformedError("Integer has a leading zero or is negative zero", start)
        if self._peek() != b'e':
            raise MalformedError("Integer is not terminated by 'e'", self._index)
        self._index += 1  # Skip 'e'

        if len(digits) > INT64_MAX_DIGITS:
            raise MalformedError("Integer does not fit in 64 bits", start)
        number = int(digits)
        if negative:
            number = -number
        if not INT64_MIN <= number <= INT64_MAX:
            raise MalformedError("Integer does not fit in 64 bits", start)
        return number

    def _decode_string(self):
        start = self._index
        digits = self._read_digits()
        if digits[0:1] == b'0' and len(digits) > 1:
            raise MalformedError("String length has a leading zero", start)
        if self._peek() != b':':
            raise MalformedError("String length is not followed by ':'", self._index)
        self._index += 1  # Skip ':'

        # Check the declared length before converting or slicing anything.
        available = len(self._data) - self._index
        if len(digits) > len(str(available)):
            raise IncompleteError(
                f"String declares a {len(digits)}-digit length but only {available} bytes remain", start)
        length = int(digits)
        if length > available:
            raise IncompleteError(
                f"String declares {length} bytes but only {available} remain", start)

        s = self._data[self._index:self._index + length]
        self._index += length
        return s

    def _enter(self):
        self._depth += 1
        if self._depth > self.max_depth:
            raise NestingTooDeep(f"Nesting deeper than {self.max_depth} levels", self._index)

    def _decode_list(self):
        self._enter()
        self._index += 1  # Skip 'l'
        lst = []
        while self._peek() != b'e':
            lst.append(self.decode())
        self._index += 1  # Skip 'e'
        self._depth -= 1
        return lst

    def _decode_dict(self):
        self._enter()
        self._index += 1  # Skip 'd'
        pairs = []
        last_key = None
        while self._peek() != b'e':
            key_at = self._index
            if self._peek() not in _DIGITS:
                raise MalformedError("Dictionary keys must be strings", key_at)
            key = self._decode_string()
            # Canonical form: strictly ascending, which also rules out duplicates.
            if last_key is not None and key <= last_key:
                raise MalformedError(f"Dictionary key {key!r} is out of order or repeated", key_at)
            last_key = key
            pairs.append((key, self.decode()))
        self._index += 1  # Skip 'e'
        self._depth -= 1
        return Dictionary(pairs)


def decode(data: bytes, max_depth: int = DEFAULT_MAX_DEPTH):
    """Decodes the value at the start of data. Returns (value, remaining bytes)."""
    decoder = Decoder(data, max_depth)
    value = decoder.decode()
    return value, decoder.remaining()


class Encoder:
    """Encodes Python objects into canonical Bencoded bytes."""
    def __init__(self, data):
        self._data = data

    def encode(self) -> bytes:
        out = bytearray()
        self._encode(self._data, out)
        return bytes(out)

    @classmethod
    def _encode(cls, data, out):
        if isinstance(data, bool):
            raise TypeError("Cannot encode type: bool")
        elif isinstance(data, int):
            if not INT64_MIN <= data <= INT64_MAX:
                raise ValueError(f"Integer {data} does not fit in 64 bits")
            out += b'i%de' % data
        elif isinstance(data, str):
            cls._encode(data.encode('utf-8'), out)
        elif isinstance(data, (bytes, bytearray, memoryview)):
            data = bytes(data)
            out += b'%d:' % len(data)
            out += data
        elif isinstance(data, (list, tuple)):
            out += b'l'
            for item in data:
                cls._encode(item, out)
            out += b'e'
        elif isinstance(data, Mapping):
            if not isinstance(data, Dictionary):
                data = Dictionary(data)
            out += b'd'
            for key, value in data.items():
                cls._encode(key, out)
                cls._encode(value, out)
            out += b'e'
        else:
            raise TypeError(f"Cannot encode type: {type(data).__name__}")


def encode(data) -> bytes:
    return Encoder(data).encode()
