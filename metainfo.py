import os
import enum
from collections.abc import Mapping
from dataclasses import dataclass

from bencoding import Decoder, Dictionary, MalformedError, DEFAULT_MAX_DEPTH, encode
from utils import sha1_hash, format_size, logger

PIECE_HASH_SIZE = 20


class MetaErrorKind(enum.Enum):
    NOT_A_DICT = "not a dictionary"
    NOT_A_STRING = "not a string"
    NOT_AN_INT = "not an integer"
    NOT_A_LIST = "not a list"
    INVALID_UTF8 = "invalid UTF-8"

    NO_ANNOUNCE = "missing 'announce'"
    NO_INFO = "missing 'info'"
    NO_NAME = "missing 'name'"
    NO_PIECE_LEN = "missing 'piece length'"
    NO_PIECES = "missing 'pieces'"

    PIECE_LEN_NOT_POSITIVE = "'piece length' must be positive"
    PIECES_NOT_MUL_20 = "'pieces' length is not a multiple of 20"
    NEGATIVE_LENGTH = "file length is negative"

    HAS_LEN_AND_FILES = "has both 'length' and 'files'"
    HAS_NO_LEN_NO_FILES = "has neither 'length' nor 'files'"

    FILE_LIST_NOT_DICTS = "'files' entry is not a dictionary"
    FILE_LIST_NO_LEN = "'files' entry has no 'length'"
    FILE_LIST_NO_PATH = "'files' entry has no 'path'"


class MetaError(ValueError):
    """A decoded document that is not a valid torrent descriptor."""
    def __init__(self, kind: MetaErrorKind, field: str = ""):
        self.kind = kind
        self.field = field
        message = f"{field}: {kind.value}" if field else kind.value
        super().__init__(message)


class FileErrorKind(enum.Enum):
    NOT_FOUND = "not found"
    PERMISSION = "permission denied"
    TRUNCATED = "truncated read"
    OTHER = "other I/O error"


class TorrentFileError(OSError):
    """I/O failure while reading a torrent file, reduced to a coarse kind."""
    def __init__(self, kind: FileErrorKind, path):
        super().__init__(f"{path}: {kind.value}")
        self.kind = kind
        self.path = path


@dataclass(frozen=True)
class FileEntry:
    length: int
    path: tuple


@dataclass(frozen=True)
class MetaInfo:
    announce: str
    name: str
    piece_length: int
    pieces: tuple
    files: tuple
    announce_list: tuple = ()
    info_hash: bytes = b""
    is_multi_file: bool = False

    def __post_init__(self):
        if not self.is_multi_file and len(self.files) != 1:
            raise ValueError(f"A single-file torrent needs exactly one file entry, got {len(self.files)}")

    @property
    def total_length(self):
        return sum(f.length for f in self.files)

    @property
    def number_of_pieces(self):
        return len(self.pieces)

    @property
    def trackers(self):
        """Returns a flat list of all tracker URLs."""
        if self.announce_list:
            return [url for tier in self.announce_list for url in tier]
        return [self.announce]

    @property
    def expected_piece_count(self):
        return -(-self.total_length // self.piece_length)

    @property
    def pieces_consistent(self):
        return self.expected_piece_count == self.number_of_pieces

    def to_value(self):
        """Rebuilds the document as a canonical value tree for encode()."""
        info = {
            b'name': self.name.encode('utf-8'),
            b'piece length': self.piece_length,
            b'pieces': b''.join(self.pieces),
        }
        if self.is_multi_file:
            info[b'files'] = [
                Dictionary({
                    b'length': f.length,
                    b'path': [part.encode('utf-8') for part in f.path],
                })
                for f in self.files
            ]
        else:
            info[b'length'] = self.files[0].length

        document = {b'announce': self.announce.encode('utf-8'), b'info': Dictionary(info)}
        if self.announce_list:
            document[b'announce-list'] = [
                [url.encode('utf-8') for url in tier] for tier in self.announce_list
            ]
        return Dictionary(document)


def _require(container, key, missing, context):
    if key not in container:
        raise MetaError(missing, context)
    return container[key]


def _as_str(value, context):
    if not isinstance(value, bytes):
        raise MetaError(MetaErrorKind.NOT_A_STRING, context)
    try:
        return value.decode('utf-8')
    except UnicodeDecodeError:
        raise MetaError(MetaErrorKind.INVALID_UTF8, context) from None


def _as_int(value, context):
    if isinstance(value, bool) or not isinstance(value, int):
        raise MetaError(MetaErrorKind.NOT_AN_INT, context)
    return value


def _as_list(value, context):
    if not isinstance(value, list):
        raise MetaError(MetaErrorKind.NOT_A_LIST, context)
    return value


def _as_dict(value, context):
    if not isinstance(value, Mapping):
        raise MetaError(MetaErrorKind.NOT_A_DICT, context)
    return value


def _as_length(value, context):
    length = _as_int(value, context)
    if length < 0:
        raise MetaError(MetaErrorKind.NEGATIVE_LENGTH, context)
    return length


def _parse_announce_list(meta_info):
    """
    Optional tracker tiers. Anything malformed here is dropped with a
    warning; the document still loads with its plain 'announce'.
    """
    if b'announce-list' not in meta_info:
        return ()
    try:
        return _parse_tiers(meta_info[b'announce-list'])
    except MetaError as e:
        logger.warning(f"Ignoring announce-list: {e}")
        return ()


def _parse_tiers(announce_list):
    tiers = []
    for i, tier in enumerate(_as_list(announce_list, 'announce-list')):
        tier = _as_list(tier, f'announce-list[{i}]')
        tiers.append(tuple(
            _as_str(url, f'announce-list[{i}][{j}]') for j, url in enumerate(tier)
        ))
    return tuple(tiers)


def _parse_pieces(info):
    """
    The 'pieces' string is a concatenation of 20-byte SHA1 hashes.
    We split it into a tuple, keeping their order.
    """
    pieces = _require(info, b'pieces', MetaErrorKind.NO_PIECES, 'info')
    if not isinstance(pieces, bytes):
        raise MetaError(MetaErrorKind.NOT_A_STRING, 'info.pieces')
    if len(pieces) % PIECE_HASH_SIZE != 0:
        raise MetaError(MetaErrorKind.PIECES_NOT_MUL_20, 'info.pieces')

    return tuple(
        pieces[i:i + PIECE_HASH_SIZE] for i in range(0, len(pieces), PIECE_HASH_SIZE)
    )


def _parse_file_entry(entry, context):
    length = _require(entry, b'length', MetaErrorKind.FILE_LIST_NO_LEN, context)
    length = _as_length(length, f'{context}.length')

    path = _require(entry, b'path', MetaErrorKind.FILE_LIST_NO_PATH, context)
    path = _as_list(path, f'{context}.path')
    parts = tuple(_as_str(part, f'{context}.path[{i}]') for i, part in enumerate(path))

    return FileEntry(length, parts)


def _parse_files(info, name):
    # 'length' and 'files' are mutually exclusive
    has_length = b'length' in info
    has_files = b'files' in info
    if has_length and has_files:
        raise MetaError(MetaErrorKind.HAS_LEN_AND_FILES, 'info')
    if not has_length and not has_files:
        raise MetaError(MetaErrorKind.HAS_NO_LEN_NO_FILES, 'info')

    if has_length:
        # Single-file mode
        return (FileEntry(_as_length(info[b'length'], 'info.length'), (name,)),)

    # Multi-file mode
    files = []
    for i, entry in enumerate(_as_list(info[b'files'], 'info.files')):
        context = f'info.files[{i}]'
        if not isinstance(entry, Mapping):
            raise MetaError(MetaErrorKind.FILE_LIST_NOT_DICTS, context)
        files.append(_parse_file_entry(entry, context))
    return tuple(files)


def info_hash(info, digest=sha1_hash) -> bytes:
    """Hashes the canonical encoding of an 'info' dictionary."""
    return digest(encode(info))


def load(meta_info) -> MetaInfo:
    """
    Maps a decoded document onto a MetaInfo.
    Stops at the first problem and raises MetaError naming it.
    """
    if not isinstance(meta_info, Mapping):
        raise MetaError(MetaErrorKind.NOT_A_DICT)

    # 1. Announce URL (the tracker)
    announce = _require(meta_info, b'announce', MetaErrorKind.NO_ANNOUNCE, '')
    announce = _as_str(announce, 'announce')

    # 2. Info dictionary
    info = _require(meta_info, b'info', MetaErrorKind.NO_INFO, '')
    info = _as_dict(info, 'info')

    name = _as_str(_require(info, b'name', MetaErrorKind.NO_NAME, 'info'), 'info.name')

    piece_length = _require(info, b'piece length', MetaErrorKind.NO_PIECE_LEN, 'info')
    piece_length = _as_int(piece_length, 'info.piece length')
    if piece_length <= 0:
        raise MetaError(MetaErrorKind.PIECE_LEN_NOT_POSITIVE, 'info.piece length')

    # 3. Piece hashes and files (single vs multi-file)
    pieces = _parse_pieces(info)
    files = _parse_files(info, name)

    # 4. Optional tracker tiers
    announce_list = _parse_announce_list(meta_info)

    torrent = MetaInfo(
        announce=announce,
        name=name,
        piece_length=piece_length,
        pieces=pieces,
        files=files,
        announce_list=announce_list,
        info_hash=info_hash(info),
        is_multi_file=b'files' in info,
    )

    logger.info(f"Loaded Torrent: {torrent.name}")
    logger.info(f"Size: {format_size(torrent.total_length)}")
    logger.info(f"Pieces: {torrent.number_of_pieces} (Length: {torrent.piece_length})")
    logger.info(f"Info Hash: {torrent.info_hash.hex()}")
    if not torrent.pieces_consistent:
        logger.warning(
            f"{torrent.name}: {torrent.number_of_pieces} piece hashes for "
            f"{torrent.total_length} bytes, expected {torrent.expected_piece_count}")

    return torrent


def loads(data: bytes, max_depth: int = DEFAULT_MAX_DEPTH) -> MetaInfo:
    """Decodes a whole torrent document and maps it. DecodeError passes through."""
    decoder = Decoder(data, max_depth)
    meta_info = decoder.decode()
    if decoder.remaining():
        raise MalformedError("Trailing data after document", len(data) - len(decoder.remaining()))
    return load(meta_info)


def _read_file(path):
    try:
        with open(path, 'rb') as f:
            expected = os.fstat(f.fileno()).st_size
            data = f.read()
    except (FileNotFoundError, NotADirectoryError) as e:
        raise TorrentFileError(FileErrorKind.NOT_FOUND, path) from e
    except PermissionError as e:
        raise TorrentFileError(FileErrorKind.PERMISSION, path) from e
    except OSError as e:
        raise TorrentFileError(FileErrorKind.OTHER, path) from e

    if len(data) < expected:
        raise TorrentFileError(FileErrorKind.TRUNCATED, path)
    return data


def load_from_path(path, max_depth: int = DEFAULT_MAX_DEPTH) -> MetaInfo:
    """Reads a .torrent file from disk and loads it."""
    return loads(_read_file(path), max_depth)
