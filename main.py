import sys

from bencoding import DecodeError, IncompleteError
from metainfo import MetaError, TorrentFileError, load_from_path
from ui import ui


def show(path):
    """Loads one torrent file and prints it. Returns True on success."""
    try:
        torrent = load_from_path(path)
    except TorrentFileError as e:
        ui.print_log(f"{path}: cannot read file ({e.kind.name})", "ERROR")
    except IncompleteError as e:
        ui.print_log(f"{path}: truncated bencoding: {e}", "ERROR")
    except DecodeError as e:
        ui.print_log(f"{path}: malformed bencoding: {e}", "ERROR")
    except MetaError as e:
        ui.print_log(f"{path}: invalid torrent ({e.kind.name}): {e}", "ERROR")
    else:
        ui.show_torrent(torrent)
        return True
    return False


def main(argv=None):
    paths = sys.argv[1:] if argv is None else argv
    if not paths:
        ui.print_log("usage: fluxmeta FILE.torrent [FILE.torrent ...]", "WARNING")
        return 2

    results = [show(path) for path in paths]
    return 0 if all(results) else 1


if __name__ == "__main__":
    sys.exit(main())
