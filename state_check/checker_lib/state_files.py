import os
import zipfile
from typing import Any, Dict, List, Tuple

from plist_state.encoder import encode_document
from plist_state.parser import PlistParser
from plist_state.tags import TagReader

from .exceptions import StateFileError

PLIST_EXTENSION = ".plist"
ZIP_EXTENSION = ".zip"
STATE_EXTENSIONS = (PLIST_EXTENSION, ZIP_EXTENSION)


def is_state_file(filename: str) -> bool:
    """Checks whether a file name looks like a saved state."""
    return filename.endswith(STATE_EXTENSIONS)


def state_name(filename: str) -> str:
    """Strips the state extensions, so `run.plist.zip` and `run.plist` both yield `run`."""
    name = os.path.basename(filename)
    for ext in (ZIP_EXTENSION, PLIST_EXTENSION):
        if name.endswith(ext):
            name = name[:-len(ext)]
    return name


def read_state_text(path: str) -> str:
    """Reads the markup of a state file.

    Plain `.plist` files are read as UTF-8 text. `.zip` archives must contain
    exactly one member, which is read instead.

    Args:
        path: The path to the state file.

    Returns:
        The plist markup.

    Raises:
        StateFileError: If the file is missing, unreadable, not valid UTF-8,
            or an archive that does not hold exactly one entry.
    """
    try:
        if path.endswith(ZIP_EXTENSION):
            with zipfile.ZipFile(path) as archive:
                members = [info for info in archive.infolist() if not info.is_dir()]
                if len(members) != 1:
                    raise StateFileError(path, f"expected one entry in archive, found {len(members)}")
                return archive.read(members[0]).decode("utf-8")
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()
    except zipfile.BadZipFile as e:
        raise StateFileError(path, f"invalid archive ({e})")
    except UnicodeDecodeError as e:
        raise StateFileError(path, f"not UTF-8 text ({e})")
    except OSError as e:
        raise StateFileError(path, e.strerror or str(e))


def load_state(path: str) -> Tuple[Dict[str, Any], List[str]]:
    """Reads and parses a state file.

    Returns:
        A tuple `(plist, warnings)` with the parsed root dictionary and the
        parser's warnings about repaired markup.
    """
    parser = PlistParser(TagReader(read_state_text(path)))
    plist = parser.parse()
    return plist, parser.warnings


def write_state(path: str, plist: Dict[str, Any]) -> None:
    """Writes `plist` as a complete state file, creating directories as needed."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(encode_document(plist))


def collect_pairs(reference_dir: str, candidate_dir: str, recursive: bool = True) -> Tuple[List[Tuple[str, str]], List[str]]:
    """Pairs reference state files with candidates of the same relative name.

    A candidate matches a reference if it has the same relative directory and
    the same state name, regardless of whether either side is zipped.

    Args:
        reference_dir: Directory holding the reference states.
        candidate_dir: Directory holding the candidate states.
        recursive: If False, only the top level of `reference_dir` is searched.

    Returns:
        A tuple `(pairs, missing)`: the `(reference, candidate)` path pairs in
        sorted order, and the reference paths without a candidate.
    """
    pairs: List[Tuple[str, str]] = []
    missing: List[str] = []
    for root, dirs, files in os.walk(reference_dir):
        dirs.sort()
        if not recursive:
            dirs.clear()
        relative = os.path.relpath(root, reference_dir)
        candidate_root = candidate_dir if relative == os.curdir else os.path.join(candidate_dir, relative)
        candidates = {}
        if os.path.isdir(candidate_root):
            for name in sorted(os.listdir(candidate_root)):
                if is_state_file(name) and os.path.isfile(os.path.join(candidate_root, name)):
                    candidates.setdefault(state_name(name), os.path.join(candidate_root, name))
        for file in sorted(files):
            if not is_state_file(file):
                continue
            reference = os.path.join(root, file)
            candidate = candidates.get(state_name(file))
            if candidate is None:
                missing.append(reference)
            else:
                pairs.append((reference, candidate))
    return pairs, missing
