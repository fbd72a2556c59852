import logging
import os

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDE_DIRS: frozenset[str] = frozenset({
    '.git', '.svn', '.hg', '__pycache__', '.venv', 'venv', 'node_modules',
})


def _wanted(fname: str, extensions: frozenset[str] | None) -> bool:
    if extensions is None:
        return True
    _, ext = os.path.splitext(fname)
    return ext.lower() in extensions


def discover_files(
    root: str,
    extensions: frozenset[str] | None = None,
    exclude_dirs: frozenset[str] = DEFAULT_EXCLUDE_DIRS,
) -> list[str]:
    """Walk directory tree collecting files by extension. Symlink-loop safe.

    A file given as ``root`` is returned as is, whatever its extension.
    ``extensions=None`` collects every file.
    """
    if os.path.isfile(root):
        return [root]

    found: list[str] = []
    seen_inodes: set[tuple[int, int]] = set()

    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        try:
            dir_stat = os.stat(dirpath)
            inode_key = (dir_stat.st_dev, dir_stat.st_ino)
            if inode_key in seen_inodes:
                dirnames.clear()
                continue
            seen_inodes.add(inode_key)
        except OSError:
            dirnames.clear()
            continue

        # Prune excluded dirs in-place (prevents os.walk from descending)
        dirnames[:] = sorted(d for d in dirnames if d not in exclude_dirs)

        for fname in sorted(filenames):
            if _wanted(fname, extensions):
                found.append(os.path.join(dirpath, fname))
    return found


def check_file(path: str, max_size: int) -> str | None:
    """Return why ``path`` cannot be scanned, or None if it can."""
    try:
        size = os.path.getsize(path)
    except OSError as e:
        logger.debug("Cannot stat %s: %s", path, e)
        return f"Cannot read file: {e.strerror or e}"
    if size > max_size:
        logger.warning("Skipping %s: exceeds %d bytes limit (%d bytes)", path, max_size, size)
        return f"File exceeds {max_size} bytes limit"
    return None
