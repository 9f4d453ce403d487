from __future__ import annotations

import stat
from pathlib import Path


def has_symlink_ancestor(path: Path) -> bool:
    current = path.parent
    while True:
        try:
            meta = current.lstat()
        except FileNotFoundError:
            pass
        except (OSError, RuntimeError):
            return True
        else:
            if stat.S_ISLNK(meta.st_mode):
                return True
        if current == current.parent:
            return False
        current = current.parent


def check_regular_file(path: Path, *, label: str) -> bool:
    """Return True if ``path`` exists as a regular file, False if it is missing.

    Raises OSError naming ``label`` when the path or one of its parents is a
    symlink, or when it exists but is not a regular file.
    """
    if has_symlink_ancestor(path):
        raise OSError(f"{label} path must not include symlink: {path}")
    try:
        meta = path.lstat()
    except FileNotFoundError:
        return False
    except (OSError, RuntimeError) as exc:
        raise OSError(f"failed to inspect {label} path: {path}") from exc
    if stat.S_ISLNK(meta.st_mode):
        raise OSError(f"{label} path must not be symlink: {path}")
    if not stat.S_ISREG(meta.st_mode):
        raise OSError(f"{label} path must be regular file: {path}")
    return True
