"""
Include/exclude pattern matching shared by every crawler.
"""

import fnmatch
import posixpath


def _matches_any(path: str, patterns) -> bool:
    name = posixpath.basename(path)
    return any(fnmatch.fnmatch(path, p) or fnmatch.fnmatch(name, p) for p in patterns)


def should_include_file(path: str, include_patterns=None, exclude_patterns=None) -> bool:
    """
    Decide whether a relative posix path passes the filters.

    Patterns are fnmatch-style and tested against both the full relative path
    and the basename. A file must match some include pattern (or there are
    none) and no exclude pattern; exclusion wins.
    """
    if exclude_patterns and _matches_any(path, exclude_patterns):
        return False
    if include_patterns:
        return _matches_any(path, include_patterns)
    return True


def is_excluded_dir(path: str, exclude_patterns=None) -> bool:
    """True if a directory should be pruned before descending into it."""
    if not exclude_patterns:
        return False
    # "tests/" lets directory patterns such as "*tests/*" match the directory itself
    return _matches_any(path, exclude_patterns) or any(
        fnmatch.fnmatch(path + "/", p) for p in exclude_patterns
    )
