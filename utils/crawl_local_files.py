"""
Local Directory Crawler - Cross-platform compatible (Windows, macOS, Linux)
"""

import logging
import os
from pathlib import Path

import pathspec

from utils.file_filter import is_excluded_dir, should_include_file
from utils.models import AcquisitionResult, SkippedFile, SourceFile

logger = logging.getLogger(__name__)


def _load_gitignore(directory: Path):
    gitignore_path = directory / ".gitignore"
    if not gitignore_path.exists():
        return None
    try:
        with open(gitignore_path, "r", encoding="utf-8-sig") as f:
            spec = pathspec.PathSpec.from_lines("gitwildmatch", f.readlines())
        print(f"Loaded .gitignore patterns from {gitignore_path}")
        return spec
    except OSError as e:
        logger.warning(f"Could not read .gitignore file {gitignore_path}: {e}")
        return None


def crawl_local_files(
    directory,
    include_patterns=None,
    exclude_patterns=None,
    max_file_size=None,
    project_name=None,
):
    """
    Crawl files in a local directory with cross-platform support.

    Args:
        directory (str): Path to local directory
        include_patterns (set): File patterns to include (e.g. {"*.py", "*.js"})
        exclude_patterns (set): File patterns to exclude (e.g. {"tests/*"})
        max_file_size (int): Maximum file size in bytes
        project_name (str): Overrides the directory name

    Returns:
        AcquisitionResult: files in walk order, with skip reasons
    """
    directory = Path(directory).resolve()
    name = project_name or directory.name

    if not directory.is_dir():
        return AcquisitionResult(files=[], project_name=name, error=f"Directory does not exist: {directory}")

    gitignore_spec = _load_gitignore(directory)
    files = []
    skipped = []

    all_files = []
    for root, dirs, filenames in os.walk(directory):
        root_path = Path(root)

        # Prune directories early so large ignored trees are never walked
        kept_dirs = []
        for d in sorted(dirs):
            dirpath_rel = (root_path / d).relative_to(directory).as_posix()
            if gitignore_spec and gitignore_spec.match_file(dirpath_rel + "/"):
                continue
            if is_excluded_dir(dirpath_rel, exclude_patterns):
                continue
            kept_dirs.append(d)
        dirs[:] = kept_dirs

        for filename in sorted(filenames):
            all_files.append(root_path / filename)

    total_files = len(all_files)
    for processed, filepath in enumerate(all_files, start=1):
        relpath = filepath.relative_to(directory).as_posix()

        status = "processed"
        if gitignore_spec and gitignore_spec.match_file(relpath):
            status = "skipped (gitignore)"
        elif not should_include_file(relpath, include_patterns, exclude_patterns):
            status = "skipped (excluded)"
        else:
            try:
                size = filepath.stat().st_size
                if max_file_size and size > max_file_size:
                    status = "skipped (size limit)"
                    skipped.append(SkippedFile(relpath, f"exceeds size limit ({size} > {max_file_size} bytes)"))
                else:
                    with open(filepath, "r", encoding="utf-8-sig") as f:
                        files.append(SourceFile.from_text(relpath, f.read()))
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Could not read file {filepath}: {e}")
                status = "skipped (read error)"
                skipped.append(SkippedFile(relpath, f"read error: {e}"))

        percentage = int((processed / total_files) * 100)
        print(f"\033[92mProgress: {processed}/{total_files} ({percentage}%) {relpath} [{status}]\033[0m")

    return AcquisitionResult(files=files, project_name=name, skipped=skipped)


if __name__ == "__main__":
    import sys

    test_dir = sys.argv[1] if len(sys.argv) > 1 else "."

    print(f"--- Crawling directory: {test_dir} ---")
    result = crawl_local_files(
        test_dir,
        include_patterns={"*.py", "*.md"},
        exclude_patterns={"*.pyc", "__pycache__/*", ".venv/*", ".git/*"},
    )
    print(f"\nFound {len(result.files)} files:")
    for source in result.files:
        print(f"  {source.path}")
