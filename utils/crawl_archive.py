"""
Zip Archive Crawler - reads an uploaded .zip of a codebase without extracting it to disk.
"""

import logging
import os
import zipfile

from utils.file_filter import should_include_file
from utils.models import AcquisitionResult, SkippedFile, SourceFile

logger = logging.getLogger(__name__)


def common_root(paths: list[str]) -> str:
    """
    Longest directory prefix shared by every path, with a trailing slash,
    or "" when the files do not live under one folder.
    """
    if not paths:
        return ""
    split_dirs = [p.split("/")[:-1] for p in paths]
    prefix = split_dirs[0]
    for parts in split_dirs[1:]:
        common = 0
        while common < min(len(prefix), len(parts)) and prefix[common] == parts[common]:
            common += 1
        prefix = prefix[:common]
        if not prefix:
            return ""
    return "/".join(prefix) + "/"


def crawl_archive_files(
    archive,
    include_patterns=None,
    exclude_patterns=None,
    max_file_size=None,
    project_name=None,
    archive_name=None,
):
    """
    Read files out of a zip archive.

    Args:
        archive: Path to the .zip, or a binary file-like object
        include_patterns (set): fnmatch patterns, see should_include_file()
        exclude_patterns (set): fnmatch patterns, see should_include_file()
        max_file_size (int): Maximum decoded file size in bytes
        project_name (str): Overrides the derived name
        archive_name (str): Display name of the upload, used when archive is a file object

    Returns:
        AcquisitionResult: paths relative to the archive's common root folder
    """
    if archive_name is None:
        archive_name = os.path.basename(archive) if isinstance(archive, (str, os.PathLike)) else "archive.zip"
    stem = archive_name[:-4] if archive_name.lower().endswith(".zip") else archive_name
    name = project_name or stem

    try:
        with zipfile.ZipFile(archive) as zf:
            entries = [
                info for info in zf.infolist()
                if not info.is_dir() and not info.filename.startswith("__MACOSX/")
            ]
            normalized = [info.filename.replace("\\", "/") for info in entries]

            root = common_root(normalized)
            if root:
                print(f"Detected common root directory in zip: '{root}'")
                # A lone file's folder says nothing about the project
                if not project_name and len(entries) > 1:
                    name = root.rstrip("/").split("/")[-1]

            files = []
            skipped = []
            for info, full_path in zip(entries, normalized):
                rel_path = full_path[len(root):]
                if not rel_path:
                    continue

                if not should_include_file(rel_path, include_patterns, exclude_patterns):
                    skipped.append(SkippedFile(rel_path, "Pattern exclusion/inclusion"))
                    continue
                if max_file_size and info.file_size > max_file_size:
                    skipped.append(SkippedFile(rel_path, f"Size limit ({info.file_size} bytes)"))
                    continue

                try:
                    content = zf.read(info).decode("utf-8-sig")
                except UnicodeDecodeError:
                    skipped.append(SkippedFile(rel_path, "Not valid UTF-8 text"))
                    continue
                except (zipfile.BadZipFile, OSError) as e:
                    logger.warning(f"Error reading {full_path} from zip: {e}")
                    skipped.append(SkippedFile(rel_path, f"Read error: {e}"))
                    continue

                files.append(SourceFile.from_text(rel_path, content))
    except (zipfile.BadZipFile, OSError) as e:
        logger.error(f"Error processing zip file {archive_name}: {e}")
        return AcquisitionResult(files=[], project_name=name, error=f"Failed to process zip file: {e}")

    print(f"Finished processing zip. Got {len(files)} files, skipped {len(skipped)}.")
    return AcquisitionResult(files=files, project_name=name, skipped=skipped)
