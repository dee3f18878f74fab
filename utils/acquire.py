"""
Source acquisition: one entry point for GitHub, local directories and zip archives.
"""

import logging

from constants.defaults import (
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_INCLUDE_PATTERNS,
    DEFAULT_MAX_FILE_SIZE,
)
from utils.crawl_archive import crawl_archive_files
from utils.crawl_github_files import crawl_github_files
from utils.crawl_local_files import crawl_local_files
from utils.models import AcquisitionResult

logger = logging.getLogger(__name__)


class AcquisitionError(Exception):
    """The source could not be read, or nothing in it passed the filters."""


def acquire(
    repo_url=None,
    local_dir=None,
    archive=None,
    token=None,
    include_patterns=DEFAULT_INCLUDE_PATTERNS,
    exclude_patterns=DEFAULT_EXCLUDE_PATTERNS,
    max_file_size=DEFAULT_MAX_FILE_SIZE,
    project_name=None,
    archive_name=None,
) -> AcquisitionResult:
    """
    Fetch the codebase from exactly one source.

    An empty file list is reported through AcquisitionResult.error; this
    function only raises for caller mistakes.

    Raises:
        ValueError: not exactly one of repo_url, local_dir, archive given
    """
    sources = [s for s in (repo_url, local_dir, archive) if s is not None]
    if len(sources) != 1:
        raise ValueError("Exactly one of repo_url, local_dir or archive must be provided")

    if repo_url is not None:
        print(f"Crawling repository: {repo_url}...")
        result = crawl_github_files(
            repo_url,
            token=token,
            include_patterns=include_patterns,
            exclude_patterns=exclude_patterns,
            max_file_size=max_file_size,
            project_name=project_name,
        )
    elif local_dir is not None:
        print(f"Crawling directory: {local_dir}...")
        result = crawl_local_files(
            local_dir,
            include_patterns=include_patterns,
            exclude_patterns=exclude_patterns,
            max_file_size=max_file_size,
            project_name=project_name,
        )
    else:
        print(f"Reading archive: {archive_name or archive}...")
        result = crawl_archive_files(
            archive,
            include_patterns=include_patterns,
            exclude_patterns=exclude_patterns,
            max_file_size=max_file_size,
            project_name=project_name,
            archive_name=archive_name,
        )

    if result.error is None and not result.files:
        result.error = "No files matched the include/exclude patterns or size limit."

    if result.error:
        logger.error(f"Acquisition failed for {result.project_name}: {result.error}")
    else:
        logger.info(f"Fetched {len(result.files)} files ({len(result.skipped)} skipped) for {result.project_name}")
    return result
