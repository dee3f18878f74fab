"""
================================================================================
PATH AND FILE CONSTANTS
================================================================================
This file contains all constants related to paths, directories, and file names.
This is the single source of truth for file system configuration.
================================================================================
"""

# =============================================================================
# DIRECTORY NAMES
# =============================================================================
LOGS_DIR_NAME = "logs"
DEFAULT_OUTPUT_DIR = "output"

# =============================================================================
# OUTPUT FILE NAMES
# =============================================================================
INDEX_FILE_NAME = "index.md"
CHAPTER_FILE_EXTENSION = ".md"
ZIP_FILE_SUFFIX = "_tutorial.zip"

# =============================================================================
# LOG FILE FORMAT
# =============================================================================
LOG_FILE_PREFIX = "llm_calls_"
LOG_DATE_FORMAT = "%Y%m%d"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
