#!/usr/bin/env python3
"""
Codebase Tutorial Builder - Main Entry Point
Cross-platform compatible (Windows, macOS, Linux)

Usage:
    python run.py --repo https://github.com/owner/repo
    python run.py --dir /path/to/code --output ./tutorials
    python run.py --archive project.zip --zip
"""

import argparse
import asyncio
import os
import sys
import time

from dotenv import load_dotenv

from constants.defaults import (
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_INCLUDE_PATTERNS,
    DEFAULT_LANGUAGE,
    DEFAULT_MAX_ABSTRACTIONS,
    DEFAULT_MAX_FILE_SIZE,
)
from constants.llm import DEFAULT_MAX_ATTEMPTS
from constants.paths import DEFAULT_OUTPUT_DIR
from flow import generate_tutorial
from utils.call_llm import configure_llm_logging, get_llm_provider


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a beginner-friendly tutorial from a GitHub repository, local directory or zip archive.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run.py --repo https://github.com/The-Pocket/PocketFlow
  python run.py --repo https://github.com/owner/repo/tree/main/src --token $GITHUB_TOKEN
  python run.py --dir . --output ./tutorials
  python run.py --dir ./src --include "*.py" --exclude "*test*"
  python run.py --archive project.zip --zip --language spanish
        """
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--repo", help="URL of a public GitHub repository (optionally /tree/<ref>/<path>).")
    source.add_argument("--dir", help="Path to local directory to analyze.")
    source.add_argument("--archive", help="Path to a .zip archive of the codebase.")

    parser.add_argument(
        "-n", "--name",
        help="Project name (optional, derived from the source if omitted)."
    )
    parser.add_argument(
        "-t", "--token",
        help="GitHub personal access token (optional, reads GITHUB_TOKEN env var if omitted)."
    )
    parser.add_argument(
        "-o", "--output",
        default=DEFAULT_OUTPUT_DIR,
        help=f"Output directory for the tutorial (default: ./{DEFAULT_OUTPUT_DIR})."
    )
    parser.add_argument(
        "-i", "--include",
        nargs="+",
        help="Include file patterns (e.g., '*.py' '*.js'). Defaults to common code files."
    )
    parser.add_argument(
        "-e", "--exclude",
        nargs="+",
        help="Exclude file patterns (e.g., 'tests/*' 'docs/*'). Defaults to test/build directories."
    )
    parser.add_argument(
        "-s", "--max-size",
        type=int,
        default=DEFAULT_MAX_FILE_SIZE,
        help=f"Maximum file size in bytes (default: {DEFAULT_MAX_FILE_SIZE}, about 100KB)."
    )
    parser.add_argument(
        "--language",
        default=DEFAULT_LANGUAGE,
        help=f"Language for the generated tutorial (default: {DEFAULT_LANGUAGE})."
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Disable LLM response caching (default: caching enabled)."
    )
    parser.add_argument(
        "--max-abstractions",
        type=int,
        default=DEFAULT_MAX_ABSTRACTIONS,
        help=f"Maximum number of abstractions to identify (default: {DEFAULT_MAX_ABSTRACTIONS})."
    )
    parser.add_argument(
        "--max-attempts",
        type=int,
        default=DEFAULT_MAX_ATTEMPTS,
        help=f"LLM attempts per pipeline stage before giving up (default: {DEFAULT_MAX_ATTEMPTS})."
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Abort the whole run after this many seconds (default: no limit)."
    )
    parser.add_argument(
        "--zip",
        action="store_true",
        help="Write a single <project>_tutorial.zip instead of a directory of Markdown files."
    )
    return parser


def build_shared(args) -> dict:
    return {
        "repo_url": args.repo,
        "local_dir": os.path.abspath(args.dir) if args.dir else None,
        "archive": args.archive,
        "archive_name": os.path.basename(args.archive) if args.archive else None,
        "project_name": args.name,
        "github_token": args.token or os.environ.get("GITHUB_TOKEN"),
        "output_dir": args.output,
        "output_format": "zip" if args.zip else "directory",
        "include_patterns": set(args.include) if args.include else DEFAULT_INCLUDE_PATTERNS,
        "exclude_patterns": set(args.exclude) if args.exclude else DEFAULT_EXCLUDE_PATTERNS,
        "max_file_size": args.max_size,
        "language": args.language,
        "use_cache": not args.no_cache,
        "max_abstraction_num": args.max_abstractions,
        "max_attempts": args.max_attempts,
    }


def main(argv=None):
    load_dotenv()
    args = build_parser().parse_args(argv)

    if args.repo and not (args.token or os.environ.get("GITHUB_TOKEN")):
        print("Warning: No GitHub token provided. You might hit rate limits for public repositories.")

    shared = build_shared(args)
    log_file = configure_llm_logging()

    print(f"=" * 60)
    print(f"Codebase Tutorial Builder")
    print(f"=" * 60)
    print(f"Source: {args.repo or shared['local_dir'] or args.archive}")
    print(f"Language: {args.language.capitalize()}")
    print(f"LLM Caching: {'Disabled' if args.no_cache else 'Enabled'}")
    try:
        print(f"LLM Provider: {get_llm_provider()}")
    except ValueError as e:
        print(f"LLM Provider: Not configured - {e}")
        sys.exit(1)
    print(f"Output: {args.output}{' (zip)' if args.zip else ''}")
    print(f"LLM log: {log_file}")
    print(f"=" * 60)

    start_time = time.time()
    result = asyncio.run(generate_tutorial(shared, timeout=args.timeout))

    elapsed = time.time() - start_time
    if elapsed >= 60:
        time_str = f"{elapsed/60:.1f} minutes"
    else:
        time_str = f"{elapsed:.1f} seconds"

    print(f"\n{'=' * 60}")
    if not result.success:
        print(f"❌ Tutorial generation failed: {result.error}")
        print(f"   Time: {time_str}")
        print(f"{'=' * 60}")
        sys.exit(1)

    print(f"✅ Tutorial generated successfully!")
    print(f"   Chapters: {len(result.documents.chapters)}")
    print(f"   Output: {result.output_path}")
    print(f"   Time: {time_str}")
    print(f"{'=' * 60}")


if __name__ == "__main__":
    main()
