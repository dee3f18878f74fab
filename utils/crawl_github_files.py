import base64
import logging
import os
import tempfile
import time
from urllib.parse import urlparse

import git
import requests

from constants.defaults import DEFAULT_GITHUB_RATE_LIMIT_RETRIES, DEFAULT_MAX_FILE_SIZE
from utils.file_filter import is_excluded_dir, should_include_file
from utils.models import AcquisitionResult, SkippedFile, SourceFile

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_TIMEOUT = (30, 30)


def repo_name_from_url(repo_url: str) -> str:
    """https://github.com/owner/repo/tree/main/src -> repo, git@host:owner/repo.git -> repo"""
    if repo_url.startswith("git@"):
        path = repo_url.split(":", 1)[-1]
    else:
        path = urlparse(repo_url).path
    parts = [p for p in path.strip("/").split("/") if p]
    if len(parts) >= 2 and not repo_url.startswith("git@"):
        name = parts[1]
    else:
        name = parts[-1] if parts else "repository"
    return name.removesuffix(".git")


def _clone_and_walk(repo_url, include_patterns, exclude_patterns, max_file_size, project_name):
    """Clone an SSH (or .git) URL into a temp dir with GitPython and read it."""
    files = []
    skipped = []
    with tempfile.TemporaryDirectory() as tmpdirname:
        print(f"Cloning SSH repo {repo_url} to temp dir {tmpdirname} ...")
        try:
            git.Repo.clone_from(repo_url, tmpdirname)
        except (git.GitError, OSError) as e:
            logger.error(f"Error cloning repo {repo_url}: {e}")
            return AcquisitionResult(files=[], project_name=project_name, error=f"Error cloning repo: {e}")

        for root, dirs, filenames in os.walk(tmpdirname):
            rel_root = os.path.relpath(root, tmpdirname).replace(os.sep, "/")
            dirs[:] = sorted(
                d for d in dirs
                if d != ".git"
                and not is_excluded_dir(d if rel_root == "." else f"{rel_root}/{d}", exclude_patterns)
            )
            for filename in sorted(filenames):
                abs_path = os.path.join(root, filename)
                rel_path = os.path.relpath(abs_path, tmpdirname).replace(os.sep, "/")

                if not should_include_file(rel_path, include_patterns, exclude_patterns):
                    continue

                try:
                    file_size = os.path.getsize(abs_path)
                    if file_size > max_file_size:
                        skipped.append(SkippedFile(rel_path, f"exceeds size limit ({file_size} > {max_file_size} bytes)"))
                        print(f"Skipping {rel_path}: size {file_size} exceeds limit {max_file_size}")
                        continue
                    with open(abs_path, "r", encoding="utf-8-sig") as f:
                        files.append(SourceFile.from_text(rel_path, f.read()))
                    print(f"Added {rel_path} ({file_size} bytes)")
                except (OSError, UnicodeDecodeError) as e:
                    skipped.append(SkippedFile(rel_path, f"read error: {e}"))
                    logger.warning(f"Failed to read {rel_path}: {e}")

    return AcquisitionResult(files=files, project_name=project_name, skipped=skipped)


def crawl_github_files(
    repo_url,
    token=None,
    max_file_size: int = DEFAULT_MAX_FILE_SIZE,
    include_patterns=None,
    exclude_patterns=None,
    project_name=None,
    rate_limit_retries: int = DEFAULT_GITHUB_RATE_LIMIT_RETRIES,
    sleep=time.sleep,
):
    """
    Crawl files from a GitHub repository, optionally at a branch/commit and
    subdirectory given as https://github.com/owner/repo/tree/<ref>/<path>.

    Args:
        repo_url (str): Repository URL. git@... or *.git URLs are cloned instead.
        token (str, optional): GitHub personal access token.
            - Required for private repositories.
            - Recommended for public repos to avoid rate limits.
        max_file_size (int): Maximum file size in bytes to download
        include_patterns (set): fnmatch patterns, see should_include_file()
        exclude_patterns (set): fnmatch patterns, see should_include_file()
        project_name (str, optional): Overrides the repository name
        rate_limit_retries (int): Rate-limited requests are retried at most this often
        sleep: Blocking sleep used while waiting for the rate limit to reset

    Returns:
        AcquisitionResult: paths are relative to the requested subdirectory
    """
    if include_patterns and isinstance(include_patterns, str):
        include_patterns = {include_patterns}
    if exclude_patterns and isinstance(exclude_patterns, str):
        exclude_patterns = {exclude_patterns}

    project_name = project_name or repo_name_from_url(repo_url)

    if repo_url.startswith("git@") or repo_url.endswith(".git"):
        return _clone_and_walk(repo_url, include_patterns, exclude_patterns, max_file_size, project_name)

    path_parts = urlparse(repo_url).path.strip("/").split("/")
    if len(path_parts) < 2:
        return AcquisitionResult(files=[], project_name=project_name, error=f"Invalid GitHub URL: {repo_url}")

    owner, repo = path_parts[0], path_parts[1]

    headers = {"Accept": "application/vnd.github.v3+json"}
    if token:
        headers["Authorization"] = f"token {token}"

    def get(url, params=None):
        """GET with bounded waiting on the GitHub rate limit."""
        for attempt in range(rate_limit_retries + 1):
            response = requests.get(url, headers=headers, params=params, timeout=GITHUB_TIMEOUT)
            rate_limited = response.status_code in (403, 429) and "rate limit" in response.text.lower()
            if not rate_limited or attempt == rate_limit_retries:
                return response
            reset_time = int(response.headers.get("X-RateLimit-Reset", 0))
            wait_time = max(reset_time - time.time(), 0) + 1
            print(f"Rate limit exceeded. Waiting for {wait_time:.0f} seconds...")
            logger.warning(f"GitHub rate limit hit for {url}, waiting {wait_time:.0f}s")
            sleep(wait_time)

    def not_found_message(path):
        if not token:
            return (
                f"Repository {owner}/{repo} not found or is private. If this is a private "
                f"repository, provide a GitHub token via --token or GITHUB_TOKEN."
            )
        if path:
            return f"Path '{path}' not found in {owner}/{repo} or the token has insufficient permissions."
        return f"Repository {owner}/{repo} not found or the token has insufficient permissions."

    # --- Resolve ref and subdirectory from /tree/<ref>/<path> ---
    ref = None
    specific_path = ""
    if len(path_parts) > 3 and path_parts[2] == "tree":
        relevant_path = "/".join(path_parts[3:])

        try:
            response = get(f"{GITHUB_API_URL}/repos/{owner}/{repo}/branches")
        except requests.RequestException as e:
            return AcquisitionResult(
                files=[],
                project_name=project_name,
                error=f"Error fetching the branches of {owner}/{repo}: {e}",
            )
        if response.status_code == 404:
            return AcquisitionResult(files=[], project_name=project_name, error=not_found_message(""))
        if response.status_code != 200:
            return AcquisitionResult(
                files=[],
                project_name=project_name,
                error=f"Error fetching the branches of {owner}/{repo}: {response.status_code} - {response.text}",
            )

        # Longest branch name first so "feature/x" wins over "feature"
        branch_names = sorted((b.get("name", "") for b in response.json()), key=len, reverse=True)
        ref = next(
            (name for name in branch_names if relevant_path == name or relevant_path.startswith(name + "/")),
            None,
        )
        if ref is None:
            tree = path_parts[3]
            try:
                tree_response = get(f"{GITHUB_API_URL}/repos/{owner}/{repo}/git/trees/{tree}")
            except requests.RequestException as e:
                return AcquisitionResult(
                    files=[],
                    project_name=project_name,
                    error=f"Error fetching tree {tree} of {owner}/{repo}: {e}",
                )
            if tree_response.status_code == 200:
                ref = tree
        if ref is None:
            return AcquisitionResult(
                files=[],
                project_name=project_name,
                error="The given path does not match any branch or tree in the repository.",
            )
        specific_path = relevant_path[len(ref):].strip("/")

    files = []
    skipped = []
    errors = []

    def relative(item_path):
        if specific_path and item_path.startswith(specific_path):
            return item_path[len(specific_path):].lstrip("/")
        return item_path

    def download(item, rel_path):
        try:
            return fetch_text(item, rel_path)
        except requests.RequestException as e:
            logger.warning(f"Failed to download {rel_path}: {e}")
            skipped.append(SkippedFile(rel_path, f"download failed: {e}"))
            return None

    def fetch_text(item, rel_path):
        if item.get("download_url"):
            file_response = get(item["download_url"])
            content_length = int(file_response.headers.get("content-length", 0))
            if content_length > max_file_size:
                skipped.append(SkippedFile(rel_path, f"exceeds size limit ({content_length} > {max_file_size} bytes)"))
                return None
            if file_response.status_code != 200:
                skipped.append(SkippedFile(rel_path, f"download failed ({file_response.status_code})"))
                return None
            return file_response.text

        content_response = get(item["url"])
        if content_response.status_code != 200:
            skipped.append(SkippedFile(rel_path, f"download failed ({content_response.status_code})"))
            return None
        content_data = content_response.json()
        if content_data.get("encoding") != "base64" or "content" not in content_data:
            skipped.append(SkippedFile(rel_path, "unexpected content format"))
            return None
        try:
            return base64.b64decode(content_data["content"]).decode("utf-8")
        except (ValueError, UnicodeDecodeError):
            skipped.append(SkippedFile(rel_path, "not valid UTF-8 text"))
            return None

    def fetch_contents(path):
        params = {"ref": ref} if ref is not None else None
        try:
            response = get(f"{GITHUB_API_URL}/repos/{owner}/{repo}/contents/{path}", params=params)
        except requests.RequestException as e:
            errors.append(f"Error fetching {path or owner + '/' + repo}: {e}")
            return

        if response.status_code == 404:
            errors.append(not_found_message(path))
            return
        if response.status_code != 200:
            errors.append(f"Error fetching {path or owner + '/' + repo}: {response.status_code} - {response.text}")
            return

        contents = response.json()
        if not isinstance(contents, list):
            contents = [contents]

        for item in contents:
            item_path = item["path"]
            rel_path = relative(item_path)

            if item["type"] == "file":
                if not should_include_file(rel_path, include_patterns, exclude_patterns):
                    continue
                file_size = item.get("size", 0)
                if file_size > max_file_size:
                    skipped.append(SkippedFile(rel_path, f"exceeds size limit ({file_size} > {max_file_size} bytes)"))
                    print(f"Skipping {rel_path}: File size ({file_size} bytes) exceeds limit ({max_file_size} bytes)")
                    continue
                content = download(item, rel_path)
                if content is not None:
                    files.append(SourceFile.from_text(rel_path, content))
                    print(f"Downloaded: {rel_path} ({file_size} bytes)")

            elif item["type"] == "dir":
                if is_excluded_dir(rel_path, exclude_patterns):
                    continue
                fetch_contents(item_path)

    fetch_contents(specific_path)

    # A failure on the root listing means nothing could be fetched at all
    error = errors[0] if errors and not files else None
    for message in errors:
        logger.warning(message)
    return AcquisitionResult(files=files, project_name=project_name, skipped=skipped, error=error)


if __name__ == "__main__":
    from dotenv import load_dotenv

    load_dotenv()
    repo_url = os.environ.get("GITHUB_URL", "https://github.com/The-Pocket/PocketFlow")
    result = crawl_github_files(
        repo_url,
        token=os.environ.get("GITHUB_TOKEN"),
        include_patterns={"*.py", "*.md"},
        exclude_patterns={"tests/*", "*node_modules/*", "*__pycache__/*"},
        max_file_size=500000,
    )
    if result.error:
        print(f"Error: {result.error}")
    print(f"\nDownloaded {len(result.files)} files, skipped {len(result.skipped)}.")
    for source in result.files:
        print(f"  {source.path}")
