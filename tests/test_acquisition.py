import io
import os
import zipfile

import pytest
import requests

from utils.acquire import acquire
from utils.crawl_archive import common_root, crawl_archive_files
from utils.crawl_github_files import crawl_github_files, repo_name_from_url
from utils.crawl_local_files import crawl_local_files
from utils.file_filter import should_include_file


def make_zip(entries):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    buffer.seek(0)
    return buffer


# --- pattern semantics ---

def test_include_matches_basename_or_path():
    assert should_include_file("src/app.py", {"*.py"}, None)
    assert should_include_file("Dockerfile", {"Dockerfile*"}, None)
    assert not should_include_file("src/app.rb", {"*.py"}, None)


def test_exclusion_wins():
    assert not should_include_file("tests/test_app.py", {"*.py"}, {"tests/*"})
    assert not should_include_file("pkg/node_modules/x.js", {"*.js"}, {"*node_modules/*"})


def test_no_patterns_includes_everything():
    assert should_include_file("anything.bin")


# --- local directory ---

def test_local_crawl_filters_and_skips_large_files(tmp_path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.py").write_text("print('hi')\n", encoding="utf-8")
    (tmp_path / "src" / "big.py").write_text("x" * 500, encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")
    (tmp_path / "build").mkdir()
    (tmp_path / "build" / "gen.py").write_text("generated", encoding="utf-8")

    result = crawl_local_files(
        tmp_path,
        include_patterns={"*.py"},
        exclude_patterns={"build/*"},
        max_file_size=100,
        project_name="demo",
    )

    assert result.error is None
    assert result.project_name == "demo"
    assert [f.path for f in result.files] == ["src/app.py"]
    assert result.files[0].size == len("print('hi')\n")
    assert [s.path for s in result.skipped] == ["src/big.py"]


def test_local_crawl_honours_gitignore(tmp_path):
    (tmp_path / ".gitignore").write_text("secret.py\n", encoding="utf-8")
    (tmp_path / "secret.py").write_text("token = 1", encoding="utf-8")
    (tmp_path / "main.py").write_text("print(1)", encoding="utf-8")

    result = crawl_local_files(tmp_path, include_patterns={"*.py"})

    assert [f.path for f in result.files] == ["main.py"]
    assert result.project_name == tmp_path.name


def test_local_crawl_missing_directory_is_an_error(tmp_path):
    result = crawl_local_files(tmp_path / "nope")

    assert result.error.startswith("Directory does not exist")


def test_local_crawl_skips_dangling_symlink(tmp_path):
    (tmp_path / "main.py").write_text("print(1)", encoding="utf-8")
    os.symlink(tmp_path / "missing.py", tmp_path / "zz_link.py")

    result = crawl_local_files(tmp_path, include_patterns={"*.py"})

    assert result.error is None
    assert [f.path for f in result.files] == ["main.py"]
    assert [s.path for s in result.skipped] == ["zz_link.py"]
    assert result.skipped[0].reason.startswith("read error")


# --- zip archive ---

def test_common_root():
    assert common_root(["proj/a.py", "proj/src/b.py"]) == "proj/"
    assert common_root(["proj/src/a.py", "proj/src/b.py"]) == "proj/src/"
    assert common_root(["a.py", "proj/b.py"]) == ""
    assert common_root([]) == ""


def test_archive_root_folder_becomes_project_name():
    archive = make_zip({
        "myproj/main.py": "print(1)",
        "myproj/pkg/util.py": "def f(): pass",
        "myproj/README.md": "# Readme",
    })

    result = crawl_archive_files(archive, include_patterns={"*.py"}, archive_name="upload.zip")

    assert result.project_name == "myproj"
    assert sorted(f.path for f in result.files) == ["main.py", "pkg/util.py"]
    assert any(s.path == "README.md" for s in result.skipped)


def test_archive_without_root_uses_filename_stem_or_override():
    archive = make_zip({"a.py": "1", "b/c.py": "2"})

    assert crawl_archive_files(archive, archive_name="Demo.ZIP").project_name == "Demo"
    archive.seek(0)
    assert crawl_archive_files(archive, project_name="custom", archive_name="Demo.zip").project_name == "custom"


def test_single_file_archive_keeps_the_archive_name():
    archive = make_zip({"src/a.py": "print(1)"})

    result = crawl_archive_files(archive, archive_name="upload.zip")

    assert result.project_name == "upload"
    assert [f.path for f in result.files] == ["a.py"]


def test_archive_skips_undecodable_and_oversized_files():
    archive = make_zip({
        "p/ok.py": "fine",
        "p/blob.py": b"\xff\xfe\x00\x81",
        "p/large.py": "x" * 1000,
    })

    result = crawl_archive_files(archive, max_file_size=100, archive_name="p.zip")

    assert [f.path for f in result.files] == ["ok.py"]
    reasons = {s.path: s.reason for s in result.skipped}
    assert reasons["blob.py"] == "Not valid UTF-8 text"
    assert reasons["large.py"].startswith("Size limit")


def test_corrupt_archive_is_an_error():
    result = crawl_archive_files(io.BytesIO(b"not a zip"), archive_name="bad.zip")

    assert result.error.startswith("Failed to process zip file")
    assert result.files == []


# --- github ---

@pytest.mark.parametrize(
    "url, name",
    [
        ("https://github.com/The-Pocket/PocketFlow", "PocketFlow"),
        ("https://github.com/owner/repo/tree/main/src", "repo"),
        ("git@github.com:owner/repo.git", "repo"),
        ("https://github.com/owner/repo.git", "repo"),
    ],
)
def test_repo_name_from_url(url, name):
    assert repo_name_from_url(url) == name


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text="", headers=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self.headers = headers or {}

    def json(self):
        return self._payload


def test_github_crawl_walks_contents_api(monkeypatch):
    responses = {
        "https://api.github.com/repos/o/r/contents/": FakeResponse(payload=[
            {"path": "app.py", "name": "app.py", "type": "file", "size": 10, "download_url": "raw/app.py"},
            {"path": "docs", "name": "docs", "type": "dir"},
            {"path": "pkg", "name": "pkg", "type": "dir"},
        ]),
        "https://api.github.com/repos/o/r/contents/pkg": FakeResponse(payload=[
            {"path": "pkg/util.py", "name": "util.py", "type": "file", "size": 5, "download_url": "raw/util.py"},
            {"path": "pkg/huge.py", "name": "huge.py", "type": "file", "size": 10_000, "download_url": "raw/huge.py"},
        ]),
        "raw/app.py": FakeResponse(text="print(1)"),
        "raw/util.py": FakeResponse(text="def f(): pass"),
    }
    requested = []

    def fake_get(url, headers=None, params=None, timeout=None):
        requested.append(url)
        return responses[url]

    monkeypatch.setattr("utils.crawl_github_files.requests.get", fake_get)

    result = crawl_github_files(
        "https://github.com/o/r",
        include_patterns={"*.py"},
        exclude_patterns={"docs/*"},
        max_file_size=1000,
    )

    assert result.error is None
    assert result.project_name == "r"
    assert [f.path for f in result.files] == ["app.py", "pkg/util.py"]
    assert [s.path for s in result.skipped] == ["pkg/huge.py"]
    assert "https://api.github.com/repos/o/r/contents/docs" not in requested


def test_github_not_found_is_an_error(monkeypatch):
    monkeypatch.setattr(
        "utils.crawl_github_files.requests.get",
        lambda url, headers=None, params=None, timeout=None: FakeResponse(status_code=404),
    )

    result = crawl_github_files("https://github.com/o/missing")

    assert result.files == []
    assert "not found" in result.error


def test_github_rate_limit_is_retried_a_bounded_number_of_times(monkeypatch):
    calls = []

    def fake_get(url, headers=None, params=None, timeout=None):
        calls.append(url)
        return FakeResponse(status_code=403, text="API rate limit exceeded", headers={"X-RateLimit-Reset": "0"})

    monkeypatch.setattr("utils.crawl_github_files.requests.get", fake_get)
    waits = []

    result = crawl_github_files("https://github.com/o/r", rate_limit_retries=2, sleep=waits.append)

    assert len(calls) == 3
    assert len(waits) == 2
    assert result.error.startswith("Error fetching")


def test_github_connection_error_is_an_error_result(monkeypatch):
    def fake_get(url, headers=None, params=None, timeout=None):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr("utils.crawl_github_files.requests.get", fake_get)

    result = crawl_github_files("https://github.com/o/r")

    assert result.files == []
    assert result.error == "Error fetching o/r: connection refused"


def test_github_download_timeout_skips_the_file(monkeypatch):
    def fake_get(url, headers=None, params=None, timeout=None):
        if url == "raw/slow.py":
            raise requests.Timeout("read timed out")
        if url == "raw/app.py":
            return FakeResponse(text="print(1)")
        return FakeResponse(payload=[
            {"path": "app.py", "name": "app.py", "type": "file", "size": 8, "download_url": "raw/app.py"},
            {"path": "slow.py", "name": "slow.py", "type": "file", "size": 8, "download_url": "raw/slow.py"},
        ])

    monkeypatch.setattr("utils.crawl_github_files.requests.get", fake_get)

    result = crawl_github_files("https://github.com/o/r", include_patterns={"*.py"})

    assert result.error is None
    assert [f.path for f in result.files] == ["app.py"]
    assert [s.path for s in result.skipped] == ["slow.py"]
    assert result.skipped[0].reason == "download failed: read timed out"


# --- acquire ---

def test_acquire_requires_exactly_one_source(tmp_path):
    with pytest.raises(ValueError):
        acquire()
    with pytest.raises(ValueError):
        acquire(repo_url="https://github.com/o/r", local_dir=str(tmp_path))


def test_acquire_reports_empty_result(tmp_path):
    (tmp_path / "notes.txt").write_text("nothing to see", encoding="utf-8")

    result = acquire(local_dir=str(tmp_path), include_patterns={"*.py"}, exclude_patterns=set())

    assert result.files == []
    assert "No files matched" in result.error
