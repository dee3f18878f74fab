import io
import zipfile

import pytest

from constants.defaults import ATTRIBUTION_FOOTER
from utils.models import Abstraction, Chapter, Relationship, RelationshipGraph
from utils.output import (
    append_footer,
    build_documents,
    build_mermaid_diagram,
    build_zip_archive,
    write_tutorial_dir,
    write_zip_archive,
    zip_filename,
)

ABSTRACTIONS = [
    Abstraction(name='Node "Base"', description="d", files=(0,)),
    Abstraction(name="Flow", description="d", files=(1,)),
]
GRAPH = RelationshipGraph(
    summary="A tiny **workflow** engine.",
    edges=(
        Relationship(1, 0, "Orchestrates"),
        Relationship(0, 1, 'A very "long"\nlabel that keeps going on'),
    ),
)
CHAPTERS = [
    Chapter(1, 1, "Flow", "01_flow.md", append_footer("# Chapter 1: Flow\n\nbody")),
    Chapter(2, 0, 'Node "Base"', "02_node_base.md", append_footer("# Chapter 2: Node\n\nbody")),
]


def test_mermaid_diagram():
    diagram = build_mermaid_diagram(ABSTRACTIONS, GRAPH)

    assert diagram.splitlines() == [
        "flowchart TD",
        '    A0["Node Base"]',
        '    A1["Flow"]',
        '    A1 -- "Orchestrates" --> A0',
        '    A0 -- "A very long label that keep..." --> A1',
    ]


def test_index_document_layout():
    documents = build_documents("pocketflow", ABSTRACTIONS, GRAPH, CHAPTERS, repo_url="https://github.com/o/pocketflow")
    index = documents.index.content

    assert documents.index.filename == "index.md"
    assert index.startswith("# Tutorial: pocketflow\n\nA tiny **workflow** engine.\n\n")
    assert "**Source Repository:** [https://github.com/o/pocketflow](https://github.com/o/pocketflow)" in index
    assert "## Core Concepts Diagram\n\n```mermaid\nflowchart TD" in index
    assert "## Chapters\n\n1. [Flow](01_flow.md)\n2. [Node \"Base\"](02_node_base.md)" in index
    assert index.endswith(ATTRIBUTION_FOOTER)


def test_index_names_uploaded_archive_when_there_is_no_repo():
    documents = build_documents("demo", ABSTRACTIONS, GRAPH, CHAPTERS, source_name="demo.zip")

    assert "**Source:** Uploaded File (demo.zip)" in documents.index.content


def test_every_index_link_points_at_a_document():
    documents = build_documents("demo", ABSTRACTIONS, GRAPH, CHAPTERS)

    filenames = {d.filename for d in documents.chapters}
    for chapter in CHAPTERS:
        assert f"]({chapter.filename})" in documents.index.content
        assert chapter.filename in filenames


def test_duplicate_filenames_are_rejected():
    duplicate = [CHAPTERS[0], Chapter(2, 0, "Flow", "01_flow.md", "x")]

    with pytest.raises(ValueError):
        build_documents("demo", ABSTRACTIONS, GRAPH, duplicate)


def test_append_footer():
    assert append_footer("text") == f"text\n\n{ATTRIBUTION_FOOTER}"
    assert append_footer("text\n\n") == f"text\n\n{ATTRIBUTION_FOOTER}"
    assert append_footer("text\n") == f"text\n\n{ATTRIBUTION_FOOTER}"


def test_write_tutorial_dir(tmp_path):
    documents = build_documents("demo", ABSTRACTIONS, GRAPH, CHAPTERS)

    output_path = write_tutorial_dir(documents, str(tmp_path))

    written = sorted(p.name for p in (tmp_path / "demo").iterdir())
    assert output_path == str(tmp_path / "demo")
    assert written == ["01_flow.md", "02_node_base.md", "index.md"]
    assert (tmp_path / "demo" / "01_flow.md").read_text(encoding="utf-8") == CHAPTERS[0].body


def test_zip_archive_contains_every_document(tmp_path):
    documents = build_documents("My Project", ABSTRACTIONS, GRAPH, CHAPTERS)

    with zipfile.ZipFile(io.BytesIO(build_zip_archive(documents))) as zf:
        assert zf.namelist() == ["index.md", "01_flow.md", "02_node_base.md"]
        assert all(info.compress_type == zipfile.ZIP_DEFLATED for info in zf.infolist())
        assert zf.read("02_node_base.md").decode("utf-8") == CHAPTERS[1].body

    path = write_zip_archive(documents, str(tmp_path))
    assert path.endswith("my_project_tutorial.zip")
    assert zip_filename("!!!") == "tutorial_tutorial.zip"


@pytest.mark.parametrize("name, dirname", [("../escape", "escape"), ("a/b", "a_b"), ("///", "tutorial")])
def test_tutorial_dir_stays_inside_output_dir(tmp_path, name, dirname):
    documents = build_documents(name, ABSTRACTIONS, GRAPH, CHAPTERS)

    output_path = write_tutorial_dir(documents, str(tmp_path / "out"))

    assert output_path == str(tmp_path / "out" / dirname)
    assert sorted(p.name for p in (tmp_path / "out").iterdir()) == [dirname]
