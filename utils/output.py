"""
Tutorial packaging: index document, Mermaid diagram, directory and zip output.
"""

import io
import os
import zipfile

from constants.defaults import ATTRIBUTION_FOOTER, MERMAID_MAX_LABEL_LENGTH
from constants.paths import INDEX_FILE_NAME, ZIP_FILE_SUFFIX
from utils.models import (
    Abstraction,
    Chapter,
    Document,
    RelationshipGraph,
    TutorialDocuments,
)
from utils.validation import sanitize_filename


def append_footer(body: str) -> str:
    """Terminate body with a blank line and the attribution footer."""
    if not body.endswith("\n\n"):
        body = body.rstrip("\n") + "\n\n"
    return body + ATTRIBUTION_FOOTER


def build_mermaid_diagram(abstractions: list[Abstraction], graph: RelationshipGraph) -> str:
    lines = ["flowchart TD"]
    for i, abstraction in enumerate(abstractions):
        sanitized_name = abstraction.name.replace('"', "").replace("\n", " ")
        lines.append(f'    A{i}["{sanitized_name}"]')
    for edge in graph.edges:
        label = edge.label.replace('"', "").replace("\n", " ")
        if len(label) > MERMAID_MAX_LABEL_LENGTH:
            label = label[:MERMAID_MAX_LABEL_LENGTH - 3] + "..."
        lines.append(f'    A{edge.source} -- "{label}" --> A{edge.target}')
    return "\n".join(lines)


def build_index_document(
    project_name: str,
    abstractions: list[Abstraction],
    graph: RelationshipGraph,
    chapters: list[Chapter],
    repo_url: str | None = None,
    source_name: str | None = None,
) -> Document:
    """
    index.md: title, summary, source line, concept diagram and chapter links.

    source_name names an uploaded archive; it is only used when there is no repo_url.
    """
    content = f"# Tutorial: {project_name}\n\n"
    content += f"{graph.summary}\n\n"
    if repo_url:
        content += f"**Source Repository:** [{repo_url}]({repo_url})\n\n"
    elif source_name:
        content += f"**Source:** Uploaded File ({source_name})\n\n"

    content += "## Core Concepts Diagram\n\n"
    content += "```mermaid\n"
    content += build_mermaid_diagram(abstractions, graph) + "\n"
    content += "```\n\n"

    content += "## Chapters\n\n"
    content += "\n".join(f"{c.number}. [{c.title}]({c.filename})" for c in chapters)
    content += f"\n\n{ATTRIBUTION_FOOTER}"
    return Document(filename=INDEX_FILE_NAME, content=content)


def build_documents(
    project_name: str,
    abstractions: list[Abstraction],
    graph: RelationshipGraph,
    chapters: list[Chapter],
    repo_url: str | None = None,
    source_name: str | None = None,
) -> TutorialDocuments:
    """
    Raises:
        ValueError: two chapters share a filename
    """
    filenames = [c.filename for c in chapters]
    if len(set(filenames)) != len(filenames) or INDEX_FILE_NAME in filenames:
        raise ValueError(f"Duplicate tutorial filenames: {filenames}")

    index = build_index_document(project_name, abstractions, graph, chapters, repo_url, source_name)
    return TutorialDocuments(
        project_name=project_name,
        index=index,
        chapters=[Document(filename=c.filename, content=c.body) for c in chapters],
    )


def tutorial_dirname(project_name: str) -> str:
    """Single safe path component for the project's output directory."""
    return sanitize_filename(project_name) or "tutorial"


def write_tutorial_dir(documents: TutorialDocuments, output_dir: str) -> str:
    """Write every document under <output_dir>/<project dir>/ and return that path."""
    output_path = os.path.join(output_dir, tutorial_dirname(documents.project_name))
    print(f"Combining tutorial into directory: {output_path}")
    os.makedirs(output_path, exist_ok=True)

    for document in documents.all_documents():
        filepath = os.path.join(output_path, document.filename)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(document.content)
        print(f"  - Wrote {filepath}")
    return output_path


def zip_filename(project_name: str) -> str:
    return f"{tutorial_dirname(project_name)}{ZIP_FILE_SUFFIX}"


def build_zip_archive(documents: TutorialDocuments) -> bytes:
    """All documents as a DEFLATE-compressed zip, index first."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=6) as zf:
        for document in documents.all_documents():
            zf.writestr(document.filename, document.content)
    return buffer.getvalue()


def write_zip_archive(documents: TutorialDocuments, output_dir: str) -> str:
    os.makedirs(output_dir, exist_ok=True)
    output_path = os.path.join(output_dir, zip_filename(documents.project_name))
    data = build_zip_archive(documents)
    with open(output_path, "wb") as f:
        f.write(data)
    print(f"Generated zip file: {output_path} ({len(data) / 1024:.1f} KB)")
    return output_path
