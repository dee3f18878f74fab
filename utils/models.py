"""
Data models shared by the tutorial pipeline.

Raw LLM output is canonicalised by the stage validators and converted into
these types before any later stage reads it.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class SourceFile:
    """One fetched file. Its position in the file list is its index."""

    path: str
    content: str
    size: int

    @classmethod
    def from_text(cls, path: str, content: str) -> "SourceFile":
        return cls(path=path, content=content, size=len(content.encode("utf-8")))


@dataclass(frozen=True, slots=True)
class SkippedFile:
    path: str
    reason: str


@dataclass(slots=True)
class AcquisitionResult:
    """What a source crawler hands to the pipeline."""

    files: list[SourceFile]
    project_name: str
    skipped: list[SkippedFile] = field(default_factory=list)
    error: str | None = None


@dataclass(frozen=True, slots=True)
class Abstraction:
    name: str
    description: str
    files: tuple[int, ...]


@dataclass(frozen=True, slots=True)
class Relationship:
    source: int
    target: int
    label: str


@dataclass(frozen=True, slots=True)
class RelationshipGraph:
    summary: str
    edges: tuple[Relationship, ...]

    def covered_indices(self) -> set[int]:
        covered = set()
        for edge in self.edges:
            covered.add(edge.source)
            covered.add(edge.target)
        return covered


@dataclass(frozen=True, slots=True)
class ChapterInfo:
    """Table-of-contents entry, computed before any chapter is written."""

    number: int
    abstraction_index: int
    title: str
    filename: str


@dataclass(frozen=True, slots=True)
class Chapter:
    number: int
    abstraction_index: int
    title: str
    filename: str
    body: str


@dataclass(frozen=True, slots=True)
class Document:
    filename: str
    content: str


@dataclass(slots=True)
class TutorialDocuments:
    """Flat document set handed to the packaging step."""

    project_name: str
    index: Document
    chapters: list[Document]

    def all_documents(self) -> list[Document]:
        return [self.index, *self.chapters]


@dataclass(slots=True)
class PipelineRun:
    """Everything one generation request produced. Never persisted."""

    project_name: str
    files: list[SourceFile]
    abstractions: list[Abstraction]
    relationships: RelationshipGraph
    chapter_order: list[int]
    chapters: list[Chapter]


@dataclass(slots=True)
class GenerationResult:
    success: bool
    run: PipelineRun | None = None
    documents: TutorialDocuments | None = None
    output_path: str | None = None
    error: str | None = None
