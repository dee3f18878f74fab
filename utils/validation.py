"""
Validators for each LLM-backed stage.

Every validate_*() factory returns a callable for call_llm_with_retry(): it
returns True when the parsed YAML is acceptable, or a reason string. On
success the parsed structure has been canonicalised in place, so the to_*()
converters can build typed models without re-checking anything.
"""

import re

from constants.defaults import COVERAGE_REPAIR_LABEL
from constants.paths import CHAPTER_FILE_EXTENSION
from utils.models import Abstraction, Relationship, RelationshipGraph


def parse_index(entry) -> int:
    """
    Parse an index the LLM wrote as 3, "3" or "3 # some/comment".

    Raises:
        ValueError: entry is not an index
    """
    if isinstance(entry, bool):
        raise ValueError(f"Not an index: {entry!r}")
    if isinstance(entry, int):
        return entry
    if isinstance(entry, str):
        return int(entry.split("#", 1)[0].strip())
    raise ValueError(f"Not an index: {entry!r}")


def _first_present(item: dict, *keys):
    for key in keys:
        if key in item and item[key] is not None:
            return item[key]
    return None


# =============================================================================
# ABSTRACTION DISCOVERY
# =============================================================================

def validate_abstractions(file_count: int):
    def validate(parsed):
        if not isinstance(parsed, list):
            return "Expected a list of abstractions."
        if not parsed:
            return "No abstractions returned."

        for item in parsed:
            if not isinstance(item, dict):
                return f"Invalid item structure: {str(item)[:100]}"
            name = item.get("name")
            description = item.get("description")
            if not isinstance(name, str) or not name.strip():
                return f"Missing or empty name in item: {str(item)[:100]}"
            if not isinstance(description, str) or not description.strip():
                return f"Missing or empty description in item: {name.strip()}"

            raw_indices = _first_present(item, "file_indices", "files")
            if not isinstance(raw_indices, list) or not raw_indices:
                return f"Missing or invalid file indices in item: {name.strip()}"

            indices = []
            for entry in raw_indices:
                try:
                    idx = parse_index(entry)
                except ValueError:
                    return f"Could not parse index from {entry!r} in item {name.strip()}"
                if not 0 <= idx < file_count:
                    return (
                        f"Invalid file index {idx} in item {name.strip()}. "
                        f"Max index is {file_count - 1}."
                    )
                indices.append(idx)

            item["name"] = name.strip()
            item["description"] = description.strip()
            item["files"] = sorted(set(indices))
        return True

    return validate


def to_abstractions(parsed) -> list[Abstraction]:
    return [
        Abstraction(name=item["name"], description=item["description"], files=tuple(item["files"]))
        for item in parsed
    ]


# =============================================================================
# RELATIONSHIP INFERENCE
# =============================================================================

def validate_relationships(abstraction_count: int):
    def validate(parsed):
        if not isinstance(parsed, dict):
            return "Invalid structure: Expected a mapping with summary and relationships"
        summary = parsed.get("summary")
        if not isinstance(summary, str) or not summary.strip():
            return "Invalid structure: Expected summary (non-empty string)"

        edges = _first_present(parsed, "relationships", "details")
        if not isinstance(edges, list):
            return "Invalid structure: Expected relationships list"

        mentioned = set()
        for rel in edges:
            if not isinstance(rel, dict):
                return f"Invalid relationship item structure: {str(rel)[:100]}"
            source = _first_present(rel, "from_abstraction", "from")
            target = _first_present(rel, "to_abstraction", "to")
            label = rel.get("label")
            if source is None or target is None:
                return f"Missing relationship endpoints in: {str(rel)[:100]}"
            if not isinstance(label, str) or not label.strip():
                return f"Missing or empty relationship label in: {str(rel)[:100]}"
            try:
                from_idx = parse_index(source)
                to_idx = parse_index(target)
            except ValueError:
                return f"Could not parse indices from relationship: {str(rel)[:100]}"
            if not (0 <= from_idx < abstraction_count and 0 <= to_idx < abstraction_count):
                return f"Invalid index in relationship: from={source}, to={target}"

            rel["from"] = from_idx
            rel["to"] = to_idx
            rel["label"] = label.strip()
            mentioned.update((from_idx, to_idx))

        missing = [i for i in range(abstraction_count) if i not in mentioned]
        if missing:
            return (
                "Not all abstractions are included in relationships. "
                f"Missing: {', '.join(map(str, missing))}. "
                "Every abstraction index must appear at least once."
            )

        parsed["summary"] = summary.strip()
        parsed["details"] = edges
        return True

    return validate


def to_relationship_graph(parsed) -> RelationshipGraph:
    return RelationshipGraph(
        summary=parsed["summary"],
        edges=tuple(
            Relationship(source=rel["from"], target=rel["to"], label=rel["label"])
            for rel in parsed["details"]
        ),
    )


def repair_relationship_coverage(graph: RelationshipGraph, abstraction_count: int) -> RelationshipGraph:
    """
    Add a generic 0 -> i edge for every abstraction no edge touches.

    Fallback only: validated graphs already satisfy coverage.
    """
    covered = graph.covered_indices()
    extra = tuple(
        Relationship(source=0, target=i, label=COVERAGE_REPAIR_LABEL)
        for i in range(abstraction_count)
        if i not in covered
    )
    if not extra:
        return graph
    return RelationshipGraph(summary=graph.summary, edges=graph.edges + extra)


# =============================================================================
# CHAPTER ORDERING
# =============================================================================

def validate_chapter_order(abstraction_count: int):
    def validate(parsed):
        if not isinstance(parsed, list):
            return "Expected a list for chapter order."

        seen = set()
        for position, entry in enumerate(parsed):
            try:
                idx = parse_index(entry)
            except ValueError:
                return f"Could not parse index from ordered list entry: {entry!r}"
            if not 0 <= idx < abstraction_count:
                return f"Invalid index {idx} in ordered list. Max index is {abstraction_count - 1}."
            if idx in seen:
                return f"Duplicate index {idx} found in ordered list."
            seen.add(idx)
            parsed[position] = idx

        if len(parsed) != abstraction_count:
            missing = [i for i in range(abstraction_count) if i not in seen]
            return (
                f"Ordered list length ({len(parsed)}) doesn't match abstraction count "
                f"({abstraction_count}). Missing: {', '.join(map(str, missing))}"
            )
        return True

    return validate


# =============================================================================
# CHAPTER AUTHORING
# =============================================================================

def validate_chapter(min_length: int):
    def validate(text):
        if not isinstance(text, str) or len(text.strip()) < min_length:
            return "Chapter content seems too short or invalid."
        return True

    return validate


def chapter_heading(number: int, title: str) -> str:
    return f"# Chapter {number}: {title}"


def has_chapter_heading(body: str, number: int, title: str) -> bool:
    """True if body opens with '# Chapter <n>[:] <title>', case-insensitively."""
    pattern = rf"^#\s*Chapter\s+{number}\s*[:.\-–—]?\s*{re.escape(title)}"
    return re.match(pattern, body.lstrip(), re.IGNORECASE) is not None


def ensure_chapter_heading(body: str, number: int, title: str) -> str:
    """Prepend the expected heading when it is missing; otherwise return body unchanged."""
    if has_chapter_heading(body, number, title):
        return body
    return f"{chapter_heading(number, title)}\n\n{body}"


def sanitize_filename(name: str) -> str:
    """Lower-case, [a-z0-9_] only, no leading/trailing or repeated underscores."""
    safe = "".join(c if c.isascii() and c.isalnum() else "_" for c in name).lower()
    return re.sub(r"_+", "_", safe).strip("_")


def chapter_filename(number: int, title: str) -> str:
    safe_name = sanitize_filename(title) or f"chapter_{number}"
    return f"{number:02d}_{safe_name}{CHAPTER_FILE_EXTENSION}"
