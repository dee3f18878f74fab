"""
================================================================================
CODEBASE TUTORIAL BUILDER - PROCESSING NODES
================================================================================
This file contains all the Node classes that make up the tutorial pipeline.

NODE ARCHITECTURE (PocketFlow Pattern):
=======================================
Each node follows the prep → exec → post lifecycle, in its async form:

    prep_async(shared)                  - READ from shared store, prepare data
         ↓
    exec_async(prep_res)                - PROCESS (LLM calls via the retry loop)
         ↓
    post_async(shared, prep_res, exec_res) - WRITE to shared store

The LLM stages never use PocketFlow's node-level retries. Each one routes its
single logical operation through call_llm_with_retry(), and raises StageError
when the attempt budget is spent. The default exec_fallback_async re-raises,
which aborts the flow.

SHARED STORE STRUCTURE:
======================
    shared = {
        # Input (set by run.py or another caller)
        "repo_url": str or None,      # GitHub URL
        "local_dir": str or None,     # Local directory
        "archive": str or file,       # Zip archive path or binary file object
        "archive_name": str,          # Display name of an uploaded archive
        "project_name": str or None,  # Overrides the derived name
        "github_token": str or None,
        "include_patterns": set,
        "exclude_patterns": set,
        "max_file_size": int,
        "language": str,              # Output language (e.g., "english")
        "use_cache": bool,            # Allow cached LLM responses
        "max_abstraction_num": int,   # Prompt-level target
        "max_attempts": int,          # Retry budget per LLM stage
        "output_dir": str,
        "output_format": str or None, # "directory", "zip", or None (in memory)

        # Optional injection points
        "llm": async callable,        # Replaces call_llm
        "llm_cache": ResponseCache,   # Cache handed to call_llm
        "retry_backoff": float,       # Base backoff seconds

        # Output (populated by nodes)
        "files": list[SourceFile],
        "skipped_files": list[SkippedFile],
        "abstractions": list[Abstraction],
        "relationships": RelationshipGraph,
        "chapter_order": list[int],
        "chapters": list[Chapter],
        "documents": TutorialDocuments,
        "run": PipelineRun,
        "final_output_path": str or None,
    }
================================================================================
"""

import asyncio
import functools
import logging

from pocketflow import AsyncBatchNode, AsyncNode, Node

from constants.defaults import (
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_INCLUDE_PATTERNS,
    DEFAULT_LANGUAGE,
    DEFAULT_MAX_ABSTRACTIONS,
    DEFAULT_MAX_FILE_SIZE,
)
from constants.llm import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_PARSE_BACKOFF,
    DEFAULT_RETRY_BACKOFF,
    MIN_CHAPTER_LENGTH,
)
from constants.paths import DEFAULT_OUTPUT_DIR
from utils.acquire import AcquisitionError, acquire
from utils.call_llm import call_llm
from utils.extract import extract_yaml
from utils.models import Chapter, ChapterInfo, PipelineRun
from utils.output import (
    append_footer,
    build_documents,
    write_tutorial_dir,
    write_zip_archive,
)
from utils.prompts import (
    build_abstractions_prompt,
    build_chapter_order_prompt,
    build_chapter_prompt,
    build_relationships_prompt,
    get_content_for_indices,
)
from utils.retry import call_llm_with_retry
from utils.validation import (
    chapter_filename,
    ensure_chapter_heading,
    to_abstractions,
    to_relationship_graph,
    validate_abstractions,
    validate_chapter,
    validate_chapter_order,
    validate_relationships,
)

logger = logging.getLogger(__name__)


class StageError(Exception):
    """An LLM stage used up its attempts without an acceptable answer."""

    def __init__(self, stage: str, message: str):
        super().__init__(message)
        self.stage = stage


# =============================================================================
# SHARED LLM STAGE PLUMBING
# =============================================================================

class LLMStage:
    """
    Mixin for nodes that call the LLM through the retry loop.

    max_attempts given to the constructor wins over shared["max_attempts"].
    """

    def __init__(self, max_attempts=None):
        super().__init__()
        self.max_attempts = max_attempts

    def retry_settings(self, shared):
        llm = shared.get("llm") or call_llm
        cache = shared.get("llm_cache")
        if cache is not None and llm is call_llm:
            llm = functools.partial(call_llm, cache=cache)
        backoff = shared.get("retry_backoff", DEFAULT_RETRY_BACKOFF)
        return {
            "llm": llm,
            "use_cache": shared.get("use_cache", True),
            "max_attempts": self.max_attempts or shared.get("max_attempts", DEFAULT_MAX_ATTEMPTS),
            "backoff": backoff,
            "parse_backoff": min(backoff, DEFAULT_PARSE_BACKOFF),
        }

    async def run_with_retry(self, settings, prompt_factory, parser, validator):
        return await call_llm_with_retry(
            prompt_factory,
            parser,
            validator,
            max_attempts=settings["max_attempts"],
            use_cache=settings["use_cache"],
            llm=settings["llm"],
            backoff=settings["backoff"],
            parse_backoff=settings["parse_backoff"],
        )


# =============================================================================
# NODE 1: FetchRepo - Fetch files from GitHub, a local directory or a zip
# =============================================================================

class FetchRepo(AsyncNode):
    """
    First node - fetches all relevant source files.

    Crawling is blocking I/O, so it runs in a worker thread.

    Output (to shared):
        - files: list[SourceFile], dense indices 0..N-1
        - skipped_files, project_name
    """

    async def prep_async(self, shared):
        return {
            "repo_url": shared.get("repo_url"),
            "local_dir": shared.get("local_dir"),
            "archive": shared.get("archive"),
            "archive_name": shared.get("archive_name"),
            "project_name": shared.get("project_name"),
            "token": shared.get("github_token"),
            "include_patterns": shared.get("include_patterns", DEFAULT_INCLUDE_PATTERNS),
            "exclude_patterns": shared.get("exclude_patterns", DEFAULT_EXCLUDE_PATTERNS),
            "max_file_size": shared.get("max_file_size", DEFAULT_MAX_FILE_SIZE),
        }

    async def exec_async(self, prep_res):
        try:
            result = await asyncio.to_thread(acquire, **prep_res)
        except ValueError as e:
            raise AcquisitionError(str(e)) from e
        except OSError as e:
            raise AcquisitionError(f"Failed to read the source: {e}") from e

        if result.error:
            raise AcquisitionError(result.error)
        print(f"Fetched {len(result.files)} files.")
        return result

    async def post_async(self, shared, prep_res, exec_res):
        shared["files"] = exec_res.files
        shared["skipped_files"] = exec_res.skipped
        shared["project_name"] = exec_res.project_name


# =============================================================================
# NODE 2: IdentifyAbstractions - Use LLM to find core concepts
# =============================================================================

class IdentifyAbstractions(LLMStage, AsyncNode):
    """
    Asks the LLM for the top core abstractions and the files behind each.

    Output (to shared):
        - abstractions: list[Abstraction]
    """

    async def prep_async(self, shared):
        return {
            "files": shared["files"],
            "project_name": shared["project_name"],
            "language": shared.get("language", DEFAULT_LANGUAGE),
            "max_abstractions": shared.get("max_abstraction_num", DEFAULT_MAX_ABSTRACTIONS),
            "settings": self.retry_settings(shared),
        }

    async def exec_async(self, prep_res):
        files = prep_res["files"]
        print("Identifying abstractions using LLM...")

        result = await self.run_with_retry(
            prep_res["settings"],
            lambda: build_abstractions_prompt(
                prep_res["project_name"], files, prep_res["language"], prep_res["max_abstractions"]
            ),
            extract_yaml,
            validate_abstractions(len(files)),
        )
        if not result.success:
            raise StageError("abstractions", f"Failed to identify abstractions: {result.error}")

        abstractions = to_abstractions(result.data)
        print(f"Identified {len(abstractions)} abstractions.")
        return abstractions

    async def post_async(self, shared, prep_res, exec_res):
        shared["abstractions"] = exec_res


# =============================================================================
# NODE 3: AnalyzeRelationships - Use LLM to find how concepts relate
# =============================================================================

class AnalyzeRelationships(LLMStage, AsyncNode):
    """
    Asks the LLM for a project summary and the edges between abstractions.
    Every abstraction must touch at least one edge.

    Output (to shared):
        - relationships: RelationshipGraph
    """

    async def prep_async(self, shared):
        return {
            "abstractions": shared["abstractions"],
            "files": shared["files"],
            "project_name": shared["project_name"],
            "language": shared.get("language", DEFAULT_LANGUAGE),
            "settings": self.retry_settings(shared),
        }

    async def exec_async(self, prep_res):
        abstractions = prep_res["abstractions"]
        print("Analyzing relationships using LLM...")

        result = await self.run_with_retry(
            prep_res["settings"],
            lambda: build_relationships_prompt(
                prep_res["project_name"], abstractions, prep_res["files"], prep_res["language"]
            ),
            extract_yaml,
            validate_relationships(len(abstractions)),
        )
        if not result.success:
            raise StageError("relationships", f"Failed to analyze relationships: {result.error}")

        print("Generated project summary and relationship details.")
        return to_relationship_graph(result.data)

    async def post_async(self, shared, prep_res, exec_res):
        shared["relationships"] = exec_res


# =============================================================================
# NODE 4: OrderChapters - Use LLM to determine optimal teaching order
# =============================================================================

class OrderChapters(LLMStage, AsyncNode):
    """
    Asks the LLM for a teaching order: a permutation of abstraction indices.

    Output (to shared):
        - chapter_order: list[int]
    """

    async def prep_async(self, shared):
        return {
            "abstractions": shared["abstractions"],
            "relationships": shared["relationships"],
            "project_name": shared["project_name"],
            "language": shared.get("language", DEFAULT_LANGUAGE),
            "settings": self.retry_settings(shared),
        }

    async def exec_async(self, prep_res):
        abstractions = prep_res["abstractions"]
        print("Determining chapter order using LLM...")

        result = await self.run_with_retry(
            prep_res["settings"],
            lambda: build_chapter_order_prompt(
                prep_res["project_name"], abstractions, prep_res["relationships"], prep_res["language"]
            ),
            extract_yaml,
            validate_chapter_order(len(abstractions)),
        )
        if not result.success:
            raise StageError("ordering", f"Failed to order chapters: {result.error}")

        ordered_indices = list(result.data)
        print(f"Determined chapter order (indices): {ordered_indices}")
        return ordered_indices

    async def post_async(self, shared, prep_res, exec_res):
        shared["chapter_order"] = exec_res


# =============================================================================
# NODE 5: WriteChapters - Use LLM to write each tutorial chapter (BatchNode)
# =============================================================================

class WriteChapters(LLMStage, AsyncBatchNode):
    """
    Writes one chapter per abstraction, in chapter order.

    THIS IS A BATCHNODE - prep_async() returns a LIST of items, exec_async()
    runs ONCE PER ITEM and strictly one after another, so each chapter's
    prompt can include every chapter finished before it.

    The table of contents (titles and filenames) is fixed in prep_async(),
    before any chapter is written, so chapters can link to later ones.

    Output (to shared):
        - chapters: list[Chapter]
    """

    async def prep_async(self, shared):
        chapter_order = shared["chapter_order"]
        abstractions = shared["abstractions"]
        files = shared["files"]
        settings = self.retry_settings(shared)

        # Bodies of finished chapters, context for the next prompt
        self.chapters_written_so_far = []

        toc = [
            ChapterInfo(
                number=position,
                abstraction_index=abstraction_index,
                title=abstractions[abstraction_index].name,
                filename=chapter_filename(position, abstractions[abstraction_index].name),
            )
            for position, abstraction_index in enumerate(chapter_order, start=1)
        ]

        items = []
        for info in toc:
            abstraction = abstractions[info.abstraction_index]
            items.append({
                "info": info,
                "abstraction": abstraction,
                "toc": toc,
                "file_contents": get_content_for_indices(files, abstraction.files),
                "project_name": shared["project_name"],
                "language": shared.get("language", DEFAULT_LANGUAGE),
                "settings": settings,
            })

        print(f"Preparing to write {len(items)} chapters...")
        return items

    async def exec_async(self, item):
        info = item["info"]
        print(f"Writing chapter {info.number} for: {info.title} using LLM...")

        previous_chapters = "\n---\n".join(self.chapters_written_so_far)
        result = await self.run_with_retry(
            item["settings"],
            lambda: build_chapter_prompt(
                item["project_name"],
                info,
                item["abstraction"],
                item["toc"],
                previous_chapters,
                item["file_contents"],
                item["language"],
            ),
            lambda text: text,
            validate_chapter(MIN_CHAPTER_LENGTH),
        )
        if not result.success:
            raise StageError(
                "chapters",
                f"Failed to write chapter {info.number} ({info.title}): {result.error}",
            )

        body = append_footer(ensure_chapter_heading(result.data, info.number, info.title))
        self.chapters_written_so_far.append(body)

        return Chapter(
            number=info.number,
            abstraction_index=info.abstraction_index,
            title=info.title,
            filename=info.filename,
            body=body,
        )

    async def post_async(self, shared, prep_res, exec_res_list):
        shared["chapters"] = exec_res_list
        del self.chapters_written_so_far
        print(f"Finished writing {len(exec_res_list)} chapters.")


# =============================================================================
# NODE 6: CombineTutorial - Assemble the document set and write it out
# =============================================================================

class CombineTutorial(Node):
    """
    Final node - builds index.md with the concept diagram, then writes the
    documents to <output_dir>/<project_name>/ or a zip archive. With no
    output_format the documents are only kept in the shared store.
    """

    def prep(self, shared):
        documents = build_documents(
            shared["project_name"],
            shared["abstractions"],
            shared["relationships"],
            shared["chapters"],
            repo_url=shared.get("repo_url"),
            source_name=shared.get("archive_name"),
        )
        return {
            "documents": documents,
            "output_dir": shared.get("output_dir", DEFAULT_OUTPUT_DIR),
            "output_format": shared.get("output_format"),
        }

    def exec(self, prep_res):
        documents = prep_res["documents"]
        try:
            if prep_res["output_format"] == "zip":
                return write_zip_archive(documents, prep_res["output_dir"])
            if prep_res["output_format"] == "directory":
                return write_tutorial_dir(documents, prep_res["output_dir"])
        except OSError as e:
            raise StageError("packaging", f"Failed to write tutorial: {e}") from e
        return None

    def post(self, shared, prep_res, exec_res):
        shared["documents"] = prep_res["documents"]
        shared["final_output_path"] = exec_res
        shared["run"] = PipelineRun(
            project_name=shared["project_name"],
            files=shared["files"],
            abstractions=shared["abstractions"],
            relationships=shared["relationships"],
            chapter_order=shared["chapter_order"],
            chapters=shared["chapters"],
        )
        if exec_res:
            print(f"\nTutorial generation complete! Files are in: {exec_res}")
