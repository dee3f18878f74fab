"""
================================================================================
CODEBASE TUTORIAL BUILDER - FLOW DEFINITION
================================================================================
This file defines the PocketFlow workflow that orchestrates tutorial
generation, and generate_tutorial(), the single entry point callers use.

FLOW ARCHITECTURE:
==================
The tutorial generation follows a 6-node pipeline:

    FetchRepo → IdentifyAbstractions → AnalyzeRelationships →
    OrderChapters → WriteChapters → CombineTutorial

Nodes run strictly one after another inside one asyncio task; at most one
LLM request is in flight per run. The ">>" operator connects nodes, creating
a linear flow.
================================================================================
"""

import asyncio
import logging

from pocketflow import AsyncFlow

from nodes import (
    FetchRepo,              # Step 1: Fetch files from GitHub, a directory or a zip
    IdentifyAbstractions,   # Step 2: Use LLM to identify core concepts
    AnalyzeRelationships,   # Step 3: Use LLM to find how concepts relate
    OrderChapters,          # Step 4: Use LLM to determine teaching order
    WriteChapters,          # Step 5: Use LLM to write each chapter (BatchNode)
    CombineTutorial,        # Step 6: Build index.md and write the output
    StageError,
)
from utils.acquire import AcquisitionError
from utils.models import GenerationResult

logger = logging.getLogger(__name__)


def create_tutorial_flow(max_attempts=None):
    """
    Creates and returns the codebase tutorial generation flow.

    Args:
        max_attempts: LLM attempts per stage. None defers to
            shared["max_attempts"], then to DEFAULT_MAX_ATTEMPTS.

    Returns:
        AsyncFlow: ready to be run with a shared store
    """
    fetch_repo = FetchRepo()
    identify_abstractions = IdentifyAbstractions(max_attempts=max_attempts)
    analyze_relationships = AnalyzeRelationships(max_attempts=max_attempts)
    order_chapters = OrderChapters(max_attempts=max_attempts)
    write_chapters = WriteChapters(max_attempts=max_attempts)
    combine_tutorial = CombineTutorial()

    fetch_repo >> identify_abstractions
    identify_abstractions >> analyze_relationships
    analyze_relationships >> order_chapters
    order_chapters >> write_chapters
    write_chapters >> combine_tutorial

    return AsyncFlow(start=fetch_repo)


async def generate_tutorial(shared, timeout=None, max_attempts=None) -> GenerationResult:
    """
    Run the whole pipeline for one request.

    Either every document is produced or none is: a failed stage, a failed
    acquisition, an output write error or the timeout yields
    GenerationResult(success=False) with a single reason and no documents.

    Args:
        shared: Shared store with the inputs described in nodes.py
        timeout: Wall-clock budget in seconds for the whole run, or None
        max_attempts: Forwarded to create_tutorial_flow()
    """
    tutorial_flow = create_tutorial_flow(max_attempts=max_attempts)
    try:
        if timeout:
            await asyncio.wait_for(tutorial_flow.run_async(shared), timeout=timeout)
        else:
            await tutorial_flow.run_async(shared)
    except AcquisitionError as e:
        logger.error(f"Acquisition failed: {e}")
        return GenerationResult(success=False, error=str(e))
    except StageError as e:
        logger.error(f"Stage '{e.stage}' failed: {e}")
        return GenerationResult(success=False, error=str(e))
    except asyncio.TimeoutError:
        message = f"Tutorial generation timed out after {timeout} seconds"
        logger.error(message)
        return GenerationResult(success=False, error=message)

    return GenerationResult(
        success=True,
        run=shared["run"],
        documents=shared["documents"],
        output_path=shared.get("final_output_path"),
    )
