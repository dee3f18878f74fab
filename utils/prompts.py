"""
================================================================================
PROMPT BUILDERS
================================================================================
One builder per LLM-backed stage. Each returns the full prompt text; the
retry loop calls the builder again on every attempt and gets the same text.

Files are always referenced as "<index> # <path>" and abstractions as
"<index> # <name>", which is the format the validators know how to parse.

For non-English output, the builders add language hints to the fields the
model should translate. Code itself is never translated.
================================================================================
"""

from constants.defaults import DEFAULT_LANGUAGE, DEFAULT_MAX_ABSTRACTIONS
from utils.models import Abstraction, ChapterInfo, RelationshipGraph, SourceFile


def _is_english(language: str) -> bool:
    return language.lower() == "english"


def get_content_for_indices(files: list[SourceFile], indices) -> dict[str, str]:
    """
    Map "index # path" to file content for the given indices.

    Out-of-range indices are ignored.
    """
    content_map = {}
    for i in indices:
        if 0 <= i < len(files):
            content_map[f"{i} # {files[i].path}"] = files[i].content
    return content_map


# =============================================================================
# ABSTRACTION DISCOVERY
# =============================================================================

def build_abstractions_prompt(
    project_name: str,
    files: list[SourceFile],
    language: str = DEFAULT_LANGUAGE,
    max_abstractions: int = DEFAULT_MAX_ABSTRACTIONS,
) -> str:
    context = "".join(
        f"--- File Index {i}: {f.path} ---\n{f.content}\n\n" for i, f in enumerate(files)
    )
    file_listing = "\n".join(f"- {i} # {f.path}" for i, f in enumerate(files))

    language_instruction = ""
    name_lang_hint = ""
    desc_lang_hint = ""
    if not _is_english(language):
        lang_cap = language.capitalize()
        language_instruction = (
            f"IMPORTANT: Generate the `name` and `description` for each abstraction in "
            f"**{lang_cap}** language. Do NOT use English for these fields.\n\n"
        )
        name_lang_hint = f" (value in {lang_cap})"
        desc_lang_hint = f" (value in {lang_cap})"

    return f"""
For the project `{project_name}`:

Codebase Context:
{context}

{language_instruction}Analyze the codebase context.
Identify the top 5-{max_abstractions} core most important abstractions to help those new to the codebase.

For each abstraction, provide:
1. A concise `name`{name_lang_hint}.
2. A beginner-friendly `description` explaining what it is with a simple analogy, in around 100 words{desc_lang_hint}.
3. A list of relevant `file_indices` (integers) using the format `idx # path/comment`.

List of file indices and paths present in the context:
{file_listing}

Format the output as a YAML list of dictionaries:

```yaml
- name: |
    Query Processing{name_lang_hint}
  description: |
    Explains what the abstraction does.
    It's like a central dispatcher routing requests.{desc_lang_hint}
  file_indices:
    - 0 # path/to/file1.py
    - 3 # path/to/related.py
- name: |
    Query Optimization{name_lang_hint}
  description: |
    Another core concept, similar to a blueprint for objects.{desc_lang_hint}
  file_indices:
    - 5 # path/to/another.js
# ... up to {max_abstractions} abstractions
```"""


# =============================================================================
# RELATIONSHIP INFERENCE
# =============================================================================

def build_relationships_prompt(
    project_name: str,
    abstractions: list[Abstraction],
    files: list[SourceFile],
    language: str = DEFAULT_LANGUAGE,
) -> str:
    context = "Identified Abstractions:\n"
    listing = []
    relevant_indices = set()
    for i, abstraction in enumerate(abstractions):
        file_indices_str = ", ".join(map(str, abstraction.files))
        context += (
            f"- Index {i}: {abstraction.name} (Relevant file indices: [{file_indices_str}])\n"
            f"  Description: {abstraction.description}\n"
        )
        listing.append(f"{i} # {abstraction.name}")
        relevant_indices.update(abstraction.files)

    context += "\nRelevant File Snippets (Referenced by Index and Path):\n"
    context += "\n\n".join(
        f"--- File: {idx_path} ---\n{content}"
        for idx_path, content in get_content_for_indices(files, sorted(relevant_indices)).items()
    )

    language_instruction = ""
    lang_hint = ""
    list_lang_note = ""
    if not _is_english(language):
        lang_cap = language.capitalize()
        language_instruction = (
            f"IMPORTANT: Generate the `summary` and relationship `label` fields in "
            f"**{lang_cap}** language. Do NOT use English for these fields.\n\n"
        )
        lang_hint = f" (in {lang_cap})"
        list_lang_note = f" (Names might be in {lang_cap})"

    abstraction_listing = "\n".join(listing)
    return f"""
Based on the following abstractions and relevant code snippets from the project `{project_name}`:

List of Abstraction Indices and Names{list_lang_note}:
{abstraction_listing}

Context (Abstractions, Descriptions, Code):
{context}

{language_instruction}Please provide:
1. A high-level `summary` of the project's main purpose and functionality in a few beginner-friendly sentences{lang_hint}. Use markdown formatting with **bold** and *italic* text to highlight important concepts.
2. A list (`relationships`) describing the key interactions between these abstractions. For each relationship, specify:
    - `from_abstraction`: Index of the source abstraction (e.g., `0 # AbstractionName1`)
    - `to_abstraction`: Index of the target abstraction (e.g., `1 # AbstractionName2`)
    - `label`: A brief label for the interaction **in just a few words**{lang_hint} (e.g., "Manages", "Inherits", "Uses").
    Ideally the relationship should be backed by one abstraction calling or passing parameters to another.
    Simplify the relationship and exclude those non-important ones.

IMPORTANT: Make sure EVERY abstraction is involved in at least ONE relationship (either as source or target). Each abstraction index must appear at least once across all relationships.

Format the output as YAML:

```yaml
summary: |
  A brief, simple explanation of the project{lang_hint}.
  Can span multiple lines with **bold** and *italic* for emphasis.
relationships:
  - from_abstraction: 0 # AbstractionName1
    to_abstraction: 1 # AbstractionName2
    label: "Manages"{lang_hint}
  - from_abstraction: 2 # AbstractionName3
    to_abstraction: 0 # AbstractionName1
    label: "Provides config"{lang_hint}
  # ... other relationships
```

Now, provide the YAML output:
"""


# =============================================================================
# CHAPTER ORDERING
# =============================================================================

def build_chapter_order_prompt(
    project_name: str,
    abstractions: list[Abstraction],
    graph: RelationshipGraph,
    language: str = DEFAULT_LANGUAGE,
) -> str:
    abstraction_listing = "\n".join(f"- {i} # {a.name}" for i, a in enumerate(abstractions))

    summary_note = ""
    list_lang_note = ""
    if not _is_english(language):
        lang_cap = language.capitalize()
        summary_note = f" (Note: Project Summary might be in {lang_cap})"
        list_lang_note = f" (Names might be in {lang_cap})"

    context = f"Project Summary{summary_note}:\n{graph.summary}\n\n"
    context += "Relationships (Indices refer to abstractions above):\n"
    for edge in graph.edges:
        from_name = abstractions[edge.source].name
        to_name = abstractions[edge.target].name
        context += f"- From {edge.source} ({from_name}) to {edge.target} ({to_name}): {edge.label}\n"

    return f"""
Given the following project abstractions and their relationships for the project `{project_name}`:

Abstractions (Index # Name){list_lang_note}:
{abstraction_listing}

Context about relationships and project summary:
{context}

If you are going to make a tutorial for `{project_name}`, what is the best order to explain these abstractions, from first to last?
Ideally, first explain those that are the most important or foundational, perhaps user-facing concepts or entry points. Then move to more detailed, lower-level implementation details or supporting concepts.

Output the ordered list of abstraction indices, including the name in a comment for clarity. Use the format `idx # AbstractionName`.

```yaml
- 2 # FoundationalConcept
- 0 # CoreClassA
- 1 # CoreClassB (uses CoreClassA)
- ...
```

Now, provide the YAML output:
"""


# =============================================================================
# CHAPTER AUTHORING
# =============================================================================

def format_chapter_listing(toc: list[ChapterInfo]) -> str:
    return "\n".join(f"{info.number}. [{info.title}]({info.filename})" for info in toc)


def build_chapter_prompt(
    project_name: str,
    chapter: ChapterInfo,
    abstraction: Abstraction,
    toc: list[ChapterInfo],
    previous_chapters: str,
    file_contents: dict[str, str],
    language: str = DEFAULT_LANGUAGE,
) -> str:
    """
    Prompt for one chapter.

    Args:
        chapter: This chapter's table-of-contents entry
        toc: Every chapter's entry, in order
        previous_chapters: Bodies of all chapters finished so far, joined
        file_contents: "index # path" -> content for the abstraction's files
    """
    file_context_str = "\n\n".join(
        f"--- File: {idx_path.split('# ', 1)[1] if '# ' in idx_path else idx_path} ---\n{content}"
        for idx_path, content in file_contents.items()
    )

    language_instruction = ""
    concept_details_note = ""
    structure_note = ""
    prev_summary_note = ""
    instruction_lang_note = ""
    mermaid_lang_note = ""
    code_comment_note = ""
    link_lang_note = ""
    tone_note = ""
    if not _is_english(language):
        lang_cap = language.capitalize()
        language_instruction = (
            f"IMPORTANT: Write this ENTIRE tutorial chapter in **{lang_cap}**. Some input context "
            f"(like concept name, description, chapter list, previous summary) might already be in "
            f"{lang_cap}, but you MUST translate ALL other generated content including explanations, "
            f"examples, technical terms, and potentially code comments into {lang_cap}. DO NOT use "
            f"English anywhere except in code syntax, required proper nouns, or when specified. "
            f"The entire output MUST be in {lang_cap}.\n\n"
        )
        concept_details_note = f" (Note: Provided in {lang_cap})"
        structure_note = f" (Note: Chapter names might be in {lang_cap})"
        prev_summary_note = f" (Note: This summary might be in {lang_cap})"
        instruction_lang_note = f" (in {lang_cap})"
        mermaid_lang_note = f" (Use {lang_cap} for labels/text if appropriate)"
        code_comment_note = f" (Translate to {lang_cap} if possible, otherwise keep minimal English for clarity)"
        link_lang_note = f" (Use the {lang_cap} chapter title from the structure above)"
        tone_note = f" (appropriate for {lang_cap} readers)"

    number = chapter.number
    name = abstraction.name
    return f"""
{language_instruction}Write a very beginner-friendly tutorial chapter (in Markdown format) for the project `{project_name}` about the concept: "{name}". This is Chapter {number}.

Concept Details{concept_details_note}:
- Name: {name}
- Description:
{abstraction.description}

Complete Tutorial Structure{structure_note}:
{format_chapter_listing(toc)}

Context from previous chapters{prev_summary_note}:
{previous_chapters if previous_chapters else "This is the first chapter."}

Relevant Code Snippets (Code itself remains unchanged):
{file_context_str if file_context_str else "No specific code snippets provided for this abstraction."}

Instructions for the chapter (Generate content in {language.capitalize()} unless specified otherwise):
- Start with a clear heading (e.g., `# Chapter {number}: {name}`). Use the provided concept name.

- If this is not the first chapter, begin with a brief transition from the previous chapter{instruction_lang_note}, referencing it with a proper Markdown link using its name{link_lang_note}.

- Begin with a high-level motivation explaining what problem this abstraction solves{instruction_lang_note}. Start with a central use case as a concrete example. The whole chapter should guide the reader to understand how to solve this use case. Make it very minimal and friendly to beginners.

- If the abstraction is complex, break it down into key concepts. Explain each concept one-by-one in a very beginner-friendly way{instruction_lang_note}.

- Explain how to use this abstraction to solve the use case{instruction_lang_note}. Give example inputs and outputs for code snippets (if the output isn't values, describe at a high level what will happen{instruction_lang_note}).

- Each code block should be BELOW 10 lines! If longer code blocks are needed, break them down into smaller pieces and walk through them one-by-one. Aggresively simplify the code to make it minimal. Use comments{code_comment_note} to skip non-important implementation details. Each code block should have a beginner friendly explanation right after it{instruction_lang_note}.

- Describe the internal implementation to help understand what's under the hood{instruction_lang_note}. First provide a non-code or code-light walkthrough on what happens step-by-step when the abstraction is called{instruction_lang_note}. It's recommended to use a simple sequenceDiagram with a dummy example - keep it minimal with at most 5 participants to ensure clarity. If participant name has space, use: `participant QP as Query Processing`. {mermaid_lang_note}.

- Then dive deeper into code for the internal implementation with references to files. Provide example code blocks, but make them similarly simple and beginner-friendly. Explain{instruction_lang_note}.

- IMPORTANT: When you need to refer to other core abstractions covered in other chapters, ALWAYS use proper Markdown links like this: [Chapter Title](filename.md). Use the Complete Tutorial Structure above to find the correct filename and the chapter title{link_lang_note}. Translate the surrounding text.

- Use mermaid diagrams to illustrate complex concepts (```mermaid``` format). {mermaid_lang_note}.

- Heavily use analogies and examples throughout{instruction_lang_note} to help beginners understand.

- End the chapter with a brief conclusion that summarizes what was learned{instruction_lang_note} and provides a transition to the next chapter{instruction_lang_note}. If there is a next chapter, use a proper Markdown link: [Next Chapter Title](next_chapter_filename){link_lang_note}.

- Ensure the tone is welcoming and easy for a newcomer to understand{tone_note}.

- Output *only* the Markdown content for this chapter.

Now, directly provide a super beginner-friendly Markdown output (DON'T need ```markdown``` tags):
"""
