"""
Pull the fenced YAML block out of a free-form LLM response.
"""

import re

import yaml

# ```yaml ... ```, ```yml ... ``` or an untagged ``` ... ``` fence
_FENCED_BLOCK = re.compile(r"```[ \t]*(?:yaml|yml)?[ \t]*\r?\n(.*?)```", re.DOTALL | re.IGNORECASE)


class ExtractionError(ValueError):
    """The response had no usable structured block."""


def extract_yaml(text):
    """
    Return the mapping or sequence inside the first fenced YAML block.

    Prose before and after the block is ignored.

    Raises:
        ExtractionError: no fenced block, invalid YAML, or a scalar document
    """
    match = _FENCED_BLOCK.search(text or "")
    if not match:
        raise ExtractionError("Could not find YAML block in LLM response.")

    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        raise ExtractionError(f"Invalid YAML in LLM response: {e}") from e

    if not isinstance(data, (list, dict)):
        raise ExtractionError(
            f"YAML block is not a mapping or sequence (got {type(data).__name__})."
        )
    return data
