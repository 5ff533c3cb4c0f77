"""Pulling text, JSON and code out of agent responses.

Every stage goes through these helpers rather than parsing model output
itself:

- ``extract_text_from_result``: text of a Strands result, string or dict
- ``extract_json_from_text`` / ``extract_structured``: the JSON object in a reply
- ``clean_markdown_fences``: strip code fences around generated markup or script
"""

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_THINKING_TAG_RE = re.compile(r"<(thinking|think)>.*?</\1>", re.DOTALL | re.IGNORECASE)
_CODE_BLOCK_RES = (
    re.compile(r"```json\s*([\s\S]*?)```"),
    re.compile(r"```\s*([\s\S]*?)```"),
)
_FENCE_LINE_RE = re.compile(r"```[\w+-]*[ \t]*\n?")

_decoder = json.JSONDecoder()


class StructuredOutputError(ValueError):
    """Raised when a response holds no parseable JSON object."""


def _content_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return str(content)

    parts = []
    for block in content:
        text = block.get("text") if isinstance(block, dict) else getattr(block, "text", None)
        if text is not None:
            parts.append(text)
    if not parts and content:
        # Tool-use only replies; the caller reports the empty output
        logger.warning("No text blocks in response content (%d blocks)", len(content))
    return "".join(parts)


def extract_text_from_result(result: Any) -> str:
    """Text of an ``AgentResult``, plain string or dict, minus ``<thinking>`` tags."""
    if hasattr(result, "message"):
        message = result.message
        if isinstance(message, dict) and "content" in message:
            text = _content_text(message["content"])
        elif hasattr(message, "content"):
            text = _content_text(message.content)
        else:
            text = str(message)
    elif isinstance(result, dict):
        for key in ("content", "output", "text"):
            if key in result:
                text = _content_text(result[key])
                break
        else:
            text = json.dumps(result)
    else:
        text = str(result)

    return _THINKING_TAG_RE.sub("", text).strip()


def _as_object(raw: str) -> dict | None:
    try:
        parsed = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return None
    return parsed if isinstance(parsed, dict) else None


def extract_json_from_text(text: str) -> dict | None:
    """Find the JSON object in a reply.

    Tries, in order: the whole text, a ```json block, any ``` block, then
    the first ``{`` that starts a valid object.

    Returns:
        Parsed dict, or None if no object is found.
    """
    text = (text or "").strip()
    if not text:
        return None

    parsed = _as_object(text)
    if parsed is not None:
        return parsed

    for pattern in _CODE_BLOCK_RES:
        match = pattern.search(text)
        if match:
            parsed = _as_object(match.group(1).strip())
            if parsed is not None:
                return parsed

    start = text.find("{")
    while start != -1:
        try:
            parsed, _ = _decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, dict):
            return parsed
        start = text.find("{", start + 1)
    return None


def extract_structured(text: str) -> dict:
    """Parse a generation response into a JSON object.

    Raises:
        StructuredOutputError: If no JSON object can be recovered.
    """
    parsed = extract_json_from_text(text)
    if parsed is None:
        preview = (text or "").strip()[:120]
        raise StructuredOutputError(f"No JSON object found in response: {preview!r}")
    return parsed


def clean_markdown_fences(text: str) -> str:
    """Remove markdown code-fence markers (```html, ```js, bare ```)."""
    return _FENCE_LINE_RE.sub("", text).strip()
