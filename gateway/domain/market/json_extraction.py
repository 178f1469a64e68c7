"""
Recovery of structured JSON from free-form LLM output.

The provider envelope is parsed first to get the assistant message,
then the message is parsed directly, then scanned for the first
top-level JSON value of the wanted kind, and finally the entire raw
response is scanned as a last resort.

The scanner is a single left-to-right pass that tracks ``{``/``[``
nesting (string- and escape-aware) and only attempts ``json.loads`` on
spans that close back to depth zero. An unclosed opener sends the scan
back to just after it, so a stray ``[`` in prose cannot hide a later
array. Input beyond ``MAX_SCAN_CHARS`` is ignored.
"""

from typing import Any, Callable, Iterator, Optional

from gateway.domain.market.entities import loads_json
from gateway.domain.market.errors import ExtractionError

MAX_SCAN_CHARS = 200_000

_CLOSERS = {"{": "}", "[": "]"}

# Keys under which models commonly wrap the array we asked for.
ARRAY_WRAPPER_KEYS = ("deals", "data", "results", "items", "records")


def extract_message_content(raw_text: str) -> Optional[str]:
    """Return the first-choice message text from a chat-completion envelope.

    Supports the OpenAI-compatible ``choices[0].message.content`` shape,
    the legacy ``choices[0].text`` shape and a bare ``output_text``.
    Returns None when the envelope is not JSON or has no text.
    """
    try:
        envelope = loads_json(raw_text)
    except (TypeError, ValueError):
        return None
    if not isinstance(envelope, dict):
        return None

    choices = envelope.get("choices")
    if isinstance(choices, list) and choices:
        first = choices[0]
        if isinstance(first, dict):
            message = first.get("message")
            if isinstance(message, dict) and isinstance(message.get("content"), str):
                return message["content"]
            if isinstance(first.get("text"), str):
                return first["text"]

    if isinstance(envelope.get("output_text"), str):
        return envelope["output_text"]
    return None


def iter_json_spans(text: str, max_scan: int = MAX_SCAN_CHARS) -> Iterator[tuple[int, int]]:
    """Yield ``(start, end)`` spans of balanced top-level ``{...}``/``[...]`` blocks.

    ``end`` is exclusive. Quotes are only tracked inside a block, so prose
    apostrophes and quotes before the block do not disturb the scan. A
    mismatched closer abandons the current block. An opener that never
    closes (``[1 below``, ``:-{``) is skipped and the scan resumes right
    after it.
    """
    limit = min(len(text), max_scan)
    stack: list[str] = []
    start = -1
    in_string = False
    escaped = False
    i = 0

    while True:
        if i >= limit:
            if not stack:
                return
            stack.clear()
            in_string = escaped = False
            i = start + 1
            continue

        ch = text[i]
        i += 1

        if not stack:
            if ch in _CLOSERS:
                stack.append(_CLOSERS[ch])
                start = i - 1
            continue

        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif ch in ("}", "]"):
            if ch != stack[-1]:
                stack.clear()
                continue
            stack.pop()
            if not stack:
                yield start, i


def find_json_value(
    text: str,
    accept: Callable[[Any], bool],
    max_scan: int = MAX_SCAN_CHARS,
) -> Any:
    """Return the first top-level JSON value in ``text`` that ``accept`` approves.

    Args:
        text: Arbitrary text possibly containing JSON.
        accept: Predicate applied to each parsed candidate.
        max_scan: Maximum number of characters inspected.

    Returns:
        The parsed value, or None when no candidate parses and is accepted.
    """
    if not text:
        return None
    for start, end in iter_json_spans(text, max_scan=max_scan):
        candidate = text[start:end]
        try:
            value = loads_json(candidate)
        except ValueError:
            continue
        if accept(value):
            return value
    return None


def is_record_list(value: Any) -> bool:
    """True for a JSON array whose items are all objects (``[{...}, {...}]``)."""
    return isinstance(value, list) and all(isinstance(item, dict) for item in value)


def _unwrap_array(value: Any) -> Optional[list]:
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        for key in ARRAY_WRAPPER_KEYS:
            if isinstance(value.get(key), list):
                return value[key]
    return None


def _parse_direct(content: str) -> Any:
    try:
        return loads_json(content.strip())
    except ValueError:
        return None


def extract_json_array(raw_text: str) -> list:
    """Recover a JSON array from a raw chat-completion response.

    Raises:
        ExtractionError: No valid array is recoverable.
    """
    content = extract_message_content(raw_text)
    if content is not None:
        direct = _unwrap_array(_parse_direct(content))
        if direct is not None:
            return direct
        found = find_json_value(content, is_record_list)
        if found is not None:
            return found

    found = find_json_value(raw_text or "", is_record_list)
    if found is not None:
        return found
    raise ExtractionError("array")


def extract_json_object(raw_text: str, required_keys: tuple[str, ...] = ()) -> dict:
    """Recover a JSON object from a raw chat-completion response.

    ``required_keys`` (any of) decides whether a parsed object is the
    model's answer. The provider envelope (an object with ``choices``) is
    never accepted as the answer.

    Raises:
        ExtractionError: No valid object is recoverable.
    """

    def acceptable(value: Any) -> bool:
        if not isinstance(value, dict) or "choices" in value:
            return False
        return not required_keys or any(k in value for k in required_keys)

    content = extract_message_content(raw_text)
    if content is not None:
        direct = _parse_direct(content)
        if acceptable(direct):
            return direct
        found = find_json_value(content, acceptable)
        if found is not None:
            return found

    found = find_json_value(raw_text or "", acceptable)
    if found is not None:
        return found
    raise ExtractionError("object")