"""Keyword extraction for summarized files.

Keywords are the identifiers a reader would use to recognize a file: the
top-level keys of a JSON document, or the names following class, struct and
function definition keywords in source code. Extraction is line-level pattern
scanning, never full parsing, and never fails a run.
"""

import json
import logging
import re
from typing import Dict, Iterable, List, Tuple

from .policies import FilePolicies

logger = logging.getLogger(__name__)

DEFAULT_MAX_KEYWORDS = 10

_MODIFIERS = r"(?:(?:public|private|protected|internal|static|final|abstract|sealed|partial|" \
    r"data|open|inline|override|virtual|async|readonly|export|default|declare)\s+)*"

_FAMILY_PATTERNS: Dict[str, Tuple[re.Pattern, ...]] = {
    "python": (
        re.compile(r"^\s*class\s+([A-Za-z_]\w*)"),
        re.compile(r"^\s*(?:async\s+)?def\s+([A-Za-z_]\w*)"),
    ),
    "rust": (
        re.compile(
            r"^\s*(?:pub(?:\([^)]*\))?\s+)?(?:struct|enum|trait|union|mod|type)\s+([A-Za-z_]\w*)"
        ),
        re.compile(
            r"^\s*(?:pub(?:\([^)]*\))?\s+)?(?:const\s+)?(?:async\s+)?(?:unsafe\s+)?"
            r"(?:extern\s+\"[^\"]*\"\s+)?fn\s+([A-Za-z_]\w*)"
        ),
        re.compile(r"^\s*impl(?:<[^>]*>)?\s+(?:[\w:]+(?:<[^>]*>)?\s+for\s+)?([A-Za-z_]\w*)"),
    ),
    "go": (
        re.compile(r"^\s*type\s+([A-Za-z_]\w*)\s+(?:struct|interface)\b"),
        re.compile(r"^\s*func\s+(?:\([^)]*\)\s*)?([A-Za-z_]\w*)"),
    ),
    "javascript": (
        re.compile(r"^\s*" + _MODIFIERS + r"class\s+([A-Za-z_$][\w$]*)"),
        re.compile(r"^\s*" + _MODIFIERS + r"(?:interface|type|enum)\s+([A-Za-z_$][\w$]*)"),
        re.compile(r"^\s*" + _MODIFIERS + r"function\s*\*?\s*([A-Za-z_$][\w$]*)"),
        re.compile(
            r"^\s*(?:export\s+)?(?:const|let|var)\s+([A-Za-z_$][\w$]*)\s*=\s*(?:async\s+)?"
            r"(?:function\b|\([^)]*\)\s*=>|[A-Za-z_$][\w$]*\s*=>)"
        ),
    ),
    "java": (
        re.compile(
            r"^\s*" + _MODIFIERS + r"(?:class|interface|enum|record|struct|object|trait)\s+([A-Za-z_]\w*)"
        ),
        re.compile(r"^\s*" + _MODIFIERS + r"fun\s+(?:<[^>]*>\s*)?(?:[\w.]+\.)?([A-Za-z_]\w*)"),
        re.compile(r"^\s*" + _MODIFIERS + r"def\s+([A-Za-z_]\w*)"),
        re.compile(
            r"^\s*(?:(?:public|private|protected|internal|static|final|abstract|synchronized|"
            r"native|override|virtual|async)\s+)+[\w<>\[\],.?]+\s+([A-Za-z_]\w*)\s*\("
        ),
    ),
    "c": (
        re.compile(r"^\s*(?:typedef\s+)?(?:struct|class|union|enum(?:\s+class)?)\s+([A-Za-z_]\w*)"),
        re.compile(r"^\s*namespace\s+([A-Za-z_]\w*)"),
        re.compile(r"^[A-Za-z_][\w\s\*&:<>,]*?[\s\*&]\**([A-Za-z_][\w:~]*)\s*\([^;]*$"),
    ),
    "ruby": (
        re.compile(r"^\s*(?:class|module)\s+([A-Z]\w*(?:::\w+)*)"),
        re.compile(r"^\s*def\s+(?:self\.)?([A-Za-z_]\w*[?!=]?)"),
    ),
    "php": (
        re.compile(r"^\s*(?:(?:abstract|final|readonly)\s+)*(?:class|interface|trait|enum)\s+(\w+)"),
        re.compile(r"^\s*(?:(?:public|private|protected|static|abstract|final)\s+)*function\s+&?\s*(\w+)"),
    ),
    "swift": (
        re.compile(
            r"^\s*(?:(?:public|private|fileprivate|internal|open|final|indirect|@\w+)\s+)*"
            r"(?:class|struct|enum|protocol|extension|actor)\s+(\w+)"
        ),
        re.compile(
            r"^\s*(?:(?:public|private|fileprivate|internal|open|final|static|class|override|"
            r"mutating|@\w+)\s+)*func\s+(\w+)"
        ),
    ),
    "shell": (
        re.compile(r"^\s*function\s+([A-Za-z_][\w-]*)"),
        re.compile(r"^\s*([A-Za-z_][\w-]*)\s*\(\)\s*\{?"),
    ),
    "lua": (
        re.compile(r"^\s*(?:local\s+)?function\s+([\w.:]+)"),
    ),
    "perl": (
        re.compile(r"^\s*sub\s+(\w+)"),
        re.compile(r"^\s*package\s+([\w:]+)"),
    ),
    "markdown": (
        re.compile(r"^#{1,6}\s+(.+?)\s*#*\s*$"),
    ),
    "markup": (
        re.compile(r"\bid\s*=\s*[\"']([^\"']+)[\"']"),
    ),
    "css": (
        re.compile(r"^\s*([.#][A-Za-z_-][\w-]*)"),
    ),
}

# Control-flow words the C function pattern would otherwise pick up.
_C_NON_NAMES = {"if", "for", "while", "switch", "return", "sizeof", "else", "do"}

_JSON_KEY_LINE = re.compile(r'^(\s*)"((?:[^"\\]|\\.)*)"\s*:')


class KeywordExtractor:
    """Derives up to ``max_keywords`` identifying tokens from file content."""

    def __init__(self, max_keywords: int = DEFAULT_MAX_KEYWORDS):
        self.max_keywords = max_keywords

    def extract(self, file_path: str, lines: Iterable[str]) -> List[str]:
        """Return keywords for ``file_path``; unknown types yield an empty list."""
        if self.max_keywords <= 0:
            return []

        strategy = FilePolicies.get_keyword_strategy(file_path)
        if strategy is None:
            return []

        content = [line.rstrip("\r") for line in lines]
        try:
            if strategy == "json":
                keywords = self._json_keys(content)
            else:
                keywords = self._definition_names(strategy, content)
        except (ValueError, RecursionError) as exc:
            logger.debug(
                "Keyword extraction failed",
                extra={"path": file_path, "strategy": strategy, "error": str(exc)},
            )
            return []

        logger.debug(
            "Extracted keywords",
            extra={"path": file_path, "strategy": strategy, "count": len(keywords)},
        )
        return keywords

    def _definition_names(self, family: str, lines: List[str]) -> List[str]:
        patterns = _FAMILY_PATTERNS.get(family, ())
        found: List[str] = []
        for line in lines:
            for pattern in patterns:
                for match in pattern.finditer(line):
                    name = match.group(1).strip()
                    if not name or (family == "c" and name in _C_NON_NAMES):
                        continue
                    if name not in found:
                        found.append(name)
                        if len(found) >= self.max_keywords:
                            return found
        return found

    def _json_keys(self, lines: List[str]) -> List[str]:
        text = "\n".join(lines)
        try:
            document = json.loads(text, object_pairs_hook=_PairList)
        except json.JSONDecodeError:
            logger.debug("Partial JSON content, scanning key lines instead")
            return self._json_keys_by_indent(lines)

        if not isinstance(document, _PairList):
            return []
        return _unique((key for key, _ in document), self.max_keywords)

    def _json_keys_by_indent(self, lines: List[str]) -> List[str]:
        candidates = []
        for line in lines:
            match = _JSON_KEY_LINE.match(line)
            if match:
                candidates.append((len(match.group(1).expandtabs()), match.group(2)))

        if not candidates:
            return []
        top_indent = min(indent for indent, _ in candidates)
        return _unique((key for indent, key in candidates if indent == top_indent), self.max_keywords)


class _PairList(list):
    """Ordered key/value pairs of one decoded JSON object."""


def _unique(values: Iterable[str], limit: int) -> List[str]:
    result: List[str] = []
    for value in values:
        if value not in result:
            result.append(value)
            if len(result) >= limit:
                break
    return result
