"""
Draft Parser — turns free-form assistant text into memo sections.

Parsing is stateless: the latest assistant message is re-parsed from scratch
on every streamed update, so partial text simply yields partial sections.
If no PART label is present yet, the whole text becomes the issue.
"""

import re
from typing import List

from sleigh_kernel.models.compliance import DraftSections

SECTION_LABELS = (
    ("issue", "I"),
    ("facts", "II"),
    ("analysis", "III"),
    ("actions", "IV"),
)

_DASHES = "\\-\u2013\u2014"
_LEAD = r"[ \t#*_>]*"       # Markdown heading / emphasis noise before a label

_SECTION_END = (
    rf"(?=\n{_LEAD}PART\s+[IVX]+\b|\n{_LEAD}REFERENCES?\b|\Z)"
)
_REFERENCES_RE = re.compile(
    rf"^{_LEAD}REFERENCES?\b[*_]*\s*[:{_DASHES}]*\s*(.*)",
    re.IGNORECASE | re.MULTILINE | re.DOTALL,
)
_BULLET_RE = re.compile(r"^\s*(?:[-*\u2022]+|\d+[.)])\s*")


def _section_pattern(numeral: str) -> "re.Pattern[str]":
    return re.compile(
        rf"PART\s+{numeral}\b\s*[{_DASHES}]?\s*:?\s*(.*?){_SECTION_END}",
        re.IGNORECASE | re.DOTALL,
    )


_SECTION_RES = {field: _section_pattern(numeral) for field, numeral in SECTION_LABELS}


def _extract_references(text: str) -> List[str]:
    match = _REFERENCES_RE.search(text)
    if not match:
        return []
    references = []
    for line in match.group(1).split("\n"):
        cleaned = _BULLET_RE.sub("", line).strip()
        if cleaned:
            references.append(cleaned)
    return references


def parse_draft(content: str) -> DraftSections:
    """Parse a draft into sections, falling back to issue-only."""
    text = content.replace("\r\n", "\n").strip()

    sections = {}
    for field, pattern in _SECTION_RES.items():
        match = pattern.search(text)
        sections[field] = match.group(1).strip() if match else ""

    if not any(sections.values()):
        sections = {field: "" for field in sections}
        sections["issue"] = text

    return DraftSections(
        references=_extract_references(text),
        raw=text,
        **sections,
    )
