from __future__ import annotations

from collections import OrderedDict
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Dict, List, Optional


RELATION_NAMES = ("intersection", "unique_a", "unique_b", "union")

# Which side supplies the display form for keys present on both sides.
DISPLAY_PREFERENCE = ("a", "b")


@dataclass(frozen=True)
class NormalizationOptions:
    ignore_case: bool = False
    trim: bool = True
    ignore_empty: bool = True

    def as_dict(self) -> Dict[str, bool]:
        return {
            "ignore_case": self.ignore_case,
            "trim": self.trim,
            "ignore_empty": self.ignore_empty,
        }


class LineIndex(OrderedDict):
    """Normalized key -> display line, ordered by first insertion of the key."""

    def add(self, key: str, display: str) -> None:
        # Assigning to an existing key keeps its position.
        self[key] = display


@dataclass
class SetRelations:
    intersection: List[str]
    unique_a: List[str]
    unique_b: List[str]
    union: List[str]
    count_a: int = 0
    count_b: int = 0
    options: NormalizationOptions = field(default_factory=NormalizationOptions)

    def relation(self, name: str) -> List[str]:
        if name not in RELATION_NAMES:
            raise KeyError(name)
        return getattr(self, name)

    def joined(self, name: str) -> str:
        return "\n".join(self.relation(name))

    def counts(self) -> Dict[str, int]:
        counts = {"a": self.count_a, "b": self.count_b}
        counts.update({name: len(self.relation(name)) for name in RELATION_NAMES})
        return counts

    def as_dict(self) -> Dict[str, List[str]]:
        return {name: list(self.relation(name)) for name in RELATION_NAMES}


def extract_lines(text: str, options: NormalizationOptions) -> List[str]:
    lines = text.split("\n")
    if options.trim:
        lines = [line.strip() for line in lines]
    if options.ignore_empty:
        lines = [line for line in lines if line != ""]
    return lines


def normalize_key(line: str, options: NormalizationOptions) -> str:
    return line.lower() if options.ignore_case else line


def build_index(lines: Iterable[str], options: NormalizationOptions) -> LineIndex:
    index = LineIndex()
    for line in lines:
        index.add(normalize_key(line, options), line)
    return index


def _resolve_display(key: str, index_a: LineIndex, index_b: LineIndex) -> str:
    sides = {"a": index_a, "b": index_b}
    for side in DISPLAY_PREFERENCE:
        if key in sides[side]:
            return sides[side][key]
    raise KeyError(key)


def compute_relations(index_a: LineIndex, index_b: LineIndex) -> SetRelations:
    """Compare two indexes by key.

    Results follow A's key order, with B-only keys appended in B's order for
    ``unique_b`` and ``union``.
    """
    intersection_keys = [key for key in index_a if key in index_b]
    unique_a_keys = [key for key in index_a if key not in index_b]
    unique_b_keys = [key for key in index_b if key not in index_a]
    union_keys = list(index_a) + unique_b_keys

    def display(keys: List[str]) -> List[str]:
        return [_resolve_display(key, index_a, index_b) for key in keys]

    return SetRelations(
        intersection=display(intersection_keys),
        unique_a=display(unique_a_keys),
        unique_b=display(unique_b_keys),
        union=display(union_keys),
    )


def compute(
    text_a: str, text_b: str, options: Optional[NormalizationOptions] = None
) -> SetRelations:
    options = options or NormalizationOptions()
    lines_a = extract_lines(text_a, options)
    lines_b = extract_lines(text_b, options)

    relations = compute_relations(build_index(lines_a, options), build_index(lines_b, options))
    relations.count_a = len(lines_a)
    relations.count_b = len(lines_b)
    relations.options = options
    return relations
