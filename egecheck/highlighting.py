"""Locate criterion-cited error fragments inside the essay text."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass

from egecheck.contract import CriterionScore
from egecheck.criteria import CRITERION_IDS


@dataclass(frozen=True)
class Segment:
    text: str
    criterion_id: str | None = None
    tooltip: str | None = None

    @property
    def highlighted(self) -> bool:
        return self.criterion_id is not None


@dataclass(frozen=True)
class _CitedFragment:
    text: str
    criterion_id: str
    comment: str


def _cited_fragments(scores: Mapping[str, CriterionScore]) -> list[_CitedFragment]:
    # Canonical order first, then anything unexpected in mapping order.
    ordered_ids = [cid for cid in CRITERION_IDS if cid in scores]
    ordered_ids += [cid for cid in scores if cid not in CRITERION_IDS]

    fragments: list[_CitedFragment] = []
    seen: set[str] = set()
    for criterion_id in ordered_ids:
        value = scores[criterion_id]
        for error in value.errors:
            if not error.text.strip() or error.text in seen:
                continue
            seen.add(error.text)
            fragments.append(_CitedFragment(text=error.text, criterion_id=criterion_id, comment=value.comment))
    return fragments


def reconcile_error_spans(essay_text: str, scores: Mapping[str, CriterionScore]) -> list[Segment]:
    """Split essay text into plain and highlighted segments.

    Fragments are matched as exact literals in one left-to-right pass. A
    fragment that does not occur in the text is dropped. Concatenating the
    segment texts always yields ``essay_text``.
    """
    fragments = _cited_fragments(scores)
    if not fragments or not essay_text:
        return [Segment(text=essay_text)] if essay_text else []

    by_text = {fragment.text: fragment for fragment in fragments}
    pattern = re.compile("|".join(re.escape(fragment.text) for fragment in fragments))

    segments: list[Segment] = []
    cursor = 0
    for match in pattern.finditer(essay_text):
        if match.start() > cursor:
            segments.append(Segment(text=essay_text[cursor : match.start()]))
        fragment = by_text[match.group(0)]
        segments.append(
            Segment(
                text=match.group(0),
                criterion_id=fragment.criterion_id,
                tooltip=f"[{fragment.criterion_id}] {fragment.comment}",
            )
        )
        cursor = match.end()

    if cursor < len(essay_text):
        segments.append(Segment(text=essay_text[cursor:]))
    return segments
