"""Helpers for `category.subtopic.concept` hierarchy keys."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .models import WILDCARD


@dataclass(frozen=True)
class KeyParts:
    category: str
    subtopic: int
    concept: int

    @property
    def level(self) -> int:
        """0 for a concept key, 1 for a subtopic wildcard, 2 for a category wildcard."""
        if self.concept > 0:
            return 0
        if self.subtopic > 0:
            return 1
        return 2


def _segment_number(segment: str) -> int:
    if segment == WILDCARD:
        return 0
    try:
        return int(segment)
    except ValueError:
        return 0


def parse_key(key: str) -> KeyParts:
    parts = key.split(".")
    if len(parts) != 3:
        raise ValueError(f"Invalid key format: {key}")
    return KeyParts(category=parts[0], subtopic=_segment_number(parts[1]), concept=_segment_number(parts[2]))


def matching_keys(anchor_key: str) -> List[str]:
    """The anchor key followed by its subtopic and category wildcard fallbacks."""
    parts = anchor_key.split(".")
    category = parts[0]
    subtopic = parts[1] if len(parts) > 1 else ""
    concept = parts[2] if len(parts) > 2 else ""

    keys = [anchor_key]
    if concept and concept != WILDCARD:
        keys.append(f"{category}.{subtopic}.{WILDCARD}")
    if subtopic and subtopic != WILDCARD:
        keys.append(f"{category}.{WILDCARD}.{WILDCARD}")
    return keys


def specificity(anchor_key: str, resource_key: str) -> int:
    """0 exact, 1 same category and subtopic, 2 same category, 3 unrelated."""
    if anchor_key == resource_key:
        return 0
    try:
        anchor = parse_key(anchor_key)
        resource = parse_key(resource_key)
    except ValueError:
        return 3
    if anchor.category == resource.category and anchor.subtopic == resource.subtopic:
        return 1
    if anchor.category == resource.category:
        return 2
    return 3


def numeric_order(key: str) -> int:
    try:
        parts = parse_key(key)
    except ValueError:
        return 0
    return parts.subtopic * 1000 + parts.concept


__all__ = [
    "KeyParts",
    "matching_keys",
    "numeric_order",
    "parse_key",
    "specificity",
]
