"""Component-tree comparison between two page version snapshots.

Two strategies are registered:

``positional``
    Pairs components by their index in the ordered list. Cheap and stable,
    but inserting or removing a component in the middle makes every later
    index show up as modified.

``content``
    Aligns both lists on a fingerprint of ``(component_type, props, styles)``
    so that unchanged components are matched even after they move. Only runs
    that really differ are reported.
"""

from __future__ import annotations

import json
import logging
from difflib import SequenceMatcher
from typing import Any

from app.config import settings
from app.errors import InvalidOperationError

logger = logging.getLogger(__name__)

_OBJECT_FIELDS = ("props", "styles")


def _ordered(components: list[dict] | None) -> list[dict]:
    return sorted(components or [], key=lambda c: c.get("position", 0))


def _object_changes(old: dict | None, new: dict | None) -> list[dict[str, Any]]:
    old = old or {}
    new = new or {}
    changes = []
    for key in sorted(set(old) | set(new)):
        if old.get(key) != new.get(key):
            changes.append(
                {"key": key, "old_value": old.get(key), "new_value": new.get(key)}
            )
    return changes


def component_changes(
    old: dict, new: dict, include_position: bool = True
) -> list[dict[str, Any]]:
    changes: list[dict[str, Any]] = []
    if old.get("component_type") != new.get("component_type"):
        changes.append(
            {
                "property": "component_type",
                "old_value": old.get("component_type"),
                "new_value": new.get("component_type"),
            }
        )
    if include_position and old.get("position") != new.get("position"):
        changes.append(
            {
                "property": "position",
                "old_value": old.get("position"),
                "new_value": new.get("position"),
            }
        )
    for field in _OBJECT_FIELDS:
        field_changes = _object_changes(old.get(field), new.get(field))
        if field_changes:
            changes.append({"property": field, "changes": field_changes})
    return changes


def _report(added: list, removed: list, modified: list) -> dict[str, Any]:
    return {
        "added": added,
        "removed": removed,
        "modified": modified,
        "summary": {
            "added_count": len(added),
            "removed_count": len(removed),
            "modified_count": len(modified),
        },
    }


class DiffStrategy:
    name: str = ""

    def compare(self, components_a: list[dict], components_b: list[dict]) -> dict:
        raise NotImplementedError


class PositionalDiff(DiffStrategy):
    name = "positional"

    def compare(self, components_a, components_b):
        by_index_a = dict(enumerate(_ordered(components_a)))
        by_index_b = dict(enumerate(_ordered(components_b)))
        added, removed, modified = [], [], []

        for index, comp_b in by_index_b.items():
            comp_a = by_index_a.get(index)
            if comp_a is None:
                added.append({"position": index, "component": comp_b})
                continue
            changes = component_changes(comp_a, comp_b)
            if changes:
                modified.append(
                    {
                        "position": index,
                        "component_type": comp_b.get("component_type"),
                        "changes": changes,
                    }
                )

        for index, comp_a in by_index_a.items():
            if index not in by_index_b:
                removed.append({"position": index, "component": comp_a})

        return _report(added, removed, modified)


def _fingerprint(component: dict) -> str:
    return json.dumps(
        [
            component.get("component_type"),
            component.get("props") or {},
            component.get("styles") or {},
        ],
        sort_keys=True,
        default=str,
    )


class ContentDiff(DiffStrategy):
    name = "content"

    def compare(self, components_a, components_b):
        list_a = _ordered(components_a)
        list_b = _ordered(components_b)
        matcher = SequenceMatcher(
            a=[_fingerprint(c) for c in list_a],
            b=[_fingerprint(c) for c in list_b],
            autojunk=False,
        )
        added, removed, modified = [], [], []

        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            if tag == "equal":
                continue
            paired = min(i2 - i1, j2 - j1) if tag == "replace" else 0
            for offset in range(paired):
                comp_a = list_a[i1 + offset]
                comp_b = list_b[j1 + offset]
                modified.append(
                    {
                        "position": j1 + offset,
                        "old_position": i1 + offset,
                        "component_type": comp_b.get("component_type"),
                        "changes": component_changes(
                            comp_a, comp_b, include_position=False
                        ),
                    }
                )
            for index in range(i1 + paired, i2):
                removed.append({"position": index, "component": list_a[index]})
            for index in range(j1 + paired, j2):
                added.append({"position": index, "component": list_b[index]})

        return _report(added, removed, modified)


STRATEGIES: dict[str, DiffStrategy] = {
    PositionalDiff.name: PositionalDiff(),
    ContentDiff.name: ContentDiff(),
}


def get_strategy(name: str | None = None) -> DiffStrategy:
    key = name or settings.diff_strategy_default
    strategy = STRATEGIES.get(key)
    if strategy is None:
        raise InvalidOperationError(
            f"Invalid diff strategy. Allowed: {sorted(STRATEGIES)}"
        )
    return strategy


def compare_components(
    components_a: list[dict], components_b: list[dict], strategy: str | None = None
) -> dict[str, Any]:
    diff_strategy = get_strategy(strategy)
    report = diff_strategy.compare(components_a, components_b)
    logger.debug(
        "Compared component trees with %s strategy: %s",
        diff_strategy.name,
        report["summary"],
    )
    return report
