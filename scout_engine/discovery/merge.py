"""Identity-based merging of discovered actions."""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Tuple

from scout_engine.ai.models import PRIORITY_ORDER, DiscoveredAction

ActionIdentity = Tuple[str, str]


class ActionSet:
    """Insertion-ordered set of actions keyed by ``(selector, interaction_verb)``.

    Merging is idempotent: a second merge of the same batch adds nothing and returns nothing.
    The first wording seen for an identity is kept.
    """

    def __init__(self, actions: Iterable[DiscoveredAction] = ()) -> None:
        self._actions: Dict[ActionIdentity, DiscoveredAction] = {}
        self.merge(actions)

    def merge(self, batch: Iterable[DiscoveredAction]) -> List[DiscoveredAction]:
        """Add unseen actions and return them in batch order."""

        added: List[DiscoveredAction] = []
        for action in batch:
            if action.identity in self._actions:
                continue
            self._actions[action.identity] = action
            added.append(action)
        return added

    def __contains__(self, action: object) -> bool:
        if isinstance(action, DiscoveredAction):
            return action.identity in self._actions
        return action in self._actions

    def __iter__(self) -> Iterator[DiscoveredAction]:
        return iter(self._actions.values())

    def __len__(self) -> int:
        return len(self._actions)

    def identities(self) -> List[ActionIdentity]:
        return list(self._actions)

    def snapshot(self) -> List[DiscoveredAction]:
        return list(self._actions.values())

    def ordered(self) -> List[DiscoveredAction]:
        """High priority first; insertion order within a priority."""

        return sorted(self._actions.values(), key=lambda action: PRIORITY_ORDER[action.priority])

    def mark_tested(self, selector: str) -> int:
        """Flag every action on ``selector`` as exercised; returns how many changed."""

        changed = 0
        for identity, action in list(self._actions.items()):
            if identity[0] == selector and not action.is_already_tested:
                self._actions[identity] = action.model_copy(update={"is_already_tested": True})
                changed += 1
        return changed


def merge_actions(
    known: Iterable[DiscoveredAction],
    batch: Iterable[DiscoveredAction],
) -> Tuple[List[DiscoveredAction], List[DiscoveredAction]]:
    """Pure form of ``ActionSet.merge``: returns (merged, new_only)."""

    merged = ActionSet(known)
    added = merged.merge(batch)
    return merged.snapshot(), added


__all__ = ["ActionIdentity", "ActionSet", "merge_actions"]
