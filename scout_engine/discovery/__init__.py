from .delta import markup_delta
from .extraction import actions_from_elements
from .loop import DiscoveryLoop
from .merge import ActionSet, merge_actions
from .types import DiscoveryBatch

__all__ = ["ActionSet", "DiscoveryBatch", "DiscoveryLoop", "actions_from_elements", "markup_delta", "merge_actions"]
