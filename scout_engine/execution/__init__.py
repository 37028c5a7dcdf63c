from .executor import Executor
from .selector_variants import selector_variants
from .types import CascadeStage, ExecutionOutcome

__all__ = ["CascadeStage", "ExecutionOutcome", "Executor", "selector_variants"]
