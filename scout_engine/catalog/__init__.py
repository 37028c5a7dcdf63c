from .catalog import ElementCatalog, as_catalog
from .types import ElementKind, InteractionMethod, KIND_PRIORITY, NavigableElement

__all__ = ["ElementCatalog", "ElementKind", "InteractionMethod", "KIND_PRIORITY", "NavigableElement", "as_catalog"]
