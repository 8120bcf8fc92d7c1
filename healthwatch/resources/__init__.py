from healthwatch.resources.loader import (
    ResourceDefinition,
    ResourceDefinitionStore,
    parse_definition,
)

__all__ = [
    "ResourceDefinition",
    "ResourceDefinitionStore",
    "parse_definition",
]
