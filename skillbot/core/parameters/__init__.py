from skillbot.core.parameters.registry import (
    CONTAINER_TYPES,
    ParameterDefinition,
    ParameterRegistry,
    ParameterType,
)

__all__ = [
    "CONTAINER_TYPES",
    "ParameterDefinition",
    "ParameterRegistry",
    "ParameterType",
]
