"""
Error taxonomy for the parameter confirmation runtime.

Validation rejections derive from ``ValueError``: a parser that declines a
value raises one, and ``apply_parameter`` hands it to the reaction instead
of propagating it. Configuration defects derive from ``ContractViolation``
and always abort the turn.
"""

from skillbot.core.contracts.loader import ContractViolation, ContextCorruptionError


class ParameterRejected(ValueError):
    """Raised when a value is not acceptable for a parameter."""
    pass


class ValueNotSet(ParameterRejected):
    """Raised when no parser is configured and the value is empty."""
    pass


class ParserNotFound(ParameterRejected):
    """Raised in strict mode when the parameter has no parser."""
    pass


class SkillConfigurationError(ContractViolation):
    """Base class for programmer errors in skill definitions or bot calls."""
    pass


class ParameterNotFound(SkillConfigurationError):
    pass


class InvalidParser(SkillConfigurationError):
    pass


class InvalidParserObject(InvalidParser):
    pass


class InvalidParameterDefinition(SkillConfigurationError):
    pass


class MalformedParameterContainer(SkillConfigurationError):
    pass


class InvalidArgument(SkillConfigurationError):
    pass


class SkillNotFound(SkillConfigurationError):
    pass


__all__ = [
    "ContractViolation",
    "ContextCorruptionError",
    "ParameterRejected",
    "ValueNotSet",
    "ParserNotFound",
    "SkillConfigurationError",
    "ParameterNotFound",
    "InvalidParser",
    "InvalidParserObject",
    "InvalidParameterDefinition",
    "MalformedParameterContainer",
    "InvalidArgument",
    "SkillNotFound",
]
