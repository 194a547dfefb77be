"""Generator package - Renders models into configuration text."""

from nginx_confgen.generator.renderer import (
    ConfigGenerator,
    ConfigWarning,
    GenerationResult,
    generate,
)
from nginx_confgen.generator.validator import ValidationWarning, validate

__all__ = [
    "ConfigGenerator",
    "ConfigWarning",
    "GenerationResult",
    "ValidationWarning",
    "generate",
    "validate",
]
