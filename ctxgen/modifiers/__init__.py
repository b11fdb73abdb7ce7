from .base import Modifier, ModifierRegistry, ModifiersApplier
from .content_filter import ContentFilterModifier, Member, MemberParser, PythonMemberParser
from .sanitizer import ContextSanitizer, RuleFactory, SanitizerModifier


def default_modifier_registry() -> ModifierRegistry:
    """A fresh registry holding the built-in modifiers."""
    return ModifierRegistry([SanitizerModifier(), ContentFilterModifier()])


__all__ = [
    "ContentFilterModifier",
    "ContextSanitizer",
    "Member",
    "MemberParser",
    "Modifier",
    "ModifierRegistry",
    "ModifiersApplier",
    "PythonMemberParser",
    "RuleFactory",
    "SanitizerModifier",
    "default_modifier_registry",
]
