"""Tests for the modifier registry and applier."""

import logging

import pytest

from ctxgen.document.models import ModifierRef
from ctxgen.modifiers import Modifier, ModifierRegistry, ModifiersApplier, default_modifier_registry


class Upper(Modifier):
    identifier = "upper"

    def supports(self, content_type):
        return content_type.endswith(".txt")

    def modify(self, content, options, content_type=""):
        return content.upper()


class Suffix(Modifier):
    identifier = "suffix"

    def supports(self, content_type):
        return True

    def modify(self, content, options, content_type=""):
        return content + options.get("text", "!")


@pytest.fixture
def registry():
    return ModifierRegistry([Upper(), Suffix()])


class TestModifierRegistry:
    def test_lookup(self, registry):
        assert registry.has("upper")
        assert isinstance(registry.get("suffix"), Suffix)
        assert registry.get("missing") is None

    def test_identifiers_sorted(self, registry):
        assert registry.identifiers() == ["suffix", "upper"]

    def test_missing_identifier_rejected(self):
        class Anonymous(Suffix):
            identifier = ""

        with pytest.raises(ValueError):
            ModifierRegistry().register(Anonymous())

    def test_default_registry_has_builtins(self):
        assert default_modifier_registry().identifiers() == ["content-filter", "sanitizer"]


class TestModifiersApplier:
    def test_applies_in_order(self, registry):
        applier = ModifiersApplier(registry, [ModifierRef(name="upper"), ModifierRef(name="suffix", options={"text": "?"})])
        assert applier.apply("abc", "a.txt") == "ABC?"

    def test_unsupported_content_type_skipped(self, registry):
        applier = ModifiersApplier(registry, [ModifierRef(name="upper")])
        assert applier.apply("abc", "a.py") == "abc"

    def test_unknown_modifier_warns_and_passes_through(self, registry, caplog):
        applier = ModifiersApplier(registry, [ModifierRef(name="nope"), ModifierRef(name="suffix")])
        with caplog.at_level(logging.WARNING, logger="ctxgen.modifiers.base"):
            assert applier.apply("abc", "a.txt") == "abc!"
        assert "unknown modifier 'nope'" in caplog.text

    def test_with_modifiers_appends_without_mutating(self, registry):
        base = ModifiersApplier(registry, [ModifierRef(name="upper")])
        extended = base.with_modifiers([ModifierRef(name="suffix")])
        assert [r.name for r in base.refs] == ["upper"]
        assert [r.name for r in extended.refs] == ["upper", "suffix"]
        assert extended.apply("x", "f.txt") == "X!"

    def test_bare_string_reference(self, registry):
        ref = ModifierRef.model_validate("suffix")
        assert ModifiersApplier(registry, [ref]).apply("a", "t") == "a!"
