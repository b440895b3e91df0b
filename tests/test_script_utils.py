"""
Tests for escaping, selector fallback lists and script merging
"""
from core.models import ActionType, ParsedAction
from emitters.functional_emitter import emit_action_script, emit_links_script, emit_page_load_script
from emitters.script_utils import (
    PLAYWRIGHT_IMPORT, VariableNamer, build_element_target, count_import_blocks, escape_js,
    clickable_selectors, field_selectors, generic_selectors, js_string, merge_scripts, position_suffix, split_script,
)
from parsers.action_extractor import extract_actions


class TestEscaping:
    """Literal values never break the emitted quoting"""

    def test_single_quotes_and_backslashes(self):
        assert escape_js("it's a \\ test") == "it\\'s a \\\\ test"

    def test_newlines(self):
        assert js_string("a\nb") == "'a\\nb'"

    def test_quoted_value_in_script(self):
        actions = [
            ParsedAction(step_number=1, type=ActionType.NAVIGATE, target="https://example.com"),
            ParsedAction(step_number=2, type=ActionType.TYPE, target="username", value="O'Brien",
                         original_line="enter username"),
        ]
        script = emit_action_script("quotes", actions)
        assert "fill('O\\'Brien')" in script


class TestSelectors:
    """Ordered fallback: id, name, data-test, generic type"""

    def test_field_order(self):
        candidates = field_selectors("email")
        assert candidates[:3] == ["#email", '[name="email"]', '[data-test="email"]']
        assert candidates[-1] == 'input[type="email"]'

    def test_leading_digit_uses_attribute_id(self):
        assert clickable_selectors("3 dots menu")[0] == '[id="3-dots-menu"]'
        assert generic_selectors("2nd tab")[0] == '[id="2nd-tab"]'
        assert field_selectors("2fa code")[0] == '[id="2facode"]'
        assert clickable_selectors("Add to cart")[0] == "#add-to-cart"

    def test_default_position_is_first(self):
        action = ParsedAction(step_number=2, type=ActionType.CLICK, target="Login", original_line="click Login")
        assert build_element_target(action).position == "first"
        assert position_suffix("first") == ".first()"
        assert position_suffix(3) == ".nth(2)"
        assert position_suffix("last") == ".last()"


class TestVariableNamer:
    """Per-prefix counters"""

    def test_repeated_actions_get_distinct_names(self):
        namer = VariableNamer()
        assert [namer.next("clickTarget"), namer.next("clickTarget"), namer.next("typeTarget")] == [
            "clickTarget1", "clickTarget2", "typeTarget1",
        ]

    def test_script_has_no_duplicate_declarations(self):
        actions = extract_actions("click Home, click About, click Contact", "https://example.com")
        script = emit_action_script("clicks", actions)
        for name in ("clickTarget1", "clickTarget2", "clickTarget3"):
            assert script.count(f"const {name} ") == 1


class TestMerge:
    """One import block after merging"""

    def test_single_script_shape(self):
        script = emit_page_load_script("load", "https://example.com")
        assert count_import_blocks(script) == 1
        assert script.count("test(") == 1

    def test_merge_then_split_recovers_bodies(self):
        fragments = [
            emit_page_load_script("one", "https://example.com"),
            emit_links_script("two", "https://example.com"),
            emit_action_script("three", extract_actions("click Login", "https://example.com")),
        ]
        merged = merge_scripts(fragments)
        assert merged.startswith(PLAYWRIGHT_IMPORT)
        assert count_import_blocks(merged) == 1
        assert merged.count(PLAYWRIGHT_IMPORT) == 1

        imports, bodies = split_script(merged)
        assert imports == [PLAYWRIGHT_IMPORT]
        assert len(bodies) == 3
        assert len(set(bodies)) == 3
        assert bodies[0].startswith("test('one'")
        assert bodies[2].startswith("test('three'")
