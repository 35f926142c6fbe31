from __future__ import annotations

import unittest

from lazyjj.input import KeyComboBinding, KeyComboRegistry, Keymap, normalize_key_name


class NormalizeKeyNameTests(unittest.TestCase):
    def test_named_and_modified_keys(self) -> None:
        self.assertEqual(normalize_key_name("esc"), "ESC")
        self.assertEqual(normalize_key_name("Enter"), "ENTER")
        self.assertEqual(normalize_key_name("ctrl+z"), "CTRL_Z")
        self.assertEqual(normalize_key_name("alt+left"), "ALT_LEFT")
        self.assertEqual(normalize_key_name("space"), " ")

    def test_single_characters_keep_their_case(self) -> None:
        self.assertEqual(normalize_key_name("Q"), "Q")
        self.assertEqual(normalize_key_name("q"), "q")

    def test_reader_tokens_pass_through(self) -> None:
        self.assertEqual(normalize_key_name("CTRL_P"), "CTRL_P")


class KeymapTests(unittest.TestCase):
    def test_overrides_replace_only_named_actions(self) -> None:
        base = Keymap.from_mapping({"quit": ["q"], "refresh": ["R"]})

        merged = Keymap.from_mapping({"quit": "ctrl+c"}, base=base)

        self.assertEqual(merged.chords("quit"), (("CTRL_C",),))
        self.assertEqual(merged.chords("refresh"), (("R",),))

    def test_invalid_values_keep_the_base_binding(self) -> None:
        base = Keymap.from_mapping({"quit": ["q"]})

        merged = Keymap.from_mapping({"quit": 3, "other": []}, base=base)

        self.assertEqual(merged.chords("quit"), (("q",),))
        self.assertEqual(merged.chords("other"), ())

    def test_sequences_lists_only_multi_key_chords_in_order(self) -> None:
        keymap = Keymap.from_mapping({"fetch": [["g", "f"], "F"], "push": [["g", "p"]], "quit": "q"})

        self.assertEqual(keymap.sequences(), [("fetch", ("g", "f")), ("push", ("g", "p"))])
        self.assertTrue(keymap.matches("F", "fetch"))
        self.assertFalse(keymap.matches("g", "fetch"))
        self.assertEqual(keymap.describe("fetch"), "g f/F")


class KeyComboRegistryTests(unittest.TestCase):
    def test_first_binding_whose_guard_holds_wins(self) -> None:
        keymap = Keymap.from_mapping({"clear_error": "ESC", "close_modal": "ESC", "cancel": "ESC"})
        calls: list[str] = []
        registry = KeyComboRegistry(keymap).register_bindings(
            KeyComboBinding("clear_error", lambda: calls.append("error"), when=lambda: False),
            KeyComboBinding("close_modal", lambda: calls.append("modal"), when=lambda: True),
            KeyComboBinding("cancel", lambda: calls.append("cancel")),
        )

        matched, _ = registry.dispatch("ESC")

        self.assertTrue(matched)
        self.assertEqual(calls, ["modal"])

    def test_unbound_key_is_not_matched(self) -> None:
        registry = KeyComboRegistry(Keymap.from_mapping({"quit": "q"}))
        registry.register_binding(KeyComboBinding("quit", lambda: "bye"))

        self.assertEqual(registry.dispatch("x"), (False, None))
        self.assertEqual(registry.dispatch("q"), (True, "bye"))
        self.assertEqual(list(registry.actions_for("q")), ["quit"])

    def test_multi_key_chords_are_not_registered_as_single_keys(self) -> None:
        registry = KeyComboRegistry(Keymap.from_mapping({"fetch": [["g", "f"]]}))
        registry.register_binding(KeyComboBinding("fetch", lambda: "run"))

        self.assertEqual(registry.dispatch("g"), (False, None))


if __name__ == "__main__":
    unittest.main()
