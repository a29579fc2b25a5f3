import json
import re
import unittest

from webscore.i18n import LOCALES_DIR, SUPPORTED_LANGUAGES, get_translator, normalize_language, t


def flatten(tree, prefix=""):
    keys = {}
    for name, value in tree.items():
        key = f"{prefix}{name}"
        if isinstance(value, dict):
            keys.update(flatten(value, f"{key}."))
        else:
            keys[key] = value
    return keys


class TranslationTests(unittest.TestCase):
    def test_locales_have_same_keys(self):
        locales = {
            lang: flatten(json.loads((LOCALES_DIR / f"{lang}.json").read_text(encoding="utf-8")))
            for lang in SUPPORTED_LANGUAGES
        }
        reference = set(locales["en"])
        for lang, keys in locales.items():
            with self.subTest(lang=lang):
                self.assertEqual(set(keys), reference)

    def test_placeholders_match_across_locales(self):
        en = flatten(json.loads((LOCALES_DIR / "en.json").read_text(encoding="utf-8")))
        ja = flatten(json.loads((LOCALES_DIR / "ja.json").read_text(encoding="utf-8")))
        placeholder = re.compile(r"\{(\w+)\}")
        for key, text in en.items():
            with self.subTest(key=key):
                self.assertEqual(set(placeholder.findall(text)), set(placeholder.findall(ja[key])))

    def test_substitution(self):
        self.assertEqual(t("narrative.page_title", "en", index=3), "Website analysis #3")
        self.assertEqual(t("narrative.page_title", "ja", index=3), "ウェブサイト分析 #3")

    def test_unknown_key_returns_key(self):
        self.assertEqual(t("report.no_such_label", "ja"), "report.no_such_label")
        self.assertEqual(get_translator("ja").get("report.no_such_label", "fallback"), "fallback")

    def test_unsupported_language_falls_back_to_english(self):
        self.assertEqual(normalize_language("de"), "en")
        self.assertEqual(normalize_language("JA"), "ja")
        self.assertEqual(t("report.overall", "de"), "Overall score")

    def test_missing_placeholder_value_keeps_template(self):
        self.assertEqual(t("narrative.page_title", "en"), "Website analysis #{index}")


if __name__ == "__main__":
    unittest.main()
