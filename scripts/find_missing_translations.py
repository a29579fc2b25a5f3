#!/usr/bin/env python3
"""
Report translation keys used in code or templates but missing from the locale
files, and keys present in one locale but not the other.

Exits with status 1 when anything is missing.
"""

import json
import re
import sys
from pathlib import Path
from typing import Dict, Set

# t("key"), self.t("key") and t('key') with a literal key
KEY_PATTERN = re.compile(r'\bt\(\s*["\']([a-z_][\w.-]*)["\']')


def extract_keys_from_file(file_path: Path) -> Set[str]:
    """Extract literal translation keys used in a source or template file."""
    with open(file_path, 'r', encoding='utf-8') as f:
        # A trailing dot marks a prefix completed at runtime ("report.scores." ~ name)
        return {key for key in KEY_PATTERN.findall(f.read()) if not key.endswith('.')}


def load_translation_keys(locale_file: Path) -> Set[str]:
    """Load all leaf keys from a JSON locale file in dot notation."""
    with open(locale_file, 'r', encoding='utf-8') as f:
        data = json.load(f)

    def extract_keys(obj, prefix=''):
        keys = set()
        for key, value in obj.items():
            full_key = f"{prefix}.{key}" if prefix else key
            if isinstance(value, dict):
                keys.update(extract_keys(value, full_key))
            else:
                keys.add(full_key)
        return keys

    return extract_keys(data)


def main() -> int:
    base_path = Path(__file__).parent.parent
    package_path = base_path / 'webscore'
    locales_path = package_path / 'locales'

    locales: Dict[str, Set[str]] = {
        path.stem: load_translation_keys(path) for path in sorted(locales_path.glob('*.json'))
    }
    for lang, keys in locales.items():
        print(f"  {lang}: {len(keys)} keys")
    print()

    sources = [
        p for p in package_path.rglob('*.py') if 'tests' not in p.parts
    ] + list((package_path / 'templates').glob('*.html'))

    used: Dict[str, Set[str]] = {}
    for source in sources:
        keys = extract_keys_from_file(source)
        if keys:
            used[str(source.relative_to(base_path))] = keys
    all_used = set().union(*used.values()) if used else set()
    print(f"Found {len(all_used)} literal keys in {len(used)} files")
    print()

    problems = 0
    for lang, keys in locales.items():
        missing = sorted(all_used - keys)
        if missing:
            problems += len(missing)
            print(f"Used but missing from {lang}.json:")
            for key in missing:
                files = [name for name, file_keys in used.items() if key in file_keys]
                print(f"  - {key}  ({', '.join(files)})")
            print()

    languages = list(locales)
    for lang in languages:
        for other in languages:
            if lang == other:
                continue
            only = sorted(locales[lang] - locales[other])
            if only:
                problems += len(only)
                print(f"In {lang}.json but missing from {other}.json:")
                for key in only:
                    print(f"  - {key}")
                print()

    if problems:
        print(f"{problems} problem(s) found")
        return 1
    print("All translation keys present")
    return 0


if __name__ == '__main__':
    sys.exit(main())
