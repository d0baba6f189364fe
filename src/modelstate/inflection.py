"""
Minimal English inflection for field names.

Plural field names ("todos", "categories") materialise as collections when
read before being assigned; class lookup uses the singular form.
"""

import re
from typing import List, Tuple

_UNCOUNTABLE = frozenset({
    'equipment', 'information', 'rice', 'money', 'species', 'series',
    'fish', 'sheep', 'data', 'news', 'status', 'settings', 'options',
})

_IRREGULAR = {
    'person': 'people',
    'man': 'men',
    'woman': 'women',
    'child': 'children',
    'mouse': 'mice',
}

_PLURAL_RULES: List[Tuple[str, str]] = [
    (r'(quiz)$', r'\1zes'),
    (r'(matr|vert|ind)(?:ix|ex)$', r'\1ices'),
    (r'(x|ch|ss|sh)$', r'\1es'),
    (r'([^aeiouy]|qu)y$', r'\1ies'),
    (r'(?:([^f])fe|([lr])f)$', r'\1\2ves'),
    (r'sis$', 'ses'),
    (r'(bu)s$', r'\1ses'),
    (r'(alias)$', r'\1es'),
    (r'(octop|vir)us$', r'\1i'),
    (r'(ax|test)is$', r'\1es'),
    (r's$', 's'),
    (r'$', 's'),
]

_SINGULAR_RULES: List[Tuple[str, str]] = [
    (r'(quiz)zes$', r'\1'),
    (r'(matr)ices$', r'\1ix'),
    (r'(vert|ind)ices$', r'\1ex'),
    (r'(alias)es$', r'\1'),
    (r'(octop|vir)i$', r'\1us'),
    (r'(cris|ax|test)es$', r'\1is'),
    (r'(x|ch|ss|sh)es$', r'\1'),
    (r'([^aeiouy]|qu)ies$', r'\1y'),
    (r'([lr])ves$', r'\1f'),
    (r'([^f])ves$', r'\1fe'),
    (r'(bus)es$', r'\1'),
    (r'(ss)$', r'\1'),
    (r's$', ''),
]


def pluralize(word: str) -> str:
    lower = word.lower()
    if lower in _UNCOUNTABLE:
        return word
    if lower in _IRREGULAR:
        return _IRREGULAR[lower]
    if lower in _IRREGULAR.values():
        return word
    for pattern, replacement in _PLURAL_RULES:
        if re.search(pattern, word, re.IGNORECASE):
            return re.sub(pattern, replacement, word, count=1, flags=re.IGNORECASE)
    return word


def singularize(word: str) -> str:
    lower = word.lower()
    if lower in _UNCOUNTABLE:
        return word
    for singular, plural in _IRREGULAR.items():
        if lower == plural:
            return singular
    for pattern, replacement in _SINGULAR_RULES:
        if re.search(pattern, word, re.IGNORECASE):
            return re.sub(pattern, replacement, word, count=1, flags=re.IGNORECASE)
    return word


def is_plural(word: str) -> bool:
    """True for words that are their own plural but not their own singular."""
    return pluralize(word) == word and singularize(word) != word
