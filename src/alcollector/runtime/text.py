"""
Script Text Detranslation

Game strings carry two independent escape grammars that the client expands
when a record is loaded:

    <[key]>           cross-reference, replaced by equip_data_code[key].text
    {namecode:N}      name reference, replaced by name_code[N].name

The name reference may carry trailing text before the closing brace
(e.g. "{namecode:12:Enterprise}"); only the number is used.

A lookup miss substitutes the empty string.
"""

import re
from typing import Callable, Optional


# Cross-reference token: <[key]>
CROSS_REF = re.compile(r'<\[(.*?)\]>')

# Name-code token: {namecode:N...}
NAME_CODE_REF = re.compile(r'\{namecode:(\d+).*?\}')


# Lookup callables return None on a miss.
CodeLookup = Callable[[str], Optional[str]]
NameLookup = Callable[[int], Optional[str]]


class TextTranslator:
    """
    Expands cross-reference and name-code tokens in script strings.

    The lookups are supplied by the owning session so the translator itself
    holds no script state.
    """

    def __init__(self, code_lookup: CodeLookup, name_lookup: NameLookup):
        self._code_lookup = code_lookup
        self._name_lookup = name_lookup

    def translate_codes(self, text: Optional[str]) -> str:
        """Replace <[key]> tokens."""
        def _sub(match: "re.Match") -> str:
            return self._code_lookup(match.group(1)) or ""
        return CROSS_REF.sub(_sub, text or "")

    def translate_name_codes(self, text: Optional[str]) -> str:
        """Replace {namecode:N} tokens."""
        def _sub(match: "re.Match") -> str:
            return self._name_lookup(int(match.group(1))) or ""
        return NAME_CODE_REF.sub(_sub, text or "")

    def translate(self, text: Optional[str]) -> str:
        """Apply both grammars, cross-references first."""
        return self.translate_name_codes(self.translate_codes(text))


def has_tokens(text: str) -> bool:
    """True if text contains any translatable token."""
    return bool(CROSS_REF.search(text) or NAME_CODE_REF.search(text))
