"""Expand gendered slash notation into concrete terms.

    soltero/a   -> soltero, soltera
    hermano/os  -> hermano, hermanos
    profesor/a  -> profesor, profesora
"""
from __future__ import annotations

import re

# base + (o|e) "/" (a|o|as|os), e.g. "soltero/a"
_PAIRED_ENDING = re.compile(r"(o|e)/(a|o|as|os)$")
# base "/" ending, e.g. "profesor/a"
_SIMPLE_SUFFIX = re.compile(r"/([aeoás]+)$")


def expand_term(term: str) -> list[str]:
    """Return the variants written in a term's slash notation, or [term]."""
    trimmed = term.strip()

    m = _PAIRED_ENDING.search(trimmed)
    if m is not None:
        base = trimmed[: m.start()]
        return [base + m.group(1), base + m.group(2)]

    m = _SIMPLE_SUFFIX.search(trimmed)
    if m is not None:
        base = trimmed[: m.start()]
        ending = m.group(1)
        if base.endswith(("o", "e")):
            return [base, base[:-1] + ending]
        return [base, base + ending]

    return [trimmed]
