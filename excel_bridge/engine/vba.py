"""VBA module text stored in the workbook's document properties.

openpyxl can carry an existing ``vbaProject.bin`` through a load / save
cycle (``keep_vba=True``) but cannot read or write the modules inside it.
Module source is therefore kept in the core-properties *description* field
as a sequence of sections::

    [Module1]
    Sub Hello()
    End Sub

    [Module2]
    ...

A section runs from its ``[Name]`` marker to the next ``[`` or the end of
the text.  The functions below work on that text only; callers read it from
and write it back to ``wb.properties.description``.
"""

from __future__ import annotations

import re
from typing import Any

_MODULE_RE = re.compile(r"\[([^\]]+)\]")

VBA_PROJECT_PART = "xl/vbaProject.bin"


def _marker(name: str) -> str:
    return f"[{name}]"


def list_modules(text: str) -> list[str]:
    """Module names in order of appearance, without duplicates."""
    names: list[str] = []
    for match in _MODULE_RE.finditer(text or ""):
        if match.group(1) not in names:
            names.append(match.group(1))
    return names


def read_module(text: str, name: str) -> str:
    """Source of module *name*, or ``""`` when it is not stored."""
    text = text or ""
    marker = _marker(name)
    start = text.find(marker)
    if start == -1:
        return ""
    start += len(marker)
    end = text.find("[", start)
    if end == -1:
        end = len(text)
    return text[start:end].strip()


def write_module(text: str, name: str, code: str) -> str:
    """Return *text* with module *name* replaced by, or appended as, *code*."""
    text = text or ""
    marker = _marker(name)
    section = f"{marker}\n{code}"
    if marker in text:
        # A callable replacement keeps backslashes in *code* literal.
        return re.sub(
            re.escape(marker) + r"[^\[]*",
            lambda m: section + ("\n\n" if m.end() < len(text) else ""),
            text,
            count=1,
        )
    return f"{text}\n\n{section}" if text else section


def delete_module(text: str, name: str) -> tuple[str, bool]:
    """Return ``(new_text, removed)``."""
    text = text or ""
    marker = _marker(name)
    start = text.find(marker)
    if start == -1:
        return text, False
    end = text.find("[", start + len(marker))
    if end == -1:
        end = len(text)

    before = text[:start].rstrip()
    after = text[end:]
    if before and after:
        return f"{before}\n\n{after}", True
    return before or after, True


def has_vba_project(wb: Any) -> bool:
    """True when *wb* was loaded with a VBA project attached."""
    archive = getattr(wb, "vba_archive", None)
    if archive is None:
        return False
    return VBA_PROJECT_PART in archive.namelist()
