# jczaddons/core/dictpath.py
from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

__all__ = ["getByPath"]



# Escaped character | separator | literal run | dangling backslash
_TOKEN_RE = re.compile(r"\\(.)|(\.)|([^.\\]+)|(\\)$", re.DOTALL)



def _splitPath(path: str) -> list[str]:
    """
    Splits "a.b.c" into segments. A backslash escapes the next character, so
    "a\\.b.c" is ["a.b", "c"]. Empty segments and a trailing backslash are
    rejected with ValueError.
    """
    if not isinstance(path, str) or not path:
        raise ValueError("Path must be a non-empty string")

    segments: list[str] = []
    current = ""
    for match in _TOKEN_RE.finditer(path):
        escaped, separator, literal, dangling = match.groups()
        if dangling is not None:
            raise ValueError(f"Path '{path}' ends with a dangling escape")
        if separator is not None:
            segments.append(current)
            current = ""
        else:
            current += escaped if escaped is not None else literal
    segments.append(current)

    if "" in segments:
        raise ValueError(f"Path '{path}' contains empty segment(s)")
    return segments



def getByPath(obj: Any, path: str, default: Any = None) -> Any:
    """
    Walks nested mappings along `path`. Returns `default` for a malformed
    path or as soon as a segment cannot be resolved.
    """
    try:
        segments = _splitPath(path)
    except ValueError:
        return default

    node = obj
    for segment in segments:
        if not isinstance(node, Mapping) or segment not in node:
            return default
        node = node[segment]
    return node
