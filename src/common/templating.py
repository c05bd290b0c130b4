"""Template expansion and slash-safe path/URL helpers."""

from __future__ import annotations

import re
import urllib.parse
from typing import Any, Mapping

_MULTI_SLASH = re.compile(r"/{2,}")


def render_value(value: Any) -> str:
    """Render a template value as text (None -> '', booleans lowercase)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def eval_template(template: str, values: Mapping[str, Any]) -> str:
    """Replace every ``{key}`` placeholder with its value.

    Keys are applied in mapping order. Nested braces are not supported.

    >>> eval_template("{a}-{b}-{a}.tar.gz", {"a": "x", "b": "1.0.0"})
    'x-1.0.0-x.tar.gz'
    """
    for key, value in values.items():
        pattern = "{" + key + "}"
        if pattern in template:
            template = template.replace(pattern, render_value(value))
    return template


def fix_slashes(pathname: str) -> str:
    """Ensure a single trailing slash so URL joins append instead of replace."""
    if not pathname.endswith("/"):
        return pathname + "/"
    return pathname


def drop_double_slashes(pathname: str) -> str:
    """Collapse runs of slashes. Only for path fragments, never full URLs."""
    return _MULTI_SLASH.sub("/", pathname)


def _remove_dot_segments(path: str) -> str:
    segments = path.split("/")
    keep = 1 if path.startswith("/") else 0
    output = []
    for segment in segments:
        if segment == "..":
            if len(output) > keep:
                output.pop()
        elif segment != ".":
            output.append(segment)
    if segments[-1] in (".", ".."):
        output.append("")
    return "/".join(output)


def url_resolve(base: str, ref: str) -> str:
    """Resolve ``ref`` against ``base`` the way a browser would.

    Unlike ``urllib.parse.urljoin`` this works for any scheme, so
    ``s3://bucket/prefix/`` keeps its scheme and bucket.

    >>> url_resolve("s3://bucket/prefix/", "./pkg/v1/")
    's3://bucket/prefix/pkg/v1/'
    """
    ref_parts = urllib.parse.urlsplit(ref)
    if ref_parts.scheme:
        return ref
    base_parts = urllib.parse.urlsplit(base)
    if ref.startswith("//"):
        return f"{base_parts.scheme}:{ref}" if base_parts.scheme else ref

    query = ref_parts.query
    if not ref_parts.path:
        path = base_parts.path
        if not query:
            query = base_parts.query
    elif ref_parts.path.startswith("/"):
        path = ref_parts.path
    else:
        if base_parts.netloc and not base_parts.path:
            directory = "/"
        else:
            directory = base_parts.path[:base_parts.path.rfind("/") + 1]
        path = directory + ref_parts.path
    path = _remove_dot_segments(path)
    return urllib.parse.urlunsplit((base_parts.scheme, base_parts.netloc, path, query, ref_parts.fragment))
