from __future__ import annotations

import datetime as dt
import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from .errors import SourceNotFoundError, SourceReadError

CONTENT_SUFFIXES = {".md", ".markdown", ".html"}
FRONT_MATTER_MARKER = "---"
WORDS_PER_MINUTE = 200

LIST_MARKER_RE = re.compile(r"^(?P<indent>[ \t]*)(?:[-+*]|\d+[.)])\s+")
FENCE_RE = re.compile(r"^(?P<indent>[ \t]*)(`{3,}|~{3,})")
CAMEL_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
MAPPING_LINE_RE = re.compile(r"^(?P<key>[A-Za-z_][\w-]*)\s*:(?:\s+(?P<value>.*))?$")


@dataclass(frozen=True)
class RawDocument:
    path: Path
    text: str

    @property
    def filename(self) -> str:
        return self.path.name


def slugify(text: str, fallback: str = "post") -> str:
    text = text.lower()
    text = re.sub(r"[\W_]+", "-", text, flags=re.UNICODE)
    text = text.strip("-")
    return text or fallback


def normalize_key(key: str) -> str:
    key = CAMEL_RE.sub("_", key.strip())
    return key.replace("-", "_").lower()


def strip_quotes(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def split_top_level(text: str) -> list[str]:
    """Split on commas that are not inside quotes, brackets or braces."""
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    quote = ""
    last = ""
    for char in text:
        if quote:
            if char == quote:
                quote = ""
        elif char in "\"'" and last in {"", ",", ":", "[", "{"}:
            quote = char
        elif char in "[{":
            depth += 1
        elif char in "]}":
            depth -= 1
        elif char == "," and depth == 0:
            parts.append("".join(current))
            current = []
            last = ","
            continue
        current.append(char)
        if not char.isspace():
            last = char
    parts.append("".join(current))
    return parts


def parse_inline_mapping(text: str) -> dict[str, str]:
    mapping = {}
    for part in split_top_level(text):
        if ":" not in part:
            continue
        key, value = part.split(":", 1)
        key = normalize_key(strip_quotes(key))
        if key:
            mapping[key] = strip_quotes(value)
    return mapping


def parse_list(value: str) -> list:
    value = value.strip()
    if value.startswith("[") and value.endswith("]"):
        value = value[1:-1]
    items: list = []
    for part in split_top_level(value):
        part = part.strip()
        if not part:
            continue
        if part.startswith("{") and part.endswith("}"):
            items.append(parse_inline_mapping(part[1:-1]))
        else:
            item = strip_quotes(part)
            if item:
                items.append(item)
    return items


def parse_value(value: str):
    value = value.strip()
    if value.startswith("[") and value.endswith("]"):
        return parse_list(value)
    return strip_quotes(value)


def split_front_matter(text: str) -> tuple[Optional[list[str]], str]:
    clean_text = text.lstrip("\ufeff")
    lines = clean_text.splitlines()
    if not lines or lines[0].strip() != FRONT_MATTER_MARKER:
        return None, clean_text
    for i in range(1, len(lines)):
        if lines[i].strip() == FRONT_MATTER_MARKER:
            return lines[1:i], "\n".join(lines[i + 1 :])
    return None, clean_text


def parse_meta_lines(lines: list[str]) -> dict:
    meta: dict = {}
    block_key = None
    current_item: Optional[dict] = None
    for raw_line in lines:
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        indented = raw_line[:1] in {" ", "\t"}

        if block_key is not None and (line == "-" or line.startswith("- ")):
            item_text = line[1:].strip()
            if not isinstance(meta[block_key], list):
                meta[block_key] = []
            match = MAPPING_LINE_RE.match(item_text)
            if match:
                current_item = {normalize_key(match.group("key")): strip_quotes(match.group("value") or "")}
                meta[block_key].append(current_item)
            else:
                current_item = None
                if item_text:
                    meta[block_key].append(strip_quotes(item_text))
            continue

        if indented:
            # Continuation of a "- key: value" entry; other indented lines are not supported.
            match = MAPPING_LINE_RE.match(line)
            if current_item is not None and match:
                current_item[normalize_key(match.group("key"))] = strip_quotes(match.group("value") or "")
            continue

        block_key = None
        current_item = None
        if ":" not in line:
            continue
        key, value = line.split(":", 1)
        key = normalize_key(key)
        if not key:
            continue
        value = value.strip()
        if value:
            meta[key] = parse_value(value)
        else:
            meta[key] = ""
            block_key = key
    return meta


def parse_front_matter(text: str) -> tuple[dict, str]:
    lines, body = split_front_matter(text)
    if lines is None:
        return {}, body
    return parse_meta_lines(lines), body


def extract_title(title: str, body: str) -> tuple[str, str]:
    if title:
        return title, body
    lines = body.splitlines()
    for i, line in enumerate(lines):
        stripped = line.strip()
        if stripped.startswith("# "):
            title = stripped[2:].strip() or "Untitled"
            new_body = "\n".join(lines[i + 1 :]).lstrip()
            return title, new_body
        if stripped:
            break
    return "Untitled", body


def parse_date(value: str) -> Optional[dt.datetime]:
    value = (value or "").strip()
    if not value:
        return None
    try:
        parsed = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(dt.timezone.utc).replace(tzinfo=None)
    return parsed


def normalize_list_spacing(text: str) -> str:
    lines = text.splitlines()
    out: list[str] = []
    in_fence = False
    fence_marker = ""
    for line in lines:
        fence_match = FENCE_RE.match(line)
        if fence_match:
            marker = fence_match.group(2)
            if not in_fence:
                in_fence = True
                fence_marker = marker
            elif marker == fence_marker:
                in_fence = False
                fence_marker = ""
            out.append(line)
            continue
        if in_fence:
            out.append(line)
            continue
        list_match = LIST_MARKER_RE.match(line)
        if list_match:
            if not list_match.group("indent"):
                if out and out[-1].strip() and not LIST_MARKER_RE.match(out[-1]):
                    out.append("")
        out.append(line)
    return "\n".join(out)


def count_words(text: str) -> int:
    return len(text.split())


def reading_time(text: str) -> int:
    return max(1, math.ceil(count_words(text) / WORDS_PER_MINUTE))


def _iter_documents(paths: list[Path]) -> Iterator[RawDocument]:
    for path in paths:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceReadError(f"Could not read {path}: {exc}") from exc
        yield RawDocument(path=path, text=text)


def read_documents(posts_dir: Path) -> Iterator[RawDocument]:
    """Lazily read every post source under ``posts_dir``, in path order."""
    if not posts_dir.is_dir():
        raise SourceNotFoundError(f"Posts directory not found: {posts_dir}")
    paths = sorted(
        (path for path in posts_dir.rglob("*") if path.is_file() and path.suffix.lower() in CONTENT_SUFFIXES),
        key=lambda p: p.as_posix(),
    )
    return _iter_documents(paths)
