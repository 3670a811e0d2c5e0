"""
Typed post records built from parsed front matter.

Front matter arrives as a loose mapping of strings and lists. Everything the
renderer needs is lifted into ``FrontMatter`` here so the rest of the build
never reads raw keys; unknown keys are reported and dropped.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Iterable, Optional

from .content import (
    RawDocument,
    count_words,
    extract_title,
    parse_date,
    parse_front_matter,
    parse_list,
    reading_time,
    slugify,
)
from .utils import parse_bool, warn

OLDEST = dt.datetime.min


@dataclass
class Faq:
    question: str
    answer: str


@dataclass
class Step:
    name: str
    text: str


@dataclass
class ListItem:
    name: str
    description: str = ""
    url: str = ""


@dataclass
class Review:
    item_name: str
    item_type: str = "SoftwareApplication"
    item_description: str = ""
    item_url: str = ""
    rating: str = ""
    body: str = ""


def _text(value: object) -> str:
    if value is None or isinstance(value, dict):
        return ""
    if isinstance(value, list):
        return ", ".join(str(item) for item in value if not isinstance(item, dict))
    return str(value).strip()


def _string_list(value: object) -> list[str]:
    if isinstance(value, list):
        return [str(item).strip() for item in value if not isinstance(item, dict) and str(item).strip()]
    if isinstance(value, str):
        return [str(item) for item in parse_list(value) if not isinstance(item, dict)]
    return []


def _records(value: object, record_type: type, required: tuple[str, ...], source: str, key: str) -> list:
    if not isinstance(value, list):
        return []
    names = {f.name for f in fields(record_type)}
    records = []
    for entry in value:
        missing = [name for name in required if not isinstance(entry, dict) or not entry.get(name)]
        if missing:
            warn(f"{source}: skipping {key} entry without '{missing[0]}'")
            continue
        records.append(record_type(**{k: v for k, v in entry.items() if k in names}))
    return records


def _steps(value: object, source: str) -> list[Step]:
    if not isinstance(value, list):
        return []
    steps = []
    for entry in value:
        if isinstance(entry, dict):
            name = entry.get("name", "")
            text = entry.get("text", "") or name
            if not (name or text):
                warn(f"{source}: skipping empty steps entry")
                continue
            steps.append(Step(name=name or text, text=text))
        elif str(entry).strip():
            steps.append(Step(name=str(entry), text=str(entry)))
    return steps


@dataclass
class FrontMatter:
    """Recognized post metadata. Every field is optional."""

    title: str = ""
    description: str = ""
    date: str = ""
    updated: str = ""
    author: str = ""
    category: str = ""
    tags: list[str] = field(default_factory=list)
    image: str = ""
    draft: bool = False
    type: str = ""
    schema: str = ""
    faqs: list[Faq] = field(default_factory=list)
    steps: list[Step] = field(default_factory=list)
    slug: str = ""
    total_time: str = ""
    cost: str = ""
    service_name: str = ""
    service_type: str = ""
    list_items: list[ListItem] = field(default_factory=list)
    reviews: list[Review] = field(default_factory=list)

    @classmethod
    def from_meta(cls, meta: dict, source: str = "") -> "FrontMatter":
        known = {f.name for f in fields(cls)}
        for key in meta:
            if key not in known:
                warn(f"{source}: ignoring unrecognized front matter key '{key}'")
        values = {key: meta[key] for key in meta if key in known}
        front_matter = cls()
        for key in known - {"tags", "draft", "faqs", "steps", "list_items", "reviews"}:
            if key in values:
                setattr(front_matter, key, _text(values[key]))
        front_matter.tags = _string_list(values.get("tags"))
        front_matter.draft = parse_bool(values.get("draft"))
        front_matter.faqs = _records(values.get("faqs"), Faq, ("question", "answer"), source, "faqs")
        front_matter.steps = _steps(values.get("steps"), source)
        front_matter.list_items = _records(values.get("list_items"), ListItem, ("name",), source, "list_items")
        front_matter.reviews = _records(values.get("reviews"), Review, ("item_name",), source, "reviews")
        return front_matter


@dataclass
class Post:
    slug: str
    front_matter: FrontMatter
    body: str
    source: Path
    word_count: int = 0
    reading_time: int = 1
    date: Optional[dt.datetime] = None

    @property
    def title(self) -> str:
        return self.front_matter.title

    @property
    def description(self) -> str:
        return self.front_matter.description

    @property
    def category(self) -> str:
        return self.front_matter.category

    @property
    def tags(self) -> list[str]:
        return self.front_matter.tags


def build_post(document: RawDocument) -> Optional[Post]:
    """Turn one source document into a Post, or None when it is a draft."""
    meta, raw_body = parse_front_matter(document.text)
    front_matter = FrontMatter.from_meta(meta, document.filename)
    if front_matter.draft:
        return None
    title, body = extract_title(front_matter.title, raw_body)
    front_matter.title = title
    date = parse_date(front_matter.date)
    if front_matter.date and date is None:
        warn(f"{document.filename}: unparsable date '{front_matter.date}', sorting as oldest")
    return Post(
        slug=slugify(front_matter.slug or document.path.stem),
        front_matter=front_matter,
        body=body,
        source=document.path,
        word_count=count_words(raw_body),
        reading_time=reading_time(raw_body),
        date=date,
    )


def assign_unique_slugs(posts: list[Post]) -> None:
    used: set[str] = set()
    for post in posts:
        slug = post.slug
        counter = 2
        while slug in used:
            slug = f"{post.slug}-{counter}"
            counter += 1
        if slug != post.slug:
            warn(f"{post.source.name}: slug '{post.slug}' already used, publishing as '{slug}'")
            post.slug = slug
        used.add(slug)


def sort_posts(posts: Iterable[Post]) -> list[Post]:
    """Newest first; undated posts last; ties broken by slug."""
    ordered = sorted(posts, key=lambda p: p.slug)
    ordered.sort(key=lambda p: p.date or OLDEST, reverse=True)
    return ordered


def load_posts(documents: Iterable[RawDocument]) -> list[Post]:
    posts = []
    for document in documents:
        post = build_post(document)
        if post is not None:
            posts.append(post)
    assign_unique_slugs(posts)
    return sort_posts(posts)
