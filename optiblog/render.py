from __future__ import annotations

import html
import json
import re
from dataclasses import dataclass
from pathlib import Path

import markdown
from pygments.formatters import HtmlFormatter

from .content import normalize_list_spacing, slugify
from .errors import BuildError

TEMPLATES_DIR = Path(__file__).parent / "templates"
TEMPLATE_NAMES = ("post.html", "index.html")
HIGHLIGHT_CSS_CLASS = "highlight"
HIGHLIGHT_STYLE = "github-dark"
TOC_MIN_LEVEL = 2
TOC_MAX_LEVEL = 4

TAG_RE = re.compile(r"<[^>]+>")
PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")


@dataclass
class Heading:
    level: int
    text: str
    anchor: str


def strip_tags(html_text: str) -> str:
    return TAG_RE.sub("", html_text)


def heading_id(value: str, separator: str = "-") -> str:
    return slugify(value, fallback="section").replace("-", separator)


def flatten_toc_tokens(tokens: list[dict]) -> list[Heading]:
    """Walk the nested ``toc_tokens`` tree back into document order."""
    headings = []
    for token in tokens:
        text = html.unescape(strip_tags(token["name"])).strip()
        headings.append(Heading(level=token["level"], text=text, anchor=token["id"]))
        headings.extend(flatten_toc_tokens(token.get("children", [])))
    return headings


def render_body(body: str) -> tuple[str, list[Heading]]:
    """Convert a post body and return its HTML with the headings Markdown rendered."""
    md = markdown.Markdown(
        extensions=["fenced_code", "codehilite", "tables", "attr_list", "toc"],
        extension_configs={
            "codehilite": {"css_class": HIGHLIGHT_CSS_CLASS, "guess_lang": False},
            "toc": {"slugify": heading_id},
        },
    )
    content = md.convert(normalize_list_spacing(body))
    return content, flatten_toc_tokens(md.toc_tokens)


def convert_markdown(body: str) -> str:
    return render_body(body)[0]


def scan_headings(body: str) -> list[Heading]:
    return render_body(body)[1]


def toc_from_headings(headings: list[Heading]) -> str:
    headings = [h for h in headings if TOC_MIN_LEVEL <= h.level <= TOC_MAX_LEVEL]
    if not headings:
        return ""
    parts = ['<ul class="toc-list">']
    current_level = TOC_MIN_LEVEL
    open_lists = 0
    for heading in headings:
        # One nesting step per heading, even when levels are skipped.
        if heading.level > current_level:
            parts.append("<ul>")
            open_lists += 1
        elif heading.level < current_level and open_lists:
            parts.append("</ul>")
            open_lists -= 1
        parts.append(f'<li><a href="#{html.escape(heading.anchor)}">{html.escape(heading.text)}</a></li>')
        current_level = heading.level
    parts.append("</ul>" * open_lists)
    parts.append("</ul>")
    return "".join(parts)


def build_toc(body: str) -> str:
    return toc_from_headings(scan_headings(body))


def highlight_css() -> str:
    formatter = HtmlFormatter(style=HIGHLIGHT_STYLE, cssclass=HIGHLIGHT_CSS_CLASS)
    return formatter.get_style_defs(f".{HIGHLIGHT_CSS_CLASS}")


def cdata(text: str) -> str:
    return "<![CDATA[" + text.replace("]]>", "]]]]><![CDATA[>") + "]]>"


def script_json(data: object) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False).replace("</", "<\\/")


def render_template(template: str, **context: str) -> str:
    """Fill ``{{key}}`` placeholders in one pass; inserted values are never rescanned."""
    return PLACEHOLDER_RE.sub(lambda m: context.get(m.group(1), m.group(0)), template)


def load_templates(templates_dir: Path | None = None) -> dict[str, str]:
    templates_dir = templates_dir or TEMPLATES_DIR
    templates = {}
    for name in TEMPLATE_NAMES:
        path = templates_dir / name
        if not path.is_file():
            raise BuildError(f"Template not found: {path}")
        templates[name] = path.read_text(encoding="utf-8")
    return templates


def write_text(path: Path, text: str) -> None:
    """Overwrite ``path`` with ``text``, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="\n") as handle:
        handle.write(text)
