from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path

import yaml

from .errors import ConfigError
from .utils import join_url, parse_int, warn

DEFAULT_NAV = [
    ("Home", "/"),
    ("Services", "/services.html"),
    ("Case Studies", "/case-studies.html"),
    ("Blog", "/blog/"),
    ("Contact", "/contact.html"),
]


def load_config(path: Path) -> dict:
    if not path.exists():
        return {}
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix == ".toml":
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc
    elif suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in config file {path}: {exc}") from exc
        if data is None:
            return {}
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {path}")
    return data


def parse_nav(value: object) -> list[tuple[str, str]]:
    if not isinstance(value, list):
        return list(DEFAULT_NAV)
    links = []
    for entry in value:
        if isinstance(entry, dict) and entry.get("label") and entry.get("href"):
            links.append((str(entry["label"]), str(entry["href"])))
        elif isinstance(entry, (list, tuple)) and len(entry) == 2:
            links.append((str(entry[0]), str(entry[1])))
        else:
            raise ConfigError(f"Invalid nav entry: {entry!r}")
    return links


@dataclass
class SiteSettings:
    """Site-wide values shared by every page, feed and JSON-LD block."""

    site_url: str = "https://optiscale360.pages.dev"
    site_name: str = "OptiScale 360"
    site_description: str = "AI SEO insights and strategies from OptiScale 360"
    organization_description: str = (
        "AI-powered SEO agency delivering more organic traffic through LLM-driven optimization strategies."
    )
    blog_path: str = "blog"
    default_author: str = "OptiScale 360 Team"
    author_email: str = "info@optiscale360.com"
    author_url: str = "https://optiscale360.pages.dev/about.html"
    author_job_title: str = "SEO Consultant"
    default_category: str = "SEO Strategy"
    logo: str = "360_logo.svg"
    stylesheet: str = "/styles.css"
    twitter_handle: str = "@optiscale360"
    social_profiles: list[str] = field(
        default_factory=lambda: [
            "https://twitter.com/optiscale360",
            "https://linkedin.com/company/optiscale360",
        ]
    )
    nav: list[tuple[str, str]] = field(default_factory=lambda: list(DEFAULT_NAV))
    language: str = "en-US"
    feed_limit: int = 20

    @classmethod
    def from_mapping(cls, values: dict) -> "SiteSettings":
        settings = cls()
        for item in fields(cls):
            value = values.get(item.name)
            if value is None:
                continue
            if item.name == "nav":
                settings.nav = parse_nav(value)
            elif item.name == "social_profiles":
                settings.social_profiles = [str(v) for v in value] if isinstance(value, list) else [str(value)]
            elif item.name == "feed_limit":
                settings.feed_limit = max(1, parse_int(value, settings.feed_limit))
            else:
                setattr(settings, item.name, str(value))
        settings.blog_path = settings.blog_path.strip("/")
        return settings

    @property
    def blog_url(self) -> str:
        return join_url(self.site_url, self.blog_path) + "/"

    @property
    def feed_url(self) -> str:
        return join_url(self.site_url, f"{self.blog_path}/feed.xml")

    @property
    def logo_url(self) -> str:
        if self.logo.startswith(("http://", "https://")):
            return self.logo
        return join_url(self.site_url, self.logo)

    def post_url(self, slug: str) -> str:
        return join_url(self.site_url, f"{self.blog_path}/{slug}") + "/"

    def blog_href(self, path: str = "") -> str:
        prefix = f"/{self.blog_path}/" if self.blog_path else "/"
        return prefix + path.lstrip("/")


def resolve_analytics(args: object) -> str:
    html_snippet = (getattr(args, "analytics_html", "") or "").strip()
    if html_snippet:
        return html_snippet
    file_value = (getattr(args, "analytics_file", "") or "").strip()
    if not file_value:
        return ""
    path = Path(file_value)
    if not path.is_absolute():
        config_path = Path(getattr(args, "config", "site.toml")).resolve()
        path = config_path.parent / path
    if not path.exists():
        warn(f"Analytics file not found: {path}")
        return ""
    return path.read_text(encoding="utf-8")
