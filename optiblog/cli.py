from __future__ import annotations

import argparse
import datetime as dt
import shutil
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from .config import SiteSettings, load_config, resolve_analytics
from .content import read_documents
from .errors import BuildError
from .models import Post, load_posts
from .pages import build_highlight_css, build_index, build_posts, build_rss, build_sitemap
from .render import load_templates
from .utils import parse_bool, parse_int

FEED_LIMIT = 20


def clean_output_dir(output_dir: Path, posts_dir: Path) -> None:
    if not output_dir.exists():
        return
    output_resolved = output_dir.resolve()
    if output_resolved == Path.cwd().resolve() or output_resolved in Path.cwd().resolve().parents:
        raise BuildError(f"Refusing to clean {output_dir}: it contains the working directory.")
    if posts_dir.resolve().is_relative_to(output_resolved):
        raise BuildError(f"Refusing to clean {output_dir}: it contains the posts directory.")
    shutil.rmtree(output_dir)


def build_site(args: argparse.Namespace, build_time: Optional[dt.datetime] = None) -> list[Post]:
    """Run the whole pipeline once and return the published posts."""
    build_time = build_time or dt.datetime.now()
    posts_dir = Path(args.posts)
    output_dir = Path(args.output)
    sitemap_dir = Path(args.sitemap_dir)
    quiet = parse_bool(getattr(args, "quiet", False))

    def report(message: str) -> None:
        if not quiet:
            print(message)

    settings = dict(getattr(args, "config_values", {}) or {})
    settings.update(site_url=args.site_url, site_name=args.site_name, feed_limit=args.feed_limit)
    site = SiteSettings.from_mapping(settings)
    templates = load_templates(Path(args.templates) if args.templates else None)
    analytics_html = resolve_analytics(args)

    # Every source is read before anything is written.
    posts = load_posts(read_documents(posts_dir))
    report(f"Found {len(posts)} posts")

    if parse_bool(getattr(args, "clean", False)):
        clean_output_dir(output_dir, posts_dir)

    published = build_posts(templates["post.html"], output_dir, posts, site, analytics_html, report)
    build_index(templates["index.html"], output_dir, published, site, analytics_html)
    report(f"Generated: {site.blog_href('index.html')}")
    build_rss(output_dir, published, site)
    report(f"Generated: {site.blog_href('feed.xml')}")
    build_sitemap(sitemap_dir, published, site, build_time)
    report(f"Generated: {sitemap_dir / 'sitemap.xml'}")
    build_highlight_css(output_dir)
    return published


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument(
        "--config",
        default="site.toml",
        help="Path to site config file (TOML/YAML/JSON).",
    )
    pre_args, _ = pre_parser.parse_known_args(argv)
    config = load_config(Path(pre_args.config))

    def cfg_value(key: str, default: object) -> object:
        value = config.get(key)
        return default if value is None else value

    def cfg_str(key: str, default: str) -> str:
        value = cfg_value(key, default)
        return default if value is None else str(value)

    def cfg_bool(key: str, default: bool) -> bool:
        value = cfg_value(key, default)
        return parse_bool(value) if value is not None else default

    def cfg_int(key: str, default: int) -> int:
        value = cfg_value(key, default)
        return parse_int(value, default)

    defaults = SiteSettings()
    parser = argparse.ArgumentParser(description="Build the Optiscale360 blog from Markdown posts.")
    parser.add_argument("--config", default=pre_args.config, help="Path to site config file (TOML/YAML/JSON).")
    parser.add_argument("--posts", default=cfg_str("posts", "content/posts"), help="Directory containing posts.")
    parser.add_argument("--output", default=cfg_str("output", "site/blog"), help="Output directory for the blog.")
    parser.add_argument(
        "--sitemap-dir",
        default=cfg_str("sitemap_dir", "site"),
        help="Directory that receives sitemap.xml (the site root).",
    )
    parser.add_argument(
        "--templates",
        default=cfg_str("templates", ""),
        help="Directory with post.html and index.html overriding the bundled templates.",
    )
    parser.add_argument("--site-url", default=cfg_str("site_url", defaults.site_url), help="Public site URL.")
    parser.add_argument("--site-name", default=cfg_str("site_name", defaults.site_name), help="Site title.")
    parser.add_argument(
        "--feed-limit",
        default=cfg_int("feed_limit", FEED_LIMIT),
        type=int,
        help="Maximum number of posts in feed.xml.",
    )
    parser.add_argument(
        "--clean",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("clean", False),
        help="Remove the output directory before writing.",
    )
    parser.add_argument(
        "--analytics-file",
        default=cfg_str("analytics_file", ""),
        help="Path to analytics HTML snippet file.",
    )
    parser.add_argument(
        "--analytics-html",
        default=cfg_str("analytics_html", ""),
        help="Inline analytics HTML snippet.",
    )
    parser.add_argument(
        "--quiet",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("quiet", False),
        help="Only print warnings and errors.",
    )
    args = parser.parse_args(argv)
    args.config_values = config
    return args


def main(argv: Optional[Sequence[str]] = None) -> int:
    start = time.perf_counter()
    try:
        args = parse_args(argv)
        published = build_site(args)
    except (BuildError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    elapsed = time.perf_counter() - start
    if not args.quiet:
        print(f"Build completed in {elapsed:.2f}s.")
        print(f"Published {len(published)} posts to: {args.output}")
    return 0
