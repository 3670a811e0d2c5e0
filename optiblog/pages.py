from __future__ import annotations

import datetime as dt
import html
from pathlib import Path
from typing import Callable

from .config import SiteSettings
from .content import slugify
from .errors import RenderError
from .models import Post
from .render import (
    cdata,
    highlight_css,
    render_body,
    render_template,
    script_json,
    strip_tags,
    toc_from_headings,
    write_text,
)
from .schema import build_structured_data, render_json_ld
from .utils import join_url, long_date, rfc822_date, url_component, warn

EXCERPT_LENGTH = 200
SHARE_LINKS = (
    ("twitter", "Twitter", "https://twitter.com/intent/tweet?url={url}&text={title}"),
    ("linkedin", "LinkedIn", "https://www.linkedin.com/sharing/share-offsite/?url={url}"),
    ("facebook", "Facebook", "https://www.facebook.com/sharer/sharer.php?u={url}"),
)
PRIORITY_HOME = "1.0"
PRIORITY_PAGE = "0.9"
PRIORITY_POST = "0.8"


def category_label(post: Post, site: SiteSettings) -> str:
    return post.category or site.default_category


def category_map(posts: list[Post], site: SiteSettings) -> dict[str, str]:
    """Filter key -> display label; the first label seen for a key wins."""
    categories: dict[str, str] = {}
    for post in posts:
        label = category_label(post, site)
        categories.setdefault(slugify(label, fallback="uncategorized"), label)
    return categories


def post_excerpt(post: Post) -> str:
    if post.description:
        return post.description
    text = " ".join(strip_tags(post.body).split())
    return text[:EXCERPT_LENGTH] + ("..." if len(text) > EXCERPT_LENGTH else "")


def render_nav(site: SiteSettings, active_href: str = "") -> str:
    items = []
    for label, href in site.nav:
        active = ' class="nav-link active"' if href == active_href else ' class="nav-link"'
        items.append(f'<li class="nav-tab"><a href="{html.escape(href)}"{active}>{html.escape(label)}</a></li>')
    return "".join(items)


def render_breadcrumb(post: Post, site: SiteSettings) -> str:
    return (
        '<a href="/">Home</a>'
        "<span>&rsaquo;</span>"
        f'<a href="{site.blog_href()}">Blog</a>'
        "<span>&rsaquo;</span>"
        f"<span>{html.escape(post.title)}</span>"
    )


def render_date(post: Post) -> str:
    if post.date is None:
        return ""
    return f'<time class="post-date" datetime="{post.date.date().isoformat()}">{long_date(post.date)}</time>'


def render_tags(tags: list[str]) -> str:
    if not tags:
        return ""
    chips = "".join(f'<span class="tag">{html.escape(tag)}</span>' for tag in tags)
    return f'<div class="blog-post-tags">{chips}</div>'


def render_article_meta(post: Post, site: SiteSettings) -> str:
    front_matter = post.front_matter
    lines = []
    if front_matter.date:
        lines.append(f'<meta property="article:published_time" content="{html.escape(front_matter.date)}">')
        modified = front_matter.updated or front_matter.date
        lines.append(f'<meta property="article:modified_time" content="{html.escape(modified)}">')
    lines.append(f'<meta property="article:section" content="{html.escape(category_label(post, site))}">')
    for tag in post.tags:
        lines.append(f'<meta property="article:tag" content="{html.escape(tag)}">')
    return "\n    ".join(lines)


def render_share_links(post: Post, site: SiteSettings) -> str:
    url = url_component(site.post_url(post.slug))
    title = url_component(post.title)
    links = []
    for network, label, pattern in SHARE_LINKS:
        href = pattern.format(url=url, title=title)
        links.append(
            f'<a href="{html.escape(href)}" target="_blank" rel="noopener" '
            f'class="share-btn share-{network}" title="Share on {label}">{label}</a>'
        )
    return "".join(links)


def render_toc_panel(toc_html: str) -> str:
    if not toc_html:
        return ""
    return f'<div class="table-of-contents"><h3>Table of Contents</h3>{toc_html}</div>'


def render_post_page(template: str, post: Post, site: SiteSettings, analytics_html: str = "") -> str:
    try:
        content_html, headings = render_body(post.body)
        toc_html = toc_from_headings(headings)
    except Exception as exc:
        raise RenderError(post.source.name, str(exc) or exc.__class__.__name__) from exc

    category = category_label(post, site)
    canonical = site.post_url(post.slug)
    return render_template(
        template,
        lang=html.escape(site.language),
        analytics=analytics_html,
        title=html.escape(f"{post.title} | {site.site_name}"),
        post_title=html.escape(post.title),
        description=html.escape(post.description),
        keywords=html.escape(", ".join(post.tags)),
        author=html.escape(post.front_matter.author or site.default_author),
        canonical=html.escape(canonical),
        image=html.escape(post.front_matter.image or site.logo_url),
        site_name=html.escape(site.site_name),
        article_meta=render_article_meta(post, site),
        twitter_handle=html.escape(site.twitter_handle),
        feed_url=html.escape(site.feed_url),
        stylesheet=html.escape(site.stylesheet),
        highlight_css=html.escape(site.blog_href("assets/highlight.css")),
        json_ld=render_json_ld(build_structured_data(post, site)),
        nav=render_nav(site, site.blog_href()),
        breadcrumb=render_breadcrumb(post, site),
        category=html.escape(category),
        category_slug=slugify(category, fallback="uncategorized"),
        date_html=render_date(post),
        reading_time=f"{post.reading_time} min read",
        tags_html=render_tags(post.tags),
        toc=render_toc_panel(toc_html),
        content=content_html,
        share_html=render_share_links(post, site),
    )


def render_post_card(post: Post, site: SiteSettings) -> str:
    category = category_label(post, site)
    url = html.escape(site.blog_href(f"{post.slug}/"))
    return (
        f'<article class="blog-card" data-category="{slugify(category, fallback="uncategorized")}">'
        '<div class="blog-card-meta">'
        f'<span class="post-category">{html.escape(category)}</span>'
        f"{render_date(post)}"
        f'<span class="post-reading-time">{post.reading_time} min read</span>'
        "</div>"
        f'<h2 class="blog-card-title"><a href="{url}">{html.escape(post.title)}</a></h2>'
        f'<p class="blog-card-excerpt">{html.escape(post_excerpt(post))}</p>'
        f'<a class="blog-card-more" href="{url}">Read more</a>'
        "</article>"
    )


def render_category_filters(posts: list[Post], site: SiteSettings) -> str:
    buttons = ['<button class="filter-btn is-active" data-filter="all">All</button>']
    for key, label in category_map(posts, site).items():
        buttons.append(f'<button class="filter-btn" data-filter="{key}">{html.escape(label)}</button>')
    return "".join(buttons)


def posts_data(posts: list[Post], site: SiteSettings) -> list[dict]:
    data = []
    for post in posts:
        category = category_label(post, site)
        data.append(
            {
                "slug": post.slug,
                "url": site.blog_href(f"{post.slug}/"),
                "title": post.title,
                "description": post_excerpt(post),
                "date": post.date.date().isoformat() if post.date else "",
                "category": category,
                "categorySlug": slugify(category, fallback="uncategorized"),
                "tags": post.tags,
                "author": post.front_matter.author or site.default_author,
                "readingTime": post.reading_time,
                "image": post.front_matter.image or site.logo_url,
            }
        )
    return data


def render_index_page(template: str, posts: list[Post], site: SiteSettings, analytics_html: str = "") -> str:
    if posts:
        cards = "\n".join(render_post_card(post, site) for post in posts)
    else:
        cards = '<p class="blog-empty">No posts published yet.</p>'
    return render_template(
        template,
        lang=html.escape(site.language),
        analytics=analytics_html,
        title=html.escape(f"Blog | {site.site_name}"),
        description=html.escape(site.site_description),
        canonical=html.escape(site.blog_url),
        site_name=html.escape(site.site_name),
        feed_url=html.escape(site.feed_url),
        stylesheet=html.escape(site.stylesheet),
        nav=render_nav(site, site.blog_href()),
        filters=render_category_filters(posts, site),
        content=cards,
        posts_json=script_json(posts_data(posts, site)),
    )


def render_feed(posts: list[Post], site: SiteSettings) -> str:
    dates = [post.date for post in posts if post.date is not None]
    items = []
    for post in posts[: site.feed_limit]:
        link = html.escape(site.post_url(post.slug))
        author = post.front_matter.author or site.default_author
        lines = [
            "    <item>",
            f"        <title>{cdata(post.title)}</title>",
            f"        <description>{cdata(post.description)}</description>",
            f"        <link>{link}</link>",
            f'        <guid isPermaLink="true">{link}</guid>',
        ]
        if post.date is not None:
            lines.append(f"        <pubDate>{rfc822_date(post.date)}</pubDate>")
        lines.append(f"        <author>{html.escape(f'{site.author_email} ({author})')}</author>")
        if post.category:
            lines.append(f"        <category>{html.escape(post.category)}</category>")
        lines.append("    </item>")
        items.append("\n".join(lines))
    channel = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<rss version="2.0" xmlns:atom="http://www.w3.org/2005/Atom">',
        "<channel>",
        f"    <title>{html.escape(site.site_name)} Blog</title>",
        f"    <description>{html.escape(site.site_description)}</description>",
        f"    <link>{html.escape(site.blog_url)}</link>",
        f"    <language>{html.escape(site.language.lower())}</language>",
    ]
    if dates:
        channel.append(f"    <lastBuildDate>{rfc822_date(max(dates))}</lastBuildDate>")
    channel.append(f'    <atom:link href="{html.escape(site.feed_url)}" rel="self" type="application/rss+xml"/>')
    channel.extend(items)
    channel.extend(["</channel>", "</rss>", ""])
    return "\n".join(channel)


def sitemap_urls(posts: list[Post], site: SiteSettings) -> list[tuple[str, str]]:
    home = site.site_url.rstrip("/") + "/"
    urls = [(home, PRIORITY_HOME)]
    seen = {home}
    for _, href in site.nav:
        if href.startswith(("http://", "https://", "#", "mailto:")):
            continue
        url = join_url(site.site_url, href) if href.strip("/") else home
        if url.rstrip("/") + "/" == home or url in seen:
            continue
        urls.append((url, PRIORITY_PAGE))
        seen.add(url)
    if site.blog_url not in seen:
        urls.append((site.blog_url, PRIORITY_PAGE))
        seen.add(site.blog_url)
    for post in posts:
        urls.append((site.post_url(post.slug), PRIORITY_POST))
    return urls


def render_sitemap(posts: list[Post], site: SiteSettings, build_time: dt.datetime) -> str:
    lastmod = build_time.date().isoformat()
    entries = []
    for url, priority in sitemap_urls(posts, site):
        entries.append(
            "\n".join(
                [
                    "    <url>",
                    f"        <loc>{html.escape(url)}</loc>",
                    f"        <lastmod>{lastmod}</lastmod>",
                    "        <changefreq>weekly</changefreq>",
                    f"        <priority>{priority}</priority>",
                    "    </url>",
                ]
            )
        )
    return "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
            *entries,
            "</urlset>",
            "",
        ]
    )


def build_posts(
    template: str,
    output_dir: Path,
    posts: list[Post],
    site: SiteSettings,
    analytics_html: str = "",
    report: Callable[[str], None] = print,
) -> list[Post]:
    """Write one page per post; returns the posts that rendered."""
    published = []
    for post in posts:
        try:
            html_doc = render_post_page(template, post, site, analytics_html)
        except RenderError as exc:
            warn(f"skipping {exc.source}: {exc.reason}")
            continue
        write_text(output_dir / post.slug / "index.html", html_doc)
        report(f"Generated: {site.blog_href(post.slug)}/")
        published.append(post)
    return published


def build_index(
    template: str, output_dir: Path, posts: list[Post], site: SiteSettings, analytics_html: str = ""
) -> None:
    write_text(output_dir / "index.html", render_index_page(template, posts, site, analytics_html))


def build_rss(output_dir: Path, posts: list[Post], site: SiteSettings) -> None:
    write_text(output_dir / "feed.xml", render_feed(posts, site))


def build_sitemap(sitemap_dir: Path, posts: list[Post], site: SiteSettings, build_time: dt.datetime) -> None:
    write_text(sitemap_dir / "sitemap.xml", render_sitemap(posts, site, build_time))


def build_highlight_css(output_dir: Path) -> None:
    write_text(output_dir / "assets" / "highlight.css", highlight_css())
