"""
schema.org JSON-LD for post pages.

Each object is a standalone document with its own ``@context``; pages embed
them as separate ``<script type="application/ld+json">`` blocks rather than
one ``@graph``.
"""

from __future__ import annotations

from .config import SiteSettings
from .models import Post, Review
from .render import script_json

SCHEMA_CONTEXT = "https://schema.org"
ARTICLE_BODY_LIMIT = 500


def is_how_to(post: Post) -> bool:
    front_matter = post.front_matter
    return front_matter.type.lower() == "how-to" or front_matter.schema == "HowTo"


def is_service(post: Post) -> bool:
    front_matter = post.front_matter
    return front_matter.category.lower() == "service" or front_matter.schema == "Service"


def author_schema(post: Post, site: SiteSettings) -> dict:
    return {
        "@type": "Person",
        "name": post.front_matter.author or site.default_author,
        "url": site.author_url,
        "email": site.author_email,
        "jobTitle": site.author_job_title,
        "worksFor": {"@type": "Organization", "name": site.site_name},
        "sameAs": list(site.social_profiles),
    }


def blog_posting(post: Post, site: SiteSettings) -> dict:
    front_matter = post.front_matter
    article_body = post.body[:ARTICLE_BODY_LIMIT]
    if len(post.body) > ARTICLE_BODY_LIMIT:
        article_body += "..."
    data = {
        "@context": SCHEMA_CONTEXT,
        "@type": "BlogPosting",
        "headline": post.title,
        "description": post.description,
        "image": front_matter.image or site.logo_url,
        "author": author_schema(post, site),
        "publisher": {
            "@type": "Organization",
            "name": site.site_name,
            "logo": {"@type": "ImageObject", "url": site.logo_url},
        },
        "mainEntityOfPage": {"@type": "WebPage", "@id": site.post_url(post.slug)},
        "url": site.post_url(post.slug),
        "wordCount": post.word_count,
        "timeRequired": f"PT{post.reading_time}M",
        "articleSection": post.category or site.default_category,
        "articleBody": article_body,
        "keywords": ", ".join(post.tags),
        "inLanguage": site.language,
        "isAccessibleForFree": True,
    }
    if front_matter.date:
        data["datePublished"] = front_matter.date
        data["dateModified"] = front_matter.updated or front_matter.date
    return data


def how_to(post: Post, site: SiteSettings) -> dict:
    front_matter = post.front_matter
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "HowTo",
        "name": post.title,
        "description": post.description,
        "image": front_matter.image or site.logo_url,
        "totalTime": front_matter.total_time or "PT30M",
        "estimatedCost": {
            "@type": "MonetaryAmount",
            "currency": "USD",
            "value": front_matter.cost or "0",
        },
        "step": [
            {"@type": "HowToStep", "position": position, "name": step.name, "text": step.text}
            for position, step in enumerate(front_matter.steps, start=1)
        ],
    }


def faq_page(post: Post) -> dict:
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "FAQPage",
        "mainEntity": [
            {
                "@type": "Question",
                "name": faq.question,
                "acceptedAnswer": {"@type": "Answer", "text": faq.answer},
            }
            for faq in post.front_matter.faqs
        ],
    }


def service(post: Post, site: SiteSettings) -> dict:
    front_matter = post.front_matter
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "Service",
        "name": front_matter.service_name or post.title,
        "description": post.description,
        "provider": {"@type": "Organization", "name": site.site_name, "url": site.site_url},
        "areaServed": "Worldwide",
        "serviceType": front_matter.service_type or "SEO Consulting",
    }


def review(item: Review, post: Post, site: SiteSettings) -> dict:
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "Review",
        "itemReviewed": {
            "@type": item.item_type,
            "name": item.item_name,
            "description": item.item_description,
            "url": item.item_url,
        },
        "reviewRating": {
            "@type": "Rating",
            "ratingValue": item.rating,
            "bestRating": "5",
            "worstRating": "1",
        },
        "author": author_schema(post, site),
        "reviewBody": item.body,
    }


def item_list(post: Post) -> dict:
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "ItemList",
        "itemListElement": [
            {
                "@type": "ListItem",
                "position": position,
                "name": item.name,
                "description": item.description,
                "url": item.url,
            }
            for position, item in enumerate(post.front_matter.list_items, start=1)
        ],
    }


def organization(site: SiteSettings) -> dict:
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "Organization",
        "name": site.site_name,
        "url": site.site_url,
        "logo": site.logo_url,
        "description": site.organization_description,
        "sameAs": list(site.social_profiles),
    }


def breadcrumb_list(post: Post, site: SiteSettings) -> dict:
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "BreadcrumbList",
        "itemListElement": [
            {"@type": "ListItem", "position": 1, "name": "Home", "item": site.site_url},
            {"@type": "ListItem", "position": 2, "name": "Blog", "item": site.blog_url},
            {"@type": "ListItem", "position": 3, "name": post.title, "item": site.post_url(post.slug)},
        ],
    }


def build_structured_data(post: Post, site: SiteSettings) -> list[dict]:
    objects = [blog_posting(post, site)]
    if is_how_to(post):
        objects.append(how_to(post, site))
    if post.front_matter.faqs:
        objects.append(faq_page(post))
    if is_service(post):
        objects.append(service(post, site))
    objects.extend(review(item, post, site) for item in post.front_matter.reviews)
    if post.front_matter.list_items:
        objects.append(item_list(post))
    objects.append(organization(site))
    objects.append(breadcrumb_list(post, site))
    return objects


def render_json_ld(objects: list[dict]) -> str:
    return "\n".join(
        f'<script type="application/ld+json">\n{script_json(data)}\n</script>' for data in objects
    )
