"""
Pytest configuration and shared fixtures
"""

import datetime as dt
import textwrap
from pathlib import Path

import pytest

from optiblog.cli import parse_args
from optiblog.config import SiteSettings
from optiblog.content import RawDocument
from optiblog.models import build_post

BUILD_TIME = dt.datetime(2025, 7, 1, 12, 0)


def make_post(text, name="post.md"):
    """Build a Post straight from source text."""
    return build_post(RawDocument(path=Path("posts") / name, text=textwrap.dedent(text).lstrip()))


@pytest.fixture
def posts_dir(tmp_path):
    path = tmp_path / "posts"
    path.mkdir()
    return path


@pytest.fixture
def write_post(posts_dir):
    def _write(name, text):
        path = posts_dir / name
        path.write_text(textwrap.dedent(text).lstrip(), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def site():
    return SiteSettings(site_url="https://example.com")


@pytest.fixture
def site_dir(tmp_path):
    return tmp_path / "site"


@pytest.fixture
def build_args(tmp_path, posts_dir, site_dir):
    def _args(*extra):
        return parse_args([
            "--config", str(tmp_path / "missing.toml"),
            "--posts", str(posts_dir),
            "--output", str(site_dir / "blog"),
            "--sitemap-dir", str(site_dir),
            "--site-url", "https://example.com",
            "--quiet",
            *extra,
        ])
    return _args
