"""End-to-end builds through build_site."""

import pytest

from conftest import BUILD_TIME

from optiblog.cli import build_site
from optiblog.errors import BuildError, SourceNotFoundError


def snapshot(root):
    return {
        path.relative_to(root).as_posix(): path.read_text(encoding='utf-8')
        for path in sorted(root.rglob('*'))
        if path.is_file()
    }


@pytest.fixture
def sample_posts(write_post):
    write_post('hello-world.md', '''
        ---
        title: "Hello World"
        description: First post
        date: 2025-01-16
        category: SEO Strategy
        tags: [seo, basics]
        ---
        # Hello World

        ## Why it matters

        text
    ''')
    write_post('older.md', '''
        ---
        title: Older Post
        date: 2024-03-01
        category: AI Tools
        ---
        Older body.
    ''')
    write_post('secret.md', '''
        ---
        title: Secret Draft
        date: 2025-05-01
        draft: true
        ---
        Not yet.
    ''')


class TestBuildSite:

    def test_writes_every_artifact(self, sample_posts, build_args, site_dir):
        published = build_site(build_args(), BUILD_TIME)
        assert [post.slug for post in published] == ['hello-world', 'older']
        for name in (
            'blog/index.html',
            'blog/feed.xml',
            'blog/hello-world/index.html',
            'blog/older/index.html',
            'blog/assets/highlight.css',
            'sitemap.xml',
        ):
            assert (site_dir / name).is_file(), name

    def test_drafts_are_absent_everywhere(self, sample_posts, build_args, site_dir):
        build_site(build_args(), BUILD_TIME)
        assert not (site_dir / 'blog' / 'secret').exists()
        for name in ('blog/index.html', 'blog/feed.xml', 'sitemap.xml'):
            text = (site_dir / name).read_text(encoding='utf-8')
            assert 'secret' not in text.lower(), name

    def test_index_lists_newest_first(self, sample_posts, build_args, site_dir):
        build_site(build_args(), BUILD_TIME)
        index = (site_dir / 'blog' / 'index.html').read_text(encoding='utf-8')
        assert index.index('Hello World') < index.index('Older Post')

    def test_rebuild_is_byte_identical(self, sample_posts, build_args, site_dir):
        build_site(build_args(), BUILD_TIME)
        first = snapshot(site_dir)
        build_site(build_args(), BUILD_TIME.replace(month=8))
        second = snapshot(site_dir)

        def without_lastmod(text):
            return '\n'.join(line for line in text.splitlines() if '<lastmod>' not in line)

        assert first.keys() == second.keys()
        for name in first:
            assert without_lastmod(first[name]) == without_lastmod(second[name]), name

    def test_malformed_front_matter_does_not_stop_the_build(self, sample_posts, write_post, build_args, site_dir):
        write_post('broken.md', '---\ntitle: Broken\nno closing marker\n')
        published = build_site(build_args(), BUILD_TIME)
        assert 'broken' in [post.slug for post in published]
        assert (site_dir / 'blog' / 'hello-world' / 'index.html').exists()

    def test_incomplete_faq_does_not_stop_the_build(self, write_post, build_args, site_dir, capsys):
        write_post('ok.md', '---\ntitle: Fine\n---\nBody.\n')
        write_post('faq.md', '---\ntitle: Half FAQ\nfaqs: [{question: "Q1"}]\n---\nBody.\n')
        published = build_site(build_args(), BUILD_TIME)
        assert sorted(post.slug for post in published) == ['faq', 'ok']
        page = (site_dir / 'blog' / 'faq' / 'index.html').read_text(encoding='utf-8')
        assert 'FAQPage' not in page
        assert "faq.md: skipping faqs entry without 'answer'" in capsys.readouterr().err

    def test_render_failure_skips_one_post(self, sample_posts, build_args, site_dir, monkeypatch, capsys):
        from optiblog import pages

        real_render = pages.render_body

        def flaky(body):
            if 'Older body' in body:
                raise ValueError('cannot convert')
            return real_render(body)

        monkeypatch.setattr(pages, 'render_body', flaky)
        published = build_site(build_args(), BUILD_TIME)
        assert [post.slug for post in published] == ['hello-world']
        assert 'older.md' in capsys.readouterr().err
        assert 'older' not in (site_dir / 'blog' / 'feed.xml').read_text(encoding='utf-8')
        assert '/blog/older/' not in (site_dir / 'sitemap.xml').read_text(encoding='utf-8')

    def test_clean_removes_stale_output(self, sample_posts, build_args, site_dir):
        stale = site_dir / 'blog' / 'removed-post'
        stale.mkdir(parents=True)
        (stale / 'index.html').write_text('old', encoding='utf-8')

        build_site(build_args(), BUILD_TIME)
        assert stale.exists()

        build_site(build_args('--clean'), BUILD_TIME)
        assert not stale.exists()
        assert (site_dir / 'blog' / 'hello-world' / 'index.html').exists()

    def test_clean_refuses_to_remove_posts(self, tmp_path, posts_dir, build_args):
        args = build_args('--clean', '--output', str(tmp_path))
        with pytest.raises(BuildError, match='posts directory'):
            build_site(args, BUILD_TIME)
        assert posts_dir.exists()

    def test_missing_posts_dir_writes_nothing(self, tmp_path, build_args, site_dir):
        args = build_args('--posts', str(tmp_path / 'absent'))
        with pytest.raises(SourceNotFoundError):
            build_site(args, BUILD_TIME)
        assert not site_dir.exists()

    def test_empty_posts_dir(self, build_args, site_dir):
        assert build_site(build_args(), BUILD_TIME) == []
        assert 'No posts published yet.' in (site_dir / 'blog' / 'index.html').read_text(encoding='utf-8')
        assert '<item>' not in (site_dir / 'blog' / 'feed.xml').read_text(encoding='utf-8')
