"""Tests for schema.py: JSON-LD objects per post."""

import json
import re

from conftest import make_post

from optiblog.schema import build_structured_data, render_json_ld


def types(post, site):
    return [data['@type'] for data in build_structured_data(post, site)]


class TestStructuredData:

    def test_plain_post(self, site):
        post = make_post('---\ntitle: Plain\ndate: 2025-01-16\n---\ntext')
        assert types(post, site) == ['BlogPosting', 'Organization', 'BreadcrumbList']

    def test_blog_posting_fields(self, site):
        post = make_post('---\ntitle: Plain\ndate: 2025-01-16\ntags: [a, b]\n---\ntext', name='plain.md')
        posting = build_structured_data(post, site)[0]
        assert posting['headline'] == 'Plain'
        assert posting['datePublished'] == '2025-01-16'
        assert posting['dateModified'] == '2025-01-16'
        assert posting['url'] == 'https://example.com/blog/plain/'
        assert posting['keywords'] == 'a, b'
        assert posting['articleSection'] == site.default_category

    def test_undated_post_has_no_publish_date(self, site):
        posting = build_structured_data(make_post('---\ntitle: U\n---\ntext'), site)[0]
        assert 'datePublished' not in posting

    def test_article_body_is_truncated(self, site):
        posting = build_structured_data(make_post('---\ntitle: Long\n---\n' + 'x' * 600), site)[0]
        assert posting['articleBody'] == 'x' * 500 + '...'

    def test_faq_page(self, site):
        post = make_post('---\ntitle: F\nfaqs: [{question:"Q1",answer:"A1"}]\n---\ntext')
        faq = next(d for d in build_structured_data(post, site) if d['@type'] == 'FAQPage')
        assert len(faq['mainEntity']) == 1
        assert faq['mainEntity'][0]['name'] == 'Q1'
        assert faq['mainEntity'][0]['acceptedAnswer']['text'] == 'A1'

    def test_how_to_by_type(self, site):
        post = make_post('---\ntitle: H\ntype: how-to\nsteps:\n  - name: One\n    text: Do one\n---\n')
        how_to = next(d for d in build_structured_data(post, site) if d['@type'] == 'HowTo')
        assert how_to['step'] == [{'@type': 'HowToStep', 'position': 1, 'name': 'One', 'text': 'Do one'}]
        assert how_to['totalTime'] == 'PT30M'

    def test_how_to_by_schema(self, site):
        post = make_post('---\ntitle: H\nschema: HowTo\ntotalTime: PT1H\n---\n')
        how_to = next(d for d in build_structured_data(post, site) if d['@type'] == 'HowTo')
        assert how_to['totalTime'] == 'PT1H'

    def test_how_to_requires_trigger(self, site):
        post = make_post('---\ntitle: H\nsteps: [one, two]\n---\n')
        assert 'HowTo' not in types(post, site)

    def test_service_by_category(self, site):
        post = make_post('---\ntitle: S\ncategory: Service\nserviceName: Audits\n---\n')
        service = next(d for d in build_structured_data(post, site) if d['@type'] == 'Service')
        assert service['name'] == 'Audits'

    def test_full_order(self, site):
        post = make_post('''
            ---
            title: Everything
            type: how-to
            category: service
            faqs: [{question: Q, answer: A}]
            reviews:
              - itemName: Tool
                rating: 5
            listItems:
              - name: First
            ---
            body
        ''')
        assert types(post, site) == [
            'BlogPosting', 'HowTo', 'FAQPage', 'Service', 'Review', 'ItemList', 'Organization', 'BreadcrumbList',
        ]

    def test_breadcrumb(self, site):
        post = make_post('---\ntitle: Crumbs\n---\n', name='crumbs.md')
        crumbs = build_structured_data(post, site)[-1]['itemListElement']
        assert [c['name'] for c in crumbs] == ['Home', 'Blog', 'Crumbs']
        assert crumbs[2]['item'] == 'https://example.com/blog/crumbs/'


class TestRenderJsonLd:

    def test_one_script_per_object(self, site):
        post = make_post('---\ntitle: P\n---\n')
        objects = build_structured_data(post, site)
        html = render_json_ld(objects)
        blocks = re.findall(r'<script type="application/ld\+json">\n(.*?)\n</script>', html, re.S)
        assert len(blocks) == len(objects)
        assert [json.loads(block) for block in blocks] == objects

    def test_closing_tag_is_escaped(self, site):
        post = make_post('---\ntitle: "</script><b>"\n---\n')
        html = render_json_ld(build_structured_data(post, site))
        assert html.count('</script>') == html.count('<script')
