"""Tests for slug and URL helpers."""

import os

import pytest

from inkwell_pkg.paths import (
    base_url_for,
    combine_url,
    file_path_to_url,
    rewrite_links,
    rewrite_url,
    site_path,
    slugify,
)


class TestSlugify:
    """Test cases for slugify."""

    def test_basic(self):
        assert slugify("Hello World") == "hello-world"

    def test_accents_are_folded(self):
        assert slugify("Café Crème") == "cafe-creme"

    def test_runs_of_punctuation_collapse(self):
        assert slugify("C# & .NET -- tips!!") == "c-net-tips"

    def test_trims_hyphens(self):
        assert slugify("  --Leading and trailing--  ") == "leading-and-trailing"

    def test_empty_and_whitespace(self):
        assert slugify("") == ""
        assert slugify("   ") == ""
        assert slugify("!!!") == ""

    def test_max_length_has_no_trailing_hyphen(self):
        text = "word " * 40
        slug = slugify(text)
        assert len(slug) <= 80
        assert not slug.endswith('-')

    def test_custom_max_length(self):
        assert slugify("abc def ghi", max_length=5) == "abc-d"
        assert slugify("abc def ghi", max_length=4) == "abc"

    def test_deterministic(self):
        assert slugify("Über Straße 12") == slugify("Über Straße 12")


class TestCombineUrl:
    def test_single_slash(self):
        assert combine_url("blog/", "/post") == "blog/post"
        assert combine_url("/blog", "post/") == "blog/post"

    def test_site_path(self):
        assert site_path("blog", "2024/04/post") == "/blog/2024/04/post"
        assert site_path("", "tags", "python") == "/tags/python"


class TestRewriteUrl:
    """Test cases for link and media target rewriting."""

    base = "blog/2024/04"

    def test_parent_segments_pop_base(self):
        assert rewrite_url("../../media/a.png", self.base) == "blog/media/a.png"

    def test_relative_path_is_appended(self):
        assert rewrite_url("sub/img.png", self.base) == "blog/2024/04/sub/img.png"

    @pytest.mark.parametrize("target", [
        "https://x.com/a.png",
        "HTTP://x.com/a.png",
        "mailto:me@example.com",
        "tel:+123",
        "ftp://files.example.com/a.zip",
        "#section",
        "/absolute/path.png",
        "img.png?v=2",
        "page.md#anchor",
    ])
    def test_unchanged_targets(self, target):
        assert rewrite_url(target, self.base) == target

    def test_more_parents_than_segments(self):
        assert rewrite_url("../../../../a.png", self.base) == "a.png"


class TestRewriteLinks:
    def test_markdown_images_and_links(self):
        text = '![Alt](../../media/a.png "Title") and [link](sub/img.png) and [ext](https://x.com/a.png)'
        result = rewrite_links(text, "blog/2024/04")
        assert '![Alt](blog/media/a.png "Title")' in result
        assert '[link](blog/2024/04/sub/img.png)' in result
        assert '[ext](https://x.com/a.png)' in result

    def test_html_attributes(self):
        text = '<img src="pic.png"> <a href="#top">top</a>'
        result = rewrite_links(text, "blog")
        assert '<img src="blog/pic.png">' in result
        assert 'href="#top"' in result

    def test_reference_definitions(self):
        text = "[logo]: images/logo.png\n"
        assert rewrite_links(text, "docs") == "[logo]: docs/images/logo.png\n"

    def test_reference_definition_with_title(self):
        text = '[logo]: images/logo.png "Logo"\n'
        assert rewrite_links(text, "docs") == '[logo]: docs/images/logo.png "Logo"\n'

    def test_footnotes_are_left_alone(self):
        text = "Body[^1].\n\n[^1]: See the docs for more.\n"
        assert rewrite_links(text, "blog/2024") == text

    def test_prose_after_label_is_left_alone(self):
        text = "[Note]: remember to update this page\n"
        assert rewrite_links(text, "blog") == text


class TestFileUrls:
    def test_file_path_to_url(self, temp_dir):
        root = os.path.join(temp_dir, 'content')
        path = os.path.join(root, '2024', 'My Posts', 'Hello World.md')
        assert file_path_to_url(path, root) == "2024/my-posts/hello-world"

    def test_base_url_for(self, temp_dir):
        root = os.path.join(temp_dir, 'content')
        assert base_url_for(os.path.join(root, '2024', '04', 'a.md'), root, 'blog') == "blog/2024/04"
        assert base_url_for(os.path.join(root, 'a.md'), root, '/blog/') == "blog"
        assert base_url_for(os.path.join(root, 'x', 'a.md'), root, '') == "x"
