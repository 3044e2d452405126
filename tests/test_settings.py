"""Tests for configuration loading and validation."""

import json
import os

import pytest
import yaml

from inkwell_pkg.content import ContentSet
from inkwell_pkg.exceptions import ConfigurationError
from inkwell_pkg.settings import SiteSettings, content_sets, validate


class TestSiteSettings:
    """Test cases for SiteSettings."""

    def test_defaults_without_config(self, temp_dir):
        settings = SiteSettings(temp_dir).load_settings()
        assert settings['output'] == 'output'
        assert settings['content'][0]['path'] == 'content'
        assert settings['index_page_html'] == 'index.html'

    def test_defaults_are_not_shared(self, temp_dir):
        first = SiteSettings(temp_dir).load_settings()
        first['content'].append({'path': 'docs'})
        assert len(SiteSettings(temp_dir).load_settings()['content']) == 1

    def test_loads_yaml(self, temp_dir):
        with open(os.path.join(temp_dir, 'inkwell.yml'), 'w', encoding='utf-8') as f:
            yaml.safe_dump({'output': 'public', 'site_url': 'https://example.com'}, f)

        loader = SiteSettings(temp_dir)
        settings = loader.load_settings()

        assert settings['output'] == 'public'
        assert settings['site_url'] == 'https://example.com'
        assert loader.config_file_path.endswith('inkwell.yml')

    def test_yml_preferred_over_json(self, temp_dir):
        with open(os.path.join(temp_dir, 'inkwell.yml'), 'w', encoding='utf-8') as f:
            f.write("output: from-yaml\n")
        with open(os.path.join(temp_dir, 'inkwell.json'), 'w', encoding='utf-8') as f:
            json.dump({'output': 'from-json'}, f)
        assert SiteSettings(temp_dir).load_settings()['output'] == 'from-yaml'

    def test_invalid_file_keeps_defaults(self, temp_dir):
        with open(os.path.join(temp_dir, 'inkwell.json'), 'w', encoding='utf-8') as f:
            f.write("{not json")
        assert SiteSettings(temp_dir).load_settings()['output'] == 'output'

    def test_merge_with_args(self, temp_dir):
        loader = SiteSettings(temp_dir)
        loader.load_settings()
        merged = loader.merge_with_args({'output': 'dist', 'site_url': None, 'excluded_paths': 'a.txt, b/c', 'content': 'docs'})

        assert merged['output'] == 'dist'
        assert merged['site_url'] is None
        assert merged['excluded_paths'] == ['a.txt', 'b/c']
        assert merged['content'] == [{'path': 'docs'}]

    @pytest.mark.parametrize('file_format', ['yml', 'json'])
    def test_sample_config_is_valid(self, temp_dir, file_format):
        loader = SiteSettings(temp_dir)
        path = loader.create_sample_config(file_format)
        assert os.path.basename(path) == f'inkwell.{file_format}'

        settings = SiteSettings(temp_dir).load_settings()
        validate(settings)
        assert settings['app_url'] == 'http://localhost:5000'
        assert settings['content'][0]['pattern'] == '*.md'


class TestContentSets:
    def test_defaults_applied(self):
        sets = content_sets({'content': [{'path': 'posts'}, 'docs']})
        assert sets == [
            ContentSet(path='posts', url='blog', pattern='*.md', tags_url='tags'),
            ContentSet(path='docs'),
        ]

    def test_single_mapping(self):
        sets = content_sets({'content': {'path': 'notes', 'url': 'notes', 'toc_max_level': 3}})
        assert sets[0].url_root == 'notes'
        assert sets[0].toc_max_level == 3


class TestValidate:
    """Test cases for settings validation."""

    def test_valid(self, site_settings):
        validate(site_settings)

    def test_collects_every_issue(self, site_settings):
        site_settings.update({
            'output': '',
            'site_url': 'example.com',
            'max_workers': 0,
            'render_timeout': -1,
        })
        with pytest.raises(ConfigurationError) as excinfo:
            validate(site_settings)
        assert len(excinfo.value.issues) == 4
        assert 'site_url' in str(excinfo.value)

    def test_empty_content(self, site_settings):
        site_settings['content'] = []
        with pytest.raises(ConfigurationError, match="at least one content set"):
            validate(site_settings)

    def test_empty_content_path(self, site_settings):
        site_settings['content'] = [{'path': ''}]
        with pytest.raises(ConfigurationError, match=r"content\[0\]\.path"):
            validate(site_settings)

    def test_bad_toc_levels(self, site_settings):
        site_settings['content'][0].update({'toc_min_level': 4, 'toc_max_level': 2})
        with pytest.raises(ConfigurationError, match="toc levels"):
            validate(site_settings)

    def test_bad_pages_and_assets(self, site_settings):
        site_settings['pages'] = [{'url': '/404'}]
        site_settings['assets'] = [{'target': 'x'}]
        with pytest.raises(ConfigurationError) as excinfo:
            validate(site_settings)
        assert len(excinfo.value.issues) == 2
