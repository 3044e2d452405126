#!/usr/bin/env python3
"""
Settings loader for Inkwell.
Supports configuration from inkwell.yml, inkwell.yaml, or inkwell.json files.
"""

import copy
import json
import logging
import os
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import yaml

from .content import ContentSet
from .exceptions import ConfigurationError

logger = logging.getLogger('Inkwell.Settings')


class SiteSettings:
    """Load and manage Inkwell configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'output': 'output',
        'content': [
            {'path': 'content', 'url': 'blog', 'pattern': '*.md', 'tags_url': 'tags'}
        ],
        'assets': [],
        'excluded_paths': [],
        'pages': [],
        'index_page_html': 'index.html',
        'app_url': None,
        'request_timeout': 30,
        'site_url': None,
        'site_title': None,
        'site_description': None,
        'max_workers': 8,
        'render_timeout': None,
        'watch': False,
        'log_dir': 'logs',
    }

    # Per content set defaults
    CONTENT_SET_DEFAULTS = {
        'path': 'content',
        'url': 'blog',
        'pattern': '*.md',
        'tags_url': 'tags',
        'toc_min_level': 1,
        'toc_max_level': 6,
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['inkwell.yml', 'inkwell.yaml', 'inkwell.json']

    def __init__(self, config_dir: str = None):
        """
        Initialize settings loader.

        Args:
            config_dir: Directory to look for config files. Defaults to current directory.
        """
        self.config_dir = config_dir or os.getcwd()
        self.settings = copy.deepcopy(self.DEFAULT_SETTINGS)
        self.config_file_path = None

    def load_settings(self) -> Dict[str, Any]:
        """
        Load settings from configuration file if it exists.

        Returns:
            Dictionary of configuration settings
        """
        config_file = self._find_config_file()

        if config_file:
            self.config_file_path = config_file
            try:
                loaded_settings = self._load_config_file(config_file)
                if loaded_settings:
                    if not isinstance(loaded_settings, dict):
                        raise ValueError("top level must be a mapping")
                    self.settings.update(loaded_settings)
                    logger.debug(f"Loaded configuration from: {os.path.relpath(config_file)}")
            except (ValueError, IOError, OSError) as e:
                logger.warning(f"Failed to load config file {config_file}: {e}")

        return copy.deepcopy(self.settings)

    def _find_config_file(self) -> Optional[str]:
        """
        Find the first available configuration file.

        Returns:
            Path to config file or None if not found
        """
        for filename in self.CONFIG_FILES:
            config_path = os.path.join(self.config_dir, filename)
            if os.path.exists(config_path):
                return config_path
        return None

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from a file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Dictionary of configuration settings
        """
        file_ext = os.path.splitext(config_path)[1].lower()
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                if file_ext in ['.yml', '.yaml']:
                    return yaml.safe_load(f) or {}
                elif file_ext == '.json':
                    return json.load(f) or {}
                else:
                    raise ValueError(f"Unsupported config file format: {file_ext}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file {config_path}: {e}")
        except PermissionError:
            raise PermissionError(f"Permission denied reading configuration file: {config_path}")

    def create_sample_config(self, file_format: str = 'yml') -> str:
        """
        Create a sample configuration file.

        Args:
            file_format: Format for config file ('yml', 'yaml', or 'json')

        Returns:
            Path to created sample config file
        """
        if file_format not in ('yml', 'yaml', 'json'):
            raise ValueError(f"Unsupported config file format: {file_format}")

        sample_config = {
            'site_url': 'https://example.com',
            'site_title': 'My Site',
            'site_description': 'Built with Inkwell',
            'app_url': 'http://localhost:5000',
            'output': 'output',
            'content': [{'path': 'content', 'url': 'blog', 'pattern': '*.md', 'tags_url': 'tags'}],
            'assets': [{'source': 'wwwroot', 'target': ''}],
            'excluded_paths': [],
            'pages': [{'url': '/404', 'output_file': '404.html'}],
            'index_page_html': 'index.html',
            'max_workers': 8,
            'render_timeout': 60,
            'watch': False,
        }

        filename = f'inkwell.{file_format}'
        config_path = os.path.join(self.config_dir, filename)

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                if file_format in ['yml', 'yaml']:
                    # Custom YAML output with comments
                    f.write("# Inkwell Configuration File\n\n")
                    f.write("# Site information\n")
                    f.write("site_url: https://example.com\n")
                    f.write("site_title: My Site\n")
                    f.write("site_description: Built with Inkwell\n\n")
                    f.write("# Running application that renders pages\n")
                    f.write("app_url: http://localhost:5000\n\n")
                    f.write("# Build settings\n")
                    f.write("output: output\n")
                    f.write("content:\n")
                    f.write("  - path: content\n")
                    f.write("    url: blog\n")
                    f.write("    pattern: '*.md'\n")
                    f.write("    tags_url: tags\n")
                    f.write("assets:\n")
                    f.write("  - source: wwwroot\n")
                    f.write("    target: ''\n")
                    f.write("excluded_paths: []  # exact output-relative paths\n")
                    f.write("pages:\n")
                    f.write("  - url: /404\n")
                    f.write("    output_file: 404.html\n")
                    f.write("index_page_html: index.html\n\n")
                    f.write("# Generation settings\n")
                    f.write("max_workers: 8\n")
                    f.write("render_timeout: 60  # seconds per page, omit for no limit\n\n")
                    f.write("# Development settings\n")
                    f.write("watch: false\n")
                elif file_format == 'json':
                    json.dump(sample_config, f, indent=2)
        except PermissionError:
            raise PermissionError(f"Permission denied creating configuration file: {config_path}")
        except (IOError, OSError) as e:
            raise IOError(f"Error writing configuration file {config_path}: {e}")

        return config_path

    def merge_with_args(self, args_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge configuration settings with explicit overrides.
        Overrides take precedence over config file settings.

        Args:
            args_dict: Dictionary of overrides; None values are ignored

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(self.settings)

        for key, value in args_dict.items():
            if value is not None:
                if key == 'excluded_paths' and isinstance(value, str):
                    # Convert comma-separated string to list
                    merged[key] = [path.strip() for path in value.split(',') if path.strip()]
                elif key == 'content' and isinstance(value, str):
                    merged[key] = [{'path': value}]
                else:
                    merged[key] = value

        return merged


def _content_entries(settings: Dict[str, Any]) -> List[Dict[str, Any]]:
    content = settings.get('content')
    if content is None:
        return []
    if isinstance(content, (str, dict)):
        content = [content]
    entries = []
    for entry in content:
        if isinstance(entry, str):
            entry = {'path': entry}
        entries.append(entry)
    return entries


def content_sets(settings: Dict[str, Any]) -> List[ContentSet]:
    """Build ContentSet objects from the ``content`` setting."""
    sets = []
    for entry in _content_entries(settings):
        values = dict(SiteSettings.CONTENT_SET_DEFAULTS)
        values.update({k: v for k, v in entry.items() if k in values and v is not None})
        sets.append(ContentSet(**values))
    return sets


def validate(settings: Dict[str, Any]) -> None:
    """Raise ConfigurationError listing every problem found in ``settings``."""
    issues = []

    if not settings.get('output') or not str(settings['output']).strip():
        issues.append("'output' must be a non-empty path")

    entries = _content_entries(settings)
    if not entries:
        issues.append("'content' must list at least one content set")
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            issues.append(f"content[{i}] must be a path or a mapping")
            continue
        if not entry.get('path') or not str(entry['path']).strip():
            issues.append(f"content[{i}].path must be a non-empty path")
        if entry.get('url') is not None and not isinstance(entry['url'], str):
            issues.append(f"content[{i}].url must be a string")
        if entry.get('pattern') is not None and not str(entry['pattern']).strip():
            issues.append(f"content[{i}].pattern must not be empty")
        if entry.get('tags_url') is not None and not str(entry['tags_url']).strip('/ '):
            issues.append(f"content[{i}].tags_url must not be empty")
        min_level = entry.get('toc_min_level', 1)
        max_level = entry.get('toc_max_level', 6)
        if not (isinstance(min_level, int) and isinstance(max_level, int) and 1 <= min_level <= max_level <= 6):
            issues.append(f"content[{i}] toc levels must satisfy 1 <= toc_min_level <= toc_max_level <= 6")

    for i, asset in enumerate(settings.get('assets') or []):
        if not isinstance(asset, dict) or not asset.get('source'):
            issues.append(f"assets[{i}] must be a mapping with a 'source'")

    for i, page in enumerate(settings.get('pages') or []):
        if not isinstance(page, dict) or not page.get('url') or not page.get('output_file'):
            issues.append(f"pages[{i}] must be a mapping with 'url' and 'output_file'")

    if not isinstance(settings.get('excluded_paths') or [], list):
        issues.append("'excluded_paths' must be a list")

    if not settings.get('index_page_html'):
        issues.append("'index_page_html' must not be empty")

    for key in ('site_url', 'app_url'):
        url = settings.get(key)
        if url:
            parsed = urlparse(str(url))
            if parsed.scheme not in ('http', 'https') or not parsed.netloc:
                issues.append(f"'{key}' must be an absolute http(s) URL, got '{url}'")

    max_workers = settings.get('max_workers')
    if not isinstance(max_workers, int) or isinstance(max_workers, bool) or max_workers < 1:
        issues.append("'max_workers' must be a positive integer")

    for key in ('render_timeout', 'request_timeout'):
        value = settings.get(key)
        if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0):
            issues.append(f"'{key}' must be a positive number")

    if issues:
        raise ConfigurationError(issues)
