"""
Unit tests for remote_config module.
"""

from unittest.mock import Mock, patch

import pytest
import requests

from moment_video.shared.remote_config import (
    deep_merge,
    download_remote_config,
    load_yaml_config,
    normalize_keys,
)


class TestDeepMerge:
    """Test deep_merge function."""

    def test_simple_merge(self):
        base = {'a': 1, 'b': 2}
        override = {'b': 3, 'c': 4}

        assert deep_merge(base, override) == {'a': 1, 'b': 3, 'c': 4}

    def test_nested_merge(self):
        """Nested sections merge key by key."""
        base = {
            'processing': {'timeout': 60, 'retry_attempts': 3},
            'thumbnail': {'quality': 30},
        }
        override = {
            'processing': {'timeout': 10, 'transform_mode': 'threshold'},
            'transcoder': {'ffmpeg_path': '/usr/bin/ffmpeg'},
        }

        result = deep_merge(base, override)

        assert result['processing']['retry_attempts'] == 3  # preserved
        assert result['processing']['timeout'] == 10  # overridden
        assert result['processing']['transform_mode'] == 'threshold'  # added
        assert result['thumbnail']['quality'] == 30  # preserved
        assert result['transcoder']['ffmpeg_path'] == '/usr/bin/ffmpeg'  # added

    def test_does_not_mutate_base(self):
        base = {'processing': {'timeout': 60}}
        deep_merge(base, {'processing': {'timeout': 1}})
        assert base == {'processing': {'timeout': 60}}

    def test_override_non_dict_with_dict(self):
        result = deep_merge({'thumbnail': 'default'}, {'thumbnail': {'quality': 5}})
        assert result['thumbnail'] == {'quality': 5}


class TestNormalizeKeys:

    def test_camel_case_nested(self):
        data = {'validation': {'maxFileSize': 1, 'minResolution': {'width': 1}}}
        assert normalize_keys(data) == {
            'validation': {'max_file_size': 1, 'min_resolution': {'width': 1}}
        }

    def test_snake_case_untouched(self):
        assert normalize_keys({'retry_attempts': 2}) == {'retry_attempts': 2}


class TestLoadYamlConfig:

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_yaml_config(tmp_path / 'nope.yaml')

    def test_empty_file_is_empty_mapping(self, tmp_path):
        path = tmp_path / 'empty.yaml'
        path.write_text('')
        assert load_yaml_config(path) == {}


class TestDownloadRemoteConfig:
    """Test download_remote_config function."""

    @patch('moment_video.shared.remote_config.requests.get')
    def test_download_json(self, mock_get):
        response = Mock()
        response.json.return_value = {'processing': {'timeout': 5}}
        response.raise_for_status.return_value = None
        mock_get.return_value = response

        result = download_remote_config('https://example.com/policy.json')

        assert result == {'processing': {'timeout': 5}}
        mock_get.assert_called_once_with('https://example.com/policy.json', timeout=10)

    @patch('moment_video.shared.remote_config.requests.get')
    def test_download_yaml(self, mock_get):
        response = Mock()
        response.json.side_effect = ValueError('not json')
        response.text = 'processing:\n  timeout: 7\n'
        response.raise_for_status.return_value = None
        mock_get.return_value = response

        assert download_remote_config('https://example.com/policy.yaml') == {
            'processing': {'timeout': 7}
        }

    @patch('moment_video.shared.remote_config.requests.get')
    def test_http_error_returns_none(self, mock_get):
        mock_get.side_effect = requests.ConnectionError('offline')
        assert download_remote_config('https://example.com/policy.yaml') is None

    @patch('moment_video.shared.remote_config.requests.get')
    def test_non_mapping_returns_none(self, mock_get):
        response = Mock()
        response.json.return_value = ['a', 'b']
        response.raise_for_status.return_value = None
        mock_get.return_value = response

        assert download_remote_config('https://example.com/policy.json') is None

    def test_empty_url(self):
        assert download_remote_config('') is None
