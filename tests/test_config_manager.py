"""Tests for configuration management."""

import json
import os
import shutil
import tempfile
import unittest

import yaml

from ibimina_providers.models.core import ProvidersConfig
from ibimina_providers.utils.config_manager import ConfigManager
from ibimina_providers.utils.error_handler import ConfigurationError


class TestConfigManager(unittest.TestCase):
    """Test cases for ConfigManager"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self._saved_key = os.environ.pop('SUPABASE_KEY', None)

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)
        os.environ.pop('SUPABASE_KEY', None)
        if self._saved_key is not None:
            os.environ['SUPABASE_KEY'] = self._saved_key

    def write(self, name, data):
        path = os.path.join(self.temp_dir, name)
        with open(path, 'w') as f:
            if name.endswith('.json'):
                json.dump(data, f)
            else:
                yaml.safe_dump(data, f)
        return path

    def test_default_config_loading(self):
        manager = ConfigManager(config_path=os.path.join(self.temp_dir, "missing.json"))
        config = manager.load_config()

        self.assertIsInstance(config, ProvidersConfig)
        self.assertEqual(config.plugin_directories, [])
        self.assertEqual(config.statement_confidence.base, 0.6)
        self.assertEqual(config.sms_confidence.base, 0.5)
        self.assertEqual(config.session_store.driver, "relational")
        self.assertIsNone(config.session_store.ttl_seconds)

    def test_yaml_config_loading(self):
        path = self.write('providers_config.yml', {
            'date_formats': ['%d.%m.%Y %H:%M'],
            'plugin_directories': ['plugins'],
            'confidence': {'statement': {'base': 0.5, 'min_transaction_id_length': 6}},
            'session_store': {'driver': 'cache', 'url': 'redis://cache:6379/1', 'ttl_seconds': 600},
        })

        config = ConfigManager(config_path=path).load_config()

        self.assertEqual(config.date_formats, ['%d.%m.%Y %H:%M'])
        self.assertEqual(config.plugin_directories, ['plugins'])
        self.assertEqual(config.statement_confidence.base, 0.5)
        self.assertEqual(config.statement_confidence.min_transaction_id_length, 6)
        self.assertEqual(config.statement_confidence.reference, 0.15)
        self.assertEqual(config.sms_confidence.base, 0.5)
        self.assertEqual(config.session_store.driver, 'cache')
        self.assertEqual(config.session_store.ttl_seconds, 600)

    def test_json_config_and_env_key(self):
        os.environ['SUPABASE_KEY'] = 'from-env'
        path = self.write('providers_config.json', {
            'session_store': {'driver': 'relational', 'url': 'https://example.supabase.co'},
        })

        config = ConfigManager(config_path=path).load_config()

        self.assertEqual(config.session_store.key, 'from-env')

    def test_config_is_cached(self):
        path = self.write('providers_config.json', {'plugin_directories': ['a']})
        manager = ConfigManager(config_path=path)

        first = manager.load_config()
        self.write('providers_config.json', {'plugin_directories': ['b']})

        self.assertIs(manager.load_config(), first)
        self.assertEqual(manager.load_config(force_reload=True).plugin_directories, ['b'])

    def test_invalid_configs_rejected(self):
        invalid = [
            {'plugin_directories': 'plugins'},
            {'confidence': {'loans': {}}},
            {'confidence': {'sms': {'base': -1}}},
            {'confidence': {'sms': {'bonus': 0.1}}},
            {'session_store': {'driver': 'cache', 'ttl_seconds': 0}},
            {'session_store': {'host': 'localhost'}},
        ]
        for data in invalid:
            path = self.write('providers_config.json', data)
            with self.assertRaises(ConfigurationError, msg=str(data)):
                ConfigManager(config_path=path).load_config()

    def test_malformed_file_rejected(self):
        path = os.path.join(self.temp_dir, 'providers_config.json')
        with open(path, 'w') as f:
            f.write('{not json')

        with self.assertRaises(ConfigurationError):
            ConfigManager(config_path=path).load_config()

    def test_save_config_template_round_trips(self):
        for name in ('template.json', 'template.yml'):
            path = os.path.join(self.temp_dir, 'out', name)
            ConfigManager().save_config_template(path)

            config = ConfigManager(config_path=path).load_config()
            self.assertEqual(config.session_store.driver, 'cache')
            self.assertEqual(config.session_store.ttl_seconds, 1800)
            self.assertEqual(config.sms_confidence.min_transaction_id_length, 9)


if __name__ == '__main__':
    unittest.main()
