"""
Tests for conf -- user settings persistence.

Tests cover:
- load_config / save_config with a temp config file
- backend and timeout settings (defaults, invalid values)
- saved animation round-trip used by 'cherryrgb resume'
"""

import json
import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

from cherryrgb.conf import (
    get_backend,
    get_saved_animation,
    get_timeout_ms,
    load_config,
    save_animation,
    save_backend,
    save_config,
)
from cherryrgb.models import Brightness, Color, LightingMode, Speed
from cherryrgb.payloads import LedAnimationPayload


class _TempConfig(unittest.TestCase):
    """Redirect CONFIG_PATH / CONFIG_DIR into a temp directory."""

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.config_dir = os.path.join(self.tmp, 'cherryrgb')
        self.config_path = os.path.join(self.config_dir, 'config.json')
        self.patches = [
            patch('cherryrgb.conf.CONFIG_PATH', self.config_path),
            patch('cherryrgb.conf.CONFIG_DIR', self.config_dir),
        ]
        for p in self.patches:
            p.start()

    def tearDown(self):
        for p in self.patches:
            p.stop()
        shutil.rmtree(self.tmp, ignore_errors=True)

    def _write_raw(self, text):
        os.makedirs(self.config_dir, exist_ok=True)
        with open(self.config_path, 'w') as f:
            f.write(text)


class TestConfigPersistence(_TempConfig):

    def test_load_missing_returns_empty(self):
        self.assertEqual(load_config(), {})

    def test_save_creates_directory(self):
        save_config({'key': 'value'})
        self.assertTrue(os.path.isfile(self.config_path))
        self.assertEqual(load_config()['key'], 'value')

    def test_load_corrupt_returns_empty(self):
        self._write_raw('not json{{{')
        self.assertEqual(load_config(), {})

    def test_load_non_object_returns_empty(self):
        self._write_raw('[1, 2, 3]')
        self.assertEqual(load_config(), {})

    def test_save_overwrites(self):
        save_config({'a': 1})
        save_config({'b': 2})
        cfg = load_config()
        self.assertNotIn('a', cfg)
        self.assertEqual(cfg['b'], 2)


class TestTransportSettings(_TempConfig):

    def test_backend_default(self):
        self.assertEqual(get_backend(), 'pyusb')

    def test_backend_round_trip(self):
        save_backend('hidapi')
        self.assertEqual(get_backend(), 'hidapi')

    def test_backend_unknown_in_file(self):
        save_config({'backend': 'serial'})
        with self.assertLogs('cherryrgb.conf', level='WARNING'):
            self.assertEqual(get_backend(), 'pyusb')

    def test_save_backend_rejects_unknown(self):
        with self.assertRaises(ValueError):
            save_backend('serial')
        self.assertEqual(load_config(), {})

    def test_save_backend_keeps_other_keys(self):
        save_config({'timeout_ms': 500})
        save_backend('hidapi')
        self.assertEqual(load_config(), {'timeout_ms': 500, 'backend': 'hidapi'})

    def test_timeout_default(self):
        self.assertEqual(get_timeout_ms(), 1000)

    def test_timeout_configured(self):
        save_config({'timeout_ms': 250})
        self.assertEqual(get_timeout_ms(), 250)

    def test_timeout_invalid(self):
        for bad in (0, -5, 'fast', 1.5, None):
            save_config({'timeout_ms': bad})
            self.assertEqual(get_timeout_ms(), 1000, bad)


class TestSavedAnimation(_TempConfig):

    def test_none_when_unset(self):
        self.assertIsNone(get_saved_animation())

    def test_round_trip(self):
        animation = LedAnimationPayload(
            mode=LightingMode.VORTEX,
            brightness=Brightness.HIGH,
            speed=Speed.VERY_SLOW,
            color=Color(0xF4, 0xFF, 0x64),
            rainbow=True,
        )
        save_animation(animation)
        self.assertEqual(get_saved_animation(), animation)

    def test_stored_as_aliases(self):
        save_animation(LedAnimationPayload(LightingMode.WAVE, Brightness.FULL, Speed.SLOW))
        with open(self.config_path) as f:
            stored = json.load(f)['animation']
        self.assertEqual(stored, {
            'mode': 'wave',
            'brightness': 'full',
            'speed': 'slow',
            'color': '000000',
            'rainbow': False,
        })

    def test_invalid_entry_ignored(self):
        save_config({'animation': {'mode': 'disco', 'brightness': 'full', 'speed': 'slow'}})
        with self.assertLogs('cherryrgb.conf', level='WARNING'):
            self.assertIsNone(get_saved_animation())

    def test_missing_field_ignored(self):
        save_config({'animation': {'mode': 'wave'}})
        with self.assertLogs('cherryrgb.conf', level='WARNING'):
            self.assertIsNone(get_saved_animation())

    def test_non_dict_entry(self):
        save_config({'animation': 'wave'})
        self.assertIsNone(get_saved_animation())


if __name__ == '__main__':
    unittest.main()
