#!/usr/bin/env python3
"""
Tests for writer context and settings parsing.
"""

import tempfile
import unittest
from pathlib import Path

from pydantic import ValidationError

from tsexport import WriterContext, WriterSettings
from tsexport.exceptions import ConfigurationError


class TestWriterSettings(unittest.TestCase):

    def test_defaults(self):
        settings = WriterSettings.from_configuration(None)
        self.assertEqual(settings.system_name, "tsexport")
        self.assertEqual(settings.property_mode, "json")
        self.assertIsNone(settings.compression)
        self.assertEqual(settings.size_limit, 2e9)

    def test_string_values_parsed(self):
        settings = WriterSettings.from_configuration({
            "chunk_size": "1024",
            "size_limit": "1e6",
            "compression": "GZIP",
            "property_mode": "flat",
        })
        self.assertEqual(settings.chunk_size, 1024)
        self.assertEqual(settings.size_limit, 1e6)
        self.assertEqual(settings.compression, "gzip")
        self.assertEqual(settings.property_mode, "flat")

    def test_unknown_keys_ignored(self):
        settings = WriterSettings.from_configuration({"something": "else"})
        self.assertEqual(settings, WriterSettings())

    def test_invalid_values(self):
        for configuration in ({"chunk_size": "abc"}, {"chunk_size": "0"},
                              {"property_mode": "xml"}, {"compression": "zip"},
                              {"size_limit": "-1"}):
            with self.subTest(configuration=configuration):
                with self.assertRaises(ConfigurationError):
                    WriterSettings.from_configuration(configuration)

    def test_empty_compression_means_none(self):
        self.assertIsNone(WriterSettings.from_configuration({"compression": ""}).compression)

    def test_settings_are_frozen(self):
        settings = WriterSettings()
        with self.assertRaises(ValidationError):
            settings.chunk_size = 1

    def test_validation_error_is_chained(self):
        with self.assertRaises(ConfigurationError) as ctx:
            WriterSettings.from_configuration({"chunk_size": "-5"})
        self.assertIsInstance(ctx.exception.__cause__, ValidationError)
        self.assertIn("chunk_size", str(ctx.exception))

    def test_whitespace_stripped(self):
        settings = WriterSettings.from_configuration({"system_name": " host "})
        self.assertEqual(settings.system_name, "host")


class TestWriterContext(unittest.TestCase):

    def test_path_locator(self):
        with tempfile.TemporaryDirectory() as directory:
            context = WriterContext(directory)
            self.assertEqual(context.target_directory, Path(directory))

    def test_file_uri_locator(self):
        context = WriterContext("file:///tmp/export%20dir")
        self.assertEqual(context.target_directory, Path("/tmp/export dir"))

    def test_invalid_locator(self):
        with self.assertRaises(ConfigurationError):
            WriterContext(42)

    def test_none_configuration(self):
        context = WriterContext("/tmp", configuration=None)
        self.assertEqual(context.configuration, {})
        self.assertEqual(context.settings, WriterSettings())


if __name__ == '__main__':
    unittest.main()
