"""Tests for the configuration module."""

import os
import tempfile
import unittest
from unittest.mock import patch

import yaml

from thread_finder.config import DEFAULT_USER_AGENT, Config, RateLimitConfig, ScoringConfig


class TestConfig(unittest.TestCase):
    """Test cases for the Config class."""

    def setUp(self):
        """Set up test environment."""
        self.temp_dir = tempfile.TemporaryDirectory()
        self.config_path = os.path.join(self.temp_dir.name, "config.yaml")
        self.env_path = os.path.join(self.temp_dir.name, ".env")

        self.sample_config = {
            "search_limit": 50,
            "max_comment_pages": 3,
            "enable_body_search": False,
            "client_secret": "must_be_ignored",
            "unknown_key": "ignored",
            "rate_limit": {
                "unauthenticated_delay_sec": 8.0,
                "cooldown_sec": 30.0,
                "not_a_field": 1,
            },
            "scoring": {
                "min_confidence": 0.5,
            },
            "monitoring": {
                "enable_prometheus": True,
                "prometheus_port": 9100,
            },
        }
        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.dump(self.sample_config, f)

        with open(self.env_path, "w", encoding="utf-8") as f:
            f.write("REDDIT_CLIENT_ID=test_client_id\n")
            f.write("REDDIT_CLIENT_SECRET=test_client_secret\n")
            f.write("REDDIT_USER_AGENT=test_user_agent\n")

    def tearDown(self):
        """Clean up test environment."""
        self.temp_dir.cleanup()

    def test_load_from_files(self):
        """Test loading configuration from files."""
        with patch.dict(os.environ, {}, clear=True):
            config = Config.from_files(self.config_path, self.env_path)

        self.assertEqual(config.client_id, "test_client_id")
        self.assertEqual(config.client_secret, "test_client_secret")
        self.assertEqual(config.user_agent, "test_user_agent")
        self.assertTrue(config.is_authenticated)

        self.assertEqual(config.search_limit, 50)
        self.assertEqual(config.max_comment_pages, 3)
        self.assertFalse(config.enable_body_search)
        self.assertFalse(hasattr(config, "unknown_key"))

        self.assertEqual(config.rate_limit.unauthenticated_delay_sec, 8.0)
        self.assertEqual(config.rate_limit.cooldown_sec, 30.0)
        self.assertEqual(config.rate_limit.authenticated_delay_sec, 1.0)
        self.assertEqual(config.scoring.min_confidence, 0.5)
        self.assertEqual(config.scoring.short_circuit_confidence, 0.8)
        self.assertTrue(config.monitoring.enable_prometheus)
        self.assertEqual(config.monitoring.prometheus_port, 9100)
        self.assertEqual(config.validate(), [])

    def test_missing_files_use_defaults(self):
        """Test that a missing YAML file and empty environment give defaults."""
        missing_env = os.path.join(self.temp_dir.name, "missing.env")
        with patch.dict(os.environ, {}, clear=True):
            config = Config.from_files(os.path.join(self.temp_dir.name, "nope.yaml"), missing_env)

        self.assertEqual(config.client_id, "")
        self.assertFalse(config.is_authenticated)
        self.assertEqual(config.user_agent, DEFAULT_USER_AGENT)
        self.assertEqual(config.search_limit, 25)
        self.assertEqual(config.validate(), [])

    def test_validate_defaults(self):
        self.assertEqual(Config().validate(), [])

    def test_validate_half_credentials(self):
        errors = Config(client_id="id").validate()
        self.assertEqual(len(errors), 1)
        self.assertIn("REDDIT_CLIENT_ID", errors[0])

    def test_validate_invalid_values(self):
        """Test validation with invalid values."""
        config = Config(
            user_agent="",
            base_url="http://www.reddit.com",
            search_limit=0,
            max_comment_pages=0,
            failure_threshold=0,
            rate_limit=RateLimitConfig(unauthenticated_delay_sec=0, decay_factor=1.5, backoff_factor=0.5),
            scoring=ScoringConfig(min_confidence=0.9, short_circuit_confidence=0.8),
        )
        errors = config.validate()

        self.assertEqual(len(errors), 9)
        self.assertTrue(any("user_agent" in e for e in errors))
        self.assertTrue(any("https" in e for e in errors))
        self.assertTrue(any("search_limit" in e for e in errors))
        self.assertTrue(any("decay_factor" in e for e in errors))
        self.assertTrue(any("scoring thresholds" in e for e in errors))

    def test_validate_max_delay_below_floor(self):
        config = Config(rate_limit=RateLimitConfig(max_delay_sec=2.0))
        self.assertEqual(config.validate(), ["max_delay_sec must not be below the base request delays"])


if __name__ == "__main__":
    unittest.main()
