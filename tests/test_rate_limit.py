import os
import unittest
from unittest.mock import Mock, patch

import redis

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")

from formflow.services import rate_limit
from formflow.services.rate_limit import (
    LocalSubmissionCounter,
    RedisSubmissionCounter,
    check_submission_quota,
    submission_key,
)


class SubmissionKeyTests(unittest.TestCase):
    def test_key_is_scoped_to_form_and_hides_raw_ip(self):
        key = submission_key("203.0.113.7", "survey1")
        self.assertTrue(key.startswith("formflow:submit:survey1:"))
        self.assertNotIn("203.0.113.7", key)
        self.assertEqual(key, submission_key("203.0.113.7", "survey1"))
        self.assertNotEqual(key, submission_key("203.0.113.8", "survey1"))
        self.assertNotEqual(key, submission_key("203.0.113.7", "survey2"))


class LocalSubmissionCounterTests(unittest.TestCase):
    def test_window_resets_after_expiry(self):
        counter = LocalSubmissionCounter()
        with patch("formflow.services.rate_limit.time.monotonic", return_value=100.0):
            self.assertEqual(counter.increment("k", 60), (1, 60))
            self.assertEqual(counter.increment("k", 60), (2, 60))
        with patch("formflow.services.rate_limit.time.monotonic", return_value=130.0):
            self.assertEqual(counter.increment("k", 60), (3, 30))
        with patch("formflow.services.rate_limit.time.monotonic", return_value=161.0):
            self.assertEqual(counter.increment("k", 60), (1, 60))


class RedisSubmissionCounterTests(unittest.TestCase):
    def test_first_attempt_sets_expiry(self):
        client = Mock()
        client.incr.return_value = 1
        client.ttl.return_value = 300
        self.assertEqual(RedisSubmissionCounter(client).increment("k", 300), (1, 300))
        client.expire.assert_called_once_with("k", 300)

    def test_missing_ttl_falls_back_to_window(self):
        client = Mock()
        client.incr.return_value = 4
        client.ttl.return_value = -1
        self.assertEqual(RedisSubmissionCounter(client).increment("k", 300), (4, 300))
        client.expire.assert_not_called()


class SubmissionQuotaTests(unittest.TestCase):
    def setUp(self):
        patcher = patch.object(rate_limit, "_counter", None)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_unreachable_redis_uses_local_counter(self):
        client = Mock()
        client.ping.side_effect = redis.ConnectionError("down")
        with patch("formflow.services.rate_limit.redis.Redis.from_url", return_value=client):
            counter = rate_limit.get_submission_counter()
        self.assertIsInstance(counter, LocalSubmissionCounter)
        self.assertIs(rate_limit.get_submission_counter(), counter)

    def test_quota_uses_configured_limit_and_window(self):
        counter = LocalSubmissionCounter()
        with patch("formflow.services.rate_limit.get_submission_counter", return_value=counter), patch(
            "formflow.services.rate_limit.settings.PUBLIC_SUBMIT_RATE_LIMIT", 2
        ), patch("formflow.services.rate_limit.settings.PUBLIC_SUBMIT_RATE_WINDOW_SECONDS", 120):
            results = [check_submission_quota("198.51.100.1", "survey1") for _ in range(3)]
        self.assertEqual([item.allowed for item in results], [True, True, False])
        self.assertEqual(results[-1].attempts, 3)
        self.assertLessEqual(results[-1].retry_after_seconds, 120)

    def test_non_positive_settings_are_clamped(self):
        counter = Mock()
        counter.increment.return_value = (1, 1)
        with patch("formflow.services.rate_limit.get_submission_counter", return_value=counter), patch(
            "formflow.services.rate_limit.settings.PUBLIC_SUBMIT_RATE_LIMIT", 0
        ), patch("formflow.services.rate_limit.settings.PUBLIC_SUBMIT_RATE_WINDOW_SECONDS", 0):
            quota = check_submission_quota("198.51.100.1", "survey1")
        self.assertTrue(quota.allowed)
        self.assertEqual(counter.increment.call_args.args[1], 1)
