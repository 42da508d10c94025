import os
import tempfile
import unittest
from unittest.mock import patch

from linkstore.config import Settings
from linkstore.db import DurableTier
from linkstore.dependencies import build_services
from linkstore.queues import InMemoryWriteQueue, RedisWriteQueue


class BuildServicesTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)

    def _settings(self, **kwargs):
        kwargs.setdefault("local_storage_dirs", [self._tmp.name])
        return Settings(_env_file=None, **kwargs)

    def test_degraded_without_postgres(self):
        with patch.dict(os.environ, {}, clear=True):
            services = build_services(self._settings())
        self.assertIsNone(services.coordinator.durable)
        self.assertIsNone(services.worker)
        self.assertFalse(services.coordinator.durable_usable)

    def test_durable_tier_from_postgres_url(self):
        db_path = os.path.join(self._tmp.name, "durable.db")
        env = {"POSTGRES_URL": f"sqlite+pysqlite:///{db_path}"}
        with patch.dict(os.environ, env, clear=True):
            services = build_services(self._settings())
        self.addCleanup(services.shutdown)
        coordinator = services.coordinator
        self.assertIsInstance(coordinator.durable, DurableTier)
        self.assertIsInstance(coordinator.write_queue, InMemoryWriteQueue)
        # Unusable until the schema bootstrap has run.
        self.assertFalse(coordinator.durable_usable)

        services.start()
        self.assertTrue(coordinator.bootstrap.wait(5))
        self.assertTrue(coordinator.durable_usable)

        record_id = coordinator.store({"v": 1})
        self.assertTrue(coordinator.write_queue.wait_until_drained(timeout=5))
        self.assertEqual(coordinator.durable.get(record_id).payload, {"v": 1})

    def test_in_memory_toggle_ignores_postgres(self):
        env = {"POSTGRES_URL": "postgres://u:p@db.invalid/links"}
        with patch.dict(os.environ, env, clear=True):
            services = build_services(self._settings(use_in_memory_backends=True))
        self.assertIsNone(services.coordinator.durable)

    def test_redis_queue_when_configured(self):
        db_path = os.path.join(self._tmp.name, "durable.db")
        env = {
            "DATABASE_URL": f"sqlite+pysqlite:///{db_path}",
            "REDIS_URL": "redis://localhost:6379/0",
        }
        with patch.dict(os.environ, env, clear=True), patch(
            "linkstore.queues.redis.Redis.from_url"
        ):
            services = build_services(self._settings())
        self.addCleanup(services.shutdown)
        self.assertIsInstance(services.coordinator.write_queue, RedisWriteQueue)

    def test_id_length_setting(self):
        services = build_services(self._settings(id_length=8))
        self.assertEqual(len(services.coordinator.store({})), 8)


if __name__ == "__main__":
    unittest.main()
