import unittest

from linkstore.bootstrap import BootstrapState, SchemaBootstrap
from linkstore.tests.fakes import FakeSchema


class SchemaBootstrapTests(unittest.TestCase):
    def test_success_marks_ready(self):
        schema = FakeSchema()
        bootstrap = SchemaBootstrap(schema, timeout_seconds=1)
        self.assertEqual(bootstrap.state, BootstrapState.PENDING)
        self.assertFalse(bootstrap.usable)

        self.assertTrue(bootstrap.run())
        self.assertEqual(bootstrap.state, BootstrapState.READY)
        self.assertEqual(schema.calls, 1)

    def test_failure_marks_unavailable(self):
        schema = FakeSchema(error=RuntimeError("connection refused"))
        bootstrap = SchemaBootstrap(schema, timeout_seconds=1)
        with self.assertLogs("linkstore.bootstrap", level="WARNING"):
            self.assertFalse(bootstrap.run())
        self.assertEqual(bootstrap.state, BootstrapState.UNAVAILABLE)

    def test_timeout_marks_unavailable(self):
        schema = FakeSchema(delay=0.5)
        bootstrap = SchemaBootstrap(schema, timeout_seconds=0.05)
        with self.assertLogs("linkstore.bootstrap", level="WARNING") as logs:
            self.assertFalse(bootstrap.run())
        self.assertIn("timed out", "\n".join(logs.output))
        self.assertEqual(bootstrap.state, BootstrapState.UNAVAILABLE)

    def test_does_not_retry(self):
        schema = FakeSchema(error=RuntimeError("boom"))
        bootstrap = SchemaBootstrap(schema, timeout_seconds=1)
        with self.assertLogs("linkstore.bootstrap", level="WARNING"):
            bootstrap.run()
        schema.error = None
        self.assertFalse(bootstrap.run())
        self.assertEqual(schema.calls, 1)

    def test_start_runs_in_background(self):
        bootstrap = SchemaBootstrap(FakeSchema(delay=0.05), timeout_seconds=1)
        thread = bootstrap.start()
        self.assertTrue(bootstrap.wait(2))
        thread.join(1)
        self.assertTrue(bootstrap.usable)


if __name__ == "__main__":
    unittest.main()
