# pylint: disable=missing-docstring
# pylint: disable=protected-access
from unittest import mock

import pytest

from sqsworker.connector.dummy.transport import DummyTransport
from sqsworker.metrics.metrics import RunMetrics
from sqsworker.runner import Runner
from sqsworker.util.configuration import Configuration
from sqsworker.worker import Worker


@pytest.fixture(name="configuration")
def fixture_configuration(config_path) -> Configuration:
    return Configuration.from_sources([config_path])


@pytest.fixture(name="runner")
def fixture_runner(configuration: Configuration) -> Runner:
    return Runner(configuration)  # we want to have a fresh runner for each test


class TestRunner:
    def test_runner_sets_instance(self, runner):
        assert Runner.instance is runner

    def test_setup_creates_transport_and_worker(self, runner, configuration):
        runner.setup()
        assert isinstance(runner.transport, DummyTransport)
        assert isinstance(runner.worker, Worker)
        assert runner.worker.config.queue_url == configuration.worker["queue_url"]
        assert runner.worker.config.max_batch_size == 2
        assert runner.exporter is None

    def test_setup_creates_exporter_if_metrics_enabled(self, config_path, write_metrics_config):
        configuration = Configuration.from_sources([config_path, write_metrics_config])
        runner = Runner(configuration)
        runner.setup()
        assert runner.exporter is not None
        assert runner.exporter.configuration.port == 8002

    def test_run_processes_until_empty_batch(self, runner):
        with mock.patch.object(DummyTransport, "shut_down"):
            run_metrics = runner.run()
        assert run_metrics == RunMetrics(processed=2, resolved=2, rejected=0, iterations=2)
        assert runner.transport.deleted == ["handle-1", "handle-2"]
        assert [name for name, _ in runner.transport.invocations] == [
            "handle-item",
            "handle-item",
            "handle-list",
        ]

    def test_run_stops_after_max_iterations(self, configuration):
        configuration.worker["max_iterations"] = 1
        run_metrics = Runner(configuration).run()
        assert run_metrics.iterations == 1

    def test_run_without_iterations_does_not_fetch(self, configuration):
        configuration.worker["max_iterations"] = 0
        assert Runner(configuration).run() == RunMetrics()

    def test_stop_ends_run_before_next_fetch(self, runner):
        runner.stop()
        assert runner.run() == RunMetrics()

    def test_run_shuts_down_transport_and_exporter(self, runner):
        runner.setup()
        runner.exporter = mock.MagicMock()
        with mock.patch.object(runner.transport, "shut_down") as mock_shut_down:
            runner.run()
        mock_shut_down.assert_called_once()
        runner.exporter.run.assert_called_once()
        runner.exporter.shut_down.assert_called_once()

    def test_run_shuts_down_if_worker_fails(self, runner):
        runner.setup()
        with mock.patch.object(runner.worker, "start", side_effect=RuntimeError("failed")):
            with mock.patch.object(runner, "shut_down") as mock_shut_down:
                with pytest.raises(RuntimeError):
                    runner.run()
        mock_shut_down.assert_called_once()


@pytest.fixture(name="write_metrics_config")
def fixture_write_metrics_config(tmp_path) -> str:
    path = tmp_path / "metrics.yml"
    path.write_text("metrics:\n  enabled: true\n  port: 8002\n")
    return str(path)
