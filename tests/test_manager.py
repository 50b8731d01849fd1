"""
Tests for MirrorManager — bootstrap barrier, failure isolation and
aggregate run status.
"""

import threading
from unittest import mock

import pytest

from repo_mirror.mirror.api_client import DestinationApi
from repo_mirror.mirror.errors import BootstrapError, MirrorStep, PipelineError
from repo_mirror.mirror.manager import MirrorManager
from repo_mirror.mirror.pipeline import MirrorPipeline
from repo_mirror.mirror.spec import MirrorSpec, parse_spec, parse_specs
from repo_mirror.models.result import MirrorResult, RunResult
from repo_mirror.observability.metrics import metrics


class _FakePipeline:
    """Succeeds unless the source repo is listed in ``fail``."""

    def __init__(self, fail=()):
        self.fail = set(fail)
        self.ran = []
        self._lock = threading.Lock()

    def run(self, spec: MirrorSpec) -> MirrorResult:
        with self._lock:
            self.ran.append(spec.source_repo)
        if spec.source_repo in self.fail:
            raise PipelineError(MirrorStep.CLONE_SOURCE, "fatal: repository not found")
        return MirrorResult.succeeded(spec)


@pytest.fixture
def api():
    return mock.create_autospec(DestinationApi, instance=True)


def _manager(settings, api, pipeline):
    return MirrorManager(settings, api=api, pipeline=pipeline)


class TestFailureIsolation:
    """One failing mirror never affects the others."""

    def test_other_mirror_succeeds(self, settings, api):
        pipeline = _FakePipeline(fail={"octo/a"})
        manager = _manager(settings, api, pipeline)

        run = manager.mirror_all(parse_specs("octo/a\nocto/b"))

        assert [r.status for r in run.results] == ["failed", "succeeded"]
        assert run.any_failed
        assert run.failures[0].spec.source_repo == "octo/a"
        assert run.failures[0].step is MirrorStep.CLONE_SOURCE
        assert run.failures[0].reason == "fatal: repository not found"

    def test_every_spec_settles_once(self, settings, api):
        specs = [parse_spec(f"octo/repo{i}") for i in range(25)]
        pipeline = _FakePipeline(fail={"octo/repo3", "octo/repo17"})
        manager = _manager(settings, api, pipeline)

        run = manager.mirror_all(specs)

        assert len(run.results) == len(specs)
        assert [r.spec for r in run.results] == specs
        assert sorted(pipeline.ran) == sorted(s.source_repo for s in specs)
        assert run.failed_count == 2

    def test_unexpected_exception_becomes_failed_result(self, settings, api):
        pipeline = mock.Mock()
        pipeline.run.side_effect = RuntimeError("disk full")
        manager = _manager(settings, api, pipeline)

        run = manager.mirror_all([parse_spec("octo/a")])

        assert run.results[0].status == "failed"
        assert run.results[0].step is None
        assert run.results[0].reason == "disk full"

    def test_metrics_counted(self, settings, api):
        manager = _manager(settings, api, _FakePipeline(fail={"octo/a"}))
        manager.mirror_all(parse_specs("octo/a\nocto/b\nocto/c"))

        assert metrics.get("mirror.succeeded") == 2
        assert metrics.get("mirror.failed") == 1


class TestRun:
    """run(): bootstrap first, then every configured spec."""

    @mock.patch("repo_mirror.mirror.manager.bootstrap_environment")
    def test_bootstrap_before_mirrors(self, mock_bootstrap, settings, api):
        order = []
        mock_bootstrap.side_effect = lambda *a: order.append("bootstrap")

        class _Recording(_FakePipeline):
            def run(self, spec):
                order.append(spec.source_repo)
                return super().run(spec)

        manager = _manager(settings, api, _Recording())
        run = manager.run()

        assert order[0] == "bootstrap"
        assert sorted(order[1:]) == ["octo/gadget", "octo/widget"]
        assert not run.any_failed

    @mock.patch("repo_mirror.mirror.manager.bootstrap_environment")
    def test_bootstrap_failure_runs_nothing(self, mock_bootstrap, settings, api):
        mock_bootstrap.side_effect = BootstrapError("cannot start ssh-agent: boom")
        pipeline = _FakePipeline()
        manager = _manager(settings, api, pipeline)

        with pytest.raises(BootstrapError):
            manager.run()

        assert pipeline.ran == []

    @mock.patch("repo_mirror.mirror.manager.bootstrap_environment")
    def test_skip_bootstrap(self, mock_bootstrap, settings, api):
        manager = _manager(settings, api, _FakePipeline())
        manager.run(bootstrap=False)
        mock_bootstrap.assert_not_called()

    def test_default_pipeline_built_from_settings(self, settings, api):
        manager = MirrorManager(settings, api=api)
        assert isinstance(manager.pipeline, MirrorPipeline)
        assert manager.pipeline.api is api


class TestRunResult:
    """Aggregate status."""

    def _results(self, statuses):
        results = []
        for i, status in enumerate(statuses):
            spec = parse_spec(f"octo/r{i}")
            if status == "ok":
                results.append(MirrorResult.succeeded(spec))
            else:
                results.append(MirrorResult.failed(spec, RuntimeError("x")))
        return RunResult(results=results)

    def test_any_failure_fails_run(self):
        run = self._results(["ok", "fail", "ok"])
        assert run.any_failed
        assert run.summary() == "1 of 3 repositories failed to mirror"

    def test_all_succeeded(self):
        run = self._results(["ok", "ok"])
        assert not run.any_failed
        assert run.summary() == "2 repositories mirrored"

    def test_empty_run_succeeds(self):
        assert not RunResult().any_failed
