import logging

import pytest

from knslogs import cli
from knslogs.exceptions import ClusterConfigError
from knslogs.tools.patterns import resolve_filter_spec


def run_main(argv):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv)
    return excinfo.value.code


@pytest.fixture
def no_cluster(monkeypatch):
    def fail(settings=None):
        raise AssertionError("the cluster must not be contacted")

    monkeypatch.setattr(cli, "get_k8s_client", fail)


def test_no_arguments_prints_help(capsys):
    assert run_main([]) == 0
    out = capsys.readouterr().out
    assert "usage: knslogs [options] <namespace>" in out
    assert "--rg-args" in out
    assert "Examples:" in out


def test_help_flag(capsys):
    assert run_main(["--help"]) == 0
    assert "--search" in capsys.readouterr().out


def test_second_positional_is_an_unknown_argument(capsys, no_cluster):
    assert run_main(["demo", "extra"]) == 1
    assert "Unknown argument: extra" in capsys.readouterr().err


def test_missing_namespace(capsys, no_cluster):
    assert run_main(["--error"]) == 1
    assert "Namespace is required" in capsys.readouterr().err


def test_unknown_flag_exits_1(no_cluster):
    assert run_main(["--bogus", "demo"]) == 1


def test_short_h_selects_http_pattern():
    args = cli.parse_args(["-h", "demo"])
    assert resolve_filter_spec(args.selections).pattern == r"\b(404|403|500|502|503|504)\b"


def test_last_mode_flag_wins():
    args = cli.parse_args(["--error", "--warn", "demo"])
    assert resolve_filter_spec(args.selections).pattern == "warn"
    assert args.namespace == "demo"

    args = cli.parse_args(["-s", "oops", "-e", "demo"])
    assert resolve_filter_spec(args.selections).pattern == "error"


def test_option_values_may_start_with_a_dash():
    args = cli.parse_args(["--all", "--rg-args", "--ignore-case --follow", "demo"])
    assert args.rg_args == "--ignore-case --follow"

    args = cli.parse_args(["-s", "-timeout", "demo"])
    assert resolve_filter_spec(args.selections).pattern == "-timeout"


def test_namespace_may_come_first():
    args = cli.parse_args(["demo", "--file", "out.md", "-w"])
    assert args.namespace == "demo"
    assert args.report_file == "out.md"
    assert resolve_filter_spec(args.selections).pattern == "warn"


def test_bad_search_arguments_fail_before_cluster_access(capsys, no_cluster):
    assert run_main(["--error", "--rg-args", "--no-such-flag", "demo"]) == 1
    assert "Invalid search arguments" in capsys.readouterr().err


def test_missing_cluster_config(monkeypatch, capsys):
    def fail(settings=None):
        raise ClusterConfigError("Failed to load Kubernetes config: nothing found")

    monkeypatch.setattr(cli, "get_k8s_client", fail)

    assert run_main(["--error", "demo"]) == 1
    assert "Failed to load Kubernetes config" in capsys.readouterr().err


def test_context_flag_reaches_client(monkeypatch, demo_cluster):
    seen = []

    def client(settings=None):
        seen.append(settings.kube_context)
        return demo_cluster

    monkeypatch.setattr(cli, "get_k8s_client", client)

    assert run_main(["--context", "staging", "--error", "demo"]) == 0
    assert seen == ["staging"]


def test_error_report_end_to_end(tmp_path, monkeypatch, capsys, demo_cluster):
    monkeypatch.setattr(cli, "get_k8s_client", lambda settings=None: demo_cluster)
    report = tmp_path / "out.md"

    assert run_main(["--error", "--file", str(report), "demo"]) == 0

    content = report.read_text()
    assert content.startswith("# Logs from Namespace: demo\n")
    assert "## Search Pattern Used\n\nFilter applied: `error`" in content
    assert "## Pod: web-1 in Namespace: demo\n" in content

    app_section = content.split("### Container: app\n")[1].split("### Container: sidecar\n")[0]
    assert app_section == (
        "```\n"
        "listening on :8080\n"
        "GET /health 200\n"
        "ERROR db connection refused\n"
        "retrying\n"
        "retry 1\n"
        "retry 2\n"
        "```\n"
    )

    sidecar_section = content.split("### Container: sidecar\n")[1]
    assert sidecar_section == (
        "```\n"
        "warn: slow upstream\n"
        "upstream ok\n"
        "error: upstream reset\n"
        "upstream ok\n"
        "```\n"
    )

    # Progress headers still go to the terminal, log bodies do not.
    out = capsys.readouterr().out
    assert "Pod: web-1 in Namespace: demo" in out
    assert "Container: app" in out
    assert "ERROR db connection refused" not in out


def test_full_logs_to_terminal(monkeypatch, capsys, demo_cluster):
    monkeypatch.setenv("NO_COLOR", "1")
    monkeypatch.setattr(cli, "get_k8s_client", lambda settings=None: demo_cluster)

    assert run_main(["demo"]) == 0

    out = capsys.readouterr().out
    assert out.startswith(
        "Pod: web-1 in Namespace: demo\n"
        "Container: app\n"
        "No valid search pattern specified. Showing full logs.\n"
        "starting app\n"
    )
    assert out.count("No valid search pattern specified. Showing full logs.") == 2
    assert out.endswith("error: upstream reset\nupstream ok\n")


def test_request_timeout_reaches_every_api_call(monkeypatch, demo_cluster):
    monkeypatch.setenv("KNSLOGS_REQUEST_TIMEOUT", "7")
    monkeypatch.setattr(cli, "get_k8s_client", lambda settings=None: demo_cluster)

    assert run_main(["--error", "demo"]) == 0

    assert demo_cluster.timeouts
    assert set(demo_cluster.timeouts) == {7}


def test_interrupt_exits_130(monkeypatch, demo_cluster):
    monkeypatch.setattr(cli, "get_k8s_client", lambda settings=None: demo_cluster)

    def interrupted(*args, **kwargs):
        raise KeyboardInterrupt

    monkeypatch.setattr(cli, "collect_namespace_logs", interrupted)

    assert run_main(["--error", "demo"]) == 130


@pytest.fixture
def logging_config(monkeypatch, demo_cluster):
    seen = {}
    monkeypatch.setattr(cli, "get_k8s_client", lambda settings=None: demo_cluster)
    monkeypatch.setattr(cli.logging, "basicConfig", lambda **kwargs: seen.update(kwargs))
    return seen


def test_verbose_forces_debug_logging(monkeypatch, logging_config):
    monkeypatch.setenv("KNSLOGS_LOG_LEVEL", "error")

    assert run_main(["-v", "--error", "demo"]) == 0

    assert logging_config["level"] == logging.DEBUG
    assert logging_config["format"] == cli.LOG_FORMAT


def test_log_level_from_environment(monkeypatch, logging_config):
    monkeypatch.setenv("KNSLOGS_LOG_LEVEL", "info")
    assert run_main(["--error", "demo"]) == 0
    assert logging_config["level"] == logging.INFO


def test_unknown_log_level_falls_back_to_warning(monkeypatch, logging_config):
    monkeypatch.setenv("KNSLOGS_LOG_LEVEL", "chatty")
    assert run_main(["--error", "demo"]) == 0
    assert logging_config["level"] == logging.WARNING


def test_unwritable_report_file_fails_before_cluster_access(tmp_path, capsys, no_cluster):
    report = tmp_path / "no-such-dir" / "out.md"

    assert run_main(["--error", "--file", str(report), "demo"]) == 1

    err = capsys.readouterr().err
    assert "ERROR: Cannot write report file" in err
    assert "Traceback" not in err
    assert not report.exists()


def test_closed_output_pipe_exits_quietly(monkeypatch, tmp_path, capsys, demo_cluster):
    monkeypatch.setattr(cli, "get_k8s_client", lambda settings=None: demo_cluster)
    report = tmp_path / "out.md"
    closed = []

    def reader_went_away(namespace, filter_spec, sink, v1, **kwargs):
        sink.write_title(namespace)
        closed.append(sink)
        raise BrokenPipeError(32, "Broken pipe")

    monkeypatch.setattr(cli, "collect_namespace_logs", reader_went_away)

    assert run_main(["--error", "--file", str(report), "demo"]) == 1

    assert capsys.readouterr().err == ""
    # The report handle is closed and what was written is kept.
    assert closed[0].sinks[1]._file is None
    assert report.read_text() == "# Logs from Namespace: demo\n\n"
