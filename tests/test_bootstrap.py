"""
Tests for setup_logs() and the handler chain it builds.

Tests cover:
- Argument and output validation
- File, stdout and CloudWatch outputs
- Redaction wiring and the warning when it is off
- Bound service.name / host attributes
- Routing stdlib logging through the chain
- Ownership of the log file across failed and repeated setups
"""

import builtins
import json
import logging
import socket
import threading

import pytest
from botocore.exceptions import ClientError

from logredact import (
    EmptyAppNameError,
    InvalidLogOutputConfig,
    JSONHandler,
    LogConfig,
    MultiHandler,
    RedactHandler,
    SinkError,
    StructuredLogBridge,
    TextHandler,
    close_logs,
    get_default,
    setup_logs,
)
from logredact.bootstrap import TeeWriter, build_handler, open_writer


def read_lines(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line]


@pytest.fixture
def opened_files(monkeypatch):
    """Record every file the bootstrap opens."""
    opened = []

    def tracking_open(*args, **kwargs):
        stream = builtins.open(*args, **kwargs)
        opened.append(stream)
        return stream

    monkeypatch.setattr("logredact.bootstrap.open", tracking_open, raising=False)
    return opened


class DeniedLogsClient:
    """boto3 logs client stand-in whose credentials lack CreateLogGroup."""

    def create_log_group(self, **kwargs):
        raise ClientError(
            {"Error": {"Code": "AccessDeniedException", "Message": "denied"}}, "CreateLogGroup"
        )


class TestValidation:
    def test_empty_app_name(self):
        with pytest.raises(EmptyAppNameError):
            setup_logs("", LogConfig(to_stdout=True))

    def test_no_output_configured(self):
        with pytest.raises(InvalidLogOutputConfig):
            setup_logs("my-app", LogConfig())

    def test_unopenable_file(self, tmp_path):
        config = LogConfig(output_file=str(tmp_path / "missing" / "app.log"))

        with pytest.raises(InvalidLogOutputConfig, match="Failed to open output file"):
            setup_logs("my-app", config)


class TestSetupLogs:
    def test_json_file_output_with_redaction(self, tmp_path):
        log_file = tmp_path / "execution.log"
        config = LogConfig(output_file=str(log_file), redacted_keys=["password"])

        log = setup_logs("my-app", config)
        log.info("hello", password="hunter2", user="alice")

        entry = read_lines(log_file)[0]
        assert entry["message"] == "hello"
        assert entry["password"] == "***"
        assert entry["user"] == "alice"
        assert entry["service.name"] == "my-app"
        assert entry["host"] == socket.gethostname()
        assert entry["source"]["function"] == "test_json_file_output_with_redaction"
        assert get_default() is log

    def test_file_is_appended(self, tmp_path):
        log_file = tmp_path / "execution.log"
        log_file.write_text('{"message": "previous"}\n', encoding="utf-8")

        setup_logs("my-app", LogConfig(output_file=str(log_file))).info("next")

        assert [e["message"] for e in read_lines(log_file)] == ["previous", "next"]

    def test_text_stdout_output(self, capsys):
        log = setup_logs("my-app", LogConfig(format="text", to_stdout=True, redacted_keys=["token"]))
        log.info("started", api_token="hunter2")

        out = capsys.readouterr().out
        assert "service.name=my-app" in out
        assert "api_token=***" in out
        assert "hunter2" not in out

    def test_level_from_config(self, capsys):
        log = setup_logs("my-app", LogConfig(to_stdout=True, level="warn"))
        log.info("quiet")
        log.warning("loud")

        out = capsys.readouterr().out
        assert "quiet" not in out
        assert "loud" in out

    def test_warns_when_redaction_is_off(self, caplog, capsys):
        with caplog.at_level(logging.WARNING, logger="logredact"):
            setup_logs("my-app", LogConfig(to_stdout=True))

        assert "No redaction keys configured" in caplog.text

    def test_reads_config_from_environment(self, tmp_path, monkeypatch):
        log_file = tmp_path / "env.log"
        monkeypatch.setenv("LOG_OUTPUT_TO_FILE", str(log_file))
        monkeypatch.setenv("LOG_REDACTED_KEYS", "secret")
        monkeypatch.chdir(tmp_path)

        setup_logs("env-app").info("m", client_secret="s")

        assert read_lines(log_file)[0]["client_secret"] == "***"

    def test_bridge_stdlib(self, tmp_path):
        log_file = tmp_path / "bridge.log"
        setup_logs(
            "my-app",
            LogConfig(output_file=str(log_file), redacted_keys=["token"]),
            bridge_stdlib=True,
        )

        logging.getLogger("some.library").warning("refreshed", extra={"access_token": "t"})

        entry = read_lines(log_file)[-1]
        assert entry["message"] == "refreshed"
        assert entry["access_token"] == "***"
        assert entry["service.name"] == "my-app"
        assert entry["logger"] == "some.library"

    def test_bridge_is_not_duplicated(self, tmp_path):
        from logredact import StructuredLogBridge

        config = LogConfig(output_file=str(tmp_path / "a.log"))
        setup_logs("my-app", config, bridge_stdlib=True)
        setup_logs("my-app", config, bridge_stdlib=True)

        bridges = [h for h in logging.getLogger().handlers if isinstance(h, StructuredLogBridge)]
        assert len(bridges) == 1


class TestBuildHandler:
    def test_chain_without_keys(self, capsys):
        handler = build_handler("my-app", LogConfig(to_stdout=True))

        assert isinstance(handler, JSONHandler)

    def test_chain_with_keys(self, capsys):
        handler = build_handler("my-app", LogConfig(format="text", to_stdout=True, redacted_keys=["x"]))

        assert isinstance(handler, RedactHandler)
        assert isinstance(handler.inner, TextHandler)

    def test_cloudwatch_output(self, cloudwatch_logs_client, capsys):
        config = LogConfig(to_stdout=True, cloudwatch_group="/app/boot", redacted_keys=["password"])

        log = setup_logs("boot-app", config, cloudwatch_client=cloudwatch_logs_client)
        log.info("shipped", password="pw")

        assert isinstance(log.handler.inner, MultiHandler)
        events = cloudwatch_logs_client.get_log_events(
            logGroupName="/app/boot", logStreamName="boot-app"
        )["events"]
        body = json.loads(events[0]["message"])
        assert body["password"] == "***"
        assert body["service.name"] == "boot-app"
        assert '"password": "***"' in capsys.readouterr().out


class TestWriters:
    def test_open_writer_none(self):
        assert open_writer("", False) is None

    def test_tee_writer(self, tmp_path, capsys):
        writer = open_writer(str(tmp_path / "tee.log"), True)
        assert isinstance(writer, TeeWriter)

        writer.write("line\n")
        writer.flush()

        assert (tmp_path / "tee.log").read_text(encoding="utf-8") == "line\n"
        assert capsys.readouterr().out == "line\n"


class TestStdlibBridgeWithCloudWatch:
    def test_debug_bridge_does_not_deadlock_on_client_logging(self, cloudwatch_logs_client):
        """botocore logs at DEBUG while the CloudWatch sink is writing."""
        config = LogConfig(level="debug", cloudwatch_group="/app/bridge", redacted_keys=["password"])
        log = setup_logs("bridge-app", config, bridge_stdlib=True, cloudwatch_client=cloudwatch_logs_client)

        worker = threading.Thread(target=log.info, args=("hello",), kwargs={"password": "pw"}, daemon=True)
        worker.start()
        worker.join(timeout=10)

        assert not worker.is_alive()
        events = cloudwatch_logs_client.get_log_events(
            logGroupName="/app/bridge", logStreamName="bridge-app"
        )["events"]
        bodies = [json.loads(e["message"]) for e in events]
        assert [b["message"] for b in bodies] == ["hello"]
        assert bodies[0]["password"] == "***"

    def test_stdlib_record_reaches_cloudwatch_once(self, cloudwatch_logs_client):
        config = LogConfig(level="debug", cloudwatch_group="/app/bridge", redacted_keys=["token"])
        setup_logs("bridge-app", config, bridge_stdlib=True, cloudwatch_client=cloudwatch_logs_client)

        logging.getLogger("some.library").info("refreshed", extra={"access_token": "t"})

        events = cloudwatch_logs_client.get_log_events(
            logGroupName="/app/bridge", logStreamName="bridge-app"
        )["events"]
        bodies = [json.loads(e["message"]) for e in events]
        assert [b["message"] for b in bodies] == ["refreshed"]
        assert bodies[0]["access_token"] == "***"


class TestLogFileOwnership:
    def test_file_closed_when_cloudwatch_setup_fails(self, tmp_path, opened_files):
        config = LogConfig(output_file=str(tmp_path / "app.log"), cloudwatch_group="/app/denied")

        with pytest.raises(SinkError):
            setup_logs("my-app", config, cloudwatch_client=DeniedLogsClient())

        assert len(opened_files) == 1
        assert opened_files[0].closed

    def test_build_handler_closes_file_on_failure(self, tmp_path, opened_files, capsys):
        config = LogConfig(
            output_file=str(tmp_path / "app.log"), to_stdout=True, cloudwatch_group="/app/denied"
        )

        with pytest.raises(SinkError):
            build_handler("my-app", config, cloudwatch_client=DeniedLogsClient())

        assert opened_files[0].closed

    def test_failed_setup_keeps_previous_logger(self, tmp_path, opened_files):
        first = setup_logs("my-app", LogConfig(output_file=str(tmp_path / "first.log")))
        bad = LogConfig(output_file=str(tmp_path / "second.log"), cloudwatch_group="/app/denied")

        with pytest.raises(SinkError):
            setup_logs("my-app", bad, cloudwatch_client=DeniedLogsClient())

        assert get_default() is first
        assert not opened_files[0].closed
        assert opened_files[1].closed

    def test_repeated_setup_closes_previous_file(self, tmp_path, opened_files):
        setup_logs("my-app", LogConfig(output_file=str(tmp_path / "first.log")))
        log = setup_logs("my-app", LogConfig(output_file=str(tmp_path / "second.log")))
        log.info("after")

        first, second = opened_files
        assert first.closed
        assert not second.closed
        assert read_lines(tmp_path / "second.log")[0]["message"] == "after"

    def test_repeated_setup_replaces_bridge_even_without_bridging(self, tmp_path, opened_files):
        setup_logs("my-app", LogConfig(output_file=str(tmp_path / "first.log")), bridge_stdlib=True)
        setup_logs("my-app", LogConfig(output_file=str(tmp_path / "second.log")))

        bridges = [h for h in logging.getLogger().handlers if isinstance(h, StructuredLogBridge)]
        assert bridges == []

    def test_close_logs(self, tmp_path, opened_files):
        installed = setup_logs("my-app", LogConfig(output_file=str(tmp_path / "app.log")), bridge_stdlib=True)

        close_logs()

        assert opened_files[0].closed
        assert get_default() is not installed
        assert not [h for h in logging.getLogger().handlers if isinstance(h, StructuredLogBridge)]

    def test_stdout_is_never_closed(self, capsys):
        setup_logs("my-app", LogConfig(to_stdout=True))
        setup_logs("my-app", LogConfig(to_stdout=True)).info("still open")

        close_logs()

        assert "still open" in capsys.readouterr().out
