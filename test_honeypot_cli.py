import pytest

import honeypot_cli
import honeypot_log
from ftp_honeypot import DEFAULT_PASV_IP, DEFAULT_RETR_PAYLOAD, HoneypotConfig


def test_defaults():
    args = honeypot_cli.build_parser().parse_args([])
    assert args.address == "0.0.0.0"
    assert args.port == 2121
    assert args.pasv_ip == DEFAULT_PASV_IP
    assert args.command_log == "commands.jsonl"
    assert args.data_timeout is None

    config = honeypot_cli.load_config(args)
    assert config == HoneypotConfig()
    assert config.retr_payload == DEFAULT_RETR_PAYLOAD


def test_load_config_overrides(tmp_path):
    payload = tmp_path / "payload.bin"
    payload.write_bytes(b"\x00decoy\xff")
    args = honeypot_cli.build_parser().parse_args([
        "--pasv-ip", "203.0.113.7",
        "--banner", "FTP ready",
        "--payload-file", str(payload),
        "--data-timeout", "2.5",
    ])
    config = honeypot_cli.load_config(args)
    assert config.pasv_ip == "203.0.113.7"
    assert config.welcome_message == "FTP ready"
    assert config.retr_payload == b"\x00decoy\xff"
    assert config.data_timeout == 2.5


@pytest.mark.parametrize("argv", [
    ["--pasv-ip", "not-an-ip"],
    ["--pasv-ip", "::1"],
    ["--payload-file", "/nonexistent/payload.bin"],
])
def test_bad_configuration_exits_before_listening(argv, monkeypatch):
    started = []
    monkeypatch.setattr(honeypot_cli, "start_ftp_honeypot", lambda *a, **kw: started.append(a))
    with pytest.raises(SystemExit) as exc:
        honeypot_cli.main(argv)
    assert exc.value.code == 2
    assert not started


def test_main_starts_server(tmp_path, monkeypatch):
    started = []
    monkeypatch.setattr(honeypot_cli, "start_ftp_honeypot", lambda *a: started.append(a))
    honeypot_cli.main([
        "-a", "127.0.0.1",
        "-p", "2222",
        "--seed", "1",
        "--log-file", "-",
        "--command-log", str(tmp_path / "c.jsonl"),
    ])
    (address, port, root, command_log, config) = started[0]
    assert (address, port) == ("127.0.0.1", 2222)
    assert root.name == "/" and root.children
    assert command_log.path == str(tmp_path / "c.jsonl")
    assert isinstance(config, HoneypotConfig)


def test_main_points_log_file(tmp_path, monkeypatch):
    monkeypatch.setattr(honeypot_cli, "start_ftp_honeypot", lambda *a: None)
    log_path = tmp_path / "ops.log"
    honeypot_cli.main(["--log-file", str(log_path), "--command-log", str(tmp_path / "c.jsonl")])
    assert honeypot_log._LOG_FILE_PATH == str(log_path)
