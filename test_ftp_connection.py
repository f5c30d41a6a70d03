"""Control-connection basics against a live honeypot on loopback."""
from ftp_honeypot import DEFAULT_WELCOME_MESSAGE


def test_welcome_banner(client):
    assert client.welcome == "220 " + DEFAULT_WELCOME_MESSAGE


def test_any_credentials_are_accepted(client):
    assert client.cmd("USER admin").startswith("331 ")
    assert client.cmd("PASS definitely-wrong") == "230 Login successful."


def test_pass_without_user(client):
    assert client.cmd("PASS x") == "230 Login successful."


def test_syst_and_pwd(client):
    assert client.cmd("SYST") == "215 UNIX Type: L8"
    assert client.cmd("PWD") == '257 "/" is the current directory.'


def test_commands_are_case_insensitive(client):
    assert client.cmd("pwd") == '257 "/" is the current directory.'


def test_type(client):
    assert client.cmd("TYPE I") == "200 Switching to Binary mode."
    assert client.cmd("TYPE i") == "200 Switching to Binary mode."
    assert client.cmd("TYPE A") == "200 OK"
    assert client.cmd("TYPE") == "200 OK"


def test_unknown_command(client):
    assert client.cmd("STOR evil.php") == "502 Command not implemented."
    assert client.cmd("NOOP") == "502 Command not implemented."


def test_blank_lines_get_no_reply(client):
    client.send("")
    client.send("   ")
    assert client.cmd("SYST") == "215 UNIX Type: L8"


def test_quit_closes_connection(client):
    assert client.cmd("QUIT") == "221 Goodbye."
    assert client.readline() == ""


def test_sessions_are_independent(ftp_server, client):
    from conftest import ControlClient

    other = ControlClient(ftp_server)
    try:
        assert client.cmd("CWD /documents").startswith("250 ")
        assert other.cmd("PWD") == '257 "/" is the current directory.'
        assert client.cmd("PWD") == '257 "/documents" is the current directory.'
    finally:
        other.close()
