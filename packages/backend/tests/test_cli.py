"""CLI smoke tests (no network)."""

from click.testing import CliRunner

from careboard.cli.main import TerminalNotifier, main
from careboard.realtime.subscriber import Notification


def test_help_lists_commands():
    result = CliRunner().invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "listen" in result.output
    assert "status" in result.output


def test_listen_rejects_unknown_kind():
    result = CliRunner().invoke(main, ["listen", "--type", "heartbeat"])
    assert result.exit_code != 0


def test_terminal_notifier_prints(capsys):
    TerminalNotifier().notify(
        Notification("Critical Lab Result", "Troponin: 0.8", variant="destructive")
    )
    assert "[Critical Lab Result] Troponin: 0.8" in capsys.readouterr().out
