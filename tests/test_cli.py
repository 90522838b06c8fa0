import pytest

from kernel_watchdog import cli


@pytest.fixture(autouse=True)
def no_logging_handlers(monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)


def test_modes_are_exclusive():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["--report", "--daemon"])


def test_no_mode_prints_help(capsys, tmp_path):
    assert cli.main(["--config", str(tmp_path / "none.conf")]) == 0
    assert "--panic-save" in capsys.readouterr().out


def test_install_requires_root(monkeypatch, capsys, tmp_path):
    monkeypatch.setattr(cli.os, "geteuid", lambda: 1000)
    assert cli.main(["--config", str(tmp_path / "none.conf"), "--install"]) == 1
    assert "root" in capsys.readouterr().err


def test_panic_save_reports_count(monkeypatch, capsys, tmp_path):
    import kernel_watchdog.panic as panic

    monkeypatch.setattr(panic, "panic_save", lambda: 3)
    assert cli.main(["--config", str(tmp_path / "none.conf"), "--panic-save"]) == 0
    assert "[CW] 3 saved" in capsys.readouterr().out
