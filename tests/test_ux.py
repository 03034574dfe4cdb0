"""Tests for UX helper functions."""

import io

import pytest

from srccli.ux import Colors, colorize, print_error, print_header, print_kv, print_success


class _TTY(io.StringIO):
    def isatty(self) -> bool:
        return True


def test_colorize_plain_for_non_tty():
    assert colorize('hi', Colors.RED, stream=io.StringIO()) == 'hi'


def test_colorize_for_tty(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv('NO_COLOR', raising=False)
    monkeypatch.setenv('TERM', 'xterm')
    out = colorize('hi', Colors.GREEN, bold=True, stream=_TTY())
    assert out == f'{Colors.BOLD}{Colors.GREEN}hi{Colors.RESET}'


def test_no_color_env_disables(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv('NO_COLOR', '1')
    assert colorize('hi', Colors.GREEN, stream=_TTY()) == 'hi'


def test_dumb_terminal_disables(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv('NO_COLOR', raising=False)
    monkeypatch.setenv('TERM', 'dumb')
    assert colorize('hi', Colors.GREEN, stream=_TTY()) == 'hi'


def test_print_success_and_error():
    out = io.StringIO()
    err = io.StringIO()
    print_success('done', out)
    print_error('failed', err)
    assert out.getvalue() == '✓ done\n'
    assert err.getvalue() == '✗ failed\n'


def test_print_error_defaults_to_stderr(capsys: pytest.CaptureFixture[str]):
    print_error('oops')
    captured = capsys.readouterr()
    assert captured.err == '✗ oops\n'
    assert captured.out == ''


def test_print_header_adds_blank_line():
    out = io.StringIO()
    print_header('Repositories', out)
    assert out.getvalue() == 'Repositories\n\n'


def test_print_kv_aligns_key():
    out = io.StringIO()
    print_kv('Visibility', 'public', out, width=12)
    assert out.getvalue() == '  Visibility:  public\n'
