from __future__ import annotations

from pathlib import Path

from srccli import __version__


def test_version(run_cli):
    result = run_cli('--version')
    assert result.code == 0
    assert result.out.strip() == __version__


def test_no_arguments_prints_help_to_stderr(run_cli):
    result = run_cli()
    assert result.code == 2
    assert 'Usage: src' in result.err
    assert result.out == ''


def test_help_flag_lists_resources(run_cli):
    result = run_cli('--help')
    assert result.code == 0
    for fragment in ('repo list', 'issue update', 'pr create', 'milestone view',
                     'workflow logs', 'stats user', 'report security', '--api-url'):
        assert fragment in result.out


def test_help_word(run_cli):
    assert run_cli('help').code == 0


def test_help_for_resource(run_cli):
    result = run_cli('help', 'issue')
    assert result.code == 0
    assert 'Issues commands:' in result.out
    assert 'issue close' in result.out


def test_resource_help_flag(run_cli):
    result = run_cli('repo', '--help')
    assert result.code == 0
    assert 'repo fork' in result.out


def test_unknown_resource(run_cli):
    result = run_cli('bogus')
    assert result.code == 2
    assert 'unknown command: bogus' in result.err


def test_unknown_subcommand(run_cli):
    result = run_cli('repo', 'explode')
    assert result.code == 2
    assert 'unknown repo command: explode' in result.err
    assert 'repo list' in result.err


def test_missing_subcommand(run_cli):
    result = run_cli('issue')
    assert result.code == 2
    assert 'missing issue command' in result.err


def test_unknown_global_option(run_cli):
    result = run_cli('--bogus', 'repo', 'list')
    assert result.code == 2
    assert 'unknown option --bogus' in result.err


def test_global_options_stop_at_resource(run_cli, make_session):
    session = make_session((200, {'repositories': []}))
    result = run_cli('--token', 'tok', 'repo', 'list', '-n', '3', session=session)
    assert result.code == 0
    _, url, kwargs = session.request_log[0]
    assert url.endswith('/me/repos')
    assert kwargs['params'] == {'page_size': 3}
    assert kwargs['headers']['Authorization'] == 'Bearer tok'


def test_api_url_flag_overrides_environment(run_cli, make_session):
    session = make_session((200, {'items': []}))
    result = run_cli(
        '--api-url', 'https://flag.example.com', 'repo', 'list',
        session=session, env={'SRC_API_URL': 'https://env.example.com'},
    )
    assert result.code == 0
    assert session.request_log[0][1] == 'https://flag.example.com/me/repos'


def test_environment_token_used(run_cli, make_session):
    session = make_session((200, {'items': []}))
    run_cli('repo', 'list', session=session, env={'SRC_TOKEN': 'from-env'})
    assert session.request_log[0][2]['headers']['Authorization'] == 'Bearer from-env'


def test_config_flag(run_cli, make_session, tmp_path: Path):
    cfg = tmp_path / 'cli.yaml'
    cfg.write_text('api:\n  url: https://file.example.com\ndefaults:\n  page_size: 9\n')
    session = make_session((200, {'items': []}))
    result = run_cli('-c', str(cfg), 'repo', 'list', session=session)
    assert result.code == 0
    _, url, kwargs = session.request_log[0]
    assert url == 'https://file.example.com/me/repos'
    assert kwargs['params'] == {'page_size': 9}


def test_missing_config_file(run_cli, tmp_path: Path):
    result = run_cli('--config', str(tmp_path / 'nope.yaml'), 'repo', 'list')
    assert result.code == 2
    assert 'Configuration file not found' in result.err


def test_verbose_logs_requests_to_stderr(run_cli, make_session):
    session = make_session((200, {'items': []}))
    result = run_cli('-v', '--json-logs', 'repo', 'list', session=session)
    assert result.code == 0
    assert '"operation": "http_request"' in result.err
    assert 'http_request' not in result.out


def test_default_log_level_is_quiet(run_cli, make_session):
    session = make_session((200, {'items': []}))
    result = run_cli('repo', 'list', session=session)
    assert result.err == ''


def test_api_error_exit_code(run_cli, make_session):
    session = make_session((401, {'message': 'unauthorized'}))
    result = run_cli('--token', 'abcdefghijklmnop0123', 'repo', 'view', 'acme', 'widgets',
                     session=session)
    assert result.code == 1
    assert 'HTTP 401' in result.err
    assert 'abcdefghijklmnop0123' not in result.err


def test_command_help_goes_to_stdout(run_cli):
    result = run_cli('issue', 'create', '--help')
    assert result.code == 0
    assert result.out.startswith('Usage: src issue create <org> <repo> <title> [options]')
    assert '--label' in result.out


def test_help_wins_over_parse_error(run_cli):
    result = run_cli('issue', 'create', '--bogus', '-h')
    assert result.code == 0
    assert 'Usage: src issue create' in result.out


def test_command_option_error_prints_help(run_cli):
    result = run_cli('pr', 'list', 'acme', 'widgets', '--filter', 'weird')
    assert result.code == 2
    assert 'validation failed for -f/--filter' in result.err
    assert 'Usage: src pr list' in result.err


def test_too_few_positionals(run_cli):
    result = run_cli('repo', 'view', 'acme')
    assert result.code == 2
    assert 'expected 2 argument(s), got 1' in result.err


def test_too_many_positionals(run_cli):
    result = run_cli('repo', 'view', 'acme', 'widgets', 'extra')
    assert result.code == 2
    assert "unexpected argument 'extra'" in result.err
