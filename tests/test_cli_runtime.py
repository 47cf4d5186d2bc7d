import pytest

from utils import cli_runtime


def test_parser_defaults():
    args = cli_runtime.build_failsim_arg_parser().parse_args([])
    assert args.config is None
    assert args.connection_string is None
    assert args.write_count is None
    assert args.stop_nodes is False
    assert args.show_schedule is False


def test_parser_overrides_map_to_config_keys():
    args = cli_runtime.build_failsim_arg_parser().parse_args([
        "--connection-string", "mongodb://db:27017",
        "--write-count", "25",
        "--collection", "People",
    ])
    assert cli_runtime.overrides_from_args(args) == {
        'connection_string': "mongodb://db:27017",
        'database': None,
        'collection': "People",
        'write_count': 25,
    }


def test_write_count_must_be_integer():
    with pytest.raises(SystemExit):
        cli_runtime.build_failsim_arg_parser().parse_args(["--write-count", "many"])


@pytest.mark.parametrize("flag, env, expected", [
    (True, {}, True),
    (False, {}, False),
    (False, {"NO_COLOR": "1"}, True),
    (False, {"FAILSIM_NO_COLOR": "yes"}, True),
    (False, {"NO_COLOR": ""}, False),
])
def test_color_disabled(flag, env, expected):
    assert cli_runtime.color_disabled(flag, env) is expected


def test_configure_console_is_noop_off_windows(monkeypatch):
    monkeypatch.setattr(cli_runtime.sys, "platform", "linux")
    cli_runtime.configure_windows_console_utf8()
