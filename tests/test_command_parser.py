import pytest

from statui.command_parser import CommandParser, CommandType


@pytest.fixture
def parser():
    return CommandParser()


@pytest.mark.parametrize(
    "text, expected",
    [
        (":open Things", CommandType.OPEN),
        (":o Things", CommandType.OPEN),
        (":f Datastreams", CommandType.FOLLOW),
        (":n", CommandType.NEXT),
        (":b", CommandType.BACK),
        (":g 0", CommandType.CRUMB),
        (":r", CommandType.REFRESH),
        (":q", CommandType.QUIT),
        (":?", CommandType.HELP),
        (":connect", CommandType.CONNECT),
    ],
)
def test_aliases_and_names(parser, text, expected):
    cmd = parser.parse(text)
    assert cmd.command_type is expected
    assert cmd.error is None


def test_quoted_link_name(parser):
    cmd = parser.parse(':follow "Observed Property"')
    assert cmd.command_type is CommandType.FOLLOW
    assert cmd.argument == "Observed Property"
    assert cmd.error is None


def test_connect_with_url(parser):
    cmd = parser.parse(":c https://example.org/v1.1/")
    assert cmd.argument == "https://example.org/v1.1/"
    assert cmd.error is None


@pytest.mark.parametrize(
    "text, error",
    [
        ("", "Empty command"),
        ("open Things", "Commands must start with ':'"),
        (":", "No command after ':'"),
        (":frobnicate", "Unknown command: frobnicate"),
        (':follow "unterminated', "Invalid command syntax"),
    ],
)
def test_unknown_input(parser, text, error):
    cmd = parser.parse(text)
    assert cmd.command_type is CommandType.UNKNOWN
    assert error in cmd.error


@pytest.mark.parametrize(
    "text, error",
    [
        (":open", "requires a name argument"),
        (":follow a b", "accepts only one argument"),
        (":crumb", "exactly one index"),
        (":crumb x", "non-negative number"),
        (":connect a b", "at most one URL"),
        (":next 2", "does not accept arguments"),
    ],
)
def test_argument_validation(parser, text, error):
    cmd = parser.parse(text)
    assert cmd.command_type is not CommandType.UNKNOWN
    assert error in cmd.error


def test_help_lists_commands(parser):
    text = parser.get_help_text()
    for name in ("connect", "open", "follow", "next", "back", "crumb", "refresh", "quit"):
        assert f":{name}" in text
