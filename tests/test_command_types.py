"""Tests for the Cmd and Command value types and argument splitting."""

import dataclasses

import pytest

from chatrelay.commands.base import Cmd, Command, split_args
from chatrelay.exceptions import MalformedCommandError


# --- split_args ---

def test_split_args_empty_string_gives_sentinel():
    assert split_args("") == [""]


def test_split_args_separator_only_gives_sentinel():
    assert split_args(":::") == [""]


def test_split_args_splits_on_colon():
    assert split_args("a:b:c") == ["a", "b", "c"]


def test_split_args_drops_empty_tokens():
    """Consecutive, leading and trailing separators produce no empty tokens."""
    assert split_args(":a::b:") == ["a", "b"]


def test_split_args_keeps_whitespace_inside_tokens():
    assert split_args("Alice Smith:hello there") == ["Alice Smith", "hello there"]


def test_split_args_none_gives_sentinel():
    assert split_args(None) == [""]


# --- Cmd ---

def test_cmd_keywords_in_declaration_order():
    cmd = Cmd("sms", ("s", "text"))
    assert cmd.keywords == ("sms", "s", "text")


def test_cmd_matches_is_case_sensitive():
    cmd = Cmd("sms", ("s",))
    assert cmd.matches("sms")
    assert cmd.matches("s")
    assert not cmd.matches("SMS")


def test_cmd_equality_is_by_name():
    assert Cmd("sms", ("s",)) == Cmd("sms", ("text",))
    assert hash(Cmd("sms", ("s",))) == hash(Cmd("sms"))
    assert Cmd("sms") != Cmd("call")


def test_cmd_aliases_list_is_frozen_to_tuple():
    cmd = Cmd("sms", ["s", "text"])
    assert cmd.aliases == ("s", "text")


def test_cmd_single_string_alias_kept_whole():
    cmd = Cmd("sms", "text")
    assert cmd.aliases == ("text",)
    assert cmd.keywords == ("sms", "text")
    assert not cmd.matches("t")


def test_cmd_is_immutable():
    cmd = Cmd("sms")
    with pytest.raises(dataclasses.FrozenInstanceError):
        cmd.name = "call"


def test_cmd_rejects_empty_name():
    with pytest.raises(ValueError):
        Cmd("")


def test_cmd_str_with_and_without_aliases():
    assert str(Cmd("sms", ("s", "text"))) == "sms (s, text)"
    assert str(Cmd("call")) == "call"


# --- Command ---

def test_command_defaults():
    command = Command("help")
    assert command.command == "help"
    assert command.all_arguments == ""
    assert command.reply_to is None


def test_command_none_arguments_normalized():
    assert Command("help", None).all_arguments == ""


def test_command_rejects_none_keyword():
    with pytest.raises(ValueError):
        Command(None)


def test_command_rejects_empty_keyword():
    with pytest.raises(ValueError):
        Command("")


@pytest.mark.parametrize("keyword", ["a:b", " sms", "sms "])
def test_command_rejects_keyword_that_cannot_be_parsed_back(keyword):
    with pytest.raises(ValueError):
        Command(keyword, "x")


def test_command_preserves_keyword_case():
    assert Command("SMS", "x").command == "SMS"


def test_command_is_immutable():
    command = Command("sms", "bob:hi", "alice@example.com")
    with pytest.raises(dataclasses.FrozenInstanceError):
        command.reply_to = "eve@example.com"


def test_command_arguments_uses_split_args():
    assert Command("sms", "bob:hi").arguments == ["bob", "hi"]
    assert Command("sms").arguments == [""]


def test_parse_splits_on_first_separator_only():
    command = Command.parse("sms:Bob:see you at 10:30", reply_to="alice@example.com")
    assert command.command == "sms"
    assert command.all_arguments == "Bob:see you at 10:30"
    assert command.reply_to == "alice@example.com"


def test_parse_without_arguments():
    command = Command.parse("  battery  ")
    assert command.command == "battery"
    assert command.all_arguments == ""


def test_parse_keeps_trailing_whitespace_of_arguments():
    command = Command.parse("  sms:bob:see you  ")
    assert command.command == "sms"
    assert command.all_arguments == "bob:see you  "


def test_parse_rejects_missing_keyword():
    with pytest.raises(MalformedCommandError):
        Command.parse(":no keyword")
    with pytest.raises(MalformedCommandError):
        Command.parse("   ")


@pytest.mark.parametrize("keyword,args", [
    ("sms", "bob:hello"),
    ("help", ""),
    ("geo", "52.5:13.4"),
    ("sms", "bob:see you "),
    ("sms", " leading space"),
    ("echo", "  "),
])
def test_raw_command_and_args_round_trip(keyword, args):
    """command + ":" + arguments parses back to the same request."""
    command = Command(keyword, args)
    assert command.raw_command_and_args == f"{keyword}:{args}"
    parsed = Command.parse(command.raw_command_and_args)
    assert parsed.command == keyword
    assert parsed.all_arguments == args
