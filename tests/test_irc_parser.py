"""
Tests for IRC message parsing and the incoming line model
"""

from relaybot.irc.models import IncomingLine
from relaybot.irc.parser import parse_irc_message


class TestParseIrcMessage:
    def test_privmsg_with_prefix_and_trailing(self):
        msg = parse_irc_message(":alice!a@host PRIVMSG #chan :hello there\r\n")
        assert msg.prefix == "alice!a@host"
        assert msg.nick == "alice"
        assert msg.command == "PRIVMSG"
        assert msg.params == ["#chan", "hello there"]
        assert msg.trailing == "hello there"

    def test_ping_without_prefix(self):
        msg = parse_irc_message("PING :abc123")
        assert msg.prefix is None
        assert msg.command == "PING"
        assert msg.params == ["abc123"]

    def test_numeric_reply(self):
        msg = parse_irc_message(":irc.example.org 001 relay :Welcome to the network")
        assert msg.command == "001"
        assert msg.param(0) == "relay"
        assert msg.nick == "irc.example.org"

    def test_command_is_uppercased(self):
        assert parse_irc_message("ping :x").command == "PING"

    def test_trailing_keeps_colons(self):
        msg = parse_irc_message(":bob!b@h PRIVMSG #c :see: http://x.example/a:b")
        assert msg.trailing == "see: http://x.example/a:b"

    def test_empty_trailing(self):
        msg = parse_irc_message(":bob!b@h PRIVMSG #c :")
        assert msg.params == ["#c", ""]

    def test_tags(self):
        msg = parse_irc_message("@time=2024-01-01T00:00:00Z;flag :a!b@c PRIVMSG #c :hi")
        assert msg.tags == {"time": "2024-01-01T00:00:00Z", "flag": ""}
        assert msg.command == "PRIVMSG"

    def test_param_default(self):
        msg = parse_irc_message(":op!o@h KICK #chan")
        assert msg.param(1) == ""
        assert msg.param(2, "none") == "none"

    def test_empty_line(self):
        msg = parse_irc_message("")
        assert msg.command == ""
        assert msg.params == []


class TestIncomingLine:
    def test_from_channel_privmsg(self):
        line = IncomingLine.from_message(parse_irc_message(":alice!a@h PRIVMSG #chan :.help"))
        assert line is not None
        assert line.command == "PRIVMSG"
        assert line.source == "alice!a@h"
        assert line.nick == "alice"
        assert line.target == "#chan"
        assert line.text == ".help"
        assert line.is_private is False
        assert line.reply_target == "#chan"

    def test_direct_message_replies_to_sender(self):
        line = IncomingLine.from_message(parse_irc_message(":alice!a@h PRIVMSG relay :.help"))
        assert line is not None
        assert line.is_private is True
        assert line.reply_target == "alice"

    def test_ampersand_channel_is_not_private(self):
        line = IncomingLine.from_message(parse_irc_message(":a!a@h PRIVMSG &local :hi"))
        assert line is not None
        assert line.reply_target == "&local"

    def test_from_ping(self):
        line = IncomingLine.from_message(parse_irc_message("PING :abc123"))
        assert line is not None
        assert line.command == "PING"
        assert line.text == "abc123"
        assert line.source == ""

    def test_other_commands_are_skipped(self):
        assert IncomingLine.from_message(parse_irc_message(":a!a@h NOTICE #c :hi")) is None
        assert IncomingLine.from_message(parse_irc_message(":a!a@h PRIVMSG #c")) is None
