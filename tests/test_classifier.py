"""
Tests for line classification
"""

import pytest

from relaybot.bot.classifier import (
    Command,
    CtcpQuery,
    Ignored,
    Link,
    Ping,
    classify,
    find_link,
    parse_ctcp,
)
from relaybot.irc.models import IncomingLine


def _line(text, source="alice!a@host", target="#chan"):
    return IncomingLine(command="PRIVMSG", source=source, target=target, text=text)


class TestClassify:
    def test_keepalive(self):
        line = IncomingLine(command="PING", source="", target="", text="abc123")
        assert classify(line) == Ping(payload="abc123")

    def test_command_with_args(self):
        assert classify(_line(".weather helsinki now")) == Command(
            name="weather",
            args="helsinki now",
            channel="#chan",
            user="alice!a@host",
        )

    def test_command_args_rejoined_with_single_spaces(self):
        intent = classify(_line(".echo  hello   world"))
        assert intent == Command(name="echo", args="hello world", channel="#chan", user="alice!a@host")

    def test_link_in_middle_of_sentence(self):
        intent = classify(_line("check this https://example.com/a out"))
        assert isinstance(intent, Link)
        assert intent.url == "https://example.com/a"

    def test_command_without_args(self):
        intent = classify(_line(".help"))
        assert isinstance(intent, Command)
        assert intent.name == "help"
        assert intent.args == ""

    def test_command_in_direct_message_targets_sender(self):
        intent = classify(_line(".help", target="relay"))
        assert isinstance(intent, Command)
        assert intent.channel == "alice"

    @pytest.mark.parametrize("text", [".", ". ", ".   "])
    def test_bare_prefix_is_ignored(self, text):
        assert classify(_line(text)) == Ignored()

    def test_link(self):
        assert classify(_line("look http://example.com/page")) == Link(
            url="http://example.com/page", channel="#chan", user="alice!a@host"
        )

    def test_only_first_link_counts(self):
        intent = classify(_line("https://a.example/1 and http://b.example/2"))
        assert intent == Link(url="https://a.example/1", channel="#chan", user="alice!a@host")

    def test_command_wins_over_link(self):
        intent = classify(_line(".title http://example.com"))
        assert isinstance(intent, Command)
        assert intent.args == "http://example.com"

    def test_relay_artifact_never_yields_link(self):
        assert classify(_line("* see https://example.com")) == Ignored()

    def test_plain_chat_is_ignored(self):
        assert classify(_line("hello everyone")) == Ignored()

    def test_empty_and_whitespace_lines_are_ignored(self):
        assert classify(_line("")) == Ignored()
        assert classify(_line("   ")) == Ignored()

    def test_ignored_sender(self):
        assert classify(_line(".help", source="pyfibot!p@h")) == Ignored()
        assert classify(_line("http://example.com", source="PyFiBot!p@h")) == Ignored()

    def test_ignored_sender_ctcp_is_not_answered(self):
        line = _line("\x01VERSION\x01", source="pyfibot!p@h", target="relay")
        assert classify(line) == Ignored()

    def test_custom_ignored_senders(self):
        line = _line(".help", source="otherbot!o@h")
        assert classify(line, ignored_senders=frozenset({"otherbot"})) == Ignored()
        assert isinstance(classify(line, ignored_senders=frozenset()), Command)

    def test_custom_command_prefix(self):
        intent = classify(_line("!roll 2d6"), command_prefix="!")
        assert intent == Command(name="roll", args="2d6", channel="#chan", user="alice!a@host")

    def test_ctcp_version_query(self):
        assert classify(_line("\x01VERSION\x01", target="relay")) == CtcpQuery(
            kind="VERSION", responder="alice"
        )

    def test_ctcp_ping_keeps_argument(self):
        intent = classify(_line("\x01PING 1700000000\x01", target="relay"))
        assert intent == CtcpQuery(kind="PING", responder="alice", argument="1700000000")

    def test_ctcp_ping_argument_is_verbatim(self):
        intent = classify(_line("\x01PING  17 00 \x01", target="relay"))
        assert intent == CtcpQuery(kind="PING", responder="alice", argument=" 17 00 ")

    def test_ctcp_action_is_ignored(self):
        assert classify(_line("\x01ACTION waves http://example.com\x01")) == Ignored()

    def test_classification_is_deterministic(self):
        line = _line("see https://example.com/x")
        assert classify(line) == classify(line)


class TestHelpers:
    def test_parse_ctcp(self):
        assert parse_ctcp("\x01TIME\x01") == ("TIME", "")
        assert parse_ctcp("\x01version\x01") == ("VERSION", "")
        assert parse_ctcp("plain text") is None

    def test_find_link_requires_scheme_and_host(self):
        assert find_link(["httpfoo", "http://"]) is None
        assert find_link(["http:/broken", "https://ok.example"]) == "https://ok.example"

    def test_find_link_skips_unparseable_candidates(self):
        assert find_link(["http://[::1", "https://ok.example"]) == "https://ok.example"

    def test_find_link_skips_invalid_port(self):
        assert find_link(["http://host:abc/x"]) is None
        assert find_link(["http://host:99999/x", "http://host:8080/x"]) == "http://host:8080/x"
        assert classify(_line("http://host:abc/x")) == Ignored()
