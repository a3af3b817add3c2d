"""
Tests for the structured event logger
"""

import logging

import pytest

from relaybot.logs.logger import EventLogger, render_prefix


@pytest.fixture
def bot_logger(monkeypatch, caplog):
    monkeypatch.delenv("DEBUG", raising=False)
    caplog.set_level(logging.DEBUG, logger="relaybot.test")
    return EventLogger("relaybot.test")


class TestLogEvent:
    def test_template_is_formatted(self, bot_logger, caplog):
        bot_logger.log_event("network", "registered", network="libera", nick="relay")
        assert caplog.records[-1].getMessage().endswith("✅ Registered as relay")

    def test_network_and_channel_prefix(self, bot_logger, caplog):
        bot_logger.log_event("network", "join", network="libera", channel="#python")
        message = caplog.records[-1].getMessage()
        assert message.startswith("[libera#python")
        assert message.index("]") == 25

    def test_system_prefix_without_network(self, bot_logger, caplog):
        bot_logger.log_event("app", "running")
        assert caplog.records[-1].getMessage().startswith("[system")

    def test_missing_template_key_falls_back_to_raw_template(self, bot_logger, caplog):
        bot_logger.log_event("network", "registered")
        assert "Registered as {nick}" in caplog.records[-1].getMessage()

    def test_unknown_event_is_derived(self, bot_logger, caplog):
        bot_logger.log_event("made_up", "thing_happened")
        assert "made up: thing happened" in caplog.records[-1].getMessage()

    def test_explicit_human_text(self, bot_logger, caplog):
        bot_logger.log_event("app", "start", human="custom text")
        assert caplog.records[-1].getMessage().endswith("custom text")

    def test_level_is_respected(self, bot_logger, caplog):
        bot_logger.log_event("network", "connection_lost", level=logging.WARNING, error="x")
        assert caplog.records[-1].levelno == logging.WARNING

    def test_debug_mode_includes_event_name_and_context(
        self, bot_logger, caplog, monkeypatch
    ):
        monkeypatch.setenv("DEBUG", "true")
        bot_logger.log_event("gateway", "response", status=200)
        message = caplog.records[-1].getMessage()
        assert message.startswith("gateway_response")
        assert "(status=200)" in message


def test_set_level(caplog):
    bot_logger = EventLogger("relaybot.level")
    bot_logger.set_level(logging.WARNING)
    caplog.set_level(logging.DEBUG)
    bot_logger.log_event("app", "running")
    assert not [r for r in caplog.records if r.name == "relaybot.level"]


@pytest.mark.parametrize(
    ("network", "channel", "expected"),
    [
        (None, None, "[system                  ]"),
        ("libera", "#python", "[libera#python           ]"),
        ("a-very-long-network-name-here", None, "[a-very-long-network-name]"),
    ],
)
def test_render_prefix(network, channel, expected):
    assert render_prefix(network, channel) == expected
