"""Tests for the conversation correlation ID on log records."""

import logging

from chatcommerce.logging_context import (
    NO_CONVERSATION,
    ConversationIdFilter,
    conversation_scope,
    get_conversation_id,
    get_conversation_logger,
)


class TestConversationScope:
    def test_scope_sets_and_resets(self):
        assert get_conversation_id() == NO_CONVERSATION
        with conversation_scope("psid-1"):
            assert get_conversation_id() == "psid-1"
            with conversation_scope("psid-2"):
                assert get_conversation_id() == "psid-2"
            assert get_conversation_id() == "psid-1"
        assert get_conversation_id() == NO_CONVERSATION

    def test_records_carry_id(self, caplog):
        logger = get_conversation_logger("chatcommerce.test")
        with caplog.at_level(logging.INFO, logger="chatcommerce.test"):
            with conversation_scope("psid-9"):
                logger.info("inside")
            logger.info("outside")
        assert [r.conversation_id for r in caplog.records] == ["psid-9", NO_CONVERSATION]

    def test_filter_attached_once(self):
        get_conversation_logger("chatcommerce.once")
        logger = get_conversation_logger("chatcommerce.once")
        assert sum(isinstance(f, ConversationIdFilter) for f in logger.filters) == 1
