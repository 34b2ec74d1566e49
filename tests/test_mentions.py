"""Tests for @email mention parsing."""

import pytest

from taskboard.services.mentions import extract_mention_emails


class TestExtractMentionEmails:

    def test_extracts_and_lowercases(self):
        body = "Ping @Alice@Example.com and @bob@example.org please"
        assert extract_mention_emails(body) == ["alice@example.com", "bob@example.org"]

    def test_deduplicates_preserving_first_seen_order(self):
        body = "@b@x.io @a@x.io @B@X.IO @a@x.io"
        assert extract_mention_emails(body) == ["b@x.io", "a@x.io"]

    def test_plain_email_is_not_a_mention(self):
        assert extract_mention_emails("mail alice@example.com") == []

    def test_requires_tld(self):
        assert extract_mention_emails("@alice@localhost") == []

    @pytest.mark.parametrize("body", [None, "", "   ", 42])
    def test_empty_or_non_text(self, body):
        assert extract_mention_emails(body) == []

    def test_trailing_punctuation(self):
        assert extract_mention_emails("thanks @dev.ops+ci@corp.example.com!") == [
            "dev.ops+ci@corp.example.com"
        ]
