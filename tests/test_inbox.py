import unittest
from datetime import datetime, timedelta, timezone

from gomarket.inbox import chat_partner, conversations, format_relative_date, is_participant, unread_count
from tests.helpers import make_listing, make_user, message


class TestInbox(unittest.TestCase):
    def setUp(self):
        self.alice = make_user("alice")
        self.bob = make_user("bob")
        self.listing = make_listing("1", self.alice)

    def test_buyer_message_is_unread_for_seller_only(self):
        self.listing.chat_history = [message("bob", "Is this available?")]
        self.assertEqual(unread_count([self.listing], self.alice), 1)
        self.assertEqual(unread_count([self.listing], self.bob), 0)

    def test_seller_reply_flips_unread(self):
        self.listing.chat_history = [message("bob", "Is this available?"), message("alice", "Yes")]
        self.assertEqual(unread_count([self.listing], self.alice), 0)
        self.assertEqual(unread_count([self.listing], self.bob), 1)

    def test_no_user_means_no_unread(self):
        self.listing.chat_history = [message("bob")]
        self.assertEqual(unread_count([self.listing], None), 0)

    def test_empty_chat_is_not_a_conversation(self):
        self.assertFalse(is_participant(self.listing, "alice"))
        self.assertEqual(conversations([self.listing], self.alice), [])

    def test_bystander_is_not_a_participant(self):
        self.listing.chat_history = [message("bob")]
        self.assertFalse(is_participant(self.listing, "carol"))
        self.assertEqual(unread_count([self.listing], make_user("carol")), 0)

    def test_conversations_sorted_latest_first(self):
        older = make_listing("1", self.alice, chat_history=[message("bob", timestamp="2024-03-01T10:00:00.000Z")])
        newer = make_listing("2", self.alice, chat_history=[message("bob", timestamp="2024-03-02T10:00:00.000Z")])
        self.assertEqual([l.id for l in conversations([older, newer], self.alice)], ["2", "1"])

    def test_chat_partner(self):
        self.listing.chat_history = [message("bob"), message("alice")]
        self.assertEqual(chat_partner(self.listing, self.bob).username, "alice")
        bobs_listing = make_listing("2", self.bob)
        partner = chat_partner(self.listing, self.alice, [self.listing, bobs_listing])
        self.assertIs(partner, bobs_listing.seller)
        self.assertEqual(chat_partner(self.listing, self.alice).username, "bob")

    def test_chat_partner_none_without_other_sender(self):
        self.listing.chat_history = [message("alice")]
        self.assertIsNone(chat_partner(self.listing, self.alice))


class TestFormatRelativeDate(unittest.TestCase):
    def setUp(self):
        self.now = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)

    def ago(self, **kwargs):
        return (self.now - timedelta(**kwargs)).isoformat()

    def test_labels(self):
        self.assertEqual(format_relative_date(self.ago(seconds=20), self.now), "Just now")
        self.assertEqual(format_relative_date(self.ago(minutes=5), self.now), "5m ago")
        self.assertEqual(format_relative_date(self.ago(hours=3), self.now), "3h ago")
        self.assertEqual(format_relative_date(self.ago(hours=30), self.now), "Yesterday")
        self.assertEqual(format_relative_date(self.ago(days=4), self.now), "4d ago")

    def test_old_dates_show_month_and_day(self):
        label = format_relative_date(self.ago(days=30), self.now)
        self.assertRegex(label, r"^(Feb|Mar) \d{1,2}$")


if __name__ == "__main__":
    unittest.main()
