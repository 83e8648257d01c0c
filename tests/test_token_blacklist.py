"""Tests for the in-memory token blacklist."""

import threading

from blogapi.services.token_blacklist import MemoryTokenBlacklist


class TestMemoryTokenBlacklist:
    """Tests for MemoryTokenBlacklist."""

    def test_unknown_token_not_blacklisted(self, blacklist):
        assert blacklist.is_blacklisted("never-added") is False

    def test_added_token_is_blacklisted(self, blacklist, fake_clock):
        blacklist.add("jti-1", fake_clock() + 60)

        assert blacklist.is_blacklisted("jti-1") is True

    def test_expired_entry_treated_as_absent_before_cleanup(self, blacklist, fake_clock):
        """Test that logically expired entries are ignored even if not purged."""
        blacklist.add("jti-1", fake_clock() + 60)
        fake_clock.advance(61)

        assert blacklist.is_blacklisted("jti-1") is False
        # Still physically present until cleanup runs
        assert "jti-1" in blacklist

    def test_entry_expires_exactly_at_expiry(self, blacklist, fake_clock):
        blacklist.add("jti-1", fake_clock() + 10)
        fake_clock.advance(10)

        assert blacklist.is_blacklisted("jti-1") is False

    def test_add_overwrites_expiry(self, blacklist, fake_clock):
        blacklist.add("jti-1", fake_clock() + 10)
        blacklist.add("jti-1", fake_clock() + 100)
        fake_clock.advance(50)

        assert blacklist.is_blacklisted("jti-1") is True
        assert len(blacklist) == 1

    def test_cleanup_removes_only_expired_entries(self, blacklist, fake_clock):
        """Test that entries with a future expiry survive cleanup unchanged."""
        now = fake_clock()
        blacklist.add("past-1", now - 1)
        blacklist.add("past-2", now - 3600)
        blacklist.add("future-1", now + 1)
        blacklist.add("future-2", now + 3600)

        removed = blacklist.cleanup()

        assert removed == 2
        assert len(blacklist) == 2
        assert "past-1" not in blacklist
        assert "past-2" not in blacklist
        assert blacklist.is_blacklisted("future-1") is True
        assert blacklist.is_blacklisted("future-2") is True

    def test_cleanup_is_idempotent(self, blacklist, fake_clock):
        blacklist.add("past", fake_clock() - 1)

        assert blacklist.cleanup() == 1
        assert blacklist.cleanup() == 0

    def test_cleanup_on_empty_blacklist(self, blacklist):
        assert blacklist.cleanup() == 0

    def test_concurrent_add_and_check(self):
        """Test that concurrent writers lose no entries."""
        blacklist = MemoryTokenBlacklist(clock=lambda: 0.0)
        per_thread = 200

        def worker(thread_no: int) -> None:
            for i in range(per_thread):
                token_id = f"{thread_no}-{i}"
                blacklist.add(token_id, 100.0)
                assert blacklist.is_blacklisted(token_id)
                blacklist.cleanup()

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(blacklist) == 8 * per_thread
