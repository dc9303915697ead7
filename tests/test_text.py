"""Tests for label text helpers."""

from blobby.utils import hyphenate_text, truncate


class TestHyphenateText:
    """Tests for hyphenate_text."""

    def test_short_words_unchanged(self):
        assert hyphenate_text("Buy milk") == "Buy milk"

    def test_word_at_limit_unchanged(self):
        """Exactly max_word_length characters is not split."""
        assert hyphenate_text("absolute") == "absolute"

    def test_splits_after_vowel_consonant(self):
        assert hyphenate_text("Hyphenation") == "Hyphe-nation"

    def test_forced_split_at_six(self):
        """Runs without a vowel-consonant break are cut at six characters."""
        assert hyphenate_text("internationalization") == "inte-rnatio-nali-zation"

    def test_no_split_near_word_end(self):
        """The last three characters always stay together."""
        assert hyphenate_text("wwwwwwwww") == "wwwwww-www"
        assert hyphenate_text("strengths") == "stre-ngths"

    def test_each_word_handled(self):
        assert hyphenate_text("Fix Hyphenation") == "Fix Hyphe-nation"

    def test_custom_limit(self):
        """A larger limit leaves longer words alone."""
        assert hyphenate_text("Hyphenation", max_word_length=12) == "Hyphenation"

    def test_empty(self):
        assert hyphenate_text("") == ""


class TestTruncate:
    """Tests for truncate."""

    def test_short_text_unchanged(self):
        assert truncate("Short", 10) == "Short"

    def test_long_text_gets_ellipsis(self):
        assert truncate("A very long label", 7) == "A very…"
