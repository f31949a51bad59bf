# =============================================================================
# Chunking and the single size-limiting stage
# =============================================================================

import pytest

from quizforge.models import DocumentFormat, TruncationReason
from quizforge.utils.config import Settings
from quizforge.utils.file_processing import (
    chunk_text,
    effective_max_slides,
    estimate_slide_window,
    limit_text_size,
    needs_chunking,
    size_warning,
)

WORDS = " ".join(f"word{i}" for i in range(200))


class TestChunkText:
    """Word-boundary chunking under a character budget."""

    def test_default_budget_is_four_chars_per_token(self):
        config = Settings(_env_file=None)
        assert config.max_chars == 32000

    def test_within_budget_is_one_chunk(self):
        text = "a" * 100
        assert needs_chunking(text, 100) is False
        assert chunk_text(text, 100) == [text]

    def test_over_budget_needs_chunking(self):
        assert needs_chunking("a" * 101, 100) is True

    def test_chunks_respect_budget(self):
        chunks = chunk_text(WORDS, 50)
        assert len(chunks) > 1
        assert all(len(c) <= 50 for c in chunks)

    def test_rejoined_chunks_keep_word_sequence(self):
        chunks = chunk_text(WORDS, 50)
        assert " ".join(chunks).split() == WORDS.split()

    def test_greedy_packing(self):
        assert chunk_text("aaa bbb ccc", 7) == ["aaa bbb", "ccc"]

    def test_oversized_word_is_its_own_chunk(self):
        long_word = "x" * 30
        chunks = chunk_text(f"a {long_word} b", 10)
        assert chunks == ["a", long_word, "b"]

    def test_line_separated_words_are_split(self):
        text = "\n".join(f"word{i}" for i in range(100))
        chunks = chunk_text(text, 50)
        assert len(chunks) > 1
        assert all(len(c) <= 50 for c in chunks)
        assert " ".join(chunks).split() == text.split()

    def test_paragraph_breaks_are_preferred(self):
        text = "alpha beta gamma\n\ndelta epsilon"
        assert chunk_text(text, 20) == ["alpha beta gamma", "delta epsilon"]


class TestSlideEstimate:
    def test_keeps_words_for_requested_slides(self):
        text, limited = estimate_slide_window(WORDS, 2)
        assert limited is True
        assert text.split() == WORDS.split()[:40]

    def test_short_text_is_left_alone(self):
        """Fewer than ten words gives a zero word allowance, which disables the estimate."""
        assert estimate_slide_window("only five words right here", 1) == ("only five words right here", False)


class TestLimitTextSize:
    """One stage, one reason, exactly one note."""

    def test_no_limit_applies(self):
        text, reason, chunk_count = limit_text_size("short", DocumentFormat.TXT, max_chars=100)
        assert (text, reason, chunk_count) == ("short", None, 1)

    def test_character_budget(self):
        expected_chunks = chunk_text(WORDS, 50)
        text, reason, chunk_count = limit_text_size(WORDS, DocumentFormat.TXT, max_chars=50)
        assert reason == TruncationReason.CHUNKED
        assert chunk_count == len(expected_chunks)
        assert text == (
            f"{expected_chunks[0]}\n\n[Note: Large file detected. Using first portion "
            f"({chunk_count} total chunks) for quiz generation.]"
        )

    def test_character_budget_on_line_separated_text(self):
        lines = "\n".join(f"word{i}" for i in range(100))
        text, reason, chunk_count = limit_text_size(lines, DocumentFormat.TXT, max_chars=50)
        assert reason == TruncationReason.CHUNKED
        assert chunk_count > 1
        assert len(text.split("\n\n")[0]) <= 50

    def test_slide_cap_wins_over_chunking(self):
        text, reason, chunk_count = limit_text_size(
            WORDS, DocumentFormat.PPTX, max_chars=50, max_slides=3, slide_count=12, slides_kept=3,
        )
        assert reason == TruncationReason.SLIDE_CAP
        assert chunk_count > 1
        assert text.count("[Note:") == 1
        assert text.endswith(
            "[Note: Content limited to the first 3 of 12 slides due to size constraints; "
            f"using first portion ({chunk_count} total chunks) for quiz generation.]"
        )

    def test_word_estimate_when_slide_count_unknown(self):
        text, reason, chunk_count = limit_text_size(
            WORDS, DocumentFormat.PPTX, max_chars=10_000, max_slides=2,
        )
        assert reason == TruncationReason.WORD_ESTIMATE
        assert chunk_count == 1
        body, note = text.split("\n\n")
        assert body.split() == WORDS.split()[:40]
        assert note == "[Note: Content limited to approximately 2 slides due to size constraints.]"

    def test_slide_settings_ignored_for_other_formats(self):
        text, reason, _ = limit_text_size(WORDS, DocumentFormat.PDF, max_chars=10_000, max_slides=2)
        assert reason is None
        assert text == WORDS


class TestSizePolicy:
    @pytest.fixture
    def config(self):
        return Settings(_env_file=None)

    def test_no_warning_for_small_files(self, config):
        assert size_warning(1.0, config) is None

    def test_large_file_warning(self, config):
        assert size_warning(6.0, config) == "File size is 6.00 MB. Large files may take longer to process."

    def test_very_large_file_warning(self, config):
        assert size_warning(12.5, config).startswith("Large file detected (12.50 MB).")

    def test_very_large_deck_gets_automatic_cap(self, config):
        assert effective_max_slides(DocumentFormat.PPTX, 11.0, None, config) == 5
        assert effective_max_slides(DocumentFormat.PPTX, 1.0, None, config) is None
        assert effective_max_slides(DocumentFormat.PDF, 11.0, None, config) is None

    def test_explicit_cap_wins(self, config):
        assert effective_max_slides(DocumentFormat.PPTX, 11.0, 8, config) == 8
