"""Unit tests for domain value objects."""

import pytest

from enrichment_hub.domain.exceptions import InvalidVideoUrlException
from enrichment_hub.domain.value_objects import ChunkingConfig, VideoUrl


class TestVideoUrl:
    """Tests for VideoUrl value object."""

    def test_valid_url(self):
        url = VideoUrl.parse("https://www.youtube.com/watch?v=dQw4w9WgXcQ")
        assert url.value == "https://www.youtube.com/watch?v=dQw4w9WgXcQ"

    def test_surrounding_whitespace_is_stripped(self):
        url = VideoUrl.parse("  https://youtu.be/dQw4w9WgXcQ \n")
        assert url.value == "https://youtu.be/dQw4w9WgXcQ"

    def test_http_scheme_accepted(self):
        assert VideoUrl.parse("http://example.com/v/1").value == "http://example.com/v/1"

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_empty_url(self, raw):
        with pytest.raises(InvalidVideoUrlException) as exc_info:
            VideoUrl.parse(raw)
        assert "empty" in exc_info.value.reason

    def test_inner_whitespace_rejected(self):
        with pytest.raises(InvalidVideoUrlException) as exc_info:
            VideoUrl.parse("https://example.com/a video")
        assert "whitespace" in exc_info.value.reason

    @pytest.mark.parametrize(
        "raw",
        ["ftp://example.com/video", "example.com/video", "javascript:alert(1)"],
    )
    def test_scheme_must_be_http(self, raw):
        with pytest.raises(InvalidVideoUrlException):
            VideoUrl.parse(raw)

    def test_host_required(self):
        with pytest.raises(InvalidVideoUrlException) as exc_info:
            VideoUrl.parse("https:///path-only")
        assert "host" in exc_info.value.reason

    def test_too_long(self):
        with pytest.raises(InvalidVideoUrlException):
            VideoUrl.parse("https://example.com/" + "a" * 3000)

    def test_equality_and_hash(self):
        a = VideoUrl.parse("https://example.com/v")
        b = VideoUrl.parse(" https://example.com/v ")
        assert a == b
        assert a == "https://example.com/v"
        assert hash(a) == hash(b)
        assert str(a) == "https://example.com/v"


class TestChunkingConfig:
    """Tests for ChunkingConfig value object."""

    def test_default_values(self):
        assert ChunkingConfig().chunk_size_words == 500

    def test_bounds(self):
        with pytest.raises(ValueError):
            ChunkingConfig(chunk_size_words=0)
        with pytest.raises(ValueError):
            ChunkingConfig(chunk_size_words=5001)
