"""Tests for path encoding/decoding."""

import pytest
from claude_usage_analytics.utils.path_codec import (
    encode_path,
    reconstruct_path,
    display_name_from_sanitized,
    display_name_from_path,
    orphaned_marker,
    unknown_marker,
)


class TestEncodePath:
    def test_absolute_path(self):
        assert encode_path("/home/wiz/AI/LLM") == "-home-wiz-AI-LLM"

    def test_empty_path(self):
        assert encode_path("") == ""

    def test_windows_path(self):
        assert encode_path("C:\\Users\\wiz\\project") == "C:-Users-wiz-project"


class TestReconstructPath:
    def test_absolute_path(self):
        assert reconstruct_path("-home-wiz-AI-LLM") == "/home/wiz/AI/LLM"

    def test_root(self):
        assert reconstruct_path("-") == "/"

    def test_hyphenated_segments_are_ambiguous(self):
        # The encoding is lossy: "my-app" comes back as "my/app"
        assert reconstruct_path(encode_path("/srv/my-app")) == "/srv/my/app"

    @pytest.mark.parametrize("name", ["", "home-wiz", "C:-Users-wiz"])
    def test_non_standard_name(self, name):
        with pytest.raises(ValueError):
            reconstruct_path(name)


class TestDisplayNames:
    def test_last_segment(self):
        assert display_name_from_sanitized("-home-wiz-AI-LLM") == "LLM"

    def test_trailing_hyphen_falls_back_to_whole_name(self):
        assert display_name_from_sanitized("-home-wiz-") == "/home/wiz/"

    def test_no_hyphen(self):
        assert display_name_from_sanitized("scratch") == "scratch"

    def test_path_name(self):
        assert display_name_from_path("/home/wiz/myapp") == "myapp"

    def test_root_path_name(self):
        assert display_name_from_path("/") == "/"


class TestMarkers:
    def test_orphaned(self):
        assert orphaned_marker("/gone") == "Orphaned: /gone"

    def test_unknown(self):
        assert unknown_marker("weird") == "Unknown: weird"
