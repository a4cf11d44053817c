"""Unit tests for options module (FlattenOptions)."""

import pytest

from hailframe.errors import ConfigurationError
from hailframe.options import FlattenOptions, parse_rename


class TestFlattenOptionsParsing:
    """Tests for parsing string option dictionaries."""

    def test_default_options(self):
        """Test options with nothing set."""
        options = FlattenOptions.from_options({})

        assert options.sample_id_name == "sample_id"
        assert options.entry_prefix is None
        assert options.rename == {}
        assert options.check_alignment is True
        assert options.batch_size == 10000
        assert options.entries_column == "entries"

    def test_parse_sample_id_column(self):
        options = FlattenOptions.from_options({"sampleIdColumn": " s "})
        assert options.sample_id_name == "s"

    def test_parse_entry_prefix(self):
        options = FlattenOptions.from_options({"entryPrefix": "e_"})
        assert options.entry_prefix == "e_"

    def test_parse_check_alignment_false(self):
        options = FlattenOptions.from_options({"checkAlignment": "FALSE"})
        assert options.check_alignment is False

    def test_parse_batch_size(self):
        options = FlattenOptions.from_options({"batchSize": "500"})
        assert options.batch_size == 500

    def test_invalid_batch_size(self):
        with pytest.raises(ConfigurationError):
            FlattenOptions.from_options({"batchSize": "many"})
        with pytest.raises(ConfigurationError):
            FlattenOptions.from_options({"batchSize": "0"})

    def test_empty_sample_id_column(self):
        with pytest.raises(ConfigurationError):
            FlattenOptions.from_options({"sampleIdColumn": "  "})

    def test_parse_entries_column(self):
        options = FlattenOptions.from_options({"entriesColumn": "gts"})
        assert options.entries_column == "gts"


class TestParseRename:
    """Tests for the rename option format."""

    def test_single_pair(self):
        assert parse_rename("DP:depth") == {"DP": "depth"}

    def test_multiple_pairs_with_whitespace(self):
        assert parse_rename("DP : depth, GQ:quality,") == {"DP": "depth", "GQ": "quality"}

    def test_empty(self):
        assert parse_rename("") == {}

    def test_malformed_pair(self):
        with pytest.raises(ConfigurationError):
            parse_rename("DP")
        with pytest.raises(ConfigurationError):
            parse_rename("DP:")

    def test_duplicate_source(self):
        with pytest.raises(ConfigurationError):
            parse_rename("DP:a,DP:b")


def test_flatten_kwargs():
    """Test that options translate into flatten keyword arguments."""
    options = FlattenOptions.from_options(
        {"sampleIdColumn": "s", "entryPrefix": "e_", "rename": "DP:depth", "checkAlignment": "false"}
    )
    assert options.flatten_kwargs() == {
        "sample_id_name": "s",
        "entry_prefix": "e_",
        "rename": {"DP": "depth"},
        "check_alignment": False,
    }
