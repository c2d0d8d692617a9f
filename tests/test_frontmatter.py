"""Unit tests for amplint.frontmatter."""

from __future__ import annotations

import pytest
import yaml

from amplint.frontmatter import FrontMatterError, split_front_matter


class TestSplitFrontMatter:
    def test_no_front_matter(self) -> None:
        text = "# Title\n\nBody\n"
        data, body = split_front_matter(text)
        assert data is None
        assert body == text

    def test_basic_block(self) -> None:
        data, body = split_front_matter("---\nname: x\n---\n# Body\n")
        assert data == {"name": "x"}
        assert body == "# Body\n"

    def test_dots_close_delimiter(self) -> None:
        data, body = split_front_matter("---\nname: x\n...\nrest\n")
        assert data == {"name": "x"}
        assert body == "rest\n"

    def test_empty_block(self) -> None:
        data, body = split_front_matter("---\n---\nbody\n")
        assert data == {}
        assert body == "body\n"

    def test_bom_ignored(self) -> None:
        data, _ = split_front_matter("\ufeff---\nname: x\n---\n")
        assert data == {"name": "x"}

    def test_crlf_line_endings(self) -> None:
        data, body = split_front_matter("---\r\nname: x\r\n---\r\nbody\r\n")
        assert data == {"name": "x"}
        assert body == "body\r\n"

    def test_dashes_later_in_document_are_not_front_matter(self) -> None:
        text = "# Title\n---\nname: x\n---\n"
        data, body = split_front_matter(text)
        assert data is None
        assert body == text

    def test_unterminated(self) -> None:
        with pytest.raises(FrontMatterError) as exc_info:
            split_front_matter("---\nname: x\n")
        assert exc_info.value.line == 1
        assert "Unterminated" in str(exc_info.value)

    def test_invalid_yaml_reports_file_line(self) -> None:
        text = "---\nname: x\nbad: [unclosed\n---\n"
        with pytest.raises(FrontMatterError) as exc_info:
            split_front_matter(text)
        assert exc_info.value.line is not None
        assert exc_info.value.line >= 3
        assert "Invalid YAML" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, yaml.YAMLError)

    def test_non_mapping(self) -> None:
        with pytest.raises(FrontMatterError, match="must be a mapping"):
            split_front_matter("---\n- a\n- b\n---\n")
