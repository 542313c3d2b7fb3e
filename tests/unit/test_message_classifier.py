"""
Unit tests for message_classifier module.
"""

from claudewatch.message_classifier import (
    HEURISTIC_VERSION,
    classify_message,
    serialize_content,
)


class TestSerializeContent:

    def test_none(self):
        assert serialize_content(None) == ""

    def test_string_is_lowercased(self):
        assert serialize_content("Tool_Use") == "tool_use"

    def test_blocks_are_json(self):
        assert serialize_content([{"type": "Text"}]) == '[{"type": "text"}]'


class TestClassifyMessage:
    """Heuristic classification"""

    def test_tool_use_block(self):
        content = [{"type": "tool_use", "name": "Bash", "input": {}}]
        result = classify_message(content)
        assert result.is_tool_use
        assert not result.is_question

    def test_plain_text_marker(self):
        """The scenario content 'tool_use:write_file' counts as a tool call."""
        assert classify_message("tool_use:write_file").is_tool_use

    def test_plain_text(self):
        result = classify_message([{"type": "text", "text": "All done."}])
        assert not result.is_tool_use
        assert not result.is_tool_result
        assert not result.is_question

    def test_tool_result(self):
        content = [{"type": "tool_result", "tool_use_id": "toolu_01", "content": "ok"}]
        result = classify_message(content)
        assert result.is_tool_result
        # The loose substring match also sees "tool_use_id"
        assert result.is_tool_use

    def test_question(self):
        assert classify_message([{"type": "text", "text": "Should I continue?"}]).is_question

    def test_question_string_content(self):
        assert classify_message("Which file do you mean?").is_question

    def test_empty(self):
        result = classify_message(None)
        assert not result.is_tool_use
        assert not result.is_question

    def test_version(self):
        assert classify_message("x").heuristic_version == HEURISTIC_VERSION
