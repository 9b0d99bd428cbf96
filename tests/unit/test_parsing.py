"""Unit tests for model reply parsing."""

from typing import List

from src.ai.parsing import parse_json_reply, strip_code_fences
from src.ai.types import GeneratedFile, InterviewResult, Malformed, Parsed


class TestStripCodeFences:
    def test_json_fence(self):
        assert strip_code_fences('```json\n["a"]\n```') == '["a"]'

    def test_bare_fence(self):
        assert strip_code_fences('```\n{"x": 1}\n```') == '{"x": 1}'

    def test_no_fence(self):
        assert strip_code_fences('  ["a"]  ') == '["a"]'


class TestParseJsonReply:
    def test_list_of_strings(self):
        result = parse_json_reply('["auth", "catalog"]', List[str])
        assert result == Parsed(["auth", "catalog"])

    def test_fenced_reply_with_prose(self):
        raw = 'Here you go:\n```json\n["auth"]\n```\nLet me know!'
        assert parse_json_reply(raw, List[str]) == Parsed(["auth"])

    def test_json_embedded_in_prose(self):
        raw = 'Sure! The requirements are ["auth", "billing"] as discussed.'
        assert parse_json_reply(raw, List[str]) == Parsed(["auth", "billing"])

    def test_empty_reply(self):
        result = parse_json_reply("   ", List[str])
        assert isinstance(result, Malformed)
        assert result.reason == "empty reply"

    def test_not_json(self):
        result = parse_json_reply("I cannot help with that.", List[str])
        assert isinstance(result, Malformed)
        assert result.raw_text == "I cannot help with that."
        assert "not JSON" in result.reason

    def test_wrong_shape(self):
        result = parse_json_reply('{"requirements": ["auth"]}', List[str])
        assert isinstance(result, Malformed)
        assert "unexpected shape" in result.reason

    def test_interview_result_aliases(self):
        raw = '{"needsMoreInfo": false, "refinedDescription": "online store v2"}'
        result = parse_json_reply(raw, InterviewResult)
        assert isinstance(result, Parsed)
        assert result.value.needs_more_info is False
        assert result.value.refined_description == "online store v2"
        assert result.value.questions == []

    def test_generated_files(self):
        raw = '[{"path": "app/main.py", "content": "print(1)"}]'
        result = parse_json_reply(raw, List[GeneratedFile])
        assert isinstance(result, Parsed)
        assert result.value[0].path == "app/main.py"

    def test_generated_file_escaping_root_is_malformed(self):
        for path in ("../etc/passwd", "/etc/passwd", "C:/Windows/x.py", "a/../../b.py"):
            raw = '[{"path": "%s", "content": ""}]' % path
            assert isinstance(parse_json_reply(raw, List[GeneratedFile]), Malformed), path

    def test_backslashes_normalized(self):
        raw = '[{"path": "src\\\\app.py", "content": ""}]'
        result = parse_json_reply(raw, List[GeneratedFile])
        assert isinstance(result, Parsed)
        assert result.value[0].path == "src/app.py"
