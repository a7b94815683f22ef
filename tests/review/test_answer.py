"""
Unit tests for answer schema validation.
"""

import json

import pytest

from commit_review.errors import AnswerSchemaViolation
from commit_review.review.answer import extract_answer_payload, parse_answer


class TestExtractPayload:
    """Tests for fenced block extraction."""

    def test_fenced_json_block(self):
        text = 'Here is the review:\n```json\n{"comments": {}}\n```\nThanks.'
        assert extract_answer_payload(text) == '{"comments": {}}'

    def test_unfenced_text(self):
        assert extract_answer_payload('  {"comments": {}}\n') == '{"comments": {}}'

    def test_json_block_after_other_fenced_block(self):
        text = (
            "Example fix:\n```python\nx = 1\n```\n"
            '```json\n{"comments": {}}\n```\n'
        )
        assert extract_answer_payload(text) == '{"comments": {}}'

    def test_untagged_block_used_when_it_parses(self):
        text = 'Snippet:\n```\nnot json\n```\nAnswer:\n```\n{"comments": {}}\n```'
        assert extract_answer_payload(text) == '{"comments": {}}'



class TestParseAnswer:
    """Tests for schema validation."""

    def test_valid_answer(self, valid_json_answer: str):
        payload, answer = parse_answer(valid_json_answer)

        assert json.loads(payload)["comments"]["main.go"][0]["line"] == 'println("hi")'
        findings = answer.findings()
        assert len(findings) == 1
        assert findings[0].file_path == "main.go"
        assert findings[0].severity == "Minor"
        assert findings[0].message == "Use the log package instead of println"

    def test_empty_answer(self):
        _, answer = parse_answer('{"comments": {}}')
        assert answer.findings() == []

    def test_code_example_before_json_block(self):
        text = (
            "Example:\n```python\nx = 1\n```\n"
            '```json\n{"comments": {"a.py": [{"line": "1", "message": "[Major] bad"}]}}\n```\n'
        )

        _, answer = parse_answer(text)

        assert [(f.file_path, f.severity, f.message) for f in answer.findings()] == [
            ("a.py", "Major", "bad")
        ]

    def test_findings_keep_file_order(self):
        text = json.dumps({
            "comments": {
                "b.py": [{"line": "1", "message": "[Major] first"}],
                "a.py": [
                    {"line": "2", "message": "[Minor] second"},
                    {"line": "3", "message": "[Info] third"},
                ],
            }
        })

        findings = parse_answer(text)[1].findings()

        assert [(f.file_path, f.severity) for f in findings] == [
            ("b.py", "Major"),
            ("a.py", "Minor"),
            ("a.py", "Info"),
        ]

    def test_not_json(self):
        with pytest.raises(AnswerSchemaViolation, match="not valid JSON"):
            parse_answer("<table></table>")

    def test_missing_severity(self):
        text = json.dumps({"comments": {"a.py": [{"line": "1", "message": "no severity"}]}})
        with pytest.raises(AnswerSchemaViolation, match="review schema"):
            parse_answer(text)

    def test_unexpected_keys(self):
        text = json.dumps({"comments": {}, "summary": "extra"})
        with pytest.raises(AnswerSchemaViolation):
            parse_answer(text)

    def test_missing_comments(self):
        with pytest.raises(AnswerSchemaViolation):
            parse_answer("{}")
