"""Unit tests for CommandMarkdownParser."""

from pathlib import Path

import pytest

from cmdflow.domain.model.command import ArgType, CommandCategory
from cmdflow.infrastructure.agent.commands.markdown_parser import CommandMarkdownParser
from cmdflow.infrastructure.agent.errors import CommandFileParseError

FULL_COMMAND = """---
name: review
description: Review code for quality issues
category: analysis
permissions:
  read_files: true
  write_files: false
  execute_shell: false
args:
  - name: file
    type: file
    required: true
    description: File to review
  - name: depth
    type: string
    default: normal
  - name: strict
    type: boolean
    default: false
---

Review {{args.file}} at {{args.depth}} depth.
"""


@pytest.fixture
def parser() -> CommandMarkdownParser:
    return CommandMarkdownParser()


@pytest.mark.unit
class TestParseValidFiles:
    """Tests for well-formed command files."""

    def test_full_metadata(self, parser: CommandMarkdownParser) -> None:
        parsed = parser.parse(FULL_COMMAND)
        metadata = parsed.metadata

        assert metadata.name == "review"
        assert metadata.description == "Review code for quality issues"
        assert metadata.category is CommandCategory.ANALYSIS
        assert metadata.permissions.read_files is True
        assert metadata.permissions.write_files is False
        assert metadata.agent is False
        assert metadata.agent_id is None

    def test_args_keep_declaration_order(self, parser: CommandMarkdownParser) -> None:
        metadata = parser.parse(FULL_COMMAND).metadata

        assert metadata.arg_names == ["file", "depth", "strict"]
        assert metadata.args[0].arg_type is ArgType.FILE
        assert metadata.args[0].required is True
        assert metadata.args[1].default == "normal"

    def test_boolean_default_is_normalized(self, parser: CommandMarkdownParser) -> None:
        metadata = parser.parse(FULL_COMMAND).metadata

        assert metadata.get_arg("strict").default == "false"

    def test_template_is_trimmed(self, parser: CommandMarkdownParser) -> None:
        parsed = parser.parse(FULL_COMMAND)

        assert parsed.template == "Review {{args.file}} at {{args.depth}} depth."

    def test_unknown_category_maps_to_custom(self, parser: CommandMarkdownParser) -> None:
        content = "---\nname: x\ndescription: X\ncategory: deployment\n---\nbody\n"

        assert parser.parse(content).metadata.category is CommandCategory.CUSTOM

    def test_agent_fields(self, parser: CommandMarkdownParser) -> None:
        content = (
            "---\n"
            "name: audit\n"
            "description: Audit security\n"
            "category: analysis\n"
            "agent: true\n"
            "agent_id: security-analyst\n"
            "activation_hints:\n"
            "  - security\n"
            "  - auth\n"
            "---\n"
            "Audit {{file}}\n"
        )
        metadata = parser.parse(content).metadata

        assert metadata.agent is True
        assert metadata.agent_id == "security-analyst"
        assert metadata.activation_hints == ("security", "auth")

    def test_empty_body(self, parser: CommandMarkdownParser) -> None:
        content = "---\nname: x\ndescription: X\ncategory: custom\n---\n"

        assert parser.parse(content).template == ""

    def test_parse_file(self, parser: CommandMarkdownParser, tmp_path: Path) -> None:
        path = tmp_path / "review.md"
        path.write_text(FULL_COMMAND, encoding="utf-8")

        assert parser.parse_file(path).metadata.name == "review"


@pytest.mark.unit
class TestParseErrors:
    """Tests for malformed command files."""

    def test_missing_opening_delimiter(self, parser: CommandMarkdownParser) -> None:
        with pytest.raises(CommandFileParseError) as exc_info:
            parser.parse("name: x\n---\nbody")

        assert exc_info.value.reason == "Missing frontmatter delimiter"

    def test_missing_closing_delimiter(self, parser: CommandMarkdownParser) -> None:
        with pytest.raises(CommandFileParseError) as exc_info:
            parser.parse("---\nname: x\ndescription: X\ncategory: custom\nbody")

        assert exc_info.value.reason == "No closing frontmatter delimiter"

    def test_error_names_file(self, parser: CommandMarkdownParser) -> None:
        with pytest.raises(CommandFileParseError) as exc_info:
            parser.parse("no frontmatter", file_path="/cmds/bad.md")

        assert exc_info.value.file_path == "/cmds/bad.md"
        assert str(exc_info.value).endswith("in /cmds/bad.md")

    def test_invalid_yaml(self, parser: CommandMarkdownParser) -> None:
        with pytest.raises(CommandFileParseError, match="Invalid YAML"):
            parser.parse("---\nname: [unclosed\n---\nbody")

    def test_frontmatter_not_mapping(self, parser: CommandMarkdownParser) -> None:
        with pytest.raises(CommandFileParseError, match="mapping"):
            parser.parse("---\n- a\n- b\n---\nbody")

    def test_missing_name(self, parser: CommandMarkdownParser) -> None:
        with pytest.raises(CommandFileParseError, match="name cannot be empty"):
            parser.parse("---\ndescription: X\ncategory: custom\n---\nbody")

    def test_invalid_name(self, parser: CommandMarkdownParser) -> None:
        with pytest.raises(CommandFileParseError, match="invalid characters"):
            parser.parse("---\nname: my command\ndescription: X\ncategory: custom\n---\n")

    def test_missing_description(self, parser: CommandMarkdownParser) -> None:
        with pytest.raises(CommandFileParseError, match="description cannot be empty"):
            parser.parse("---\nname: x\ncategory: custom\n---\nbody")

    def test_missing_category(self, parser: CommandMarkdownParser) -> None:
        with pytest.raises(CommandFileParseError, match="category cannot be empty"):
            parser.parse("---\nname: x\ndescription: X\n---\nbody")

    def test_required_with_default(self, parser: CommandMarkdownParser) -> None:
        content = (
            "---\nname: x\ndescription: X\ncategory: custom\n"
            "args:\n  - name: a\n    required: true\n    default: b\n---\n"
        )
        with pytest.raises(CommandFileParseError, match="both required"):
            parser.parse(content)

    def test_duplicate_argument(self, parser: CommandMarkdownParser) -> None:
        content = (
            "---\nname: x\ndescription: X\ncategory: custom\n"
            "args:\n  - name: a\n  - name: a\n---\n"
        )
        with pytest.raises(CommandFileParseError, match="Duplicate argument"):
            parser.parse(content)

    def test_unknown_argument_type(self, parser: CommandMarkdownParser) -> None:
        content = (
            "---\nname: x\ndescription: X\ncategory: custom\n"
            "args:\n  - name: a\n    type: date\n---\n"
        )
        with pytest.raises(CommandFileParseError, match="unknown type"):
            parser.parse(content)

    def test_missing_file(self, parser: CommandMarkdownParser, tmp_path: Path) -> None:
        with pytest.raises(CommandFileParseError, match="File not found"):
            parser.parse_file(tmp_path / "missing.md")
