"""
Command markdown file parser.

Parses command definition files with YAML frontmatter and a markdown
template body.

Example review.md:
```markdown
---
name: review
description: Review code for quality issues
category: analysis
args:
  - name: depth
    type: string
    default: normal
---

Please review {{#if args.file}}{{args.file}}{{else}}the current changes{{/if}}.
```
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from cmdflow.domain.model.command import (
    ArgDefinition,
    ArgType,
    CommandCategory,
    CommandMetadata,
    CommandPermissions,
    is_valid_command_name,
)
from cmdflow.infrastructure.agent.errors import CommandFileParseError

FRONTMATTER_DELIMITER = "---"


@dataclass(frozen=True)
class ParsedCommand:
    """
    Parsed command file content.

    Attributes:
        metadata: Validated command metadata
        template: Template body with surrounding whitespace removed
    """

    metadata: CommandMetadata
    template: str


class CommandMarkdownParser:
    """
    Parser for command .md files.

    The file must start with a ``---`` line; the next ``---`` line closes
    the YAML frontmatter. Everything after it is the template.
    """

    def parse(self, content: str, file_path: str | Path | None = None) -> ParsedCommand:
        """
        Parse command file content.

        Args:
            content: Raw file content as string
            file_path: Optional file path for error messages

        Returns:
            ParsedCommand with metadata and template

        Raises:
            CommandFileParseError: If parsing or validation fails
        """
        frontmatter_yaml, body = self._split_frontmatter(content, file_path)

        try:
            frontmatter = yaml.safe_load(frontmatter_yaml) if frontmatter_yaml.strip() else {}
        except yaml.YAMLError as e:
            raise CommandFileParseError(f"Invalid YAML frontmatter: {e}", file_path) from e

        if not isinstance(frontmatter, dict):
            raise CommandFileParseError("YAML frontmatter must be a mapping", file_path)

        metadata = self._build_metadata(frontmatter, file_path)
        return ParsedCommand(metadata=metadata, template=body.strip())

    def parse_file(self, file_path: str | Path) -> ParsedCommand:
        """
        Parse a command .md file from disk.

        Args:
            file_path: Path to the .md file

        Returns:
            ParsedCommand

        Raises:
            CommandFileParseError: If reading or parsing fails
        """
        try:
            with open(file_path, encoding="utf-8") as f:
                content = f.read()
        except FileNotFoundError:
            raise CommandFileParseError(f"File not found: {file_path}", file_path) from None
        except (OSError, UnicodeDecodeError) as e:
            raise CommandFileParseError(f"Error reading file: {e}", file_path) from e

        return self.parse(content, file_path)

    def _split_frontmatter(
        self, content: str, file_path: str | Path | None
    ) -> tuple[str, str]:
        lines = content.splitlines()
        if not lines or lines[0].strip() != FRONTMATTER_DELIMITER:
            raise CommandFileParseError("Missing frontmatter delimiter", file_path)

        for index in range(1, len(lines)):
            if lines[index].strip() == FRONTMATTER_DELIMITER:
                return "\n".join(lines[1:index]), "\n".join(lines[index + 1 :])

        raise CommandFileParseError("No closing frontmatter delimiter", file_path)

    def _build_metadata(
        self, frontmatter: dict[str, Any], file_path: str | Path | None
    ) -> CommandMetadata:
        name = self._extract_str(frontmatter, "name")
        if not name:
            raise CommandFileParseError("Command name cannot be empty", file_path)
        if not is_valid_command_name(name):
            raise CommandFileParseError(
                f"Command name '{name}' contains invalid characters "
                "(only letters, digits, '-', '_' allowed)",
                file_path,
            )

        description = self._extract_str(frontmatter, "description")
        if not description:
            raise CommandFileParseError("Command description cannot be empty", file_path)

        category = self._extract_str(frontmatter, "category")
        if not category:
            raise CommandFileParseError("Command category cannot be empty", file_path)

        permissions_raw = frontmatter.get("permissions") or {}
        if not isinstance(permissions_raw, dict):
            raise CommandFileParseError("'permissions' must be a mapping", file_path)
        permissions = CommandPermissions(
            read_files=self._as_bool(permissions_raw.get("read_files")),
            write_files=self._as_bool(permissions_raw.get("write_files")),
            execute_shell=self._as_bool(permissions_raw.get("execute_shell")),
        )

        agent_id = self._extract_str(frontmatter, "agent_id") or None
        return CommandMetadata(
            name=name,
            description=description,
            category=CommandCategory.from_str(category),
            permissions=permissions,
            args=tuple(self._parse_args(frontmatter.get("args"), file_path)),
            agent=self._as_bool(frontmatter.get("agent")),
            agent_id=agent_id,
            activation_hints=tuple(self._extract_list(frontmatter, "activation_hints")),
        )

    def _parse_args(self, raw_args: Any, file_path: str | Path | None) -> list[ArgDefinition]:
        if raw_args is None:
            return []
        if not isinstance(raw_args, list):
            raise CommandFileParseError("'args' must be a list", file_path)

        args: list[ArgDefinition] = []
        seen: set[str] = set()
        for raw in raw_args:
            if not isinstance(raw, dict):
                raise CommandFileParseError("Each argument must be a mapping", file_path)
            name = self._extract_str(raw, "name")
            if not name:
                raise CommandFileParseError("Argument name cannot be empty", file_path)
            if name in seen:
                raise CommandFileParseError(f"Duplicate argument '{name}'", file_path)
            seen.add(name)

            type_raw = self._extract_str(raw, "type") or ArgType.STRING.value
            try:
                arg_type = ArgType(type_raw.lower())
            except ValueError:
                raise CommandFileParseError(
                    f"Argument '{name}' has unknown type '{type_raw}'", file_path
                ) from None

            required = self._as_bool(raw.get("required"))
            default = self._as_default(raw.get("default"))
            if required and default is not None:
                raise CommandFileParseError(
                    f"Argument '{name}' cannot be both required and have a default value",
                    file_path,
                )

            args.append(
                ArgDefinition(
                    name=name,
                    arg_type=arg_type,
                    required=required,
                    description=self._extract_str(raw, "description"),
                    default=default,
                )
            )
        return args

    def _extract_str(self, data: dict[str, Any], key: str) -> str:
        value = data.get(key)
        if value is None:
            return ""
        return str(value).strip()

    def _extract_list(self, data: dict[str, Any], key: str) -> list[str]:
        """Extract a list of strings from frontmatter."""
        value = data.get(key)
        if value is None:
            return []
        if isinstance(value, list):
            return [str(item) for item in value if item]
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return []

    def _as_bool(self, value: Any) -> bool:
        if value is None:
            return False
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in ("true", "yes", "1", "on")

    def _as_default(self, value: Any) -> str | None:
        if value is None:
            return None
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)
