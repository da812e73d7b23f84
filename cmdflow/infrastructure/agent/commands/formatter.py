"""Formatting of structured agent results into text."""

import json
from enum import Enum
from typing import Any

from cmdflow.domain.model.agent import (
    AgentResult,
    AnalysisResult,
    CodeReviewFinding,
    CodeReviewResult,
    Severity,
    SuggestionsResult,
)

_MARKDOWN_SECTIONS = (
    (Severity.ERROR, "❌ Errors"),
    (Severity.WARNING, "⚠️  Warnings"),
    (Severity.INFO, "ℹ️  Info"),
)


class OutputFormat(str, Enum):
    MARKDOWN = "markdown"
    JSON = "json"
    PLAIN_TEXT = "plain"

    @classmethod
    def from_str(cls, value: str) -> "OutputFormat":
        normalized = value.strip().lower()
        if normalized in ("plain_text", "plaintext", "text"):
            return cls.PLAIN_TEXT
        return cls(normalized)


class AgentResultFormatter:
    """Renders ``AgentResult`` variants as Markdown, JSON or plain text."""

    @staticmethod
    def format(result: AgentResult, output_format: OutputFormat = OutputFormat.MARKDOWN) -> str:
        match output_format:
            case OutputFormat.MARKDOWN:
                return AgentResultFormatter.format_markdown(result)
            case OutputFormat.JSON:
                return AgentResultFormatter.format_json(result)
            case OutputFormat.PLAIN_TEXT:
                return AgentResultFormatter.format_plain(result)
        raise ValueError(f"Unsupported output format: {output_format}")

    # ========================================================================
    # Markdown
    # ========================================================================

    @staticmethod
    def format_markdown(result: AgentResult) -> str:
        match result:
            case AnalysisResult(summary=summary, details=details):
                output = f"# Agent Analysis\n\n{summary}\n"
                if details:
                    output += "\n## Details\n\n"
                    for key, value in details.items():
                        output += f"- **{key}**: {value}\n"
                return output
            case CodeReviewResult(findings=findings):
                output = "# Code Review\n\n"
                if not findings:
                    return output + "✅ No issues found.\n"
                output += f"Found {len(findings)} issue(s):\n\n"
                for severity, heading in _MARKDOWN_SECTIONS:
                    group = [f for f in findings if f.severity == severity]
                    if group:
                        output += f"## {heading} ({len(group)})\n\n"
                        output += "".join(_finding_markdown(f) for f in group)
                return output
            case SuggestionsResult(items=items):
                output = "# Suggestions\n\n"
                if not items:
                    return output + "💡 No suggestions available.\n"
                for index, suggestion in enumerate(items, start=1):
                    output += f"## {index}. {suggestion.title}\n\n{suggestion.description}\n"
                    if suggestion.code_change is not None:
                        output += f"\n```\n{suggestion.code_change}\n```\n"
                    output += "\n"
                return output
        raise TypeError(f"Unknown agent result: {type(result).__name__}")

    # ========================================================================
    # JSON
    # ========================================================================

    @staticmethod
    def to_dict(result: AgentResult) -> dict[str, Any]:
        match result:
            case AnalysisResult(summary=summary, details=details):
                return {"type": "analysis", "summary": summary, "details": dict(details)}
            case CodeReviewResult(findings=findings):
                return {
                    "type": "code_review",
                    "findings": [_finding_dict(f) for f in findings],
                    "count": len(findings),
                }
            case SuggestionsResult(items=items):
                entries = []
                for suggestion in items:
                    entry = {"title": suggestion.title, "description": suggestion.description}
                    if suggestion.code_change is not None:
                        entry["code_change"] = suggestion.code_change
                    entries.append(entry)
                return {"type": "suggestions", "items": entries, "count": len(items)}
        raise TypeError(f"Unknown agent result: {type(result).__name__}")

    @staticmethod
    def format_json(result: AgentResult) -> str:
        return json.dumps(AgentResultFormatter.to_dict(result), indent=2, ensure_ascii=False)

    # ========================================================================
    # Plain text
    # ========================================================================

    @staticmethod
    def format_plain(result: AgentResult) -> str:
        match result:
            case AnalysisResult(summary=summary, details=details):
                output = f"Agent Analysis\n{'=' * 15}\n\n{summary}\n"
                if details:
                    output += "\nDetails:\n\n"
                    for key, value in details.items():
                        output += f"- {key}: {value}\n"
                return output
            case CodeReviewResult(findings=findings):
                output = "Code Review\n===========\n\n"
                if not findings:
                    return output + "No issues found.\n"
                output += f"Found {len(findings)} issue(s):\n\n"
                for index, finding in enumerate(findings, start=1):
                    output += (
                        f"{index}. [{finding.severity.value.upper()}] "
                        f"{finding.category}: {finding.message}\n"
                    )
                    if finding.location is not None:
                        output += f"   Location: {_location(finding)}\n"
                    output += "\n"
                return output
            case SuggestionsResult(items=items):
                output = "Suggestions\n===========\n\n"
                if not items:
                    return output + "No suggestions available.\n"
                for index, suggestion in enumerate(items, start=1):
                    output += f"{index}. {suggestion.title}\n\n   {suggestion.description}\n"
                    if suggestion.code_change is not None:
                        indented = suggestion.code_change.replace("\n", "\n   ")
                        output += f"\n   Code change:\n   {indented}\n"
                    output += "\n"
                return output
        raise TypeError(f"Unknown agent result: {type(result).__name__}")


def _location(finding: CodeReviewFinding) -> str:
    line = "?" if finding.line_number is None else str(finding.line_number)
    return f"{finding.location}:{line}"


def _finding_markdown(finding: CodeReviewFinding) -> str:
    output = f"**{finding.category}**: {finding.message}\n"
    if finding.location is not None:
        output += f"  📍 Location: `{_location(finding)}`\n"
    return output + "\n"


def _finding_dict(finding: CodeReviewFinding) -> dict[str, Any]:
    data: dict[str, Any] = {
        "severity": finding.severity.value,
        "category": finding.category,
        "message": finding.message,
    }
    if finding.location is not None:
        data["location"] = {"path": str(finding.location), "line": finding.line_number}
    return data
