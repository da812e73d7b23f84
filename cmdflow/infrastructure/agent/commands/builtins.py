"""Built-in slash command definitions.

Registers the default commands available without any user command
files. Built-ins survive registry reloads; a user command file with the
same name overrides the built-in.
"""

import logging

from cmdflow.domain.model.command import (
    ArgDefinition,
    ArgType,
    CommandCategory,
    CommandMetadata,
    CommandSource,
    TemplateCommand,
)
from cmdflow.infrastructure.agent.commands.registry import CommandRegistry

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

EXPLAIN_TEMPLATE = """Please provide a detailed explanation of the following code:

{{#if args.file}}
File: {{args.file}}
{{/if}}

{{#if git_diff}}
Recent changes:
```
{{git_diff}}
```
{{/if}}

{{#if args.code}}
```
{{args.code}}
```
{{else if files}}
Files to analyze:
{{#each files}}
- {{this}}
{{/each}}
{{/if}}

Please explain:
1. What the code does
2. How it works (key logic and algorithms)
3. Any patterns or best practices used
4. Potential issues or improvements"""

REVIEW_TEMPLATE = """Please perform a comprehensive code review:

{{#if args.file}}
Focus on: {{args.file}}
{{/if}}

{{#if git_diff}}
Changes to review:
```
{{git_diff}}
```
{{else if files}}
Files to review:
{{#each files}}
- {{this}}
{{/each}}
{{/if}}

Review checklist:
1. **Code Quality**
   - Readability and maintainability
   - Naming conventions
   - Code organization

2. **Best Practices**
   - Design patterns
   - Error handling
   - Resource management

3. **Potential Issues**
   - Bugs or logical errors
   - Performance concerns
   - Security vulnerabilities

4. **Testing**
   - Test coverage
   - Edge cases
   - Test quality

5. **Suggestions**
   - Improvements
   - Refactoring opportunities
   - Documentation needs"""

TEST_TEMPLATE = """Please generate comprehensive test cases for:

{{#if args.function}}
Function: {{args.function}}
{{/if}}

{{#if args.code}}
Code:
```
{{args.code}}
```
{{else if files}}
Files:
{{#each files}}
- {{this}}
{{/each}}
{{/if}}

Generate tests covering:
1. **Happy Path**
   - Normal expected inputs
   - Successful execution flows

2. **Edge Cases**
   - Boundary values
   - Empty/null inputs
   - Maximum/minimum values

3. **Error Cases**
   - Invalid inputs
   - Error conditions
   - Exception handling

4. **Integration**
   - Dependencies
   - Side effects
   - State management

Format: {{#if args.format}}{{args.format}}{{else}}Framework-appropriate{{/if}}"""


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------


def _builtin(metadata: CommandMetadata, template: str) -> TemplateCommand:
    return TemplateCommand(metadata=metadata, template=template, source=CommandSource.BUILTIN)


def builtin_commands() -> list[TemplateCommand]:
    """Return fresh instances of all built-in commands."""
    return [
        _builtin(
            CommandMetadata(
                name="explain",
                description="Explain code functionality with detailed analysis",
                category=CommandCategory.ANALYSIS,
                args=(
                    ArgDefinition(
                        name="file",
                        arg_type=ArgType.FILE,
                        description="File to explain",
                    ),
                    ArgDefinition(
                        name="code",
                        arg_type=ArgType.STRING,
                        description="Code snippet to explain",
                    ),
                ),
            ),
            EXPLAIN_TEMPLATE,
        ),
        _builtin(
            CommandMetadata(
                name="review",
                description="Perform comprehensive code review",
                category=CommandCategory.ANALYSIS,
                args=(
                    ArgDefinition(
                        name="file",
                        arg_type=ArgType.FILE,
                        description="File or directory to focus the review on",
                    ),
                ),
            ),
            REVIEW_TEMPLATE,
        ),
        _builtin(
            CommandMetadata(
                name="test",
                description="Generate comprehensive test cases",
                category=CommandCategory.TESTING,
                args=(
                    ArgDefinition(
                        name="function",
                        arg_type=ArgType.STRING,
                        description="Function to generate tests for",
                    ),
                    ArgDefinition(
                        name="code",
                        arg_type=ArgType.STRING,
                        description="Code snippet to test",
                    ),
                    ArgDefinition(
                        name="format",
                        arg_type=ArgType.STRING,
                        description="Test framework or output format",
                    ),
                ),
            ),
            TEST_TEMPLATE,
        ),
    ]


async def register_builtin_commands(registry: CommandRegistry) -> None:
    """Register all built-in commands.

    Args:
        registry: The command registry to populate.
    """
    for command in builtin_commands():
        await registry.register(command)
    logger.debug("Registered %d built-in commands", len(builtin_commands()))
