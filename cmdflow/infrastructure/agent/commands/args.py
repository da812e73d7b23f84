"""Argument mapping for command invocations.

Reconciles the positional and named arguments of a ``CommandInvocation``
with the ordered parameter declarations of a command.
"""

import logging
import math

from cmdflow.domain.model.command import ArgType, CommandMetadata
from cmdflow.infrastructure.agent.commands.invocation import CommandInvocation
from cmdflow.infrastructure.agent.errors import (
    ArgumentError,
    MissingRequiredArgumentError,
    UnknownArgumentError,
)

logger = logging.getLogger(__name__)

_TRUE_VALUES = frozenset({"true", "yes", "1", "on"})
_FALSE_VALUES = frozenset({"false", "no", "0", "off"})


class ArgumentMapper:
    """Maps invocation arguments onto a command's declared parameters."""

    @staticmethod
    def map_arguments(invocation: CommandInvocation, metadata: CommandMetadata) -> dict[str, str]:
        """Map positional and named arguments to parameter names.

        Positional tokens fill the declared parameters in order; extra
        tokens are dropped. Named arguments are applied afterwards and
        override positional values. Defaults fill whatever is still
        unset, then required parameters are checked.

        Args:
            invocation: Parsed invocation.
            metadata: Metadata of the command being invoked.

        Returns:
            Mapping of parameter name to value, in declaration order.

        Raises:
            UnknownArgumentError: If a named argument is not declared.
            MissingRequiredArgumentError: If a required parameter has no value.
        """
        declared = metadata.args
        values: dict[str, str] = {}

        for position, raw in enumerate(invocation.raw_args):
            if position < len(declared):
                values[declared[position].name] = raw
            else:
                logger.warning(
                    "Extra positional argument ignored for /%s: '%s' (position %d)",
                    metadata.name,
                    raw,
                    position,
                )

        for key, value in invocation.args.items():
            if metadata.get_arg(key) is None:
                raise UnknownArgumentError(key, metadata.name)
            values[key] = value

        for arg in declared:
            if arg.name not in values and arg.default is not None:
                values[arg.name] = arg.default

        for arg in declared:
            if arg.required and arg.name not in values:
                raise MissingRequiredArgumentError(arg.name, metadata.name)

        return {arg.name: values[arg.name] for arg in declared if arg.name in values}

    @staticmethod
    def validate_and_coerce(args: dict[str, str], metadata: CommandMetadata) -> dict[str, str]:
        """Check mapped values against their declared types.

        ``number`` values must parse as a finite number and ``boolean``
        values are normalised to ``true``/``false``. ``string`` and
        ``file`` values pass through untouched.

        Args:
            args: Output of ``map_arguments``.
            metadata: Metadata of the command being invoked.

        Returns:
            A new mapping with normalised values.

        Raises:
            ArgumentError: If a value does not fit its declared type.
        """
        coerced = dict(args)
        for arg in metadata.args:
            value = coerced.get(arg.name)
            if value is None:
                continue
            if arg.arg_type is ArgType.NUMBER:
                try:
                    number = float(value)
                except ValueError:
                    number = math.nan
                if not math.isfinite(number):
                    raise ArgumentError(
                        f"Argument '{arg.name}' for command '{metadata.name}' "
                        f"must be a number, got: {value}"
                    )
            elif arg.arg_type is ArgType.BOOLEAN:
                lowered = value.strip().lower()
                if lowered in _TRUE_VALUES:
                    coerced[arg.name] = "true"
                elif lowered in _FALSE_VALUES:
                    coerced[arg.name] = "false"
                else:
                    raise ArgumentError(
                        f"Argument '{arg.name}' for command '{metadata.name}' "
                        f"must be a boolean, got: {value}"
                    )
        return coerced
