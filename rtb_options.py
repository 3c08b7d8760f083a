"""
Command-line options for the Real-time Bidding API samples.

Each sample declares its options as a list of Option objects and hands them
to a Parser, which builds the underlying argparse parser, validates values
as they are read and fills in defaults:

  options = [
      Option("account_id", "The resource ID of the buyers resource.",
             short_alias="a", required=True),
      Option("view", "Controls the amount of information included.",
             short_alias="v", valid_values=["SERVING_DECISION_ONLY", "FULL"],
             default_value="FULL"),
  ]
  args = Parser(options).parse(sys.argv[1:])
  args["account_id"]

Do not declare an option named "help" or with short alias "h"; those are
reserved for displaying usage.
"""

import argparse
from collections import namedtuple
from enum import Enum
from typing import List, Optional


class OptionError(Exception):
    """Base class for option declaration and parsing errors."""


class InvalidArgument(OptionError, ValueError):
    """An option was declared with bad arguments, or an unsupported API
    version was requested."""


class ValidationError(OptionError):
    """A command-line value could not be accepted for an option."""

    def __init__(self, message, value=None, valid_values=None):
        super().__init__(message)
        self.value = value
        self.valid_values = valid_values


class MissingRequiredOption(OptionError):
    """A required option has no value after defaults were applied."""

    def __init__(self, option):
        super().__init__(
            f"You need to set '{option.name}', it is a required field. "
            f"Set it by passing '--{option.name} {option.metavar}' as a "
            "command line argument or giving the corresponding option a "
            "default value."
        )
        self.option = option


TRUE_STRINGS = ("true", "yes", "on", "1")
FALSE_STRINGS = ("false", "no", "off", "0")


def boolean(value):
    lowered = value.strip().lower()
    if lowered in TRUE_STRINGS:
        return True
    if lowered in FALSE_STRINGS:
        return False
    raise ValueError(f"not a boolean: {value}")


def string_list(value):
    """Split a comma-separated token: "a, b,,c" -> ["a", "b", "c"]."""
    return [item.strip() for item in value.split(",") if item.strip()]


class OptionType(Enum):
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    STRING_LIST = "string_list"

    @property
    def coerce(self):
        return _COERCERS[self]


_COERCERS = {
    OptionType.STRING: str,
    OptionType.INTEGER: int,
    OptionType.FLOAT: float,
    OptionType.BOOLEAN: boolean,
    OptionType.STRING_LIST: string_list,
}


class Option:
    """An option to be passed into a sample via a command-line argument.

    name: the long alias, typically words delimited by underscores. It is
        also the key of the parsed value in the mapping returned by
        Parser.parse.
    help_template: help text shown for "-h"/"--help". When valid_values is
        set, the allowed values are appended to it.
    type: the OptionType used to coerce the raw value.
    short_alias: optional single character alias.
    valid_values: optional list or tuple of allowed values, compared
        case-insensitively.
    required: whether the option must resolve to a value.
    default_value: value used when the option is not on the command line.

    Options are not modified after construction.
    """

    def __init__(self, name, help_template, type=OptionType.STRING,
                 short_alias=None, valid_values=None, required=False,
                 default_value=None):
        if not isinstance(name, str) or not name:
            raise InvalidArgument("The name argument must be a non-empty string.")
        if name == "help":
            raise InvalidArgument('"--help" is reserved for displaying usage.')
        if short_alias is not None:
            if not isinstance(short_alias, str) or len(short_alias) != 1:
                raise InvalidArgument(
                    f"The short_alias for '{name}' must be a single character."
                )
            if short_alias == "h":
                raise InvalidArgument('"-h" is reserved for displaying usage.')
        if not isinstance(type, OptionType):
            raise InvalidArgument(
                f"The type for '{name}' must be an OptionType, got {type!r}."
            )

        self.name = name
        self.key = name
        self.type = type
        self.short_alias = short_alias
        self.required = required
        self.default_value = default_value

        if valid_values is None:
            self.valid_values = None
            self.help_text = help_template
        elif not isinstance(valid_values, (list, tuple)):
            raise InvalidArgument("The valid_values argument must be a list or tuple.")
        else:
            self.valid_values = tuple(str(v).upper() for v in valid_values)
            self.help_text = (
                f"{help_template} This can be set to: {list(self.valid_values)}."
            )

    @property
    def metavar(self):
        return self.name.upper()

    def flag_spec(self):
        """Flag specification for the parser: short flag (if any), long
        flag, type and help text, in that order."""
        spec = []
        if self.short_alias is not None:
            spec.append(f"-{self.short_alias} {self.metavar}")
        spec.append(f"--{self.name} {self.metavar}")
        spec.append(self.type)
        spec.append(self.help_text)
        return spec

    def __repr__(self):
        return f"Option({self.name!r}, type={self.type.name})"


# One entry per declared option: the flag specification, a callable that
# validates a coerced value and a callable that records it.
_Rule = namedtuple("_Rule", ["spec", "validate", "record"])


class _RuleAction(argparse.Action):
    """argparse action that runs a rule's validator then its setter."""

    def __init__(self, option_strings, dest, rule=None, **kwargs):
        super().__init__(option_strings, dest, **kwargs)
        self.rule = rule

    def __call__(self, parser, namespace, values, option_string=None):
        self.rule.validate(values)
        self.rule.record(values)


def check_valid_value(valid_values, value):
    if str(value).upper() not in valid_values:
        raise ValidationError(
            f"Invalid value '{value}'. Valid values are: {list(valid_values)}",
            value=value,
            valid_values=valid_values,
        )


def _is_number(arg):
    try:
        float(arg)
    except ValueError:
        return False
    return True


class Parser:
    """Parses command-line arguments for the given Options."""

    def __init__(self, options: List[Option], prog: Optional[str] = None,
                 description: Optional[str] = None):
        self.options = list(options)
        self.parsed_args = {}

        seen_names = set()
        seen_aliases = set()
        for option in self.options:
            if option.name in seen_names:
                raise InvalidArgument(f"Option '{option.name}' is declared twice.")
            seen_names.add(option.name)
            if option.short_alias is not None:
                if option.short_alias in seen_aliases:
                    raise InvalidArgument(
                        f"Short alias '-{option.short_alias}' is declared twice."
                    )
                seen_aliases.add(option.short_alias)

        self.rules = []
        for option in self.options:
            self.rules.append(_Rule(
                spec=option.flag_spec(),
                validate=self._validator_for(option),
                record=self._setter_for(option),
            ))

        # Every accepted flag spelling, mapped to the long flag.
        self._long_flags = {}
        for option in self.options:
            self._long_flags[f"--{option.name}"] = f"--{option.name}"
            if option.short_alias is not None:
                self._long_flags[f"-{option.short_alias}"] = f"--{option.name}"

        self._arg_parser = argparse.ArgumentParser(
            prog=prog, description=description, exit_on_error=False
        )
        for option, rule in zip(self.options, self.rules):
            self._add_rule(option, rule)

    def _validator_for(self, option):
        def validate(value):
            if option.valid_values is None:
                return
            if isinstance(value, list):
                for item in value:
                    check_valid_value(option.valid_values, item)
            else:
                check_valid_value(option.valid_values, value)
        return validate

    def _setter_for(self, option):
        def record(value):
            self.parsed_args[option.key] = value
        return record

    def _add_rule(self, option, rule):
        *flags, option_type, help_text = rule.spec
        flag_strings = [flag.split(" ", 1)[0] for flag in flags]
        self._arg_parser.add_argument(
            *flag_strings,
            dest=option.key,
            metavar=option.metavar,
            type=option_type.coerce,
            # argparse expands %-formatting in help strings.
            help=help_text.replace("%", "%%"),
            default=argparse.SUPPRESS,
            action=_RuleAction,
            rule=rule,
        )

    def print_help(self):
        self._arg_parser.print_help()

    def _join_values(self, argv):
        """Rewrite "--name VALUE" and "-x VALUE" pairs as "--name=VALUE", so
        a value is taken as is even when it starts with "-"."""
        joined = []
        i = 0
        while i < len(argv):
            arg = argv[i]
            if arg == "--":
                joined.extend(argv[i:])
                break
            if arg in self._long_flags and i + 1 < len(argv):
                joined.append(f"{self._long_flags[arg]}={argv[i + 1]}")
                i += 2
            else:
                joined.append(arg)
                i += 1
        return joined

    def parse(self, argv):
        """Parse argv and return a mapping of option key to value.

        Recognized flags and their values are removed from argv; whatever
        is left over (positional arguments) stays in it.
        """
        self.parsed_args = {}
        args = self._join_values(argv)
        # Tokens after the first "--" are positional and not parsed.
        trailing = []
        if "--" in args:
            cut = args.index("--")
            args, trailing = args[:cut], args[cut + 1:]

        try:
            _, remaining = self._arg_parser.parse_known_args(args)
        except argparse.ArgumentError as e:
            raise ValidationError(str(e)) from e

        for arg in remaining:
            if arg.startswith("-") and len(arg) > 1 and not _is_number(arg):
                raise ValidationError(f"Unrecognized option '{arg}'.", value=arg)
        argv[:] = remaining + trailing

        for option in self.options:
            if option.key not in self.parsed_args:
                self.parsed_args[option.key] = option.default_value

            if option.required and self.parsed_args[option.key] is None:
                raise MissingRequiredOption(option)

        return dict(self.parsed_args)
