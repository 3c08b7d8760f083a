import pytest

from rtb_options import (
    InvalidArgument,
    MissingRequiredOption,
    Option,
    OptionType,
    Parser,
    ValidationError,
)


def test_valid_values_match_case_insensitively():
    parser = Parser([Option("mode", "The mode.", valid_values=["A", "B"])])
    assert parser.parse(["--mode", "a"]) == {"mode": "a"}


def test_value_outside_valid_values_is_rejected():
    parser = Parser([Option("mode", "The mode.", valid_values=["a", "b"])])
    with pytest.raises(ValidationError) as excinfo:
        parser.parse(["--mode", "C"])
    assert excinfo.value.value == "C"
    assert excinfo.value.valid_values == ("A", "B")
    assert "'C'" in str(excinfo.value)
    assert "['A', 'B']" in str(excinfo.value)


def test_required_option_without_default_fails():
    parser = Parser([Option("project_id", "The project.", required=True)])
    with pytest.raises(MissingRequiredOption) as excinfo:
        parser.parse([])
    assert excinfo.value.option.name == "project_id"
    assert "'--project_id PROJECT_ID'" in str(excinfo.value)


def test_required_option_satisfied_by_default():
    parser = Parser([Option("project_id", "The project.", required=True,
                            default_value="default-proj")])
    assert parser.parse([]) == {"project_id": "default-proj"}


def test_default_value_used_when_flag_absent():
    parser = Parser([Option("name", "A name.", default_value="x")])
    assert parser.parse([]) == {"name": "x"}


def test_optional_option_without_default_is_none():
    parser = Parser([Option("name", "A name.")])
    assert parser.parse([]) == {"name": None}


def test_valid_values_must_be_a_list():
    with pytest.raises(InvalidArgument):
        Option("mode", "The mode.", valid_values="not-a-list")


def test_end_to_end_parse():
    options = [
        Option("project_id", "The project.", required=True),
        Option("region", "The region.", default_value="us-central1"),
    ]
    result = Parser(options).parse(["--project_id", "my-proj"])
    assert result == {"project_id": "my-proj", "region": "us-central1"}


def test_declaration_order_does_not_change_result():
    def options():
        return [
            Option("project_id", "The project.", short_alias="p", required=True),
            Option("region", "The region.", default_value="us-central1"),
            Option("count", "A count.", type=OptionType.INTEGER, default_value=1),
        ]

    argv = ["-p", "my-proj", "--count", "3"]
    forward = Parser(options()).parse(list(argv))
    backward = Parser(list(reversed(options()))).parse(list(argv))
    assert forward == backward == {
        "project_id": "my-proj", "region": "us-central1", "count": 3,
    }


def test_help_text_lists_valid_values():
    option = Option("view", "The view.", valid_values=["full", "serving_decision_only"])
    assert option.valid_values == ("FULL", "SERVING_DECISION_ONLY")
    assert option.help_text == (
        "The view. This can be set to: ['FULL', 'SERVING_DECISION_ONLY']."
    )


def test_flag_spec_order():
    option = Option("project_id", "The project.", short_alias="p")
    assert option.flag_spec() == [
        "-p PROJECT_ID", "--project_id PROJECT_ID", OptionType.STRING, "The project.",
    ]
    assert Option("region", "The region.").flag_spec() == [
        "--region REGION", OptionType.STRING, "The region.",
    ]


def test_key_is_name():
    assert Option("account_id", "The account.").key == "account_id"


@pytest.mark.parametrize("kwargs", [
    {"name": ""},
    {"name": "help"},
    {"name": "x", "short_alias": "h"},
    {"name": "x", "short_alias": "ab"},
    {"name": "x", "type": int},
])
def test_bad_declarations_rejected(kwargs):
    with pytest.raises(InvalidArgument):
        Option(help_template="Help.", **kwargs)


def test_duplicate_declarations_rejected():
    with pytest.raises(InvalidArgument):
        Parser([Option("a", "A."), Option("a", "Again.")])
    with pytest.raises(InvalidArgument):
        Parser([Option("a", "A.", short_alias="x"), Option("b", "B.", short_alias="x")])


def test_coercion_per_type():
    parser = Parser([
        Option("count", "A count.", type=OptionType.INTEGER),
        Option("ratio", "A ratio.", type=OptionType.FLOAT),
        Option("dry_run", "Dry run.", type=OptionType.BOOLEAN),
        Option("tags", "Tags.", type=OptionType.STRING_LIST),
    ])
    result = parser.parse([
        "--count", "7", "--ratio", "0.5", "--dry_run", "Yes", "--tags", "a, b,,c",
    ])
    assert result == {
        "count": 7, "ratio": 0.5, "dry_run": True, "tags": ["a", "b", "c"],
    }


def test_negative_number_is_a_value():
    parser = Parser([Option("offset", "Offset.", type=OptionType.INTEGER)])
    assert parser.parse(["--offset", "-5"]) == {"offset": -5}


@pytest.mark.parametrize("option_type, value", [
    (OptionType.INTEGER, "abc"),
    (OptionType.FLOAT, "x1"),
    (OptionType.BOOLEAN, "maybe"),
])
def test_coercion_failure_is_validation_error(option_type, value):
    parser = Parser([Option("value", "A value.", type=option_type)])
    with pytest.raises(ValidationError):
        parser.parse(["--value", value])


def test_list_values_validated_per_element():
    parser = Parser([Option("tags", "Tags.", type=OptionType.STRING_LIST,
                            valid_values=["A", "B"])])
    assert parser.parse(["--tags", "a,B"]) == {"tags": ["a", "B"]}
    with pytest.raises(ValidationError) as excinfo:
        parser.parse(["--tags", "a,z"])
    assert excinfo.value.value == "z"


def test_non_string_values_compared_as_strings():
    parser = Parser([Option("size", "Size.", type=OptionType.INTEGER,
                            valid_values=[10, 20])])
    assert parser.parse(["--size", "20"]) == {"size": 20}
    with pytest.raises(ValidationError):
        parser.parse(["--size", "30"])


def test_short_alias():
    parser = Parser([Option("account_id", "Account.", short_alias="a")])
    assert parser.parse(["-a", "123"]) == {"account_id": "123"}


def test_last_value_wins():
    parser = Parser([Option("name", "A name.")])
    assert parser.parse(["--name", "a", "--name", "b"]) == {"name": "b"}


def test_parse_strips_recognized_flags_from_argv():
    parser = Parser([Option("name", "A name.")])
    argv = ["first", "--name", "x", "second"]
    parser.parse(argv)
    assert argv == ["first", "second"]


def test_unrecognized_flag_rejected():
    parser = Parser([Option("name", "A name.")])
    with pytest.raises(ValidationError) as excinfo:
        parser.parse(["--nope", "x"])
    assert excinfo.value.value == "--nope"


def test_flag_without_value_rejected():
    parser = Parser([Option("name", "A name.")])
    with pytest.raises(ValidationError):
        parser.parse(["--name"])


def test_failed_parse_returns_nothing_partial():
    parser = Parser([
        Option("name", "A name."),
        Option("mode", "The mode.", valid_values=["A"]),
    ])
    with pytest.raises(ValidationError):
        parser.parse(["--name", "x", "--mode", "b"])
    assert parser.parse(["--mode", "a"]) == {"name": None, "mode": "a"}


def test_help_lists_options(capsys):
    parser = Parser(
        [Option("rate", "Share of traffic, e.g. 50%.", short_alias="r")],
        prog="sample",
    )
    with pytest.raises(SystemExit) as excinfo:
        parser.parse(["--help"])
    assert excinfo.value.code == 0
    out = capsys.readouterr().out
    assert "--rate RATE" in out
    assert "50%" in out


def test_value_starting_with_dash_is_taken_as_is():
    parser = Parser([
        Option("filter", "A filter.", short_alias="f"),
        Option("name", "A name."),
    ])
    assert parser.parse(["--filter", "-creativeFormat=HTML"]) == {
        "filter": "-creativeFormat=HTML", "name": None,
    }
    assert parser.parse(["-f", "-x", "--name", "--other"]) == {
        "filter": "-x", "name": "--other",
    }


def test_inline_value_still_accepted():
    parser = Parser([Option("filter", "A filter.")])
    assert parser.parse(["--filter=-creativeFormat=HTML"]) == {
        "filter": "-creativeFormat=HTML",
    }


def test_separator_removed_from_argv():
    parser = Parser([Option("name", "A name.")])
    argv = ["--name", "x", "--", "rest", "--name"]
    assert parser.parse(argv) == {"name": "x"}
    assert argv == ["rest", "--name"]
