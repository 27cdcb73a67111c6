from __future__ import annotations

import pytest

from spreadsheet_import.matching.fuzzy import find_match, match_columns, match_options, similarity
from spreadsheet_import.models.column import (
    EmptyColumn,
    IgnoredColumn,
    MatchedCheckboxColumn,
    MatchedColumn,
    MatchedOption,
    MatchedSelectColumn,
    MatchedSelectOptionsColumn,
    columns_from_headers,
)
from spreadsheet_import.models.field import Field, SelectOption

"""Unit tests for the fuzzy header matcher."""


def test_similarity_identical_and_case_insensitive():
    assert similarity("Email", "email") == 1.0
    assert similarity("  NAME ", "name") == 1.0


def test_similarity_range_and_empty():
    score = similarity("Full Name", "name")
    assert 0.0 < score < 1.0
    assert similarity("", "name") == 0.0
    assert similarity("", "") == 0.0


def test_headers_matched_against_field_keys():
    """Full Name -> name, E-mail -> email, Random stays empty."""
    columns = columns_from_headers(["Full Name", "E-mail", "Random"])
    fields = [Field(key="name"), Field(key="email")]

    result = match_columns(columns, fields, [["Alice", "a@x.io", "zz"]], match_threshold=0.5)

    assert result[0] == MatchedColumn(index=0, header="Full Name", value="name")
    assert result[1] == MatchedColumn(index=1, header="E-mail", value="email")
    assert result[2] == EmptyColumn(index=2, header="Random")


def test_match_columns_returns_new_list():
    columns = columns_from_headers(["name"])
    result = match_columns(columns, [Field(key="name")], [])
    assert result is not columns
    assert isinstance(columns[0], EmptyColumn)


def test_threshold_rejects_weak_match():
    columns = columns_from_headers(["Full Name"])
    result = match_columns(columns, [Field(key="name")], [], match_threshold=0.9)
    assert isinstance(result[0], EmptyColumn)


def test_alternate_matches_and_label_are_used():
    fields = [Field(key="fn", label="First name", alternate_matches=("given",))]
    assert find_match("first name", fields) is fields[0]
    assert find_match("Given", fields) is fields[0]


def test_tie_goes_to_first_field():
    fields = [Field(key="a", label="code"), Field(key="b", label="code")]
    assert find_match("code", fields).key == "a"


def test_field_is_not_proposed_twice():
    columns = columns_from_headers(["email", "Email"])
    result = match_columns(columns, [Field(key="email")], [])
    assert isinstance(result[0], MatchedColumn)
    assert isinstance(result[1], EmptyColumn)


def test_ignored_and_matched_columns_untouched():
    columns = [
        IgnoredColumn(index=0, header="name"),
        MatchedColumn(index=1, header="whatever", value="email"),
        EmptyColumn(index=2, header="email"),
    ]
    result = match_columns(columns, [Field(key="name"), Field(key="email")], [])
    assert result[0] is columns[0]
    assert result[1] is columns[1]
    # email already held by column 1
    assert isinstance(result[2], EmptyColumn)


def test_empty_header_never_matches():
    columns = columns_from_headers([None, "name"])
    result = match_columns(columns, [Field(key="name")], [])
    assert result[0] == EmptyColumn(index=0, header="")
    assert isinstance(result[1], MatchedColumn)


def test_boolean_field_goes_to_checkbox():
    result = match_columns(columns_from_headers(["Active"]), [Field(key="active", boolean=True)], [["yes"]])
    assert isinstance(result[0], MatchedCheckboxColumn)


def test_select_entries_seeded_and_promoted():
    field = Field(
        key="team",
        options=(SelectOption(value="one", label="Team One"), SelectOption(value="two", label="Team Two")),
    )
    data = [["team one"], ["Team Two"], ["team one"]]
    result = match_columns(columns_from_headers(["Team"]), [field], data)
    column = result[0]
    assert isinstance(column, MatchedSelectOptionsColumn)
    assert column.matched_options == (
        MatchedOption(entry="team one", value="one"),
        MatchedOption(entry="Team Two", value="two"),
    )


def test_select_entries_partially_seeded_stay_select():
    field = Field(key="team", options=(SelectOption(value="one", label="Team One"),))
    data = [["Team One"], ["zzzzzzzzzzzz"]]
    result = match_columns(columns_from_headers(["team"]), [field], data)
    column = result[0]
    assert isinstance(column, MatchedSelectColumn)
    assert column.matched_options == (
        MatchedOption(entry="Team One", value="one"),
        MatchedOption(entry="zzzzzzzzzzzz", value=None),
    )


def test_sample_size_limits_seeding_not_entry_collection():
    """Entries past the sample are listed but left unassigned, so the column is not ready yet."""
    field = Field(key="team", options=(SelectOption(value="a", label="A"), SelectOption(value="b", label="B")))
    data = [["A"], ["B"], ["B"]]
    result = match_columns(columns_from_headers(["team"]), [field], data, sample_size=1)
    column = result[0]
    assert isinstance(column, MatchedSelectColumn)
    assert column.matched_options == (MatchedOption(entry="A", value="a"), MatchedOption(entry="B", value=None))


def test_sample_covering_every_entry_promotes():
    field = Field(key="team", options=(SelectOption(value="a", label="A"), SelectOption(value="b", label="B")))
    data = [["A"], ["B"], ["B"]]
    result = match_columns(columns_from_headers(["team"]), [field], data, sample_size=2)
    assert isinstance(result[0], MatchedSelectOptionsColumn)
    assert [o.value for o in result[0].matched_options] == ["a", "b"]


def test_select_column_without_values_is_promoted():
    field = Field(key="team", options=(SelectOption(value="a", label="A"),))
    result = match_columns(columns_from_headers(["team"]), [field], [[None], [""]])
    assert result[0] == MatchedSelectOptionsColumn(index=0, header="team", value="team", matched_options=())


@pytest.mark.parametrize(
    "entry, expected",
    [
        ("yes", "y"),
        ("NO", "n"),
        ("qqqqqqqq", None),
    ],
)
def test_match_options_per_entry(entry, expected):
    options = [SelectOption(value="y", label="Yes"), SelectOption(value="n", label="No")]
    (seeded,) = match_options([MatchedOption(entry=entry)], options, threshold=0.5)
    assert seeded.value == expected


def test_match_options_keeps_assigned_entries():
    options = [SelectOption(value="y", label="Yes")]
    (seeded,) = match_options([MatchedOption(entry="whatever", value="custom")], options)
    assert seeded.value == "custom"
