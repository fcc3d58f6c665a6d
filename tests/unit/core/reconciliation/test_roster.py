"""로스터 파서 테스트"""

from pathlib import Path

import pandas as pd
import pytest

from core.domain.models import RosterEntry
from core.errors import ReconciliationError
from core.reconciliation.roster import (
    RosterRow,
    find_columns,
    normalize_date,
    parse_roster_frame,
    read_roster,
)


class TestNormalizeDate:
    """normalize_date 테스트"""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("2020-01-01", "2020-01-01"),
            ("2020-1-5", "2020-01-05"),
            ("1/5/20", "2020-01-05"),
            ("12/31/2019", "2019-12-31"),
            (" \"3/4/21\" ", "2021-03-04"),
        ],
    )
    def test_valid(self, raw: str, expected: str) -> None:
        assert normalize_date(raw) == expected

    @pytest.mark.parametrize("raw", ["", "yesterday", "2/30/20", "2020-13-01", "1-5-20"])
    def test_invalid(self, raw: str) -> None:
        assert normalize_date(raw) is None


class TestFindColumns:
    """find_columns 테스트"""

    def test_birth_column_preferred(self) -> None:
        assert find_columns(["cow id", "freshen date", "birth date"]) == ("cow id", "birth date")

    def test_bdat_marker(self) -> None:
        assert find_columns(["tag", "bdat"]) == ("tag", "bdat")

    def test_date_fallback(self) -> None:
        assert find_columns(["tag", "date"]) == ("tag", "date")

    def test_missing_columns(self) -> None:
        with pytest.raises(ReconciliationError) as exc_info:
            find_columns(["name", "breed"])

        assert "id/tag" in str(exc_info.value)
        assert "birth date" in str(exc_info.value)


class TestParseRosterFrame:
    """parse_roster_frame 테스트"""

    def test_headers_normalized(self) -> None:
        frame = pd.DataFrame({"\"Tag\"": ["A1", " A2 "], "BirthDate": ["1/1/20", "2020-02-02"]})

        entries = parse_roster_frame(frame)

        assert entries == [
            RosterEntry(tag="A1", birth_date="2020-01-01"),
            RosterEntry(tag="A2", birth_date="2020-02-02"),
        ]

    def test_blank_and_bad_rows_skipped(self) -> None:
        frame = pd.DataFrame({
            "id": ["A1", "", "A3", "A4"],
            "birth": ["1/1/20", "1/2/20", "", "not a date"],
        })

        entries = parse_roster_frame(frame)

        assert [e.tag for e in entries] == ["A1"]


class TestReadRoster:
    """read_roster 테스트"""

    def test_comma_separated(self, tmp_path: Path) -> None:
        path = tmp_path / "roster.csv"
        path.write_text("Tag,Birth Date\nA1,1/1/20\nB7,2019-05-06\n", encoding="utf-8")

        entries = read_roster(path)

        assert entries == [
            RosterEntry(tag="A1", birth_date="2020-01-01"),
            RosterEntry(tag="B7", birth_date="2019-05-06"),
        ]

    def test_tab_separated(self, tmp_path: Path) -> None:
        path = tmp_path / "roster.txt"
        path.write_text("ID\tBDAT\tPEN\n0012\t3/4/21\t2\n", encoding="utf-8")

        entries = read_roster(path)

        # 선행 0 유지 (문자열로 읽음)
        assert entries == [RosterEntry(tag="0012", birth_date="2021-03-04")]

    def test_semicolon_separated(self, tmp_path: Path) -> None:
        path = tmp_path / "roster.csv"
        path.write_text("tag;birth_date\nA1;2020-01-01\n", encoding="utf-8")

        assert read_roster(path) == [RosterEntry(tag="A1", birth_date="2020-01-01")]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ReconciliationError):
            read_roster(tmp_path / "nope.csv")

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.csv"
        path.write_text("", encoding="utf-8")

        with pytest.raises(ReconciliationError):
            read_roster(path)

    def test_missing_required_column(self, tmp_path: Path) -> None:
        path = tmp_path / "roster.csv"
        path.write_text("name,breed\nDaisy,Holstein\n", encoding="utf-8")

        with pytest.raises(ReconciliationError):
            read_roster(path)


class TestRosterRow:
    """RosterRow 검증 테스트"""

    def test_tag_cleaned(self) -> None:
        row = RosterRow(tag=" 'A1' ", birth_date="2020-01-01")

        assert row.to_entry() == RosterEntry(tag="A1", birth_date="2020-01-01")
