"""Tests for CSV export."""
import csv
import io
from datetime import date, datetime, timezone

from ttsfeedback.shared.models import Category, Observation, Session
from ttsfeedback.services.collection_service.export import (
    CSV_HEADER,
    export_csv,
    export_filename,
)

CREATED = datetime(2024, 6, 14, 10, 0, tzinfo=timezone.utc)

SESSION = Session(
    id="s1",
    reporter_name="Alice",
    tester_device="iPad",
    tester_os="iOS 17",
    created_at=CREATED,
)


def _obs(obs_id="o1", session_id="s1", description='said "great job" again'):
    return Observation(
        id=obs_id,
        session_id=session_id,
        course_name="Lesson 1",
        category=Category.TEXT,
        tags=("praise density", "awkward phrasing"),
        issue_description=description,
        feeling_tags=("flat", "other"),
        feeling_other="bored",
        created_at=CREATED,
    )


def _rows(body):
    return list(csv.reader(io.StringIO(body)))


class TestExportCsv:
    """Tests for export_csv."""

    def test_header_only_when_empty(self):
        body = export_csv([], [SESSION])

        assert body == ",".join(f'"{name}"' for name in CSV_HEADER)

    def test_row_contents(self):
        rows = _rows(export_csv([_obs()], [SESSION]))

        assert rows[1] == [
            CREATED.isoformat(),
            "Lesson 1",
            "Alice",
            "iPad",
            "iOS 17",
            "Text issue",
            "praise density | awkward phrasing",
            'said "great job" again',
            "flat | other",
            "bored",
        ]

    def test_quotes_are_doubled(self):
        body = export_csv([_obs()], [SESSION])

        assert '"said ""great job"" again"' in body

    def test_every_cell_quoted_and_no_trailing_newline(self):
        body = export_csv([_obs()], [SESSION])

        lines = body.split("\n")
        assert len(lines) == 2
        assert lines[1].startswith('"') and lines[1].endswith('"')
        assert not body.endswith("\n")

    def test_unknown_session_leaves_profile_blank(self):
        rows = _rows(export_csv([_obs(session_id="gone")], [SESSION]))

        assert rows[1][2:5] == ["", "", ""]

    def test_multiline_description_survives(self):
        rows = _rows(export_csv([_obs(description="line one\nline two")], [SESSION]))

        assert rows[1][7] == "line one\nline two"


class TestExportFilename:
    def test_filename(self):
        assert export_filename(date(2024, 6, 15)) == "tts-collect-2024-06-15.csv"
