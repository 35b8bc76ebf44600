"""CSV export of the (filtered) observation list."""
import csv
import io
from datetime import date
from typing import Iterable, Sequence

from ttsfeedback.shared.models import CATEGORY_LABELS, Observation, Session

CSV_HEADER = (
    "Time",
    "Course",
    "Reporter",
    "Device",
    "OS",
    "Category",
    "Tags",
    "Description",
    "Feelings",
    "Feeling (other)",
)

LIST_SEPARATOR = " | "


def export_filename(today: date) -> str:
    return f"tts-collect-{today.isoformat()}.csv"


def export_csv(observations: Sequence[Observation], sessions: Iterable[Session]) -> str:
    """Render observations as CSV, one row per observation.

    Every cell is quoted, inner quotes doubled. Rows are joined with ``\\n``
    and there is no trailing newline.
    Profile columns are blank when the session is unknown.
    """
    session_map = {session.id: session for session in sessions}
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)

    for item in observations:
        session = session_map.get(item.session_id)
        writer.writerow([
            item.created_at.isoformat(),
            item.course_name,
            session.reporter_name if session else "",
            session.tester_device if session else "",
            (session.tester_os or "") if session else "",
            CATEGORY_LABELS[item.category],
            LIST_SEPARATOR.join(item.tags),
            item.issue_description,
            LIST_SEPARATOR.join(item.feeling_tags),
            item.feeling_other or "",
        ])

    return buffer.getvalue().rstrip("\n")
