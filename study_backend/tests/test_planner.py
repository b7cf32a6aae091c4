from datetime import date

from studyhub.services.planner import build_overview, parse_reading_items


def test_reading_items_are_trimmed_and_blank_lines_dropped():
    raw = "Chapter 1\r\n\n   Chapter 2 \n\t\nChapter 3"
    assert parse_reading_items(raw) == ["Chapter 1", "Chapter 2", "Chapter 3"]


def test_reading_items_from_empty_text():
    assert parse_reading_items("") == []
    assert parse_reading_items(None) == []
    assert parse_reading_items("\n \n") == []


def test_overview_counts_and_sorts():
    subject = {"id": "s1", "exam_date": "2026-12-01"}
    deadlines = [
        {"id": "d2", "title": "Lab", "due_date": "2026-11-20"},
        {"id": "d1", "title": "Essay", "due_date": "2026-11-02"},
    ]
    reading = [{"id": "r1", "completed": True}, {"id": "r2", "completed": False}]
    goals = [{"id": "g1", "text": "Pass"}]

    overview = build_overview(subject, deadlines, reading, goals, date(2026, 10, 21))

    assert overview["days_to_exam"] == 41
    assert [d["id"] for d in overview["deadlines"]] == ["d1", "d2"]
    assert overview["reading_completed"] == 1
    assert overview["reading_total"] == 2
    assert overview["goals"] == goals


def test_overview_without_exam_date():
    overview = build_overview({"id": "s1", "exam_date": None}, [], [], [], date(2026, 10, 21))
    assert overview["exam_date"] is None
    assert overview["days_to_exam"] is None
    assert overview["reading_total"] == 0
