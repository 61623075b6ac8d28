"""Tests for src.core.parser — reminder and /adddate argument parsing."""

import pytest

from src.core.parser import (
    DateParseError,
    ReminderParseError,
    detect_date_type,
    extract_weekday,
    format_time_12h,
    get_day_name,
    parse_reminder_args,
    parse_date_args,
    parse_time,
    split_emoji,
)
from src.data.models import DateType, Recurrence


class TestParseTime:
    @pytest.mark.parametrize("raw,expected", [
        ("9am", (9, 0)),
        ("9 am", (9, 0)),
        ("9:30pm", (21, 30)),
        ("12pm", (12, 0)),
        ("12am", (0, 0)),
        ("12:15 AM", (0, 15)),
        ("21:30", (21, 30)),
        ("0:05", (0, 5)),
        ("7", (7, 0)),
    ])
    def test_valid(self, raw, expected):
        assert parse_time(raw) == expected

    @pytest.mark.parametrize("raw", ["", "noon", "13pm", "0am", "24:00", "9:60", "9:5", "9.30"])
    def test_invalid(self, raw):
        assert parse_time(raw) is None


class TestExtractWeekday:
    def test_full_name(self):
        assert extract_weekday("every Friday at 5") == (5, "friday")

    def test_short_name(self):
        assert extract_weekday("gym on tue") == (2, "tue")

    def test_first_match_wins(self):
        assert extract_weekday("monday or sunday") == (1, "monday")

    def test_word_boundary(self):
        assert extract_weekday("satisfied customer") is None

    def test_none(self):
        assert extract_weekday("buy milk") is None


class TestParseReminderArgs:
    def test_once(self):
        req = parse_reminder_args(["9:30am", "Call", "mom"], Recurrence.ONCE)
        assert (req.hour, req.minute) == (9, 30)
        assert req.text == "Call mom"
        assert req.recurrence is Recurrence.ONCE
        assert req.weekday is None

    def test_split_am_pm_token(self):
        req = parse_reminder_args(["5", "pm", "Walk", "dog"], Recurrence.DAILY)
        assert (req.hour, req.minute) == (17, 0)
        assert req.text == "Walk dog"

    def test_weekly(self):
        req = parse_reminder_args(["fri", "17:00", "Send", "report"], Recurrence.WEEKLY)
        assert req.weekday == 5
        assert (req.hour, req.minute) == (17, 0)
        assert req.text == "Send report"

    def test_strips_colon_separator(self):
        req = parse_reminder_args(["9am", ":", "Standup"], Recurrence.WEEKDAYS)
        assert req.text == "Standup"

    def test_missing_time(self):
        with pytest.raises(ReminderParseError, match="time"):
            parse_reminder_args([], Recurrence.ONCE)

    def test_invalid_time(self):
        with pytest.raises(ReminderParseError, match="Invalid time"):
            parse_reminder_args(["later", "Call"], Recurrence.ONCE)

    def test_missing_text(self):
        with pytest.raises(ReminderParseError, match="text"):
            parse_reminder_args(["9am"], Recurrence.DAILY)

    def test_weekly_missing_day(self):
        with pytest.raises(ReminderParseError, match="weekday"):
            parse_reminder_args([], Recurrence.WEEKLY)

    def test_weekly_unknown_day(self):
        with pytest.raises(ReminderParseError, match="Unknown weekday"):
            parse_reminder_args(["someday", "9am", "x"], Recurrence.WEEKLY)


class TestFormatting:
    def test_format_time_12h(self):
        assert format_time_12h(0, 5) == "12:05 AM"
        assert format_time_12h(9, 0) == "9:00 AM"
        assert format_time_12h(12, 30) == "12:30 PM"
        assert format_time_12h(21, 5) == "9:05 PM"

    def test_day_name(self):
        assert get_day_name(0) == "Sunday"
        assert get_day_name(5) == "Friday"
        assert get_day_name(9) == ""


class TestParseDateArgs:
    def test_month_day_and_name(self):
        req = parse_date_args(["12-25", "Christmas"])
        assert (req.month, req.day, req.year) == (12, 25, None)
        assert req.name == "Christmas"
        assert req.type is DateType.CUSTOM
        assert req.emoji == "📅"

    def test_with_year(self):
        req = parse_date_args(["03-15", "1990", "My", "Birthday"])
        assert (req.month, req.day, req.year) == (3, 15, 1990)
        assert req.name == "My Birthday"
        assert req.type is DateType.BIRTHDAY

    def test_slash_separator_and_single_digits(self):
        req = parse_date_args(["8/2", "Trip"])
        assert (req.month, req.day) == (8, 2)

    def test_emoji_pulled_out_of_name(self):
        req = parse_date_args(["08-20", "2020", "💍", "Wedding", "Anniversary"])
        assert req.name == "Wedding Anniversary"
        assert req.emoji == "💍"
        assert req.type is DateType.ANNIVERSARY

    def test_out_of_range_left_to_store(self):
        req = parse_date_args(["13-40", "Later"])
        assert (req.month, req.day) == (13, 40)

    @pytest.mark.parametrize("args", [
        [],
        ["Christmas"],
        ["12-25"],
        ["tomorrow", "Party"],
        ["25.12", "Christmas"],
    ])
    def test_bad_format(self, args):
        with pytest.raises(DateParseError, match="Invalid format"):
            parse_date_args(args)


class TestDateNameHelpers:
    @pytest.mark.parametrize("name,expected", [
        ("Mom's Birthday", DateType.BIRTHDAY),
        ("birthday party", DateType.BIRTHDAY),
        ("Our Anniversary", DateType.ANNIVERSARY),
        ("First milestone", DateType.MILESTONE),
        ("Christmas", DateType.CUSTOM),
    ])
    def test_detect_date_type(self, name, expected):
        assert detect_date_type(name) is expected

    def test_split_emoji_keeps_joined_sequences(self):
        assert split_emoji("Family 👨‍👩‍👧 Day") == ("Family Day", "👨‍👩‍👧")

    def test_split_emoji_default(self):
        assert split_emoji("Christmas") == ("Christmas", "📅")
