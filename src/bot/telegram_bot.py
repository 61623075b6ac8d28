"""
Yangon Reminder Bot — Telegram Bot.

Telegram is the only user interface. Users create reminders with commands,
pick their timezone, and browse Myanmar public holidays; the reminder and
holiday schedulers push messages back through the same bot.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timedelta
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, Coroutine

from telegram import (
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    ReplyKeyboardMarkup,
    Update,
)
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)
from telegram.helpers import escape_markdown

from src.config import settings
from src.core.clock import (
    SUPPORTED_TIMEZONES,
    InvalidTimezoneError,
    ValidatedZone,
    format_timezone_label,
    local_now,
)
from src.core.dates import (
    MONTH_NAMES,
    SHORT_WEEKDAY_NAMES,
    days_until,
    format_age,
    format_day_countdown,
    format_years_together,
    moon_phase,
    occurrence_in_year,
    short_month_name,
)
from src.core.parser import (
    ADDDATE_USAGE,
    DateParseError,
    ReminderParseError,
    format_time_12h,
    get_day_name,
    parse_date_args,
    parse_reminder_args,
)
from src.core.quiet_hours import QuietHours
from src.core.scheduler import next_occurrence
from src.data.models import DateType, Recurrence

if TYPE_CHECKING:
    from src.data.db import HolidayDB, PersonalDateDB, TaskDB, UserDB
    from src.data.models import Holiday, PersonalDate, Task
    from src.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)

# Reply-keyboard button labels
BTN_TODAY = "📅 Today"
BTN_REMINDERS = "⏰ Reminders"
BTN_HOLIDAYS = "🎉 Holidays"
BTN_TIMEZONE = "🌏 Timezone"
BTN_ADD_DATE = "➕ Add Date"
BTN_DELETE_DATE = "🗑️ Delete Date"
BTN_HELP = "❓ Help"


# ---------------------------------------------------------------------------
# User registration decorator
# ---------------------------------------------------------------------------


def registered(
    func: Callable[..., Coroutine[Any, Any, None]],
) -> Callable[..., Coroutine[Any, Any, None]]:
    """Decorator that registers the chat on first contact.

    Registered chats receive the daily holiday digest. Registration failures
    are logged but never block the command itself.
    """

    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        chat = update.effective_chat
        if chat is None:
            return
        try:
            _user_db(context).ensure_user(chat.id)
        except Exception as exc:
            logger.error("Failed to register chat %s: %s", chat.id, exc)
        return await func(update, context)

    return wrapper


def _task_db(context: ContextTypes.DEFAULT_TYPE) -> TaskDB:
    return context.bot_data["task_db"]


def _user_db(context: ContextTypes.DEFAULT_TYPE) -> UserDB:
    return context.bot_data["user_db"]


def _holiday_db(context: ContextTypes.DEFAULT_TYPE) -> HolidayDB:
    return context.bot_data["holiday_db"]


def _date_db(context: ContextTypes.DEFAULT_TYPE) -> PersonalDateDB:
    return context.bot_data["date_db"]


def _user_local_now(context: ContextTypes.DEFAULT_TYPE, owner: int) -> datetime:
    try:
        tz_name = _user_db(context).get_timezone(owner)
    except Exception as exc:
        logger.warning("Timezone lookup failed for %d: %s", owner, exc)
        tz_name = None
    return local_now(tz_name, default=settings.DEFAULT_TIMEZONE)


def _main_keyboard() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        [
            [BTN_TODAY, BTN_HOLIDAYS],
            [BTN_REMINDERS, BTN_TIMEZONE],
            [BTN_ADD_DATE, BTN_DELETE_DATE],
            [BTN_HELP],
        ],
        resize_keyboard=True,
    )


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def _describe_schedule(task: Task) -> str:
    """e.g. "every Friday at 5:00 PM"."""
    at = format_time_12h(task.hour, task.minute)
    if task.recurrence is Recurrence.DAILY:
        return f"every day at {at}"
    if task.recurrence is Recurrence.WEEKDAYS:
        return f"weekdays at {at}"
    if task.recurrence is Recurrence.WEEKLY:
        return f"every {get_day_name(task.weekday)} at {at}"
    return f"once at {at}"


def _sentence_case(text: str) -> str:
    """Uppercase the first letter only; "every Friday" keeps its capital F."""
    return text[:1].upper() + text[1:]


def _format_countdown(delta: timedelta) -> str:
    """timedelta -> "1d 2h 5m" (minutes rounded down, "0m" when due)."""
    total_minutes = max(int(delta.total_seconds() // 60), 0)
    days, rem = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(rem, 60)
    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes or not parts:
        parts.append(f"{minutes}m")
    return " ".join(parts)


def _format_task_line(task: Task, now: datetime) -> str:
    nxt = next_occurrence(task, now)
    return (
        f"`{task.id}` — {escape_markdown(task.text)}\n"
        f"    {_describe_schedule(task)} · next in {_format_countdown(nxt - now)}"
    )


def _date_age_info(d: PersonalDate, year: int) -> str:
    """Age, years together, or time since the date's year; "" when unknown."""
    if d.year is None or d.year > year:
        return ""
    if d.type is DateType.BIRTHDAY:
        return f"🎂 Age {year - d.year}"
    if d.type is DateType.ANNIVERSARY:
        return f"💕 {format_years_together(d.year, year)}"
    return f"since {d.year}"


def _format_holiday_line(h: Holiday, today: date) -> str:
    weekday = SHORT_WEEKDAY_NAMES[occurrence_in_year(h.month, h.day, h.year).weekday()]
    countdown = format_day_countdown(days_until(h.month, h.day, today))
    return f"  {h.day:2d} {short_month_name(h.month)} ({weekday}) {escape_markdown(h.name)} — {countdown}"


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


@registered
async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start — welcome message and main keyboard."""
    await update.message.reply_text(
        "Welcome to *Yangon Reminder Bot*!\n\n"
        "I can remind you of things, count down to your special dates and tell\n"
        "you about Myanmar public holidays:\n"
        "• /remind 9:30am Call mom — one-time reminder\n"
        "• /daily 8am Take vitamins\n"
        "• /weekdays 9am Standup\n"
        "• /weekly friday 5pm Send report\n"
        "• /adddate 03-15 1990 Mom's Birthday\n"
        "• /today — what's on today\n\n"
        "Type /help for the full command list.",
        parse_mode="Markdown",
        reply_markup=_main_keyboard(),
    )


@registered
async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help — list available commands."""
    quiet: QuietHours = context.bot_data.get("quiet_hours") or QuietHours.from_settings()
    await update.message.reply_text(
        "*Reminders:*\n"
        "/remind <time> <text> — Remind me once\n"
        "/daily <time> <text> — Every day\n"
        "/weekdays <time> <text> — Monday to Friday\n"
        "/weekly <day> <time> <text> — Once a week\n"
        "/tasks — List your reminders\n"
        "/deltask [id] — Delete a reminder\n\n"
        "*Settings:*\n"
        "/timezone [zone] — Show or set your timezone\n\n"
        "*Dates:*\n"
        "/today — Today, this month's holidays, your dates with age\n"
        "/adddate <MM-DD> [YYYY] <name> — Save a yearly date\n"
        "/deletedate [number] — Delete a date (numbers from /today)\n\n"
        "*Holidays:*\n"
        "/holidays — Remaining holidays this year\n"
        "/syncholidays — Fetch the latest holidays\n"
        "/myanmar — Holiday API status\n\n"
        f"Reminders are not sent during quiet hours ({quiet}).",
        parse_mode="Markdown",
    )


async def _add_reminder(
    update: Update,
    context: ContextTypes.DEFAULT_TYPE,
    recurrence: Recurrence,
) -> None:
    """Shared body of /remind, /daily, /weekdays and /weekly."""
    owner = update.effective_chat.id
    try:
        req = parse_reminder_args(list(context.args or []), recurrence)
    except ReminderParseError as exc:
        await update.message.reply_text(f"❌ {exc}")
        return

    quiet: QuietHours = context.bot_data.get("quiet_hours") or QuietHours.from_settings()
    if quiet.is_quiet(req.hour, req.minute):
        await update.message.reply_text(
            f"❌ {format_time_12h(req.hour, req.minute)} is inside quiet hours ({quiet}). "
            "Please pick another time."
        )
        return

    try:
        task = _task_db(context).add_task(
            owner=owner,
            text=req.text,
            hour=req.hour,
            minute=req.minute,
            recurrence=req.recurrence,
            weekday=req.weekday,
        )
    except ValueError as exc:
        await update.message.reply_text(f"❌ {exc}")
        return
    except Exception as exc:
        logger.error("Failed to save reminder for %d: %s", owner, exc)
        await update.message.reply_text("Couldn't save the reminder. Please try again.")
        return

    now = _user_local_now(context, owner)
    await update.message.reply_text(
        f"✅ Reminder set: *{escape_markdown(task.text)}*\n"
        f"{_sentence_case(_describe_schedule(task))} ({now:%Z}), next in "
        f"{_format_countdown(next_occurrence(task, now) - now)}",
        parse_mode="Markdown",
    )


@registered
async def cmd_remind(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /remind <time> <text> — one-time reminder."""
    await _add_reminder(update, context, Recurrence.ONCE)


@registered
async def cmd_daily(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /daily <time> <text>."""
    await _add_reminder(update, context, Recurrence.DAILY)


@registered
async def cmd_weekdays(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /weekdays <time> <text>."""
    await _add_reminder(update, context, Recurrence.WEEKDAYS)


@registered
async def cmd_weekly(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /weekly <day> <time> <text>."""
    await _add_reminder(update, context, Recurrence.WEEKLY)


@registered
async def cmd_tasks(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /tasks — list the chat's active reminders."""
    owner = update.effective_chat.id
    try:
        tasks = _task_db(context).list_for_owner(owner)
    except Exception as exc:
        logger.error("/tasks error: %s", exc)
        await update.message.reply_text("Couldn't load reminders. Please try again.")
        return

    if not tasks:
        await update.message.reply_text("No active reminders. Try /remind 9am Something.")
        return

    now = _user_local_now(context, owner)
    lines = [f"*Your reminders* ({now:%Z}):\n"]
    lines.extend(_format_task_line(t, now) for t in tasks)
    await update.message.reply_text("\n".join(lines), parse_mode="Markdown")


@registered
async def cmd_deltask(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /deltask [id] — delete by ID, or pick from buttons."""
    owner = update.effective_chat.id
    db = _task_db(context)

    if context.args:
        try:
            task_id = int(context.args[0])
        except ValueError:
            await update.message.reply_text("Invalid reminder ID. Use /tasks to see valid IDs.")
            return
        try:
            deleted = db.delete_for_owner(owner, task_id)
        except Exception as exc:
            logger.error("/deltask error: %s", exc)
            await update.message.reply_text("Couldn't delete the reminder. Please try again.")
            return
        if deleted:
            await update.message.reply_text(f"🗑️ Reminder {task_id} deleted.")
        else:
            await update.message.reply_text(f"Reminder {task_id} not found.")
        return

    try:
        tasks = db.list_for_owner(owner)
    except Exception as exc:
        logger.error("/deltask error: %s", exc)
        await update.message.reply_text("Couldn't load reminders. Please try again.")
        return

    if not tasks:
        await update.message.reply_text("No active reminders to delete.")
        return

    keyboard = [
        [InlineKeyboardButton(f"{t.text} ({format_time_12h(t.hour, t.minute)})", callback_data=f"deltask:{t.id}")]
        for t in tasks
    ]
    await update.message.reply_text(
        "Which reminder do you want to delete?",
        reply_markup=InlineKeyboardMarkup(keyboard),
    )


async def _handle_deltask_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE
) -> None:
    """Handle the inline button tap to delete a reminder."""
    query = update.callback_query
    await query.answer()

    owner = update.effective_chat.id
    task_id = int(query.data.split(":")[1])

    try:
        task = _task_db(context).get_task(task_id)
        if task is None or task.owner != owner or not _task_db(context).delete_for_owner(owner, task_id):
            await query.edit_message_text("Reminder not found or already deleted.")
            return
        await query.edit_message_text(f"🗑️ Reminder *{escape_markdown(task.text)}* deleted.", parse_mode="Markdown")
    except Exception as exc:
        logger.error("deltask callback error: %s", exc)
        await query.edit_message_text("Something went wrong. Please try again.")


async def _set_timezone(context: ContextTypes.DEFAULT_TYPE, owner: int, name: str) -> str:
    """Validate and store a timezone; returns the reply text."""
    try:
        zone = ValidatedZone.parse(name)
    except InvalidTimezoneError as exc:
        return f"❌ {exc}. Use an IANA name such as Asia/Yangon."
    try:
        _user_db(context).set_timezone(owner, zone.name)
    except Exception as exc:
        logger.error("Failed to set timezone for %d: %s", owner, exc)
        return "Couldn't save your timezone. Please try again."
    now = local_now(zone.name)
    return (
        f"✅ Timezone set to {format_timezone_label(zone.name)} ({zone.name}).\n"
        f"Your local time is {format_time_12h(now.hour, now.minute)}."
    )


@registered
async def cmd_timezone(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /timezone [zone] — show the current zone or set a new one."""
    owner = update.effective_chat.id

    if context.args:
        reply = await _set_timezone(context, owner, context.args[0])
        await update.message.reply_text(reply)
        return

    try:
        current = _user_db(context).get_timezone(owner)
    except Exception as exc:
        logger.error("/timezone error: %s", exc)
        current = None
    current = current or settings.DEFAULT_TIMEZONE

    keyboard = [
        [InlineKeyboardButton(label, callback_data=f"tz:{zone}")]
        for label, zone in SUPPORTED_TIMEZONES
    ]
    await update.message.reply_text(
        f"Your timezone: {format_timezone_label(current)} ({current})\n\n"
        "Pick a new one, or send /timezone <Area/City>.",
        reply_markup=InlineKeyboardMarkup(keyboard),
    )


async def _handle_timezone_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE
) -> None:
    """Handle the inline button tap to set a timezone."""
    query = update.callback_query
    await query.answer()

    owner = update.effective_chat.id
    name = query.data.split(":", 1)[1]
    reply = await _set_timezone(context, owner, name)
    await query.edit_message_text(reply)


@registered
async def cmd_holidays(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /holidays — remaining holidays this year, grouped by month."""
    owner = update.effective_chat.id
    today = _user_local_now(context, owner).date()

    try:
        holidays = _holiday_db(context).list_year(today.year)
    except Exception as exc:
        logger.error("/holidays error: %s", exc)
        await update.message.reply_text("Couldn't load holidays. Please try again.")
        return

    upcoming = [h for h in holidays if (h.month, h.day) >= (today.month, today.day)]
    if not upcoming:
        hint = "" if holidays else "\nTry /syncholidays to fetch this year's calendar."
        await update.message.reply_text(f"No more holidays this year.{hint}")
        return

    lines = [f"🎉 *Myanmar Holidays* ({today.year}) | {len(upcoming)} remaining\n"]
    current_month = None
    for h in upcoming:
        if h.month != current_month:
            current_month = h.month
            lines.append(f"\n*{MONTH_NAMES[h.month - 1]}*")
        days = (datetime(h.year, h.month, h.day).date() - today).days
        when = "🎉 Today!" if days == 0 else ("Tomorrow" if days == 1 else f"in {days} days")
        lines.append(f"  • {escape_markdown(h.name)} — {h.day:02d}/{h.month:02d} ({when})")
    await update.message.reply_text("\n".join(lines), parse_mode="Markdown")


@registered
async def cmd_syncholidays(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /syncholidays — refresh this year's holidays from Calendarific."""
    from src.integrations.calendarific import HolidaySyncError, sync_year

    year = _user_local_now(context, update.effective_chat.id).year
    status = await update.message.reply_text(f"🔄 Syncing holidays for {year}...")
    try:
        added = await sync_year(
            _holiday_db(context),
            year,
            settings.CALENDARIFIC_API_KEY,
            country=settings.HOLIDAY_COUNTRY,
        )
    except HolidaySyncError as exc:
        await status.edit_text(f"❌ Sync failed: {exc}")
        return
    except Exception as exc:
        logger.error("/syncholidays error: %s", exc)
        await status.edit_text("❌ Sync failed. Please try again later.")
        return

    total = _holiday_db(context).count_year(year)
    await status.edit_text(f"✅ Synced {year}: {added} new, {total} total holidays.")


@registered
async def cmd_today(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /today — today's holidays and dates, this month's holidays, your dates."""
    owner = update.effective_chat.id
    today = _user_local_now(context, owner).date()

    try:
        today_holidays = _holiday_db(context).holidays_on(today.month, today.day, year=today.year)
        month_holidays = [
            h for h in _holiday_db(context).list_year(today.year)
            if h.month == today.month and h.day >= today.day
        ]
        dates = _date_db(context).list_for_owner(owner)
    except Exception as exc:
        logger.error("/today error: %s", exc)
        await update.message.reply_text("Couldn't load today's events. Please try again.")
        return

    emoji, phase = moon_phase(today)
    lines = [
        f"📅 *Today* - {today:%A}, {MONTH_NAMES[today.month - 1]} {today.day}, {today.year}",
        "",
        f"🌙 Moon: {emoji} {phase}",
    ]

    todays_dates = [d for d in dates if days_until(d.month, d.day, today) == 0]
    if today_holidays or todays_dates:
        lines += ["", "*🎉 Today:*"]
        lines += [f"  🇲🇲 {escape_markdown(name)}" for name in today_holidays]
        for d in todays_dates:
            info = _date_age_info(d, today.year)
            lines.append(f"  {d.emoji} {escape_markdown(d.name)}" + (f" ({info})" if info else ""))

    if month_holidays:
        lines += ["", "*📆 This Month Holidays:*"]
        lines += [_format_holiday_line(h, today) for h in month_holidays]

    if dates:
        # Numbers follow calendar order so they match /deletedate
        numbered = sorted(
            enumerate(dates, start=1),
            key=lambda item: days_until(item[1].month, item[1].day, today),
        )
        lines += ["", "*📌 Your Dates:*"]
        for number, d in numbered:
            info = _date_age_info(d, today.year)
            countdown = format_day_countdown(days_until(d.month, d.day, today))
            lines.append(
                f"  {number:2d} {d.emoji} {escape_markdown(d.name)} ({d.month:02d}-{d.day:02d})"
                + (f" ({info})" if info else "")
                + f" - {countdown}"
            )

    if not (today_holidays or month_holidays or dates):
        lines += ["", "No events. Use /adddate to add a date!"]

    await update.message.reply_text("\n".join(lines), parse_mode="Markdown")


@registered
async def cmd_adddate(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /adddate <MM-DD> [YYYY] <name> — save a yearly personal date."""
    owner = update.effective_chat.id
    if not context.args:
        await update.message.reply_text(f"➕ Add a date\n\n{ADDDATE_USAGE}")
        return

    try:
        req = parse_date_args(list(context.args))
    except DateParseError as exc:
        await update.message.reply_text(f"❌ {exc}")
        return

    try:
        saved = _date_db(context).add_date(
            owner=owner,
            name=req.name,
            month=req.month,
            day=req.day,
            year=req.year,
            type=req.type,
            emoji=req.emoji,
        )
    except ValueError as exc:
        await update.message.reply_text(f"❌ {exc}")
        return
    except Exception as exc:
        logger.error("Failed to save date for %d: %s", owner, exc)
        await update.message.reply_text("Error saving date. Please try again.")
        return

    today = _user_local_now(context, owner).date()
    lines = [
        "✅ *Added!*",
        "",
        f"{saved.emoji} {escape_markdown(saved.name)}",
        f"📆 {short_month_name(saved.month)} {saved.day}",
        f"⏳ {format_day_countdown(days_until(saved.month, saved.day, today))}",
    ]
    if saved.year is not None:
        if saved.type is DateType.BIRTHDAY and format_age(saved.year, today.year):
            lines.append(f"🎂 Age: {format_age(saved.year, today.year)}")
        elif saved.type is DateType.ANNIVERSARY and format_years_together(saved.year, today.year):
            lines.append(f"💕 {format_years_together(saved.year, today.year)}")
    await update.message.reply_text("\n".join(lines), parse_mode="Markdown")


@registered
async def cmd_deletedate(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /deletedate [number] — delete by the number shown in /today."""
    owner = update.effective_chat.id
    db = _date_db(context)

    if not context.args:
        try:
            dates = db.list_for_owner(owner)
        except Exception as exc:
            logger.error("/deletedate error: %s", exc)
            await update.message.reply_text("Couldn't load your dates. Please try again.")
            return
        if not dates:
            await update.message.reply_text("You have no saved dates. Use /adddate to add one.")
            return
        lines = ["🗑️ Delete a date", ""]
        lines += [f"{i}. {d.emoji} {d.name} ({d.month:02d}-{d.day:02d})" for i, d in enumerate(dates, start=1)]
        lines += ["", "Send /deletedate <number>, e.g. /deletedate 1"]
        await update.message.reply_text("\n".join(lines))
        return

    try:
        number = int(context.args[0])
    except ValueError:
        number = 0
    if number < 1:
        await update.message.reply_text("Invalid number. Check /today for your dates.")
        return

    try:
        deleted = db.delete_by_number(owner, number)
        if deleted is None:
            count = db.count_for_owner(owner)
            await update.message.reply_text(f"Invalid number. You have {count} dates.")
            return
    except Exception as exc:
        logger.error("/deletedate error: %s", exc)
        await update.message.reply_text("Couldn't delete the date. Please try again.")
        return

    await update.message.reply_text(f"✅ Deleted: {deleted.emoji} {deleted.name}")


@registered
async def cmd_myanmar(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /myanmar — holiday API status and stored calendar size."""
    from src.integrations.calendarific import check_api_health

    year = _user_local_now(context, update.effective_chat.id).year
    if settings.CALENDARIFIC_API_KEY:
        healthy = await check_api_health(
            settings.CALENDARIFIC_API_KEY, country=settings.HOLIDAY_COUNTRY, year=year,
        )
        status = "✅ Calendarific API working" if healthy else "❌ Calendarific API failed"
    else:
        status = "⚠️ No API key configured"

    try:
        stored = _holiday_db(context).count_year(year)
    except Exception as exc:
        logger.error("/myanmar error: %s", exc)
        stored = 0

    await update.message.reply_text(
        f"🇲🇲 Myanmar Holidays\n\n{status}\n"
        f"📅 {year}: {stored} holidays stored\n\n"
        "Holiday data provided by Calendarific API.\n"
        "Use /syncholidays to refresh holidays."
    )


# ---------------------------------------------------------------------------
# App builder
# ---------------------------------------------------------------------------


def build_app(
    notifier: NotificationPort | None = None,
) -> Application:
    """Build and configure the Telegram Application with all handlers.

    Args:
        notifier: Notification port implementation. Defaults to TelegramNotifier
                  (created from the bot instance after app is built).
    """
    from src.data.db import HolidayDB, PersonalDateDB, TaskDB, UserDB

    app = ApplicationBuilder().token(settings.TELEGRAM_BOT_TOKEN).build()

    if notifier is None:
        from src.adapters.telegram_notifier import TelegramNotifier
        notifier = TelegramNotifier(app.bot)

    # Store collaborators in bot_data for handler access
    app.bot_data["task_db"] = TaskDB()
    app.bot_data["user_db"] = UserDB()
    app.bot_data["holiday_db"] = HolidayDB()
    app.bot_data["date_db"] = PersonalDateDB()
    app.bot_data["quiet_hours"] = QuietHours.from_settings()
    app.bot_data["notifier"] = notifier

    # Commands
    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("remind", cmd_remind))
    app.add_handler(CommandHandler("daily", cmd_daily))
    app.add_handler(CommandHandler("weekdays", cmd_weekdays))
    app.add_handler(CommandHandler("weekly", cmd_weekly))
    app.add_handler(CommandHandler("tasks", cmd_tasks))
    app.add_handler(CommandHandler("deltask", cmd_deltask))
    app.add_handler(CommandHandler("timezone", cmd_timezone))
    app.add_handler(CommandHandler("holidays", cmd_holidays))
    app.add_handler(CommandHandler("syncholidays", cmd_syncholidays))
    app.add_handler(CommandHandler("myanmar", cmd_myanmar))
    app.add_handler(CommandHandler("today", cmd_today))
    app.add_handler(CommandHandler("adddate", cmd_adddate))
    app.add_handler(CommandHandler("deletedate", cmd_deletedate))
    app.add_handler(CallbackQueryHandler(_handle_deltask_callback, pattern=r"^deltask:\d+$"))
    app.add_handler(CallbackQueryHandler(_handle_timezone_callback, pattern=r"^tz:"))

    # Reply-keyboard buttons
    app.add_handler(MessageHandler(filters.Text([BTN_TODAY]), cmd_today))
    app.add_handler(MessageHandler(filters.Text([BTN_REMINDERS]), cmd_tasks))
    app.add_handler(MessageHandler(filters.Text([BTN_HOLIDAYS]), cmd_holidays))
    app.add_handler(MessageHandler(filters.Text([BTN_TIMEZONE]), cmd_timezone))
    app.add_handler(MessageHandler(filters.Text([BTN_ADD_DATE]), cmd_adddate))
    app.add_handler(MessageHandler(filters.Text([BTN_DELETE_DATE]), cmd_deletedate))
    app.add_handler(MessageHandler(filters.Text([BTN_HELP]), cmd_help))

    _setup_schedulers(app, notifier)

    logger.info("Telegram bot application built with %d handlers", len(app.handlers[0]))
    return app


def _setup_schedulers(
    app: Application,
    notifier: NotificationPort,
) -> None:
    """Register the polling job that drives reminders and holiday digests."""
    from src.core.scheduler import HolidayNotifier, ReminderScheduler

    reminders = ReminderScheduler(
        task_store=app.bot_data["task_db"],
        user_store=app.bot_data["user_db"],
        notifier=notifier,
        quiet_hours=app.bot_data["quiet_hours"],
        default_timezone=settings.DEFAULT_TIMEZONE,
        dedup_ttl_seconds=settings.DEDUP_TTL_SECONDS,
    )
    holidays = HolidayNotifier(
        user_store=app.bot_data["user_db"],
        holiday_source=app.bot_data["holiday_db"],
        notifier=notifier,
        notify_hour=settings.HOLIDAY_NOTIFY_HOUR,
        default_timezone=settings.DEFAULT_TIMEZONE,
        marker_ttl_seconds=settings.HOLIDAY_MARKER_TTL_SECONDS,
    )
    app.bot_data["reminder_scheduler"] = reminders
    app.bot_data["holiday_notifier"] = holidays

    async def _scheduler_job_callback(context: ContextTypes.DEFAULT_TYPE) -> None:
        # Reminder sends never wait behind the digest round
        await asyncio.gather(reminders.tick(), holidays.tick())

    app.job_queue.run_repeating(
        _scheduler_job_callback,
        interval=settings.SCHEDULER_INTERVAL_SECONDS,
        first=1,
        name="reminder_scheduler",
    )

    logger.info(
        "Reminder scheduler polling every %ds (quiet hours %s, default tz %s)",
        settings.SCHEDULER_INTERVAL_SECONDS,
        app.bot_data["quiet_hours"],
        settings.DEFAULT_TIMEZONE,
    )


def main() -> None:
    """Entry point: build the app and start polling."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("Starting Yangon Reminder Bot...")
    app = build_app()
    app.run_polling()


if __name__ == "__main__":
    main()
