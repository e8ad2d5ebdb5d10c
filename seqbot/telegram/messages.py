"""User-facing reply texts."""

from datetime import timedelta

from seqbot.models.delivery import DeliveryReport
from seqbot.models.stats import AggregateStats


def welcome(name: str, owner_handle: str) -> str:
    return (
        f"Welcome, {name}! 🌟 I am a file sequencing bot.\n\n"
        "🤖 What I do:\n"
        "I help you sequence and organize your files. Use /ssequence to start "
        "the process. Send documents, videos, or audio files, and when you're "
        "done, use /esequence to get the sequenced files. Use /cancel to cancel "
        "the current sequence.\n\n"
        f"🔗 Owner: {owner_handle}"
    )


def help_text(owner_handle: str, max_items: int) -> str:
    return (
        "🤖 *File Sequencing Bot Help*\n\n"
        "*Commands:*\n"
        "/start - Start the bot and see the welcome message\n"
        "/ssequence - Begin a new file sequencing process\n"
        "/esequence - End sequencing and receive sorted files\n"
        "/status - Show the current sequencing process\n"
        "/cancel - Cancel the current sequencing process\n"
        "/stats - View bot statistics\n"
        "/help - Show this help message\n\n"
        "*How to use:*\n"
        "1. Use /ssequence to start\n"
        f"2. Send your files (documents, videos, audio), up to {max_items}\n"
        "3. Use /esequence to get them back sorted by quality, episode and name\n"
        "4. Use /cancel if you want to stop without getting files\n\n"
        f"*Owner:* {owner_handle}"
    )


SEQUENCE_STARTED = (
    "✅ You have started a file sequencing process. Send the files you want "
    "to sequence one by one.\n"
    "When you are done, use /esequence to finish and get the sequenced files."
)
NO_SESSION = "No ongoing file sequencing process. Use /ssequence to begin."
NO_SESSION_TO_CANCEL = (
    "No ongoing file sequencing process to cancel. Use /ssequence to begin."
)
EMPTY_SESSION = "No files to sequence. Send some files after /ssequence first."
UNSUPPORTED_KIND = "Unsupported file type. Send documents, videos, or audio files."
SESSION_BUSY = (
    "⏳ Your files are being sent right now. Please wait until delivery finishes."
)
GENERIC_ERROR = "An error occurred. Please try again later."
STATS_UNAVAILABLE = "Error fetching statistics. Please try again later."


def already_active(item_count: int) -> str:
    return (
        "You are currently in a file sequencing process "
        f"({item_count} files so far). Use /esequence to finish it or /cancel "
        "to cancel it."
    )


def capacity_exceeded(max_items: int) -> str:
    return (
        f"⚠️ This sequence already holds the maximum of {max_items} files. "
        "Use /esequence to receive them, then start a new sequence."
    )


def file_received(item_count: int) -> str:
    return f"📥 File {item_count} received and added to the sequencing process."


def delivery_starting(item_count: int) -> str:
    return f"🔄 Sorting and sending {item_count} files..."


def cancelled(item_count: int) -> str:
    return (
        f"❌ File sequencing process canceled ({item_count} files discarded). "
        "Use /ssequence to start a new one."
    )


def _format_duration(elapsed: timedelta) -> str:
    minutes, seconds = divmod(int(elapsed.total_seconds()), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes}m"
    if minutes:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


def status(item_count: int, elapsed: timedelta, delivering: bool) -> str:
    if delivering:
        return f"📤 Sending your {item_count} sequenced files..."
    return (
        f"📋 Sequencing in progress: {item_count} files collected over "
        f"{_format_duration(elapsed)}."
    )


def delivery_summary(report: DeliveryReport) -> str:
    if report.all_delivered:
        return (
            "File sequencing completed. You have received "
            f"{report.succeeded} sequenced files."
        )
    lines = [
        "File sequencing completed with errors.",
        f"✅ Sent: {report.succeeded}/{report.total}",
        f"❌ Failed: {report.failed}",
    ]
    lines.extend(f"• {failure}" for failure in report.failures)
    if report.failures_omitted:
        lines.append(f"...and {report.failures_omitted} more")
    return "\n".join(lines)


def aggregate_stats(stats: AggregateStats) -> str:
    return (
        "📊 Bot Statistics:\n"
        f"👥 Total Users: {stats.total_users}\n"
        f"📁 Total File Sequences: {stats.total_sequences}"
    )
