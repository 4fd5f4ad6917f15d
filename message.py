from typing import Optional

from models import AttendanceReport, AttendanceStatus

STATUS_LABELS = {
    AttendanceStatus.PRESENT: "✅ Present",
    AttendanceStatus.ABSENT: "❌ Absent",
}

DEFAULT_JOIN_CODE = "join-code"
DEFAULT_SENDER_LABEL = "your_twilio_number"


def format_message(report: AttendanceReport) -> str:
    """Render the WhatsApp report text, one line per subject in page order."""
    total = report.total_percentage if report.has_total else "N/A"

    message = "📚 *Daily Attendance Report* 📚\n\n"
    message += f"✅ Total Attendance: *{total}*\n\n"
    message += "*Subject-wise Breakdown:*\n"
    for subject in report.subjects:
        status = STATUS_LABELS.get(subject.status_kind, subject.status)
        message += f"- {subject.subject}: {status}\n"
    return message


def opt_in_instruction(join_code: Optional[str], sender_number: Optional[str]) -> str:
    # Twilio sandbox recipients must message the join code before they receive anything
    code = join_code or DEFAULT_JOIN_CODE
    number = sender_number or DEFAULT_SENDER_LABEL
    return f'\n\n📢 Send the code "{code}" to {number} to opt-in.'
