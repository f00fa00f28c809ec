"""Email subjects and HTML bodies for every notification kind."""

from __future__ import annotations

from typing import Any, Mapping, Tuple

from jinja2 import DictLoader, Environment, select_autoescape

from ..core.enums import NotificationKind

SUBJECTS = {
    NotificationKind.TIMESHEET_SUBMITTED: "New Timesheet Submitted for Review",
    NotificationKind.TIMESHEET_APPROVED: "Timesheet Approved",
    NotificationKind.TIMESHEET_REJECTED: "Timesheet Requires Revision",
    NotificationKind.VACATION_SUBMITTED: "New Vacation Request Submitted",
    NotificationKind.VACATION_APPROVED: "Vacation Request Approved",
    NotificationKind.VACATION_REJECTED: "Vacation Request Declined",
}

_LAYOUT = """\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: {% block color %}#333{% endblock %};">{% block title %}{% endblock %}</h2>
  <p>{% block intro %}{% endblock %}</p>
  <div style="background-color: {% block panel %}#f5f5f5{% endblock %}; padding: 15px; border-radius: 5px; margin: 20px 0;">
    <h3 style="margin-top: 0;">{% block heading %}Details:{% endblock %}</h3>
    {% block details %}{% endblock %}
  </div>
  {% block after %}{% endblock %}
  <p>{% block closing %}{% endblock %}</p>
  <div style="margin-top: 30px; padding-top: 20px; border-top: 1px solid #ddd; color: #666; font-size: 12px;">
    <p>This is an automated message from the Timetracker system.</p>
  </div>
</div>
"""

_TEMPLATES = {
    "layout.html": _LAYOUT,
    NotificationKind.TIMESHEET_SUBMITTED.value: """\
{% extends "layout.html" %}
{% block title %}New Timesheet Submitted{% endblock %}
{% block intro %}A new timesheet has been submitted and requires your review.{% endblock %}
{% block heading %}Timesheet Details:{% endblock %}
{% block details %}
    <p><strong>Employee:</strong> {{ employee_name }} ({{ employee_email }})</p>
    <p><strong>Week Ending:</strong> {{ week_ending }}</p>
    <p><strong>Total Hours:</strong> {{ total_hours }}</p>
    <p><strong>Submitted:</strong> {{ submitted_at }}</p>
{% endblock %}
{% block closing %}Please log in to the Timetracker system to review and approve this timesheet.{% endblock %}
""",
    NotificationKind.TIMESHEET_APPROVED.value: """\
{% extends "layout.html" %}
{% block color %}#28a745{% endblock %}
{% block panel %}#d4edda{% endblock %}
{% block title %}Timesheet Approved{% endblock %}
{% block intro %}Your timesheet has been approved by your manager.{% endblock %}
{% block heading %}Timesheet Details:{% endblock %}
{% block details %}
    <p><strong>Week Ending:</strong> {{ week_ending }}</p>
    <p><strong>Total Hours:</strong> {{ total_hours }}</p>
    <p><strong>Approved By:</strong> {{ approver_name }}</p>
    <p><strong>Approved On:</strong> {{ reviewed_at }}</p>
    {% if comments %}<p><strong>Comments:</strong> {{ comments }}</p>{% endif %}
{% endblock %}
{% block closing %}Your timesheet is now finalized and will be processed for payroll.{% endblock %}
""",
    NotificationKind.TIMESHEET_REJECTED.value: """\
{% extends "layout.html" %}
{% block color %}#dc3545{% endblock %}
{% block panel %}#f8d7da{% endblock %}
{% block title %}Timesheet Requires Revision{% endblock %}
{% block intro %}Your timesheet has been returned for revision by your manager.{% endblock %}
{% block heading %}Timesheet Details:{% endblock %}
{% block details %}
    <p><strong>Week Ending:</strong> {{ week_ending }}</p>
    <p><strong>Total Hours:</strong> {{ total_hours }}</p>
    <p><strong>Reviewed By:</strong> {{ approver_name }}</p>
    <p><strong>Reviewed On:</strong> {{ reviewed_at }}</p>
    {% if comments %}<p><strong>Comments:</strong> {{ comments }}</p>{% endif %}
{% endblock %}
{% block closing %}Please review the comments above, make the necessary corrections, and resubmit your timesheet.{% endblock %}
""",
    NotificationKind.VACATION_SUBMITTED.value: """\
{% extends "layout.html" %}
{% block title %}New Vacation Request{% endblock %}
{% block intro %}A new vacation request has been submitted and requires your review.{% endblock %}
{% block heading %}Request Details:{% endblock %}
{% block details %}
    <p><strong>Employee:</strong> {{ employee_name }} ({{ employee_email }})</p>
    <p><strong>Request Type:</strong> {{ request_type }}</p>
    <p><strong>Start Date:</strong> {{ start_date }}</p>
    <p><strong>End Date:</strong> {{ end_date }}</p>
    <p><strong>Days Requested:</strong> {{ days_requested }}</p>
    <p><strong>Submitted:</strong> {{ submitted_at }}</p>
    {% if reason %}<p><strong>Reason:</strong> {{ reason }}</p>{% endif %}
{% endblock %}
{% block closing %}Please log in to the Timetracker system to review and approve this vacation request.{% endblock %}
""",
    NotificationKind.VACATION_APPROVED.value: """\
{% extends "layout.html" %}
{% block color %}#28a745{% endblock %}
{% block panel %}#d4edda{% endblock %}
{% block title %}Vacation Request Approved{% endblock %}
{% block intro %}Your vacation request has been approved by your manager.{% endblock %}
{% block heading %}Request Details:{% endblock %}
{% block details %}
    <p><strong>Request Type:</strong> {{ request_type }}</p>
    <p><strong>Start Date:</strong> {{ start_date }}</p>
    <p><strong>End Date:</strong> {{ end_date }}</p>
    <p><strong>Days Approved:</strong> {{ days_requested }}</p>
    <p><strong>Approved By:</strong> {{ approver_name }}</p>
    <p><strong>Approved On:</strong> {{ reviewed_at }}</p>
    {% if comments %}<p><strong>Comments:</strong> {{ comments }}</p>{% endif %}
{% endblock %}
{% block after %}{% if new_balance is defined and new_balance is not none %}<p><strong>Remaining Vacation Balance:</strong> {{ new_balance }} days</p>{% endif %}{% endblock %}
{% block closing %}Your vacation request is now approved. Please coordinate with your team regarding coverage during your absence.{% endblock %}
""",
    NotificationKind.VACATION_REJECTED.value: """\
{% extends "layout.html" %}
{% block color %}#dc3545{% endblock %}
{% block panel %}#f8d7da{% endblock %}
{% block title %}Vacation Request Declined{% endblock %}
{% block intro %}Your vacation request has been declined by your manager.{% endblock %}
{% block heading %}Request Details:{% endblock %}
{% block details %}
    <p><strong>Request Type:</strong> {{ request_type }}</p>
    <p><strong>Start Date:</strong> {{ start_date }}</p>
    <p><strong>End Date:</strong> {{ end_date }}</p>
    <p><strong>Days Requested:</strong> {{ days_requested }}</p>
    <p><strong>Reviewed By:</strong> {{ approver_name }}</p>
    <p><strong>Reviewed On:</strong> {{ reviewed_at }}</p>
    {% if comments %}<p><strong>Comments:</strong> {{ comments }}</p>{% endif %}
{% endblock %}
{% block closing %}If you have questions about this decision, please speak with your manager directly.{% endblock %}
""",
}

_env = Environment(loader=DictLoader(_TEMPLATES), autoescape=select_autoescape(default=True, default_for_string=True))


def render(kind: NotificationKind, payload: Mapping[str, Any]) -> Tuple[str, str]:
    """Return (subject, html) for a notification."""

    kind = NotificationKind(kind)
    html = _env.get_template(kind.value).render(**payload)
    return SUBJECTS[kind], html
