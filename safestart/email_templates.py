"""
Email Templates

Each builder returns (subject, html_body, text_body). User-supplied
values are HTML-escaped in the html body only.
"""
from html import escape
from typing import Tuple

EmailContent = Tuple[str, str, str]

_LAYOUT = """<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; color: #333; max-width: 600px; margin: 0 auto;">
  <div style="background: #1e3a8a; color: #fff; padding: 20px; text-align: center;">
    <h1 style="margin: 0;">SafeStart</h1>
  </div>
  <div style="padding: 24px;">
{body}
  </div>
  <div style="padding: 12px; font-size: 12px; color: #888; text-align: center;">
    This is an automated message from SafeStart. Please do not reply.
  </div>
</body>
</html>"""

_BUTTON = '<p><a href="{url}" style="background: #1e3a8a; color: #fff; padding: 10px 18px; text-decoration: none; border-radius: 4px;">{label}</a></p>'


def _render(body: str) -> str:
    return _LAYOUT.format(body=body)


def welcome(full_name: str, company_name: str, role: str, login_url: str) -> EmailContent:
    subject = f"Welcome to SafeStart, {full_name}"
    html = _render(
        f"<h2>Welcome, {escape(full_name)}!</h2>"
        f"<p>An account has been created for you at <strong>{escape(company_name)}</strong> "
        f"with the role <strong>{escape(role)}</strong>.</p>"
        + _BUTTON.format(url=escape(login_url, quote=True), label="Sign in")
    )
    text = (
        f"Welcome, {full_name}!\n\n"
        f"An account has been created for you at {company_name} with the role {role}.\n"
        f"Sign in at: {login_url}\n"
    )
    return subject, html, text


def password_reset(full_name: str, reset_url: str, expires_minutes: int) -> EmailContent:
    subject = "Reset your SafeStart password"
    html = _render(
        f"<h2>Hello {escape(full_name)},</h2>"
        "<p>We received a request to reset your password.</p>"
        + _BUTTON.format(url=escape(reset_url, quote=True), label="Reset password")
        + f"<p>This link expires in {expires_minutes} minutes. "
        "If you did not request a reset, you can ignore this email.</p>"
    )
    text = (
        f"Hello {full_name},\n\n"
        "We received a request to reset your password.\n"
        f"Reset it here: {reset_url}\n\n"
        f"This link expires in {expires_minutes} minutes. "
        "If you did not request a reset, you can ignore this email.\n"
    )
    return subject, html, text


def inspection_reminder(full_name: str, vehicle_label: str, template_name: str, inspection_url: str) -> EmailContent:
    subject = f"Inspection assigned: {vehicle_label}"
    html = _render(
        f"<h2>Hello {escape(full_name)},</h2>"
        f"<p>You have been assigned a <strong>{escape(template_name)}</strong> inspection "
        f"for vehicle <strong>{escape(vehicle_label)}</strong>.</p>"
        + _BUTTON.format(url=escape(inspection_url, quote=True), label="Open inspection")
    )
    text = (
        f"Hello {full_name},\n\n"
        f"You have been assigned a {template_name} inspection for vehicle {vehicle_label}.\n"
        f"Open it here: {inspection_url}\n"
    )
    return subject, html, text


def issue_notification(
    full_name: str,
    vehicle_label: str,
    severity: str,
    description: str,
    reporter_name: str,
    issue_url: str,
) -> EmailContent:
    subject = f"[{severity.upper()}] Issue reported on {vehicle_label}"
    html = _render(
        f"<h2>Hello {escape(full_name)},</h2>"
        f"<p>{escape(reporter_name)} reported a <strong>{escape(severity)}</strong> severity issue "
        f"on vehicle <strong>{escape(vehicle_label)}</strong>:</p>"
        f"<blockquote>{escape(description)}</blockquote>"
        + _BUTTON.format(url=escape(issue_url, quote=True), label="View issue")
    )
    text = (
        f"Hello {full_name},\n\n"
        f"{reporter_name} reported a {severity} severity issue on vehicle {vehicle_label}:\n\n"
        f"{description}\n\n"
        f"View it here: {issue_url}\n"
    )
    return subject, html, text
