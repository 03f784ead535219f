from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Mapping
from urllib.parse import urlparse


EMAIL_REGEX = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
OBJECT_ID_REGEX = re.compile(r"^[0-9a-fA-F]{24}$")
PASSWORD_REGEX = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[^A-Za-z0-9]).{8,}$")

USER_ROLES = {"user", "admin"}
SUBSCRIPTION_REVIEW_STATUSES = {"active", "failed", "cancelled"}
TICKET_STATUSES = {"Pending", "Under Review", "Completed"}
ANNOUNCEMENT_TYPES = {"info", "warning", "danger", "success"}

BOOLEAN_SETTINGS = {
    "allowRegistration",
    "allowLogin",
    "enableOtpVerification",
    "newGuideNotificationToSubscribers",
    "websiteMaintenanceMode",
    "enableComments",
    "enableRatings",
}
PRICE_SETTINGS = {"basicPlanPrice", "advancedPlanPrice", "proPlanPrice"}
TEXT_SETTINGS = {
    "upiIdForPremium",
    "contactEmail",
    "socialFacebookUrl",
    "socialTwitterUrl",
    "socialInstagramUrl",
    "globalAnnouncement",
    "adminPanelUrl",
    "officePhone",
    "officeAddress",
    "officeMapUrl",
}
DATE_SETTINGS = {"privacyPolicyLastUpdated", "termsOfServiceLastUpdated"}
DATE_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")
SETTING_URL_REGEX = re.compile(r"^(ftp|http|https)://[^ \"]+$")


class FormStatus(str, Enum):
    IDLE = "idle"
    DIRTY = "dirty"
    VALID = "valid"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class FormResult:
    values: dict[str, Any]
    field_errors: dict[str, str]

    @property
    def first_invalid_field(self) -> str | None:
        return next(iter(self.field_errors), None)

    @property
    def is_valid(self) -> bool:
        return len(self.field_errors) == 0


@dataclass
class FormState:
    status: FormStatus = FormStatus.IDLE
    submit_enabled: bool = False
    submit_disabled_reason: str = "Fill in the required fields."


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _check_length(errors: dict[str, str], field: str, label: str, value: str, minimum: int, maximum: int | None) -> None:
    if len(value) < minimum:
        errors[field] = f"{label} must be at least {minimum} characters."
    elif maximum is not None and len(value) > maximum:
        errors[field] = f"{label} cannot exceed {maximum} characters."


def is_valid_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def parse_iso_date(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    text = _text(value)
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


def validate_guide_form(payload: Mapping[str, Any], *, partial: bool = False) -> FormResult:
    values = dict(payload)
    errors: dict[str, str] = {}

    for field, label, minimum, maximum in (
        ("title", "Title", 5, 100),
        ("description", "Description", 10, 500),
        ("content", "Content", 50, None),
    ):
        if partial and field not in payload:
            continue
        text = _text(payload.get(field))
        values[field] = text
        if not text:
            errors[field] = f"{label} is required."
        else:
            _check_length(errors, field, label, text, minimum, maximum)

    if not partial or "category" in payload:
        category = _text(payload.get("category"))
        values["category"] = category
        if not category:
            errors["category"] = "Category is required."
        elif not OBJECT_ID_REGEX.match(category):
            errors["category"] = "Invalid category ID format."

    image_url = _text(payload.get("imageUrl"))
    if image_url and not is_valid_url(image_url):
        errors["imageUrl"] = "Image URL must be a valid http(s) URL."

    if "isPremium" in payload:
        values["isPremium"] = bool(payload.get("isPremium"))
    return FormResult(values=values, field_errors=errors)


def validate_category_form(payload: Mapping[str, Any], *, partial: bool = False) -> FormResult:
    values = dict(payload)
    errors: dict[str, str] = {}
    if not partial or "name" in payload:
        name = _text(payload.get("name"))
        values["name"] = name
        if not name:
            errors["name"] = "Category name is required."
        else:
            _check_length(errors, "name", "Category name", name, 2, 50)
    description = _text(payload.get("description"))
    if "description" in payload:
        values["description"] = description
    if len(description) > 200:
        errors["description"] = "Category description cannot exceed 200 characters."
    return FormResult(values=values, field_errors=errors)


def validate_user_form(payload: Mapping[str, Any], *, partial: bool = True) -> FormResult:
    values = dict(payload)
    errors: dict[str, str] = {}

    username = _text(payload.get("username"))
    if username or not partial:
        values["username"] = username
        if not username:
            errors["username"] = "Username is required."
        else:
            _check_length(errors, "username", "Username", username, 3, 30)

    email = _text(payload.get("email")).lower()
    if email or not partial:
        values["email"] = email
        if not email:
            errors["email"] = "Email is required."
        elif not EMAIL_REGEX.match(email):
            errors["email"] = "Invalid email. Use the user@domain.com format."

    password = _text(payload.get("password"))
    if password:
        values["password"] = password
        if not PASSWORD_REGEX.match(password):
            errors["password"] = (
                "Password must be at least 8 characters and include an uppercase letter, "
                "a lowercase letter, a number and a special character."
            )
    else:
        values.pop("password", None)

    picture = _text(payload.get("profilePicture"))
    if picture and not is_valid_url(picture):
        errors["profilePicture"] = "Profile picture must be a valid http(s) URL."

    if "role" in payload and payload.get("role") not in USER_ROLES:
        errors["role"] = "Role must be 'user' or 'admin'."
    return FormResult(values=values, field_errors=errors)


def compose_admin_notes(notes: str | None, rejection_reason: str | None = None) -> str:
    clean_notes = _text(notes)
    clean_reason = _text(rejection_reason)
    if not clean_reason:
        return clean_notes
    suffix = f" Notes: {clean_notes}" if clean_notes else ""
    return f"Reason: {clean_reason}.{suffix}"


def validate_subscription_status(
    status: Any,
    notes: str | None = None,
    rejection_reason: str | None = None,
) -> FormResult:
    normalized = _text(status).lower()
    errors: dict[str, str] = {}
    if normalized not in SUBSCRIPTION_REVIEW_STATUSES:
        errors["status"] = "Status must be one of: active, failed, cancelled."
    reason = rejection_reason if normalized == "failed" else None
    if normalized == "failed" and not _text(reason):
        errors["rejectionReason"] = "A rejection reason is required when marking a payment as failed."
    return FormResult(
        values={"status": normalized, "adminNotes": compose_admin_notes(notes, reason)},
        field_errors=errors,
    )


def validate_ticket_form(payload: Mapping[str, Any], *, partial: bool = True) -> FormResult:
    values = dict(payload)
    errors: dict[str, str] = {}
    if "status" in payload or not partial:
        if payload.get("status") not in TICKET_STATUSES:
            errors["status"] = "Status must be Pending, Under Review or Completed."
    if "isRead" in payload:
        values["isRead"] = bool(payload.get("isRead"))
    return FormResult(values=values, field_errors=errors)


def validate_announcement_form(payload: Mapping[str, Any], *, partial: bool = False) -> FormResult:
    values = dict(payload)
    errors: dict[str, str] = {}

    if not partial or "title" in payload:
        title = _text(payload.get("title"))
        values["title"] = title
        if not title:
            errors["title"] = "Title is required."
        else:
            _check_length(errors, "title", "Title", title, 3, 100)
    if not partial or "content" in payload:
        content = _text(payload.get("content"))
        values["content"] = content
        if not content:
            errors["content"] = "Content is required."
        else:
            _check_length(errors, "content", "Content", content, 10, None)

    if "type" in payload and payload.get("type") not in ANNOUNCEMENT_TYPES:
        errors["type"] = "Type must be info, warning, danger or success."

    dates: dict[str, datetime] = {}
    for field, label in (("startDate", "Start date"), ("endDate", "End date")):
        if partial and field not in payload:
            continue
        raw = payload.get(field)
        parsed = parse_iso_date(raw)
        if parsed is None:
            errors[field] = f"{label} must be an ISO date (YYYY-MM-DD)." if _text(raw) else f"{label} is required."
            continue
        dates[field] = parsed
        values[field] = parsed.isoformat()
    if len(dates) == 2:
        try:
            if dates["endDate"] < dates["startDate"]:
                errors["endDate"] = "End date must be on or after the start date."
        except TypeError:
            errors["endDate"] = "Start and end dates must both include, or both omit, a timezone."
    return FormResult(values=values, field_errors=errors)


def validate_newsletter_broadcast(subject: str | None, html_content: str | None) -> FormResult:
    errors: dict[str, str] = {}
    clean_subject = _text(subject)
    clean_content = _text(html_content)
    if not clean_subject:
        errors["subject"] = "Subject is required."
    if not clean_content:
        errors["htmlContent"] = "Content is required."
    return FormResult(values={"subject": clean_subject, "htmlContent": clean_content}, field_errors=errors)


def validate_individual_email(email: str | None, subject: str | None, html_content: str | None) -> FormResult:
    result = validate_newsletter_broadcast(subject, html_content)
    clean_email = _text(email).lower()
    if not clean_email:
        result.field_errors["email"] = "Recipient email is required."
    elif not EMAIL_REGEX.match(clean_email):
        result.field_errors["email"] = "Invalid email. Use the user@domain.com format."
    return FormResult(values={"email": clean_email, **result.values}, field_errors=result.field_errors)


def validate_ticket_reply(reply_message: str | None) -> FormResult:
    message = _text(reply_message)
    errors: dict[str, str] = {}
    if not message:
        errors["replyMessage"] = "Reply message cannot be empty."
    elif len(message) > 1000:
        errors["replyMessage"] = "Reply message cannot exceed 1000 characters."
    return FormResult(values={"replyMessage": message}, field_errors=errors)


def validate_setting(setting_name: str | None, setting_value: Any, description: str | None = None) -> FormResult:
    name = _text(setting_name)
    errors: dict[str, str] = {}
    value = setting_value
    if not name:
        errors["settingName"] = "Setting name is required."
    elif setting_value is None:
        errors["settingValue"] = "Setting value is required."
    elif name in BOOLEAN_SETTINGS:
        if not isinstance(setting_value, bool):
            errors["settingValue"] = f"{name} must be true or false."
    elif name in PRICE_SETTINGS:
        if isinstance(setting_value, bool) or not isinstance(setting_value, (int, float)) or setting_value < 0:
            errors["settingValue"] = f"{name} must be a number of 0 or more."
    elif name in TEXT_SETTINGS:
        if not isinstance(setting_value, str):
            errors["settingValue"] = f"{name} must be text."
        else:
            value = setting_value.strip()
            if "Url" in name and value and not SETTING_URL_REGEX.match(value):
                errors["settingValue"] = f"{name} must be a valid URL."
            elif name == "contactEmail" and value and not EMAIL_REGEX.match(value):
                errors["settingValue"] = "Please provide a valid contact email."
    elif name in DATE_SETTINGS:
        value = _text(setting_value)
        if not DATE_REGEX.match(value):
            errors["settingValue"] = f"{name} must be in YYYY-MM-DD format."
    else:
        errors["settingName"] = f"Unrecognized setting name: {name}"

    values: dict[str, Any] = {"settingName": name, "settingValue": value}
    if _text(description):
        values["description"] = _text(description)
    return FormResult(values=values, field_errors=errors)


def build_form_state(result: FormResult) -> FormState:
    if result.is_valid:
        return FormState(status=FormStatus.VALID, submit_enabled=True, submit_disabled_reason="")

    first_invalid_field = result.first_invalid_field or "form"
    return FormState(
        status=FormStatus.DIRTY,
        submit_enabled=False,
        submit_disabled_reason=f"Fix '{first_invalid_field}' before submitting.",
    )


def map_api_validation_errors(error_details: Any) -> dict[str, str]:
    if not error_details:
        return {}

    mapped: dict[str, str] = {}
    if isinstance(error_details, dict):
        if isinstance(error_details.get("errors"), dict):
            for key, value in error_details["errors"].items():
                mapped[str(key)] = str(value)
        for key, value in error_details.items():
            if key == "errors":
                continue
            if isinstance(value, str):
                mapped[str(key)] = value
            elif isinstance(value, list) and value and isinstance(value[0], str):
                mapped[str(key)] = value[0]
    elif isinstance(error_details, list):
        # Joi detail entries: {"message": ..., "path": ["field"]}
        for item in error_details:
            if not isinstance(item, dict):
                continue
            field = item.get("field") or item.get("path") or item.get("loc")
            message = item.get("message") or item.get("msg")
            if isinstance(field, list):
                field = field[-1] if field else None
            if field and message:
                mapped[str(field)] = str(message)
    return mapped
