from quickfix_admin.app.ui.forms import (
    FormStatus,
    build_form_state,
    compose_admin_notes,
    map_api_validation_errors,
    validate_announcement_form,
    validate_category_form,
    validate_guide_form,
    validate_individual_email,
    validate_newsletter_broadcast,
    validate_setting,
    validate_subscription_status,
    validate_ticket_form,
    validate_ticket_reply,
    validate_user_form,
)

_VALID_GUIDE = {
    "title": "Fix a dripping tap",
    "description": "Stop the drip in ten minutes.",
    "content": "Turn off the water supply, remove the handle and replace the worn washer inside.",
    "category": "64b7f0c2a1b2c3d4e5f60718",
}


def test_valid_guide_passes_and_is_trimmed() -> None:
    result = validate_guide_form({**_VALID_GUIDE, "title": "  Fix a dripping tap  "})

    assert result.is_valid
    assert result.values["title"] == "Fix a dripping tap"


def test_guide_rules() -> None:
    result = validate_guide_form(
        {**_VALID_GUIDE, "title": "Tap", "category": "plumbing", "imageUrl": "not-a-url", "content": "short"}
    )

    assert set(result.field_errors) == {"title", "category", "imageUrl", "content"}


def test_partial_guide_update_checks_only_sent_fields() -> None:
    assert validate_guide_form({"isPremium": True}, partial=True).is_valid
    assert not validate_guide_form({"title": "ab"}, partial=True).is_valid


def test_category_rules() -> None:
    assert validate_category_form({"name": "Electrical"}).is_valid
    assert "name" in validate_category_form({"name": "E"}).field_errors
    assert "description" in validate_category_form({"name": "Electrical", "description": "x" * 201}).field_errors


def test_user_update_rules() -> None:
    result = validate_user_form(
        {"username": "jo", "email": "jo@", "password": "weakpass", "role": "owner", "profilePicture": "ftp://x"}
    )

    assert set(result.field_errors) == {"username", "email", "password", "role", "profilePicture"}


def test_blank_password_is_not_sent() -> None:
    result = validate_user_form({"username": "johnny", "password": ""})

    assert result.is_valid
    assert "password" not in result.values


def test_subscription_status_and_notes() -> None:
    assert validate_subscription_status("Active").values["status"] == "active"
    assert not validate_subscription_status("pending").is_valid
    assert not validate_subscription_status("failed", "Checked twice").is_valid
    assert validate_subscription_status("failed", "Checked twice", "Duplicate").values["adminNotes"] == (
        "Reason: Duplicate. Notes: Checked twice"
    )
    assert validate_subscription_status("active", "Paid", "ignored").values["adminNotes"] == "Paid"
    assert compose_admin_notes("Checked twice", "Invalid receipt") == "Reason: Invalid receipt. Notes: Checked twice"
    assert compose_admin_notes("Looks fine") == "Looks fine"
    assert compose_admin_notes("", "Duplicate") == "Reason: Duplicate."


def test_ticket_status_values() -> None:
    assert validate_ticket_form({"status": "Under Review"}).is_valid
    assert not validate_ticket_form({"status": "Closed"}).is_valid


def test_announcement_dates() -> None:
    valid = validate_announcement_form(
        {"title": "Maintenance", "content": "Down for an hour tonight.", "startDate": "2024-05-01", "endDate": "2024-05-01"}
    )
    backwards = validate_announcement_form(
        {"title": "Maintenance", "content": "Down for an hour tonight.", "startDate": "2024-05-02", "endDate": "2024-05-01"}
    )
    garbage = validate_announcement_form(
        {"title": "Maintenance", "content": "Down for an hour tonight.", "startDate": "tomorrow", "endDate": ""}
    )

    assert valid.is_valid
    assert valid.values["startDate"] == "2024-05-01T00:00:00"
    assert "endDate" in backwards.field_errors
    assert garbage.field_errors["startDate"].startswith("Start date must be an ISO date")
    assert garbage.field_errors["endDate"] == "End date is required."


def test_newsletter_broadcast_requires_subject_and_content() -> None:
    result = validate_newsletter_broadcast(" ", None)

    assert set(result.field_errors) == {"subject", "htmlContent"}


def test_form_state_points_at_first_invalid_field() -> None:
    state = build_form_state(validate_category_form({"name": ""}))

    assert state.status is FormStatus.DIRTY
    assert state.submit_enabled is False
    assert state.submit_disabled_reason == "Fix 'name' before submitting."


def test_api_validation_errors_are_mapped_to_fields() -> None:
    assert map_api_validation_errors([{"path": ["title"], "message": "too short"}]) == {"title": "too short"}
    assert map_api_validation_errors({"errors": {"email": "taken"}}) == {"email": "taken"}
    assert map_api_validation_errors(None) == {}


def test_individual_email_needs_a_valid_recipient() -> None:
    result = validate_individual_email(" Reader@QuickFix.test ", "Hello", "<p>Hi</p>")

    assert result.is_valid
    assert result.values == {"email": "reader@quickfix.test", "subject": "Hello", "htmlContent": "<p>Hi</p>"}
    assert set(validate_individual_email("reader@", "", "").field_errors) == {"email", "subject", "htmlContent"}


def test_ticket_reply_is_trimmed_and_bounded() -> None:
    assert validate_ticket_reply("  Thanks, fixed.  ").values == {"replyMessage": "Thanks, fixed."}
    assert validate_ticket_reply("   ").field_errors == {"replyMessage": "Reply message cannot be empty."}
    assert "replyMessage" in validate_ticket_reply("x" * 1001).field_errors


def test_setting_values_follow_their_type() -> None:
    assert validate_setting("allowRegistration", False).is_valid
    assert not validate_setting("allowRegistration", "false").is_valid
    assert validate_setting("proPlanPrice", 0).is_valid
    assert not validate_setting("proPlanPrice", -5).is_valid
    assert not validate_setting("proPlanPrice", True).is_valid
    assert validate_setting("socialFacebookUrl", "").is_valid
    assert not validate_setting("officeMapUrl", "maps.example.com").is_valid
    assert not validate_setting("contactEmail", "help@").is_valid
    assert validate_setting("privacyPolicyLastUpdated", "2024-05-01").is_valid
    assert "settingName" in validate_setting("siteTheme", "dark").field_errors
    assert "settingValue" in validate_setting("allowLogin", None).field_errors


def test_setting_description_is_optional() -> None:
    result = validate_setting(" globalAnnouncement ", " Back soon ", "Banner text")

    assert result.values == {"settingName": "globalAnnouncement", "settingValue": "Back soon", "description": "Banner text"}
