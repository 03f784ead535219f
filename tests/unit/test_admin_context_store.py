import pytest

from quickfix_admin.app.state import AdminContext, AdminContextStore


def test_listeners_only_hear_real_changes() -> None:
    store = AdminContextStore()
    seen: list[tuple[str, str]] = []
    store.subscribe(lambda previous, current: seen.append((previous.fingerprint(), current.fingerprint())))

    store.apply_profile("token-1", {"_id": "a1", "role": "Admin"})
    store.apply_profile("token-1", {"_id": "a1", "role": "Admin"})

    assert seen == [("anonymous:no-user", "admin:a1")]
    assert store.current.is_admin()
    assert store.current.is_authenticated()


def test_unsubscribe_stops_notifications() -> None:
    store = AdminContextStore()
    seen: list[AdminContext] = []
    unsubscribe = store.subscribe(lambda _previous, current: seen.append(current))

    unsubscribe()
    store.replace(access_token="token")

    assert seen == []


def test_snapshot_settings_are_read_only() -> None:
    store = AdminContextStore()
    context = store.update_settings({"siteName": "QuickFix", "maintenanceMode": False})

    with pytest.raises(TypeError):
        context.settings["siteName"] = "Other"
    with pytest.raises(AttributeError):
        context.role = "admin"


def test_clear_signs_out_but_keeps_site_settings() -> None:
    store = AdminContextStore()
    store.update_settings({"siteName": "QuickFix"})
    store.apply_profile("token", {"_id": "a1", "role": "admin"})

    cleared = store.clear()

    assert cleared.is_authenticated() is False
    assert cleared.fingerprint() == "anonymous:no-user"
    assert cleared.settings["siteName"] == "QuickFix"
