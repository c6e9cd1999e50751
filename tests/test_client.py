import pytest

from noter.client import EMPTY_LISTING, NoterAPIError, NoterClient

PASSWORD = "Aa1!aaaa"
PNG = b"\x89PNG fake"


@pytest.fixture()
def api(client):
    noter = NoterClient("http://testserver/api", session=client)
    yield noter
    noter.clear_refresh_timer()


@pytest.fixture()
def logged_in(api):
    api.sign_up("Ada Lovelace", "a@b.com", PASSWORD)
    api.log_in("a@b.com", PASSWORD)
    return api


def test_login_sets_status(logged_in):
    assert logged_in.status.logged_in
    assert logged_in.status.user_name == "Ada Lovelace"
    assert logged_in.token
    assert logged_in.get_user()["emailAddress"] == "a@b.com"


def test_errors_carry_server_message(api):
    with pytest.raises(NoterAPIError) as exc:
        api.log_in("nobody@b.com", PASSWORD)
    assert exc.value.status_code == 404
    assert "User does not exist" in exc.value.message
    assert not api.status.logged_in


def test_note_lifecycle(logged_in):
    assert logged_in.get_all_notes() == EMPTY_LISTING

    note_id = logged_in.new_note("Shopping", "milk", images=[("pic.png", PNG, "image/png")])
    note = logged_in.get_note(note_id)
    assert note["imageCount"] == 1

    note = logged_in.upload_image(note_id, ("more.png", PNG, "image/png"))
    assert note["imageCount"] == 2

    note = logged_in.delete_image(note_id, note["images"][0])
    assert note["imageCount"] == 1

    note = logged_in.update_note(note_id, is_favourite=True)
    assert note["isFavourite"] is True
    assert logged_in.get_all_notes(favourites=True)["total"] == 1

    assert logged_in.delete_note(note_id) == "Note deleted successfully"
    assert logged_in.get_all_notes()["notes"] == []


def test_audio_note(logged_in):
    note_id = logged_in.new_note(
        "Memo", "", type="audio", audio=("memo.webm", b"audio-bytes", "audio/webm"), audio_duration=3.0
    )
    assert logged_in.get_audio_recording(note_id) == b"audio-bytes"


def test_silent_refresh_rearms_timer(logged_in):
    assert logged_in.token_refresh() is True
    assert logged_in.refresh_timer_active
    assert logged_in.status.logged_in
    assert logged_in.token
    logged_in.start_refresh_timer()
    logged_in.clear_refresh_timer()
    assert not logged_in.refresh_timer_active


def test_log_out_then_refresh_fails(logged_in):
    assert logged_in.log_out() == "Logged out successfully"
    assert not logged_in.status.logged_in
    assert logged_in.token is None

    assert logged_in.token_refresh() is False
    assert not logged_in.refresh_timer_active


def test_update_and_delete_user(logged_in):
    user = logged_in.update_user(name="Grace Hopper")
    assert user["name"] == "Grace Hopper"
    assert logged_in.status.user_name == "Grace Hopper"

    logged_in.new_note("Shopping", "milk")
    assert logged_in.delete_user() == "User successfully deleted"
    assert not logged_in.status.logged_in
    with pytest.raises(NoterAPIError):
        logged_in.log_in("a@b.com", PASSWORD)
