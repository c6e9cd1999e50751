"""HTTP client for the Noter API.

One method per endpoint, plus the session state a front end keeps: whether
the user is logged in, who they are, the bearer token, and a timer that
silently renews the access token from the refresh cookie. Errors surface the
server's message as `NoterAPIError`; nothing is retried.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import IO, Any, Dict, List, Optional, Tuple, Union

import requests

_log = logging.getLogger("noter.client")

# (filename, content, content_type)
FileSpec = Tuple[str, Union[bytes, IO[bytes]], str]

DEFAULT_REFRESH_DELAY = 300.0
EMPTY_LISTING: Dict[str, Any] = {"notes": [], "total": 0, "page": 1, "perPage": 0, "totalPages": 0}


class NoterAPIError(Exception):
    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


@dataclass
class LoginStatus:
    logged_in: bool = False
    user_id: str = ""
    user_name: str = ""


class NoterClient:
    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        refresh_delay: float = DEFAULT_REFRESH_DELAY,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.refresh_delay = refresh_delay
        self.status = LoginStatus()
        self.token: Optional[str] = None
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    # --- transport ---

    def _request(self, method: str, path: str, **kwargs: Any):
        headers = dict(kwargs.pop("headers", None) or {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        response = self.session.request(
            method, f"{self.base_url}{path}", headers=headers, timeout=self.timeout, **kwargs
        )
        if response.status_code >= 400:
            try:
                message = response.json().get("message") or response.text
            except ValueError:
                message = response.text
            raise NoterAPIError(response.status_code, str(message))
        return response

    def _json(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        response = self._request(method, path, **kwargs)
        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    # --- session state ---

    def _logged_in(self, data: Dict[str, Any]) -> None:
        user = data.get("user") or {}
        self.token = data.get("token")
        self.status = LoginStatus(logged_in=True, user_id=user.get("id", ""), user_name=user.get("name", ""))

    def _logged_out(self) -> None:
        self.clear_refresh_timer()
        self.token = None
        self.status = LoginStatus()

    def start_refresh_timer(self, delay: Optional[float] = None) -> None:
        """Schedule one silent refresh; a pending one is kept, never duplicated."""
        with self._lock:
            if self._timer is not None:
                return
            self._timer = threading.Timer(self.refresh_delay if delay is None else delay, self._on_timer)
            self._timer.daemon = True
            self._timer.start()

    def clear_refresh_timer(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    @property
    def refresh_timer_active(self) -> bool:
        return self._timer is not None

    def _on_timer(self) -> None:
        with self._lock:
            self._timer = None
        self.token_refresh()

    # --- user ---

    def sign_up(self, name: str, email_address: str, password: str, confirm_password: Optional[str] = None) -> str:
        data = self._json("POST", "/user/new", json={
            "name": name,
            "emailAddress": email_address,
            "password": password,
            "confirmPassword": password if confirm_password is None else confirm_password,
        })
        return data["message"]

    def log_in(self, email_address: str, password: str) -> str:
        data = self._json("POST", "/user/authenticate", json={"emailAddress": email_address, "password": password})
        self._logged_in(data)
        return data["message"]

    def token_refresh(self) -> bool:
        """
        Renew the access token from the refresh cookie and re-arm the timer.
        On failure the local session is dropped and False is returned.
        """
        try:
            data = self._json("GET", "/user/refresh")
        except (NoterAPIError, requests.RequestException) as e:
            _log.info("Silent refresh failed, logging out locally: %s", e)
            self._logged_out()
            return False
        self._logged_in(data)
        self.start_refresh_timer()
        return True

    def reset_password(self, email_address: str, password: str, confirm_password: Optional[str] = None) -> str:
        data = self._json("PATCH", "/user/reset-password", json={
            "emailAddress": email_address,
            "password": password,
            "confirmPassword": password if confirm_password is None else confirm_password,
        })
        return data["message"]

    def log_out(self) -> str:
        try:
            data = self._json("POST", "/user/logout")
        finally:
            self._logged_out()
        return data["message"]

    def get_user(self, user_id: Optional[str] = None) -> Dict[str, Any]:
        return self._json("GET", "/user/get", params={"id": user_id or self.status.user_id})["user"]

    def update_user(
        self,
        name: str = "",
        email_address: str = "",
        password: str = "",
        confirm_password: Optional[str] = None,
    ) -> Dict[str, Any]:
        data = self._json("PATCH", "/user/update", json={
            "id": self.status.user_id,
            "name": name,
            "emailAddress": email_address,
            "password": password,
            "confirmPassword": password if confirm_password is None else confirm_password,
        })
        if data["user"].get("name"):
            self.status.user_name = data["user"]["name"]
        return data["user"]

    def delete_user(self, user_id: Optional[str] = None) -> str:
        data = self._json("DELETE", "/user/delete", params={"id": user_id or self.status.user_id})
        self._logged_out()
        return data["message"]

    # --- notes ---

    def new_note(
        self,
        heading: str,
        content: str,
        type: str = "text",
        audio: Optional[FileSpec] = None,
        audio_duration: Optional[float] = None,
        images: Optional[List[FileSpec]] = None,
    ) -> str:
        form: Dict[str, Any] = {"type": type, "heading": heading, "content": content}
        if audio_duration is not None:
            form["audioDuration"] = str(audio_duration)
        files: List[Tuple[str, FileSpec]] = []
        if audio is not None:
            files.append(("audioRecording", audio))
        files.extend(("images", image) for image in images or [])
        data = self._json("POST", "/note/new", data=form, files=files or None)
        return data["id"]

    def get_note(self, note_id: str) -> Dict[str, Any]:
        return self._json("GET", "/note/get", params={"id": note_id})["note"]

    def get_all_notes(
        self,
        search: Optional[str] = None,
        favourites: bool = False,
        sort: str = "newest",
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"sort": sort, "page": page}
        if search:
            params["search"] = search
        if favourites:
            params["favourites"] = "true"
        if per_page:
            params["perPage"] = per_page
        return self._json("GET", "/note/get-all", params=params) or dict(EMPTY_LISTING)

    def get_audio_recording(self, note_id: str) -> bytes:
        return self._request("GET", "/note/get-audio-recording", params={"id": note_id}).content

    def update_note(
        self,
        note_id: str,
        heading: Optional[str] = None,
        content: Optional[str] = None,
        is_favourite: Optional[bool] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"id": note_id}
        if heading is not None:
            body["heading"] = heading
        if content is not None:
            body["content"] = content
        if is_favourite is not None:
            body["isFavourite"] = is_favourite
        return self._json("PATCH", "/note/update", json=body)["note"]

    def upload_image(self, note_id: str, image: FileSpec) -> Dict[str, Any]:
        return self._json("PATCH", "/note/upload-image", data={"id": note_id}, files=[("image", image)])["note"]

    def delete_image(self, note_id: str, image: str) -> Dict[str, Any]:
        return self._json("DELETE", "/note/delete-image", params={"id": note_id, "image": image})["note"]

    def delete_note(self, note_id: str) -> str:
        return self._json("DELETE", "/note/delete", params={"id": note_id})["message"]

    def delete_all_notes(self) -> str:
        return self._json("DELETE", "/note/delete-all", params={"userID": self.status.user_id})["message"]
