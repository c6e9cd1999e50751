"""
Endpoints for `note`: create, read, list, update, images, audio and deletion.
Every route acts on the notes of the authenticated user.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, Response, UploadFile, status
from fastapi.responses import FileResponse

from noter.api.deps import base_url, ensure_self, get_current_user_id
from noter.api.schemas.common import MessageOut
from noter.api.schemas.note import (
    NoteCreateOut,
    NoteEnvelope,
    NoteListOut,
    NoteMessageOut,
    NoteOut,
    NoteType,
    NoteUpdatePayload,
    SortOrder,
)
from noter.services import note_service as service

router = APIRouter(prefix="/note", tags=["Note"])


def _out(doc: dict, request: Request) -> NoteOut:
    return NoteOut(**service.present(doc, base_url(request)))


@router.post(
    "/new",
    status_code=status.HTTP_201_CREATED,
    response_model=NoteCreateOut,
    summary="Create note",
    description="Multipart form with an optional audio recording and any number of images.",
)
def new_note(
    note_type: NoteType = Form(default="text", alias="type"),
    heading: str = Form(default=""),
    content: str = Form(default=""),
    audio_duration: Optional[float] = Form(default=None, alias="audioDuration", ge=0),
    owner_id: Optional[str] = Form(default=None, alias="userID"),
    audio_recording: Optional[UploadFile] = File(default=None, alias="audioRecording"),
    images: Optional[List[UploadFile]] = File(default=None),
    user_id: str = Depends(get_current_user_id),
):
    note_id = service.create_note(
        user_id=ensure_self(owner_id, user_id),
        type=note_type,
        heading=heading,
        content=content,
        audio_duration=audio_duration,
        audio_file=audio_recording,
        image_files=images or [],
    )
    return NoteCreateOut(message="Note created successfully", id=note_id)


@router.get("/get", response_model=NoteEnvelope, summary="Get one note")
def get_note(request: Request, id: str = Query(...), user_id: str = Depends(get_current_user_id)):
    return NoteEnvelope(note=_out(service.get_note(id, user_id), request))


@router.get(
    "/get-all",
    response_model=NoteListOut,
    summary="List notes",
    description="Search, favourites filter, sort by creation date and pagination. 204 when the user has no notes.",
    responses={204: {"description": "The user has no notes"}},
)
def get_all_notes(
    request: Request,
    id: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None),
    favourites: bool = Query(default=False),
    sort: SortOrder = Query(default="newest"),
    page: int = Query(default=1, ge=1),
    per_page: Optional[int] = Query(default=None, ge=1, alias="perPage"),
    user_id: str = Depends(get_current_user_id),
):
    owner = ensure_self(id, user_id)
    if not service.has_notes(owner):
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    result = service.list_notes(
        owner,
        search=search,
        favourites_only=favourites,
        oldest_first=sort == "oldest",
        page=page,
        per_page=per_page,
    )
    return NoteListOut(
        notes=[_out(doc, request) for doc in result.items],
        total=result.total,
        page=result.page,
        per_page=result.per_page,
        total_pages=result.total_pages,
    )


@router.get("/get-audio-recording", summary="Download the audio recording")
def get_audio_recording(id: str = Query(...), user_id: str = Depends(get_current_user_id)):
    path, filename = service.audio_recording(id, user_id)
    return FileResponse(path, filename=filename)


@router.patch(
    "/update",
    status_code=status.HTTP_201_CREATED,
    response_model=NoteMessageOut,
    summary="Update note",
    description="Partial update of heading, content and favourite flag; blank strings are ignored.",
)
def update_note(payload: NoteUpdatePayload, request: Request, user_id: str = Depends(get_current_user_id)):
    doc = service.update_note(
        payload.id,
        user_id,
        heading=payload.heading,
        content=payload.content,
        is_favourite=payload.is_favourite,
    )
    return NoteMessageOut(message="Note details updated successfully", note=_out(doc, request))


@router.patch(
    "/upload-image",
    status_code=status.HTTP_201_CREATED,
    response_model=NoteMessageOut,
    summary="Attach an image",
)
def upload_image(
    request: Request,
    id: str = Form(...),
    image: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
):
    doc = service.upload_image(id, user_id, image)
    return NoteMessageOut(message="Image uploaded successfully", note=_out(doc, request))


@router.delete("/delete-image", response_model=NoteMessageOut, summary="Detach an image")
def delete_image(
    request: Request,
    id: str = Query(...),
    image: str = Query(...),
    user_id: str = Depends(get_current_user_id),
):
    doc = service.delete_image(id, user_id, image)
    return NoteMessageOut(message="Image deleted successfully", note=_out(doc, request))


@router.delete("/delete", response_model=MessageOut, summary="Delete note")
def delete_note(id: str = Query(...), user_id: str = Depends(get_current_user_id)):
    service.delete_note(id, user_id)
    return MessageOut(message="Note deleted successfully")


@router.delete("/delete-all", response_model=MessageOut, summary="Delete all notes")
def delete_all_notes(
    owner_id: Optional[str] = Query(default=None, alias="userID"),
    user_id: str = Depends(get_current_user_id),
):
    service.delete_all_notes(ensure_self(owner_id, user_id))
    return MessageOut(message="All notes deleted successfully")
