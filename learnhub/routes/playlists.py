"""Playlist availability and progress endpoints."""
from fastapi import APIRouter, Depends

from learnhub.dependencies import get_gateway, get_recorder, get_viewer
from learnhub.gateway.base import PersistenceGateway
from learnhub.models import MessageResponse, PlaylistItemOut, PlaylistViewResponse
from learnhub.models.entities import PlaylistView, Viewer
from learnhub.services.access_service import load_playlist_view
from learnhub.services.progress_service import ProgressRecorder
from learnhub.utils import validate_id

router = APIRouter(prefix="/api/playlists", tags=["playlists"])


def playlist_response(view: PlaylistView) -> PlaylistViewResponse:
    return PlaylistViewResponse(
        id=view.playlist.id,
        title=view.playlist.title,
        description=view.playlist.description,
        accessMode=view.playlist.access_mode,
        kind=view.kind,
        isOwner=view.viewer_is_owner,
        items=[
            PlaylistItemOut(
                id=item.item_id,
                title=item.title,
                description=item.description,
                orderIndex=item.order_index,
                isAvailable=status.is_available,
                isCompleted=status.is_completed,
            )
            for item, status in zip(view.items, view.availability)
        ],
    )


@router.get("/{playlist_id}", response_model=PlaylistViewResponse)
async def get_playlist(
    playlist_id: str,
    viewer: Viewer = Depends(get_viewer),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> PlaylistViewResponse:
    """Playlist items with availability for the viewer."""
    view = await load_playlist_view(gateway, validate_id("playlistId", playlist_id), viewer)
    return playlist_response(view)


@router.post("/{playlist_id}/items/{item_id}/open", response_model=MessageResponse)
async def open_item(
    playlist_id: str,
    item_id: str,
    viewer: Viewer = Depends(get_viewer),
    recorder: ProgressRecorder = Depends(get_recorder),
) -> MessageResponse:
    """Open an unlocked item; for students it becomes the current item."""
    await recorder.open_item(
        validate_id("playlistId", playlist_id), viewer, validate_id("itemId", item_id)
    )
    return MessageResponse(message="opened")
