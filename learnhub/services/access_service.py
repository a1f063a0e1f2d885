"""Playlist access gating: which items a viewer may open."""

import logging
from collections.abc import Collection, Sequence

from learnhub.errors import GatewayError, ItemLockedError, LoadError, NotFoundError
from learnhub.events import CompletionBus
from learnhub.gateway.base import PersistenceGateway
from learnhub.models.db.playlist import AccessMode
from learnhub.models.entities import (
    CompletionEvent,
    ItemAvailability,
    PlaylistItemRecord,
    PlaylistKind,
    PlaylistView,
    Viewer,
)

logger = logging.getLogger(__name__)


def compute_availability(
    items: Sequence[PlaylistItemRecord],
    access_mode: AccessMode,
    completed_ids: Collection[str],
    viewer_is_owner: bool,
) -> list[ItemAvailability]:
    """
    Availability and completion flag for each item, in playlist order.

    Owners and "any" playlists see every item unlocked. In sequential mode the
    first item is always open and each later item opens once its predecessor
    is completed. Total: an empty item list yields an empty result.
    """
    completed = set(completed_ids)
    gated = not viewer_is_owner and access_mode == AccessMode.SEQUENTIAL

    result = []
    for index, item in enumerate(items):
        if not gated or index == 0:
            is_available = True
        else:
            is_available = items[index - 1].item_id in completed
        result.append(
            ItemAvailability(
                id=item.item_id,
                is_available=is_available,
                is_completed=item.item_id in completed,
            )
        )
    return result


async def load_playlist_view(
    gateway: PersistenceGateway, playlist_id: str, viewer: Viewer
) -> PlaylistView:
    """Read playlist, items and the viewer's progress and compute availability."""
    try:
        playlist = await gateway.get_playlist(playlist_id)
        if playlist is None:
            raise NotFoundError(f"Playlist {playlist_id} not found")

        kind, items = await gateway.get_playlist_items(playlist_id)
        viewer_is_owner = playlist.teacher_id == viewer.user_id

        completed_ids: list[str] = []
        if not viewer_is_owner:
            progress = await gateway.get_progress(playlist_id, viewer.user_id)
            if progress is not None:
                completed_ids = progress.completed_item_ids
    except GatewayError as e:
        raise LoadError(f"Failed to load playlist {playlist_id}") from e

    return PlaylistView(
        playlist=playlist,
        kind=kind,
        items=list(items),
        availability=compute_availability(
            items, playlist.access_mode, completed_ids, viewer_is_owner
        ),
        viewer_is_owner=viewer_is_owner,
    )


async def require_available_item(
    gateway: PersistenceGateway,
    playlist_id: str,
    viewer: Viewer,
    item_id: str,
    kind: PlaylistKind | None = None,
) -> PlaylistView:
    """
    Load the viewer's view of a playlist and check that ``item_id`` is one of
    its items (of ``kind``, when given) and unlocked for the viewer.

    Raises:
        NotFoundError: if the playlist or the item does not resolve.
        ItemLockedError: if the item is locked for the viewer.
    """
    view = await load_playlist_view(gateway, playlist_id, viewer)
    entry = view.find(item_id)
    if entry is None or (kind is not None and view.kind != kind):
        raise NotFoundError(f"Item {item_id} is not part of playlist {playlist_id}")
    if not entry.is_available:
        raise ItemLockedError(f"Item {item_id} is locked")
    return view


class PlaylistMonitor:
    """
    A currently displayed playlist view that recomputes itself whenever the
    viewer completes one of its items.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        bus: CompletionBus,
        playlist_id: str,
        viewer: Viewer,
    ):
        self._gateway = gateway
        self._bus = bus
        self.playlist_id = playlist_id
        self.viewer = viewer
        self.view: PlaylistView | None = None
        self._subscribed = False

    async def open(self) -> PlaylistView:
        view = await self.refresh()
        if not self._subscribed:
            self._bus.subscribe(self._on_completion)
            self._subscribed = True
        return view

    async def refresh(self) -> PlaylistView:
        self.view = await load_playlist_view(self._gateway, self.playlist_id, self.viewer)
        return self.view

    async def _on_completion(self, sender: object, event: CompletionEvent) -> None:
        if event.playlist_id != self.playlist_id:
            return
        if event.student_id != self.viewer.user_id:
            return
        logger.debug(
            "Refreshing playlist %s after completion of %s", self.playlist_id, event.item_id
        )
        await self.refresh()

    def close(self) -> None:
        if self._subscribed:
            self._bus.unsubscribe(self._on_completion)
            self._subscribed = False
