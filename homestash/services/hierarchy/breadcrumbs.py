"""Breadcrumb resolution along the Room > Container > Spot path."""

from sqlalchemy.orm import Session

from homestash.storage.repositories import (
    ContainerRepository,
    RoomRepository,
    SpotRepository,
)

BREADCRUMB_SEPARATOR = " > "


class BreadcrumbResolver:
    """Joins display names of a spot's ancestors into a path string.

    Missing ancestors shorten the path instead of raising.
    """

    def __init__(self, session: Session):
        self.room_repo = RoomRepository(session)
        self.container_repo = ContainerRepository(session)
        self.spot_repo = SpotRepository(session)

    def resolve(self, spot_id: int) -> str:
        """
        Resolve the breadcrumb of a spot.

        Returns:
            "Room > Container > Spot", "Container > Spot" when the room is
            missing, the spot label alone when the container is missing, or
            an empty string when the spot itself is missing.
        """
        spot = self.spot_repo.get_by_id(spot_id)
        if spot is None:
            return ""
        container = self.container_repo.get_by_id(spot.container_id)
        if container is None:
            return spot.label
        room = self.room_repo.get_by_id(container.room_id)
        if room is None:
            return BREADCRUMB_SEPARATOR.join([container.name, spot.label])
        return BREADCRUMB_SEPARATOR.join([room.name, container.name, spot.label])

    def resolve_container(self, container_id: int) -> str:
        """Resolve "Room > Container", degrading to the container name or ""."""
        container = self.container_repo.get_by_id(container_id)
        if container is None:
            return ""
        room = self.room_repo.get_by_id(container.room_id)
        if room is None:
            return container.name
        return BREADCRUMB_SEPARATOR.join([room.name, container.name])
