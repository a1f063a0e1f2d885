import argparse
import asyncio

from learnhub.config import LOG_LEVEL
from learnhub.core.logging_setup import setup_console_logging
from learnhub.database import init_db
from learnhub.gateway import SqlGateway
from learnhub.models.entities import Role, Viewer
from learnhub.services.access_service import load_playlist_view

setup_console_logging(LOG_LEVEL)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="LearnHub maintenance commands")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="Create database tables")

    availability = commands.add_parser(
        "availability", help="Show which playlist items a user can open"
    )
    availability.add_argument("playlist_id", help="Playlist id")
    availability.add_argument("user_id", help="Viewer user id")
    availability.add_argument(
        "--role",
        choices=[role.value for role in Role],
        default=Role.STUDENT.value,
        help="Viewer role",
    )
    return parser.parse_args()


async def show_availability(playlist_id: str, viewer: Viewer) -> None:
    view = await load_playlist_view(SqlGateway(), playlist_id, viewer)
    print(f"{view.playlist.title} ({view.kind.value}, {view.playlist.access_mode.value})")
    for item, status in zip(view.items, view.availability):
        lock = "open" if status.is_available else "locked"
        done = "done" if status.is_completed else ""
        print(f"  {item.order_index:>3}  {lock:<6} {done:<4}  {item.title}")


def main() -> None:
    args = parse_args()
    if args.command == "init-db":
        init_db()
        print("Database tables created")
    elif args.command == "availability":
        viewer = Viewer(user_id=args.user_id, role=Role(args.role))
        asyncio.run(show_availability(args.playlist_id, viewer))


if __name__ == "__main__":
    main()
