"""Print the lore records stored in the project's SQLite database, newest first.

It reuses the same `DATABASE_DIR` behavior as the application via
`utils.database_init.AsyncDatabaseInitializer`.

Run: set the `DATABASE_DIR` environment variable and run `python print_db.py`.
"""
import asyncio
from datetime import datetime
from typing import List

from dotenv import load_dotenv

from dal.lore_record_dal import LoreRecordDAL
from models.lore_record import LoreRecord
from utils.database_init import AsyncDatabaseInitializer


def format_record(record: LoreRecord, excerpt_length: int = 80) -> List[str]:
    """Return the printable lines for one record.

    Args:
        record: Record to format.
        excerpt_length: Maximum number of lore characters to show.
    """
    when = datetime.fromtimestamp(record.timestamp).strftime("%Y-%m-%d %H:%M") if record.timestamp is not None else "?"
    lore = " ".join(record.lore_text.split())
    if len(lore) > excerpt_length:
        lore = lore[: excerpt_length - 3].rstrip() + "..."
    image = f"{len(record.image_data)} bytes" if record.image_data else "no image"
    return [
        f"{record.display_name} [{when}] id={record.id} ({image})",
        f"  {lore}",
    ]


async def main() -> None:
    """Ensure the DB exists and print every stored record."""
    load_dotenv()
    dal = LoreRecordDAL(AsyncDatabaseInitializer())
    records = await dal.list_records()
    if not records:
        print("No lore records yet.")
        return
    for record in records:
        print("\n".join(format_record(record)))


if __name__ == "__main__":
    asyncio.run(main())
