"""List command for threadpress: what is currently published."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from threadpress.models import PageMeta
from threadpress.render.text import format_datetime
from threadpress.storage.meta import MetadataStore

console = Console()


def get_output_size(output_dir: Path) -> str:
    """Get the total size of the output tree in human readable format."""
    if not output_dir.exists():
        return "0 B"
    size_bytes = sum(path.stat().st_size for path in output_dir.rglob("*") if path.is_file())
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    return f"{size_bytes / (1024 * 1024):.1f} MB"


def build_table(items: list[PageMeta]) -> Table:
    table = Table(title="Published threads")
    table.add_column("Thread")
    table.add_column("Title")
    table.add_column("Created")
    table.add_column("Page")
    for item in items:
        table.add_row(
            item.thread_id, item.title, format_datetime(item.created_at), item.page_rel_path
        )
    return table


def show_published(output_dir: Path) -> None:
    """Display published threads and a summary panel."""
    store = MetadataStore(output_dir)
    count = store.load()
    if count:
        console.print(build_table(store.items()))
    lines = [
        f"Threads: {count:,}",
        f"Output: {output_dir}",
        f"Size: {get_output_size(output_dir)}",
    ]
    console.print(Panel("\n".join(lines), title="threadpress"))
