"""Site-wide index page listing every published thread."""

from datetime import UTC, datetime
from pathlib import Path

from threadpress.build.templates import (
    Templates,
    build_description_tag,
    build_meta_extra,
    ensure_static_assets,
    render_template,
)
from threadpress.config import SiteConfig
from threadpress.models import PageMeta
from threadpress.render.text import escape_html, format_datetime, to_iso_string

INDEX_FILE_NAME = "index.html"


def page_link(page_rel_path: str) -> str:
    """Directory-style link for a page path ("threads/1/index.html" -> "threads/1/")."""
    link = page_rel_path.replace("\\", "/")
    if link.endswith("/index.html"):
        link = link[: -len("index.html")]
    return link


def _render_item(item: PageMeta) -> str:
    return (
        "    <li>\n"
        f'      <a href="{escape_html(page_link(item.page_rel_path))}">{escape_html(item.title)}</a>\n'
        f'      <time datetime="{to_iso_string(item.created_at)}">'
        f"{escape_html(format_datetime(item.created_at))}</time>\n"
        f"      <p>{escape_html(item.excerpt)}</p>\n"
        "    </li>"
    )


def render_index_html(
    items: list[PageMeta],
    templates: Templates,
    site: SiteConfig,
    now: datetime | None = None,
) -> str:
    """Render the index page, newest thread first."""
    ordered = sorted(items, key=lambda item: item.created_at, reverse=True)
    return render_template(
        templates.index,
        {
            "title": escape_html(site.title),
            "site_title": escape_html(site.title),
            "description_tag": build_description_tag(site.description),
            "meta_extra": build_meta_extra(site.title, site.description, None, site.base_url),
            "items": "\n".join(_render_item(item) for item in ordered),
            "thread_count": str(len(ordered)),
            "updated_at": escape_html(format_datetime(now or datetime.now(UTC))),
            "style_href": "assets/style.css",
        },
    )


def build_index_page(
    output_dir: Path,
    items: list[PageMeta],
    templates: Templates,
    site: SiteConfig,
    now: datetime | None = None,
) -> Path:
    """Write OUTPUT/index.html from the accumulated page metadata."""
    ensure_static_assets(output_dir, templates)
    path = output_dir / INDEX_FILE_NAME
    path.write_text(render_index_html(items, templates, site, now), encoding="utf-8")
    return path
