"""Page templates and head metadata."""

import re
from dataclasses import dataclass
from pathlib import Path

from threadpress.render.text import escape_html

DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

_SLOT_PATTERN = re.compile(r"\{\{(\w+)\}\}")


@dataclass
class Templates:
    """Loaded template sources."""

    index: str
    thread: str
    style: str
    robots: str | None = None


def _read_template(name: str, templates_dir: Path | None) -> str | None:
    for directory in (templates_dir, DEFAULT_TEMPLATES_DIR):
        if directory is None:
            continue
        path = directory / name
        if path.is_file():
            return path.read_text(encoding="utf-8")
    return None


def load_templates(templates_dir: Path | None = None) -> Templates:
    """Load templates, preferring templates_dir over the packaged defaults.

    Raises:
        FileNotFoundError: If a required template exists in neither place.
    """
    required = {}
    for name in ("index.html", "thread.html", "style.css"):
        source = _read_template(name, templates_dir)
        if source is None:
            raise FileNotFoundError(f"Template not found: {name}")
        required[name] = source
    return Templates(
        index=required["index.html"],
        thread=required["thread.html"],
        style=required["style.css"],
        robots=_read_template("robots.txt", templates_dir),
    )


def render_template(template: str, slots: dict[str, str]) -> str:
    """Fill {{name}} slots.

    Slots without a value are left in place as literal text; templates may
    carry optional slots that only some pages fill.
    """
    return _SLOT_PATTERN.sub(lambda m: slots.get(m.group(1), m.group(0)), template)


def build_description_tag(description: str | None) -> str:
    if not description:
        return ""
    return f'<meta name="description" content="{escape_html(description)}">'


def build_meta_extra(
    title: str,
    description: str,
    og_image: str | None = None,
    canonical_url: str | None = None,
    og_type: str = "website",
) -> str:
    """Build Open Graph and canonical tags for the page head."""
    tags = [
        f'<meta property="og:type" content="{escape_html(og_type)}">',
        f'<meta property="og:title" content="{escape_html(title)}">',
        f'<meta property="og:description" content="{escape_html(description)}">',
    ]
    if og_image:
        tags.append(f'<meta property="og:image" content="{escape_html(og_image)}">')
    if canonical_url:
        tags.append(f'<meta property="og:url" content="{escape_html(canonical_url)}">')
        tags.append(f'<link rel="canonical" href="{escape_html(canonical_url)}">')
    return "  " + "\n  ".join(tags)


def ensure_static_assets(output_dir: Path, templates: Templates) -> None:
    """Write the stylesheet, and robots.txt unless the site already has one."""
    assets_dir = output_dir / "assets"
    assets_dir.mkdir(parents=True, exist_ok=True)
    (assets_dir / "style.css").write_text(templates.style, encoding="utf-8")
    robots_path = output_dir / "robots.txt"
    if templates.robots is not None and not robots_path.exists():
        robots_path.write_text(templates.robots, encoding="utf-8")
