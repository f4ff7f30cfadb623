"""Per-run state for building one thread page."""

from dataclasses import dataclass, field
from datetime import timedelta

import httpx
from markdown_it import MarkdownIt

from threadpress.assets.store import AssetStore
from threadpress.config import Config
from threadpress.constants import PAGE_ASSET_PREFIX
from threadpress.gateway.base import ChatGateway
from threadpress.render.markdown import create_markdown
from threadpress.resolve.cache import BuildCaches


@dataclass
class BuildContext:
    """Everything one page build needs, created fresh for every run.

    The asset store and identity caches live exactly as long as the
    context, so two runs never share download or member state.
    """

    config: Config
    gateway: ChatGateway
    assets: AssetStore
    markdown: MarkdownIt
    caches: BuildCaches = field(default_factory=BuildCaches)
    prefix: str = PAGE_ASSET_PREFIX

    @classmethod
    def create(
        cls, config: Config, gateway: ChatGateway, client: httpx.AsyncClient
    ) -> "BuildContext":
        """Create a context writing assets under the configured output dir."""
        return cls(
            config=config,
            gateway=gateway,
            assets=AssetStore(client, config.site.output_dir / "assets"),
            markdown=create_markdown(),
        )

    @property
    def group_window(self) -> timedelta:
        return timedelta(minutes=self.config.build.group_window_minutes)

    @property
    def excluded_reaction_emojis(self) -> list[str]:
        """Control emojis that never show up as reaction badges."""
        publish = self.config.publish
        return [emoji for emoji in (publish.publish_emoji, publish.answer_emoji) if emoji]
