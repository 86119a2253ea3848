import logging
from datetime import datetime, timezone

import discord
from discord.ext import commands

from commands._ai_common import QueuedAICog, build_placeholder_embed, requester_footer
from utils import BOT_PREFIX, clamp, safe_reply, sanitize, tag_error_text

log = logging.getLogger(__name__)

MAX_TOPIC_CHARS = 300


def build_poem_embed(topic: str, poem: str, author: discord.abc.User) -> discord.Embed:
    embed = discord.Embed(
        title="\U0001F319 Melancholic Poem",
        description=clamp(f"{sanitize(topic)}\n***\n{sanitize(poem.strip())}", 4096),
        color=0x6C757D,
        timestamp=datetime.now(timezone.utc),
    )
    requester_footer(embed, author, "Processed via AI Queue")
    return embed


class MelancholicWhimsy(QueuedAICog):
    """Somber free-verse poems."""

    @commands.hybrid_command(  # type: ignore[arg-type]
        name="melancholy",
        aliases=["melancholic-whimsy", "sad-poetry"],
        description="Write a short melancholic poem about a topic.",
        cooldown=commands.CooldownMapping.from_cooldown(1, 60, commands.BucketType.user),
        help=(
            "Generate a somber, atmospheric free-verse poem about anything.\n\n"
            "**Usage**: `/melancholy <topic>`\n"
            "**Examples**: `/melancholy an abandoned lighthouse`\n"
            f"`{BOT_PREFIX}melancholy the last train home`"
        ),
        extras={
            "category": "AI",
            "destination": "Turn a topic into a short, tragic free-verse poem.",
            "plus": "Understated tone built on imagery and metaphor; the tragedy is never resolved.",
            "pro": "One poem per user per minute. Requests wait in the shared AI queue and the reply shows live progress.",
        },
    )
    async def melancholy(self, ctx: commands.Context, *, topic: str) -> None:
        topic = (topic or "").strip()
        if not topic:
            await safe_reply(
                ctx,
                tag_error_text("Please provide some text for the melancholic poem generation."),
                ephemeral=True,
                mention_author=False,
            )
            return
        topic = clamp(topic, MAX_TOPIC_CHARS)

        placeholder = build_placeholder_embed(
            "\U0001F58B\ufe0f Melancholic Poem Request Initializing...",
            "Preparing your melancholic poem request for the AI processing queue...",
        )
        await self._run_queued(
            ctx,
            "melancholic-whimsy",
            {"topic": topic},
            placeholder=placeholder,
            build_result=lambda poem: build_poem_embed(topic, str(poem), ctx.author),
        )


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(MelancholicWhimsy(bot))
