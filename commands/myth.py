import logging
from datetime import datetime, timezone

import discord
from discord.ext import commands

from commands._ai_common import QueuedAICog, build_placeholder_embed, requester_footer
from utils import BOT_PREFIX, clamp, sanitize

log = logging.getLogger(__name__)


def build_myth_embed(myth: str, author: discord.abc.User) -> discord.Embed:
    embed = discord.Embed(
        title=clamp(f"\U0001F30C Myth of {author.display_name}", 256),
        description=clamp(sanitize(myth.strip()), 4096),
        color=0x6A0DAD,
        timestamp=datetime.now(timezone.utc),
    )
    requester_footer(embed, author, "Processed via AI Queue")
    return embed


class Myth(QueuedAICog):
    """Legends about server members."""

    async def _is_keeper(self, ctx: commands.Context) -> bool:
        if await self.bot.is_owner(ctx.author):
            return True
        perms = getattr(ctx.author, "guild_permissions", None)
        return bool(perms and perms.manage_guild)

    @commands.hybrid_command(  # type: ignore[arg-type]
        name="myth",
        aliases=["mythos", "mythic"],
        description="Generate a myth about yourself based on your name.",
        cooldown=commands.CooldownMapping.from_cooldown(1, 60, commands.BucketType.user),
        help=(
            "Have the AI chronicle a short legend inspired by your display name.\n\n"
            "**Usage**: `/myth`\n"
            "**Examples**: `/myth`\n"
            f"`{BOT_PREFIX}myth`"
        ),
        extras={
            "category": "AI",
            "destination": "Write a playful legend about you, inspired by your display name.",
            "plus": "Server managers get myths that hint at their authority.",
            "pro": "One myth per user per minute, processed through the shared AI queue with live status updates.",
        },
    )
    async def myth(self, ctx: commands.Context) -> None:
        payload = {
            "username": ctx.author.display_name,
            "is_mod": await self._is_keeper(ctx),
        }
        placeholder = build_placeholder_embed(
            "\U0001F30C Myth Generation Request Initializing...",
            "Preparing your myth generation request for the AI processing queue...",
        )
        await self._run_queued(
            ctx,
            "myth",
            payload,
            placeholder=placeholder,
            build_result=lambda myth: build_myth_embed(str(myth), ctx.author),
        )


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(Myth(bot))
