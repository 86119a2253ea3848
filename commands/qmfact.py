import logging
from datetime import datetime, timezone

import discord
from discord.ext import commands

from commands._ai_common import QueuedAICog, build_placeholder_embed, requester_footer
from utils import BOT_PREFIX, clamp

log = logging.getLogger(__name__)


def build_fact_embed(fact: str, author: discord.abc.User) -> discord.Embed:
    embed = discord.Embed(
        title="\U0001F9E0 Quantum Fact",
        description=clamp(fact.strip(), 4096),
        color=0x89B4FA,
        timestamp=datetime.now(timezone.utc),
    )
    requester_footer(embed, author, "Processed via AI Queue")
    return embed


class QuantumFact(QueuedAICog):
    """Obscure quantum physics facts."""

    @commands.hybrid_command(  # type: ignore[arg-type]
        name="qmfact",
        aliases=["quantum"],
        description="Get a niche, lesser-known quantum physics fact.",
        cooldown=commands.CooldownMapping.from_cooldown(1, 15, commands.BucketType.user),
        help=(
            "Ask the AI for an obscure quantum physics fact.\n\n"
            "**Usage**: `/qmfact`\n"
            "**Examples**: `/qmfact`\n"
            f"`{BOT_PREFIX}qmfact`"
        ),
        extras={
            "category": "AI",
            "destination": "Share a strange, lesser-known quantum physics fact.",
            "plus": "Avoids textbook staples like superposition and leans toward debated or speculative phenomena.",
            "pro": "Runs through the shared AI queue, so the reply message shows its queue position and progress until the fact arrives.",
        },
    )
    async def qmfact(self, ctx: commands.Context) -> None:
        placeholder = build_placeholder_embed(
            "\U0001F9E0 Quantum Fact Request Initializing...",
            "Preparing your quantum fact request for the AI processing queue...",
        )
        await self._run_queued(
            ctx,
            "quantum-fact",
            {},
            placeholder=placeholder,
            build_result=lambda fact: build_fact_embed(str(fact), ctx.author),
        )


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(QuantumFact(bot))
