import logging
from datetime import datetime, timezone

import discord
from discord.ext import commands

from aiqueue.schemas import Morpheme, WordMorphologyResponse
from commands._ai_common import (
    QueuedAICog,
    build_placeholder_embed,
    requester_footer,
    validate_word,
)
from utils import BOT_PREFIX, clamp, safe_reply, tag_error_text

log = logging.getLogger(__name__)


def _morpheme_value(part: Morpheme) -> str:
    value = f"**Morpheme:** `{part.morpheme}`\n**Meaning:** {part.meaning}"
    if part.synonyms:
        value += f"\n**Synonyms:** {', '.join(part.synonyms)}"
    if part.origin:
        value += f"\n**Origin:** {part.origin}"
    return clamp(value, 1024)


def _add_parts(embed: discord.Embed, label: str, parts: list[Morpheme] | None) -> None:
    if not parts:
        return
    for index, part in enumerate(parts, start=1):
        name = f"\U0001F524 {label}"
        if len(parts) > 1:
            name += f" ({index})"
        embed.add_field(name=name, value=_morpheme_value(part), inline=True)


def build_morphology_embed(
    analysis: WordMorphologyResponse, author: discord.abc.User
) -> discord.Embed:
    embed = discord.Embed(
        title=clamp(f'\U0001F52C Morphological Analysis: "{analysis.word}"', 256),
        description=clamp(analysis.derivedMeaning, 4096),
        color=0x89B4FA,
        timestamp=datetime.now(timezone.utc),
    )
    breakdown = analysis.breakdown
    _add_parts(embed, "Prefix", breakdown.prefixes)
    embed.add_field(name="\U0001F331 Root", value=_morpheme_value(breakdown.root), inline=True)
    _add_parts(embed, "Suffix", breakdown.suffixes)
    requester_footer(embed, author, "Processed via AI Queue")
    return embed


class Morphology(QueuedAICog):
    """Break words into prefixes, roots and suffixes."""

    @commands.hybrid_command(  # type: ignore[arg-type]
        name="morphology",
        aliases=["morph", "breakdown", "etymology"],
        description="Break a word down into its morphological components.",
        cooldown=commands.CooldownMapping.from_cooldown(1, 15, commands.BucketType.user),
        help=(
            "Split a word into prefixes, root and suffixes with meanings, "
            "cross-language synonyms and origins.\n\n"
            "**Usage**: `/morphology <word>`\n"
            "**Examples**: `/morphology unbelievable`\n"
            f"`{BOT_PREFIX}morphology antidisestablishment`"
        ),
        extras={
            "category": "AI",
            "destination": "Show the prefixes, root and suffixes that make up a word.",
            "plus": "Each morpheme lists its meaning, synonyms from other languages and its origin.",
            "pro": "Words must be 2-30 letters or hyphens. The structured reply is validated and retried with backoff if the model returns malformed JSON.",
        },
    )
    async def morphology(self, ctx: commands.Context, word: str) -> None:
        word = (word or "").strip()
        problem = validate_word(word)
        if problem:
            await safe_reply(ctx, tag_error_text(problem), ephemeral=True, mention_author=False)
            return

        placeholder = build_placeholder_embed(
            "\U0001F52C Analyzing Word Structure...",
            f'Breaking down "{word}" into its morphological components. This may take a moment...',
        )
        await self._run_queued(
            ctx,
            "word-morphology",
            {"word": word},
            placeholder=placeholder,
            build_result=lambda analysis: build_morphology_embed(analysis, ctx.author),
        )


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(Morphology(bot))
