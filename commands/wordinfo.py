import logging
from datetime import datetime, timezone

import discord
from discord.ext import commands

from aiqueue.schemas import WordDefinition, WordInfoResponse
from commands._ai_common import (
    QueuedAICog,
    build_placeholder_embed,
    requester_footer,
    validate_word,
)
from utils import BOT_PREFIX, clamp, safe_reply, tag_error_text

log = logging.getLogger(__name__)

MAX_DEFINITION_FIELDS = 10


def _definition_value(entry: WordDefinition) -> str:
    lines = [entry.definition]
    if entry.pronunciation:
        lines.append(f"**Pronunciation:** {entry.pronunciation}")
    if entry.synonyms:
        lines.append(f"**Synonyms:** {', '.join(entry.synonyms)}")
    if entry.antonyms:
        lines.append(f"**Antonyms:** {', '.join(entry.antonyms)}")
    if entry.examples:
        lines.append("**Examples:**\n" + "\n".join(f"> {example}" for example in entry.examples))
    if entry.etymology:
        lines.append(f"**Etymology:** {entry.etymology}")
    return clamp("\n".join(lines), 1024)


def build_word_info_embed(info: WordInfoResponse, author: discord.abc.User) -> discord.Embed:
    embed = discord.Embed(
        title=f"\U0001F4DA {info.word}",
        color=0x89B4FA,
        timestamp=datetime.now(timezone.utc),
    )
    if not info.definitions:
        embed.description = "No definitions were returned for this word."
    for index, entry in enumerate(info.definitions[:MAX_DEFINITION_FIELDS], start=1):
        embed.add_field(
            name=clamp(f"{index}. {entry.partOfSpeech}", 256),
            value=_definition_value(entry),
            inline=False,
        )
    hidden = len(info.definitions) - MAX_DEFINITION_FIELDS
    note = "Processed via AI Queue"
    if hidden > 0:
        note = f"{hidden} more definition(s) omitted • {note}"
    requester_footer(embed, author, note)
    return embed


class WordInfo(QueuedAICog):
    """AI-backed word definitions."""

    @commands.hybrid_command(  # type: ignore[arg-type]
        name="wordinfo",
        aliases=["word", "wi"],
        description="Get definitions, synonyms, examples and etymology for a word.",
        cooldown=commands.CooldownMapping.from_cooldown(1, 15, commands.BucketType.user),
        help=(
            "Look up a word with the AI and get a structured breakdown.\n\n"
            "**Usage**: `/wordinfo <word>`\n"
            "**Examples**: `/wordinfo serendipity`\n"
            f"`{BOT_PREFIX}wordinfo petrichor`"
        ),
        extras={
            "category": "AI",
            "destination": "Explain a word with parts of speech, pronunciation, synonyms, antonyms, examples and etymology.",
            "plus": "The answer is validated against a fixed structure before it is shown, so malformed replies are retried automatically.",
            "pro": "Queued behind other AI requests with live position updates; structured JSON output is requested from the model.",
        },
    )
    async def wordinfo(self, ctx: commands.Context, word: str) -> None:
        word = (word or "").strip()
        problem = validate_word(word)
        if problem:
            await safe_reply(ctx, tag_error_text(problem), ephemeral=True, mention_author=False)
            return

        placeholder = build_placeholder_embed(
            "\U0001F4DA Word Information Request Initializing...",
            f'Preparing your request for "{word}" for the AI processing queue...',
        )
        await self._run_queued(
            ctx,
            "word-info",
            {"word": word},
            placeholder=placeholder,
            build_result=lambda info: build_word_info_embed(info, ctx.author),
        )


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(WordInfo(bot))
