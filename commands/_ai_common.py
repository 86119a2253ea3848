from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable

import discord
from discord.ext import commands

from aiqueue import AITaskQueue, TaskCancelledError
from utils import error_embed, safe_reply

log = logging.getLogger(__name__)

PLACEHOLDER_COLOR = 0xFAB387
WORD_RE = re.compile(r"^[A-Za-z-]+$")

AI_FAILURE_TEXT = (
    "An error occurred while processing your request in the AI queue. "
    "This may be due to rate limiting or AI service issues. Please try again later."
)


def validate_word(word: str) -> str | None:
    """Return an error message for an unusable word, or None when it is fine."""
    if not word:
        return "Please provide a word."
    if len(word) < 2 or len(word) > 30:
        return "Please provide a word between 2 and 30 characters long."
    if not WORD_RE.match(word):
        return "Please provide a valid word (letters and hyphens only)."
    return None


def build_placeholder_embed(title: str, description: str) -> discord.Embed:
    return discord.Embed(
        title=title,
        description=description,
        color=PLACEHOLDER_COLOR,
        timestamp=datetime.now(timezone.utc),
    )


def build_cancelled_embed(reason: str) -> discord.Embed:
    return discord.Embed(
        title="\U0001F9F9 Request withdrawn",
        description=f"{reason}. Nothing was generated for this request.",
        color=0xED4245,
    )


def requester_footer(embed: discord.Embed, author: discord.abc.User, note: str | None = None) -> None:
    text = f"Requested by {author.display_name}"
    if note:
        text = f"{text} • {note}"
    embed.set_footer(text=text, icon_url=author.display_avatar.url)


class QueuedAICog(commands.Cog):
    """Base for commands whose work runs through the shared AI task queue."""

    def __init__(self, bot: commands.Bot, queue: AITaskQueue | None = None) -> None:
        self.bot = bot
        self.queue: AITaskQueue = queue if queue is not None else bot.ai_queue  # type: ignore[attr-defined]

    async def _send_placeholder(
        self, ctx: commands.Context, embed: discord.Embed
    ) -> discord.Message | None:
        try:
            if ctx.interaction:
                if ctx.interaction.response.is_done():
                    return await ctx.interaction.followup.send(embed=embed, wait=True)
                await ctx.interaction.response.send_message(embed=embed)
                return await ctx.interaction.original_response()
            return await ctx.reply(embed=embed, mention_author=False)
        except Exception:
            log.warning("Failed to send placeholder message", exc_info=True)
            return None

    async def _replace(
        self, ctx: commands.Context, message: discord.Message | None, embed: discord.Embed
    ) -> None:
        if message is not None:
            try:
                await message.edit(embed=embed)
                return
            except Exception:
                log.warning("Failed to edit message %s, sending a new one", message.id, exc_info=True)
        try:
            await safe_reply(ctx, embed=embed, mention_author=False)
        except Exception:
            log.exception("Failed to deliver AI command response")

    async def _run_queued(
        self,
        ctx: commands.Context,
        task_type: str,
        payload: dict[str, Any],
        *,
        placeholder: discord.Embed,
        build_result: Callable[[Any], discord.Embed],
        priority: int = 0,
    ) -> None:
        message = await self._send_placeholder(ctx, placeholder)
        log.info(
            "Submitting %s for %s, queue status: %s",
            task_type,
            ctx.author,
            self.queue.get_queue_status().queue_length,
        )
        try:
            result = await self.queue.add_task(
                task_type,
                payload,
                priority=priority,
                progress_sink=message,
                author_label=ctx.author.display_name,
                author_icon=ctx.author.display_avatar.url,
            )
        except TaskCancelledError as exc:
            log.info("%s request from %s was withdrawn: %s", task_type, ctx.author, exc)
            await self._replace(ctx, message, build_cancelled_embed(str(exc)))
            return
        except Exception:
            log.exception("AI queue task %s failed", task_type)
            await self._replace(ctx, message, error_embed(desc=AI_FAILURE_TEXT))
            return

        try:
            embed = build_result(result)
        except Exception:
            log.exception("Failed to build %s result embed", task_type)
            embed = error_embed(desc=AI_FAILURE_TEXT)
        await self._replace(ctx, message, embed)
