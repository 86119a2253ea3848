import logging
from datetime import datetime, timezone
from typing import Literal, Mapping

import discord
from discord.ext import commands

from aiqueue import AITaskQueue, QueueStatus, TaskConfig
from aiqueue.registry import TASK_CONFIGS
from utils import BOT_PREFIX, humanize_delta, safe_reply, tag_error_text

log = logging.getLogger(__name__)


def _task_label(task, configs: Mapping[str, TaskConfig]) -> str:
    config = configs.get(task.type)
    name = f"{config.icon} {config.title}" if config else task.type
    who = f" for {task.author_label}" if task.author_label else ""
    return f"{name}{who} (`{task.task_id}`)"


def build_status_embed(
    status: QueueStatus,
    *,
    cooldown: float,
    configs: Mapping[str, TaskConfig] = TASK_CONFIGS,
) -> discord.Embed:
    idle = status.queue_length == 0 and not status.processing and status.retry_pending == 0
    embed = discord.Embed(
        title="\U0001F916 AI queue",
        description="The AI queue is idle." if idle else "Requests are handled one at a time.",
        color=0x74C0FC,
        timestamp=datetime.now(timezone.utc),
    )
    embed.add_field(name="Waiting", value=str(status.queue_length), inline=True)
    embed.add_field(name="Waiting to retry", value=str(status.retry_pending), inline=True)
    embed.add_field(
        name="Processing",
        value=_task_label(status.in_flight, configs) if status.in_flight is not None else "Nothing",
        inline=False,
    )
    if status.next_task is not None:
        embed.add_field(name="Next up", value=_task_label(status.next_task, configs), inline=False)
    if status.queue_length:
        # every task is followed by the cooldown, so this is a lower bound
        estimate = humanize_delta(status.queue_length * cooldown)
        embed.set_footer(text=f"Cooldown {humanize_delta(cooldown)} between requests • ~{estimate} to drain")
    else:
        embed.set_footer(text=f"Cooldown {humanize_delta(cooldown)} between requests")
    return embed


class QueueStatusCog(commands.Cog, name="AIQueue"):
    """Inspect and manage the shared AI queue."""

    def __init__(self, bot: commands.Bot, queue: AITaskQueue | None = None) -> None:
        self.bot = bot
        self.queue: AITaskQueue = queue if queue is not None else bot.ai_queue  # type: ignore[attr-defined]

    @commands.hybrid_command(  # type: ignore[arg-type]
        name="aiqueue",
        description="Show the AI queue, or (owner) clear it or remove a task.",
        usage="[status|clear|remove] [task_id]",
        help=(
            "Show what the AI queue is doing. The bot owner can also clear every waiting "
            "request or remove a single one by its task id.\n\n"
            "**Usage**: `/aiqueue [status|clear|remove] [task_id]`\n"
            "**Examples**: `/aiqueue`, `/aiqueue remove task_3_1718000000000`\n"
            f"`{BOT_PREFIX}aiqueue clear`"
        ),
        extras={
            "category": "AI",
            "destination": "See how many AI requests are waiting and which one is running.",
            "plus": "Owner-only clear and remove actions withdraw waiting requests without touching the one already running.",
            "pro": "Withdrawn requests are told they were cancelled rather than failed, so their messages show a withdrawal notice instead of an error.",
        },
    )
    async def aiqueue(
        self,
        ctx: commands.Context,
        action: Literal["status", "clear", "remove"] = "status",
        task_id: str | None = None,
    ) -> None:
        if action == "status":
            embed = build_status_embed(
                self.queue.get_queue_status(),
                cooldown=self.queue.settings.cooldown,
                configs=self.queue.configs,
            )
            await safe_reply(ctx, embed=embed, mention_author=False)
            return

        if not await self.bot.is_owner(ctx.author):
            await safe_reply(
                ctx,
                tag_error_text("Only the bot owner can change the AI queue."),
                ephemeral=True,
                mention_author=False,
            )
            return

        if action == "clear":
            cleared = self.queue.clear_queue()
            log.info("AI queue cleared by %s (%d task(s))", ctx.author, cleared)
            await safe_reply(
                ctx,
                f"\U0001F9F9 Cleared {cleared} waiting AI request(s).",
                ephemeral=True,
                mention_author=False,
            )
            return

        if not task_id:
            await safe_reply(
                ctx,
                tag_error_text("Give the task id to remove, e.g. `/aiqueue remove task_3_1718000000000`."),
                ephemeral=True,
                mention_author=False,
            )
            return

        if self.queue.remove_task(task_id.strip()):
            log.info("AI task %s removed by %s", task_id, ctx.author)
            await safe_reply(ctx, f"Removed `{task_id}` from the AI queue.", ephemeral=True, mention_author=False)
        else:
            await safe_reply(
                ctx,
                tag_error_text(f"`{task_id}` is not waiting in the AI queue (it may already be running or done)."),
                ephemeral=True,
                mention_author=False,
            )


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(QueueStatusCog(bot))
