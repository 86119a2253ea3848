from __future__ import annotations

import math
from datetime import datetime, timezone

import discord

from aiqueue.config import AI_GEN_COOLDOWN_S
from aiqueue.models import AITask, TaskConfig

QUEUED_COLOR = 0xFAB387
PROCESSING_COLOR = 0x74C0FC
RETRYING_COLOR = 0xFFEC8B
FAILED_COLOR = 0xF38BA8

STATUS_SUFFIXES = {
    "queued": "Queued...",
    "processing": "Processing...",
    "retrying": "Retrying...",
}

FAILED_DESCRIPTION = (
    "An error occurred while processing your request in the AI queue. "
    "This may be due to rate limiting or AI service issues. Please try again later."
)


class ProgressRenderer:
    """Build the transitional status embeds shown on a task's progress message.

    Only queued, processing, retrying and failed are rendered. A completed
    task returns ``None``: the command that submitted it replaces the message
    with the real result.
    """

    def __init__(self, *, cooldown: float = AI_GEN_COOLDOWN_S) -> None:
        self.cooldown = cooldown

    def render(
        self,
        task: AITask,
        status: str,
        *,
        config: TaskConfig | None = None,
        position: int | None = None,
        length: int | None = None,
    ) -> discord.Embed | None:
        if status == "queued":
            embed = self._embed(task, config, status, QUEUED_COLOR)
            embed.description = self.status_description(
                task, config, status, position=position, length=length
            )
            queue_text = f"Queue Position: {position}/{length}" if position and length else "Queued"
            self._set_footer(embed, task, queue_text)
        elif status == "processing":
            embed = self._embed(task, config, status, PROCESSING_COLOR)
            embed.description = self.status_description(task, config, status)
            self._set_footer(embed, task, "Now Processing...")
        elif status == "retrying":
            embed = self._embed(task, config, status, RETRYING_COLOR)
            embed.description = self.status_description(task, config, status)
            self._set_footer(embed, task, f"Retry {task.retry_count}/{task.max_retries}")
        elif status == "failed":
            embed = discord.Embed(
                title="\u26a0\ufe0f Error",
                description=FAILED_DESCRIPTION,
                color=FAILED_COLOR,
                timestamp=datetime.now(timezone.utc),
            )
            self._set_footer(embed, task, f"Failed after {task.max_retries} attempts")
        else:
            return None
        return embed

    def _embed(
        self, task: AITask, config: TaskConfig | None, status: str, color: int
    ) -> discord.Embed:
        return discord.Embed(
            title=self.status_title(config, status),
            color=color,
            timestamp=datetime.now(timezone.utc),
        )

    @staticmethod
    def _set_footer(embed: discord.Embed, task: AITask, text: str) -> None:
        label = task.author_label or "Unknown"
        embed.set_footer(text=f"Requested by {label} • {text}", icon_url=task.author_icon)

    @staticmethod
    def status_title(config: TaskConfig | None, status: str) -> str:
        title = f"{config.icon} {config.title}" if config else "❓ Unknown Task"
        suffix = STATUS_SUFFIXES.get(status, "")
        return f"{title} {suffix}".strip()

    def status_description(
        self,
        task: AITask,
        config: TaskConfig | None,
        status: str,
        *,
        position: int | None = None,
        length: int | None = None,
    ) -> str:
        base = config.get_description(task.payload) if config else "Your request"
        low = int(self.cooldown)
        high = int(self.cooldown * 2)

        if status == "queued":
            if position and length:
                if position == 1:
                    return (
                        f"{base} is next in line! Due to rate limiting, this may take "
                        f"{low}-{high} seconds to process..."
                    )
                minutes = max(1, math.ceil(position * self.cooldown * 2 / 60))
                return (
                    f"{base} has been added to the AI processing queue. You are currently "
                    f"position {position} of {length}. Due to rate limiting, this may take "
                    f"{minutes} minute(s) to process..."
                )
            return (
                f"{base} has been added to the AI processing queue. Due to rate limiting, "
                "this may take some time to process..."
            )
        if status == "processing":
            return (
                f"{base} is now being processed by the AI. This should complete within "
                f"{low}-{high} seconds..."
            )
        if status == "retrying":
            return (
                f"{base} encountered an error and is being retried. "
                "Please wait while we attempt to process it again..."
            )
        return f"{base} is being processed..."
