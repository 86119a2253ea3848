import os

import discord
from discord.ext import commands

BOT_PREFIX = os.getenv("BOT_PREFIX", "c!")
ERROR_TAG = "\u2063AIERR\u2063"
ERROR_COLOR = 0xF38BA8


def humanize_delta(seconds: float) -> str:
    seconds = int(seconds)
    units = [("d", 86400), ("h", 3600), ("m", 60), ("s", 1)]
    parts = []
    for suffix, size in units:
        value, seconds = divmod(seconds, size)
        if value:
            parts.append(f"{value}{suffix}")
    return " ".join(parts) if parts else "0s"


def clamp(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    if limit <= 3:
        return text[:limit]
    return text[: limit - 3] + "..."


def tag_error_embed(embed: discord.Embed) -> discord.Embed:
    footer_text = ""
    if embed.footer and embed.footer.text:
        footer_text = embed.footer.text
    if ERROR_TAG not in footer_text:
        embed.set_footer(
            text=f"{footer_text} {ERROR_TAG}".strip() if footer_text else ERROR_TAG,
            icon_url=embed.footer.icon_url if embed.footer else None,
        )
    return embed


def tag_error_text(text: str) -> str:
    if ERROR_TAG in text:
        return text
    return f"{text}\n{ERROR_TAG}"


def error_embed(title: str = "\u26a0\ufe0f Error", desc: str = "Something went wrong.") -> discord.Embed:
    return tag_error_embed(discord.Embed(title=title, description=desc, color=ERROR_COLOR))


async def safe_reply(ctx: commands.Context, *args, **kwargs):
    """Send an ephemeral reply when possible.

    If the context has an interaction, pass through the ``ephemeral`` flag to
    ``ctx.reply``. Otherwise, fall back to ``ctx.reply``/``ctx.send`` without the
    flag to avoid ``TypeError`` in prefix commands.
    """
    ephemeral = kwargs.pop("ephemeral", False)
    if ctx.interaction:
        return await ctx.reply(*args, ephemeral=ephemeral, **kwargs)
    func = getattr(ctx, "reply", None) or ctx.send
    return await func(*args, **kwargs)


def sanitize(text: str) -> str:
    return text.replace("@everyone", "@\u200beveryone").replace("@here", "@\u200bhere")
