"""Discord bot entry point."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import discord
from discord import app_commands
from discord.ext import commands
from dotenv import load_dotenv

from aiqueue import AITaskQueue, OpenAIGenerator, QueueSettings
from utils import BOT_PREFIX, humanize_delta, safe_reply, tag_error_text

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

# write logs both to console and to a persistent file for later review
file_handler = logging.FileHandler("bot.log", encoding="utf-8")
file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
logging.getLogger().addHandler(file_handler)

log = logging.getLogger(__name__)

BASE_DIR = Path(__file__).parent

COMMANDS_PATH = BASE_DIR / "commands"


class Bot(commands.Bot):
    """Bot implementation that owns the shared AI task queue."""

    def __init__(self, prefix: str, *, ai_queue: AITaskQueue) -> None:
        intents = discord.Intents.default()
        intents.message_content = True
        super().__init__(
            command_prefix=commands.when_mentioned_or(prefix),
            intents=intents,
        )
        self.ai_queue = ai_queue

    async def on_ready(self) -> None:
        """Log when the bot has successfully logged in."""
        if self.user:
            log.info("Logged in as %s (ID %s)", self.user, self.user.id)
        else:
            log.info("Logged in")

    async def setup_hook(self) -> None:  # type: ignore[override]
        self.ai_queue.start()
        self.tree.on_error = self.on_app_command_error
        successes, failures = await self.load_all_extensions()
        log.info("Extensions loaded: %d success, %d failed", len(successes), len(failures))
        if failures:
            log.info("Failed extensions: %s", ", ".join(failures))
        synced = await self.tree.sync()
        names = ", ".join(cmd.name for cmd in synced)
        log.info("Synced %d application command(s): %s", len(synced), names)

    async def close(self) -> None:
        self.ai_queue.shutdown()
        await super().close()

    async def load_all_extensions(self) -> tuple[list[str], list[str]]:
        """Load every extension under the commands directory."""

        successes: list[str] = []
        failures: list[str] = []
        extensions: list[str] = []

        if COMMANDS_PATH.exists():
            for file in sorted(COMMANDS_PATH.glob("*.py")):
                if file.name.startswith("_") or file.name == "__init__.py":
                    continue
                extensions.append(f"{COMMANDS_PATH.name}.{file.stem}")

        for ext in extensions:
            try:
                await self.load_extension(ext)
                log.info("Loaded extension %s", ext)
                successes.append(ext)
            except Exception:
                log.exception("Failed to load extension %s", ext)
                failures.append(ext)

        log.info("Discovered %d extensions", len(extensions))
        return successes, failures

    async def on_command_error(  # type: ignore[override]
        self, ctx: commands.Context, error: commands.CommandError
    ) -> None:
        """Send friendly notices for missing commands, cooldowns and bad input."""

        if isinstance(error, commands.CommandNotFound):
            prefix = getattr(ctx, "prefix", None) or BOT_PREFIX
            await safe_reply(
                ctx,
                f"Command not found.\nUse {prefix}help to see the available commands.",
                mention_author=False,
            )
            return

        if isinstance(error, commands.CommandOnCooldown):
            await safe_reply(
                ctx,
                tag_error_text(
                    f"Slow down! Try again in {humanize_delta(max(1, error.retry_after))}."
                ),
                ephemeral=True,
                mention_author=False,
            )
            return

        if isinstance(error, (commands.MissingRequiredArgument, commands.BadArgument)):
            usage = f"{ctx.prefix}{ctx.command.qualified_name} {ctx.command.signature}" if ctx.command else ""
            await safe_reply(
                ctx,
                tag_error_text(f"{error}\nUsage: `{usage.strip()}`"),
                ephemeral=True,
                mention_author=False,
            )
            return

        await super().on_command_error(ctx, error)

    async def on_app_command_error(
        self, interaction: discord.Interaction, error: app_commands.AppCommandError
    ) -> None:
        """Handle application command errors gracefully."""

        if isinstance(error, app_commands.TransformerError):
            message = (
                "I couldn't understand one of the options you entered. "
                "Please pick from the autocomplete list and try again."
            )
        else:
            log.exception("Application command failed", exc_info=error)
            message = (
                "Something went wrong while running that command. "
                "Please try again in a moment."
            )

        if interaction.response.is_done():
            await interaction.followup.send(message, ephemeral=True)
        else:
            await interaction.response.send_message(message, ephemeral=True)


def build_queue() -> AITaskQueue:
    settings = QueueSettings.from_env()
    log.info(
        "AI queue: cooldown %.1fs, backoff unit %.1fs, max retries %d",
        settings.cooldown,
        settings.backoff_unit,
        settings.max_retries,
    )
    return AITaskQueue(OpenAIGenerator.from_env(), settings=settings)


def main() -> None:
    """Bot startup sequence."""

    load_dotenv()
    token = os.getenv("DISCORD_BOT_TOKEN")
    prefix = os.getenv("BOT_PREFIX", "c!")
    if not token or token.startswith("YOUR_"):
        raise SystemExit("ERROR: valid DISCORD_BOT_TOKEN not set")

    bot = Bot(prefix, ai_queue=build_queue())
    bot.run(token)


if __name__ == "__main__":
    main()
