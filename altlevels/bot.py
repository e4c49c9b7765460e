"""Entry point for the AltLevels progression Discord bot."""

from __future__ import annotations

import asyncio
import logging

import discord
from discord.ext import commands

from .config import BotConfig
from .game import GameState
from .settings import load_settings
from .storage import DataStore

log = logging.getLogger(__name__)


class AltLevelsBot(commands.Bot):
    def __init__(self, config: BotConfig, store: DataStore | None = None):
        intents = discord.Intents.default()
        super().__init__(command_prefix="!", intents=intents)
        self.config = config
        self.store = store or DataStore()
        self.state = GameState(load_settings(self.store.settings_path))
        self._synced = False

    async def setup_hook(self) -> None:
        await self.load_extension("altlevels.cogs.levels")
        await self.load_extension("altlevels.cogs.admin")

    async def on_ready(self) -> None:
        if not self._synced:
            await self.tree.sync()
            for guild in self.guilds:
                await self.tree.sync(guild=guild)
            self._synced = True
            log.info("Application commands synced")
        if self.user:
            log.info("Connected as %s (%s)", self.user, self.user.id)

    async def on_guild_join(self, guild: discord.Guild) -> None:
        await self.tree.sync(guild=guild)
        log.info("Synced application commands for guild %s (%s)", guild.name, guild.id)


async def main() -> None:
    config = BotConfig.from_env()
    logging.basicConfig(level=config.logging_level)
    bot = AltLevelsBot(config)
    async with bot:
        await bot.start(config.token)


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
