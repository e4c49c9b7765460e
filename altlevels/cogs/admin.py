from __future__ import annotations

import asyncio
import logging

import discord
from discord import app_commands
from discord.ext import commands

from ..models import ModelValidationError
from ..models.characters import Character
from ..models.tracks import QualificationTier, TrackCategory, find_track
from ..settings import load_settings
from ..utils import format_number, pluralize
from .base import TIER_CHOICES, AltLevelsCog, track_choices

log = logging.getLogger(__name__)


def require_admin() -> app_commands.Check:
    """Check ensuring the invoker is a guild administrator."""

    async def predicate(interaction: discord.Interaction) -> bool:
        guild = interaction.guild
        if guild is None:
            raise app_commands.CheckFailure("This command can only be used in a guild.")

        member: discord.Member | None
        user = interaction.user
        if isinstance(user, discord.Member):
            member = user
        else:
            member = guild.get_member(user.id)
            if member is None:
                try:
                    member = await guild.fetch_member(user.id)
                except discord.HTTPException:
                    member = None

        if member is not None and member.guild_permissions.administrator:
            return True

        raise app_commands.CheckFailure("Only server administrators may use this command.")

    return app_commands.check(predicate)


def apply_tier(character: Character, skill: str, tier: str) -> str:
    """Set ``skill`` to ``tier`` on ``character`` and describe the change."""

    track = character.set_tier(skill, tier)
    label = QualificationTier.from_value(tier).display_name
    return f"{character.name} is now {label} in {track.name}."


def apply_base_level(character: Character, track_name: str, level: int) -> str:
    track = find_track(track_name)
    if track is None:
        raise ValueError(f"Unknown track: {track_name}")
    if level < 0:
        raise ValueError("Base levels cannot be negative")
    character.base_levels[track.qualified_key] = level
    return f"{character.name}'s base {track.name} is now {format_number(level)}."


def format_roster(characters: list[Character]) -> str:
    if not characters:
        return "No characters are registered in this server."
    ordered = sorted(characters, key=lambda character: character.name.lower())
    lines = [f"{pluralize(len(ordered), 'registered character')}:"]
    lines.extend(
        f"- {character.name}: {format_number(character.available_experience)} unassigned"
        f" of {format_number(character.total_experience)} XP"
        for character in ordered
    )
    return "\n".join(lines)


class AdminCog(AltLevelsCog):
    async def _load_target(
        self, interaction: discord.Interaction, member: discord.Member
    ) -> Character | None:
        guild = interaction.guild
        assert guild is not None
        try:
            character = await self._fetch_character(guild.id, member.id)
        except ModelValidationError:
            await self.send(
                interaction, f"The stored record of {member.display_name} could not be read."
            )
            return None
        if character is None:
            await self.send(interaction, f"{member.display_name} has not registered.")
        return character

    @app_commands.command(name="grant_xp", description="Grant unassigned experience to a member")
    @require_admin()
    @app_commands.describe(member="Who receives the experience", amount="Experience to grant")
    @app_commands.guild_only()
    async def grant_xp(
        self,
        interaction: discord.Interaction,
        member: discord.Member,
        amount: app_commands.Range[int, 1],
    ) -> None:
        guild = interaction.guild
        assert guild is not None
        async with self.character_lock(guild.id, member.id):
            character = await self._load_target(interaction, member)
            if character is None:
                return
            balance = character.grant_experience(amount)
            await self._save_character(guild.id, character)
        log.info("Granted %d XP to %s in guild %s", amount, member.id, guild.id)
        await self.send(
            interaction,
            f"Granted {format_number(amount)} XP to {character.name}; "
            f"they now have {format_number(balance)} unassigned.",
        )

    @app_commands.command(name="set_tier", description="Change a member's qualification in a skill")
    @require_admin()
    @app_commands.describe(member="Whose skill to change", skill="Skill name", tier="New tier")
    @app_commands.choices(tier=TIER_CHOICES)
    @app_commands.guild_only()
    async def set_tier(
        self,
        interaction: discord.Interaction,
        member: discord.Member,
        skill: str,
        tier: str,
    ) -> None:
        guild = interaction.guild
        assert guild is not None
        async with self.character_lock(guild.id, member.id):
            character = await self._load_target(interaction, member)
            if character is None:
                return
            try:
                message = apply_tier(character, skill, tier)
            except ValueError as exc:
                await self.send(interaction, str(exc))
                return
            await self._save_character(guild.id, character)
        await self.send(interaction, message)

    @app_commands.command(name="set_base_level", description="Set the level a member already has in a track")
    @require_admin()
    @app_commands.describe(member="Whose track to change", track="Track name", level="Base level")
    @app_commands.guild_only()
    async def set_base_level(
        self,
        interaction: discord.Interaction,
        member: discord.Member,
        track: str,
        level: app_commands.Range[int, 0],
    ) -> None:
        guild = interaction.guild
        assert guild is not None
        async with self.character_lock(guild.id, member.id):
            character = await self._load_target(interaction, member)
            if character is None:
                return
            try:
                message = apply_base_level(character, track, level)
            except ValueError as exc:
                await self.send(interaction, str(exc))
                return
            await self._save_character(guild.id, character)
        await self.send(interaction, message)

    @app_commands.command(name="roster", description="List registered characters and their experience")
    @require_admin()
    @app_commands.guild_only()
    async def roster(self, interaction: discord.Interaction) -> None:
        guild = interaction.guild
        assert guild is not None
        characters = await self._list_characters(guild.id)
        await self.send(interaction, format_roster(characters))

    @app_commands.command(name="unregister", description="Delete a member's progression record")
    @require_admin()
    @app_commands.describe(member="Whose record to delete")
    @app_commands.guild_only()
    async def unregister(self, interaction: discord.Interaction, member: discord.Member) -> None:
        guild = interaction.guild
        assert guild is not None
        async with self.character_lock(guild.id, member.id):
            removed = await self._remove_character(guild.id, member.id)
        if not removed:
            await self.send(interaction, f"{member.display_name} has not registered.")
            return
        log.info("Deleted character %s in guild %s", member.id, guild.id)
        await self.send(interaction, f"Deleted the record of {member.display_name}.")

    @app_commands.command(name="reload_curves", description="Reload cost curve settings from disk")
    @require_admin()
    @app_commands.guild_only()
    async def reload_curves(self, interaction: discord.Interaction) -> None:
        settings = await asyncio.to_thread(load_settings, self.store.settings_path)
        self.state.reload_curves(settings)
        trained = settings.skill[QualificationTier.TRAINED]
        await self.send(
            interaction,
            "Curves reloaded. Trained skills now cost "
            f"{trained.multiplier:g} x level^{trained.exponent:g}.",
        )

    @set_tier.autocomplete("skill")
    async def set_tier_skill_autocomplete(
        self, interaction: discord.Interaction, current: str
    ) -> list[app_commands.Choice[str]]:
        return track_choices(current, TrackCategory.SKILL)

    @set_base_level.autocomplete("track")
    async def set_base_level_track_autocomplete(
        self, interaction: discord.Interaction, current: str
    ) -> list[app_commands.Choice[str]]:
        return track_choices(current)


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(AdminCog(bot))
