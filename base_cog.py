import logging

from discord import Interaction, app_commands
from discord.ext.commands import Cog, CommandOnCooldown
from discord.ext.commands import Bot

logger = logging.getLogger(__name__)


class BaseCog(Cog):
    """Base class for all cogs"""
    def __init__(self, bot):
        self.bot: Bot = bot

    async def cog_command_error(self, ctx, error):
        """Handle errors for prefix commands in this cog"""
        if isinstance(error, CommandOnCooldown):
            await ctx.send(f"⏱️ Command is on cooldown. Try again in {error.retry_after:.1f} seconds.")
        else:
            logger.error(f'An error occurred: {error} in {ctx.channel}')
            # Re-raise other errors so they can be handled by global error handlers
            raise error

    async def cog_app_command_error(self, interaction: Interaction, error: app_commands.AppCommandError):
        """Handle errors for slash commands in this cog"""
        if isinstance(error, app_commands.CommandOnCooldown):
            message = f"⏱️ Command is on cooldown. Try again in {error.retry_after:.1f} seconds."
        else:
            logger.error(f'Slash command error: {error}', exc_info=error)
            message = "An error occurred. Please try again later."

        if interaction.response.is_done():
            await interaction.followup.send(message, ephemeral=True)
        else:
            await interaction.response.send_message(message, ephemeral=True)
