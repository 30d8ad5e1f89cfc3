import os
import discord
from discord import Game
from discord.ext.commands import Bot, CommandNotFound, CommandOnCooldown
from logger import setup_logging
import logging
from database import Database

# environment variables
environment_name = os.getenv('ENVIRONMENT', 'development')
bot_token = os.getenv('BOT_TOKEN', '')
prefix = os.getenv('PREFIX', '!')
quiz_guild_id = os.getenv('QUIZ_GUILD_ID')


class Config:
    BOT_TOKEN: str = bot_token
    PREFIX: str = prefix
    QUIZ_GUILD_ID: int = int(quiz_guild_id) if quiz_guild_id else 0


class QuizBot(Bot):

    def __init__(self, prefix):
        intents = discord.Intents.default()
        intents.message_content = True
        super().__init__(description="Conservation Economics quiz bot",
                         command_prefix=prefix,
                         help_command=None,
                         intents=intents
                         )

        self.db = Database()

    async def setup_hook(self):
        try:
            await self.db.connect()
            logging.info("Database connected successfully")
        except Exception as e:
            logging.error(f"Failed to connect to database: {e}")

        for folder in os.listdir('./cogs'):
            if folder.endswith('_cog'):
                cog_path = f'./cogs/{folder}'
                if os.path.isdir(cog_path):
                    for file in os.listdir(cog_path):
                        if file.endswith('.py') and file.startswith('main'):
                            try:
                                await self.load_extension(f'cogs.{folder}.{file[:-3]}')
                                logging.info(f'Loaded extension: {file[:-3]} from folder: {folder}')
                            except Exception as e:
                                logging.error(f'Failed to load extension {file[:-3]}.', exc_info=e)

    async def on_ready(self):
        logging.info("BOT LOADED!")

        # Sync slash commands
        try:
            # Global sync (can take up to 1 hour to propagate)
            synced = await self.tree.sync()
            logging.info(f"Synced {len(synced)} global slash command(s)")

            if Config.QUIZ_GUILD_ID:
                # Guild-specific sync is instant
                guild = discord.Object(id=Config.QUIZ_GUILD_ID)
                self.tree.copy_global_to(guild=guild)
                synced_guild = await self.tree.sync(guild=guild)
                logging.info(f"Synced {len(synced_guild)} slash command(s) to guild {Config.QUIZ_GUILD_ID}")
        except Exception as e:
            logging.error(f"Failed to sync slash commands: {e}")

        await self.change_presence(activity=Game('/quiz start'))

    async def on_command_error(self, ctx, error):
        if isinstance(error, CommandNotFound):
            logging.warning(f"Command not found: {ctx.message.content}")

        elif isinstance(error, CommandOnCooldown):
            await ctx.send(f"This command is on cooldown. Try again in {round(error.retry_after)} seconds.")
            logging.info(f"Command on cooldown: {ctx.message.content}")

        else:
            logging.error(f'Unhandled error: {error} in command {ctx.command}')
            await ctx.send("An unexpected error occurred. Please try again later.")

    async def close(self):
        await self.db.close()
        await super().close()


def main():
    setup_logging()
    logging.info(f"Environment: {environment_name}")

    if not Config.BOT_TOKEN:
        raise ValueError("BOT_TOKEN environment variable is required!")

    bot = QuizBot(Config.PREFIX)
    bot.run(Config.BOT_TOKEN, log_handler=None)


if __name__ == "__main__":
    main()
