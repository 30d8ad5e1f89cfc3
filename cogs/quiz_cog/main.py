"""
Quiz Cog

Randomized multiple-choice quiz with persistent mistake tracking,
retakes of missed questions and on-demand Gemini explanations.
"""
import asyncio
import logging
import discord
from discord.ext import commands
from discord import app_commands, Interaction
from typing import Dict, Optional

from base_cog import BaseCog
from .config import mistakes_key
from .gemini import GeminiExplainer
from .ledger import DatabaseStore, MistakeLedger
from .pool import EmptyRetakeError, QuizMode
from .questions import load_question_bank
from .session import QuizSession
from .views import (
    QuizView, ResultsView,
    question_embeds, create_results_embed, create_mistakes_embed, create_quit_embed
)

logger = logging.getLogger(__name__)

NO_MISTAKES_NOTICE = "No mistakes to retake. Answer some questions wrong first!"


class QuizCog(BaseCog):
    """Cog for the multiple-choice quiz"""

    def __init__(self, bot: commands.Bot):
        super().__init__(bot)
        self.bank = load_question_bank()
        self.sessions: Dict[int, QuizSession] = {}
        self.ledgers: Dict[int, MistakeLedger] = {}
        self._ledger_locks: Dict[int, asyncio.Lock] = {}  # user_id -> lock

        try:
            self.explainer: Optional[GeminiExplainer] = GeminiExplainer()
        except ValueError as e:
            logger.warning(f"Explanations disabled: {e}")
            self.explainer = None

        logger.info("QuizCog initialized successfully")

    # ========================
    # User Slash Commands
    # ========================

    quiz_group = app_commands.Group(
        name="quiz",
        description="Multiple-choice quiz with mistake retakes"
    )

    @quiz_group.command(name="start", description="Start a new quiz with every question")
    async def quiz_start(self, interaction: Interaction):
        """Start a normal quiz"""
        await self._start_from_command(interaction, QuizMode.NORMAL)

    @quiz_group.command(name="retake", description="Retake only the questions you missed")
    async def quiz_retake(self, interaction: Interaction):
        """Start a retake quiz"""
        await self._start_from_command(interaction, QuizMode.RETAKE)

    @quiz_group.command(name="mistakes", description="See the questions you have missed")
    async def quiz_mistakes(self, interaction: Interaction):
        """Show the mistake ledger"""
        ledger = await self._get_ledger(interaction.user.id)
        embed = create_mistakes_embed(ledger.all())
        await interaction.response.send_message(embed=embed, ephemeral=True)

    @quiz_group.command(name="clear-mistakes", description="Forget every recorded mistake")
    async def quiz_clear_mistakes(self, interaction: Interaction):
        """Empty the mistake ledger"""
        ledger = await self._get_ledger(interaction.user.id)
        count = len(ledger)
        await ledger.clear()
        logger.info(f"User {interaction.user.id} cleared {count} mistakes")
        await interaction.response.send_message(
            f"Cleared {count} recorded mistake(s).",
            ephemeral=True
        )

    # ========================
    # Session Flow Methods
    # ========================

    def _get_ledger_lock(self, user_id: int) -> asyncio.Lock:
        """Get or create the lock guarding a user's ledger creation"""
        if user_id not in self._ledger_locks:
            self._ledger_locks[user_id] = asyncio.Lock()
        return self._ledger_locks[user_id]

    async def _get_ledger(self, user_id: int) -> MistakeLedger:
        """Get a user's mistake ledger, loading it on first use"""
        async with self._get_ledger_lock(user_id):
            ledger = self.ledgers.get(user_id)
            if ledger is None:
                ledger = MistakeLedger(DatabaseStore(self.bot.db), mistakes_key(user_id))
                await ledger.load()
                self.ledgers[user_id] = ledger
            return ledger

    async def _get_session(self, user_id: int) -> QuizSession:
        session = self.sessions.get(user_id)
        if session is None:
            ledger = await self._get_ledger(user_id)
            session = QuizSession(self.bank, ledger)
        return session

    async def _start_from_command(self, interaction: Interaction, mode: QuizMode):
        """Start a session from a slash command and send the first question"""
        user_id = interaction.user.id
        session = await self._get_session(user_id)

        try:
            session.start(mode)
        except EmptyRetakeError:
            await interaction.response.send_message(NO_MISTAKES_NOTICE, ephemeral=True)
            return

        self.sessions[user_id] = session
        embeds, view = self._render_question(user_id, session)
        await interaction.response.send_message(embeds=embeds, view=view, ephemeral=True)

    async def _start_from_button(self, interaction: Interaction, mode: QuizMode):
        """Start a session from the results screen, replacing the results message"""
        user_id = interaction.user.id
        session = await self._get_session(user_id)

        try:
            session.start(mode)
        except EmptyRetakeError:
            await interaction.response.send_message(NO_MISTAKES_NOTICE, ephemeral=True)
            return

        self.sessions[user_id] = session
        await self._show_question(interaction, session)

    def _render_question(self, user_id: int, session: QuizSession):
        """Build the embeds and view for the current question"""
        generation = session.generation

        def is_live() -> bool:
            return (self.sessions.get(user_id) is session
                    and session.generation == generation
                    and not session.is_complete)

        view = QuizView(
            session=session,
            owner_id=user_id,
            is_live=is_live,
            on_answer=lambda i, o: self._handle_answer(i, session, o),
            on_previous=lambda i: self._handle_previous(i, session),
            on_next=lambda i: self._handle_next(i, session),
            on_explain=(lambda i: self._handle_explain(i, session)) if self.explainer else None,
            on_close_explanation=lambda i: self._handle_close_explanation(i, session),
            on_quit=lambda i: self._handle_quit(i, session)
        )
        return question_embeds(session), view

    async def _show_question(self, interaction: Interaction, session: QuizSession):
        """Redraw the quiz message for the current question"""
        embeds, view = self._render_question(interaction.user.id, session)
        try:
            await interaction.response.edit_message(embeds=embeds, view=view)
        except discord.InteractionResponded:
            await interaction.edit_original_response(embeds=embeds, view=view)

    async def _handle_answer(self, interaction: Interaction, session: QuizSession, option: str):
        """Handle an option button"""
        was_correct = await session.submit_answer(option)
        if was_correct is not None:
            logger.info(
                f"User {interaction.user.id} answered {session.progress_text} "
                f"{'correctly' if was_correct else 'incorrectly'}"
            )
        await self._show_question(interaction, session)

    async def _handle_previous(self, interaction: Interaction, session: QuizSession):
        session.retreat()
        await self._show_question(interaction, session)

    async def _handle_next(self, interaction: Interaction, session: QuizSession):
        await session.advance()

        if session.is_complete:
            await self._show_results(interaction, session)
        else:
            await self._show_question(interaction, session)

    async def _handle_explain(self, interaction: Interaction, session: QuizSession):
        """Ask Gemini why the current answer is correct"""
        record = session.current_question
        ticket = session.explanations.issue(record.question)

        # Show the pending state right away
        await self._show_question(interaction, session)

        result = await self.explainer.explain(record.question, record.answer)

        # The user may have moved on while waiting
        if not session.explanations.resolve(ticket, result):
            return

        embeds, view = self._render_question(interaction.user.id, session)
        try:
            await interaction.edit_original_response(embeds=embeds, view=view)
        except discord.HTTPException as e:
            logger.error(f"Failed to show explanation: {e}")

    async def _handle_close_explanation(self, interaction: Interaction, session: QuizSession):
        session.explanations.discard()
        await self._show_question(interaction, session)

    async def _handle_quit(self, interaction: Interaction, session: QuizSession):
        """Handle quitting a quiz"""
        user_id = interaction.user.id
        if self.sessions.get(user_id) is session:
            del self.sessions[user_id]
        session.explanations.discard()

        await interaction.response.edit_message(embed=create_quit_embed(session), view=None)

    async def _show_results(self, interaction: Interaction, session: QuizSession):
        """Show the results screen for a completed quiz"""
        user_id = interaction.user.id
        ledger = session.ledger

        embed = create_results_embed(session, len(ledger))
        view = ResultsView(
            owner_id=user_id,
            has_mistakes=bool(ledger),
            on_restart=lambda i: self._start_from_button(i, QuizMode.NORMAL),
            on_retake=lambda i: self._start_from_button(i, QuizMode.RETAKE)
        )
        await interaction.response.edit_message(embed=embed, view=view)


async def setup(bot):
    """Required setup function for loading the cog"""
    await bot.add_cog(QuizCog(bot))
    logger.info("QuizCog loaded successfully")
