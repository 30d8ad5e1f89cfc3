"""
Discord UI Views and embeds for quiz sessions.
"""
from __future__ import annotations

from discord.ui import View, Button
from discord import Interaction, ButtonStyle, Embed
import logging
from typing import TYPE_CHECKING, Callable, Awaitable, List, Optional

from .config import (
    QUIZ_TITLE, OPTIONS_PER_ROW, CONTROL_ROW, VIEW_TIMEOUT, MISTAKE_PREVIEW_LIMIT,
    QUESTION_COLOR, CORRECT_COLOR, WRONG_COLOR, RESULTS_COLOR, EXPLANATION_COLOR,
    NOTICE_COLOR
)
from .explanation import (
    ExplanationBlocked, ExplanationError, ExplanationStopped, ExplanationText,
    ExplanationTracker
)
from .pool import QuizMode

if TYPE_CHECKING:
    from .session import QuizSession
    from .questions import QuestionRecord

logger = logging.getLogger(__name__)

# Discord limits
BUTTON_LABEL_LIMIT = 80
EMBED_DESCRIPTION_LIMIT = 4096
EMBED_FIELD_LIMIT = 1024

NOT_OWNER_NOTICE = "This isn't your quiz."
STALE_QUIZ_NOTICE = "This quiz has been replaced or has ended. Use `/quiz start` to play again."


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit - 1] + "…"


class QuizView(View):
    """View for answering and navigating the current question"""

    def __init__(
        self,
        session: QuizSession,
        owner_id: int,
        is_live: Callable[[], bool],
        on_answer: Callable[[Interaction, str], Awaitable[None]],
        on_previous: Callable[[Interaction], Awaitable[None]],
        on_next: Callable[[Interaction], Awaitable[None]],
        on_explain: Optional[Callable[[Interaction], Awaitable[None]]],
        on_close_explanation: Callable[[Interaction], Awaitable[None]],
        on_quit: Callable[[Interaction], Awaitable[None]],
        timeout: float = VIEW_TIMEOUT
    ):
        super().__init__(timeout=timeout)
        self.session = session
        self.owner_id = owner_id
        self.is_live = is_live
        self.on_answer_callback = on_answer
        self.on_previous_callback = on_previous
        self.on_next_callback = on_next
        self.on_explain_callback = on_explain
        self.on_close_explanation_callback = on_close_explanation
        self.on_quit_callback = on_quit

        self._build_buttons()

    async def interaction_check(self, interaction: Interaction) -> bool:
        """Only the quiz owner may use a view from the live session"""
        if interaction.user.id != self.owner_id:
            await interaction.response.send_message(NOT_OWNER_NOTICE, ephemeral=True)
            return False
        if not self.is_live():
            await interaction.response.send_message(STALE_QUIZ_NOTICE, ephemeral=True)
            return False
        return True

    def _build_buttons(self):
        """Build option buttons, then the navigation row"""
        record = self.session.current_question
        selected = self.session.current_answered_state
        revealed = selected is not None

        for index, option in enumerate(record.options):
            btn = Button(
                label=_truncate(option, BUTTON_LABEL_LIMIT),
                style=self._option_style(record, option, selected),
                custom_id=f"option_{index}",
                disabled=revealed,
                row=index // OPTIONS_PER_ROW
            )
            btn.callback = self._make_option_callback(option)
            self.add_item(btn)

        self._add_control_buttons(revealed)

    @staticmethod
    def _option_style(record: QuestionRecord, option: str, selected: Optional[str]) -> ButtonStyle:
        if selected is None:
            return ButtonStyle.secondary
        if option == record.answer:
            return ButtonStyle.success
        if option == selected:
            return ButtonStyle.danger
        return ButtonStyle.secondary

    def _add_control_buttons(self, revealed: bool):
        """Add previous, next, explain and quit buttons"""
        previous_btn = Button(
            label="Previous",
            style=ButtonStyle.primary,
            custom_id="previous",
            disabled=self.session.position == 0,
            row=CONTROL_ROW
        )
        previous_btn.callback = self._previous_callback
        self.add_item(previous_btn)

        if revealed:
            is_last = self.session.position == self.session.total - 1
            next_btn = Button(
                label="See Results" if is_last else "Next",
                style=ButtonStyle.primary,
                custom_id="next",
                row=CONTROL_ROW
            )
            next_btn.callback = self._next_callback
            self.add_item(next_btn)

            if self.on_explain_callback is not None:
                if self.session.explanations.active:
                    explain_btn = Button(
                        label="Close Explanation",
                        style=ButtonStyle.secondary,
                        custom_id="close_explanation",
                        row=CONTROL_ROW
                    )
                    explain_btn.callback = self._close_explanation_callback
                else:
                    explain_btn = Button(
                        label="Explain",
                        style=ButtonStyle.secondary,
                        custom_id="explain",
                        row=CONTROL_ROW
                    )
                    explain_btn.callback = self._explain_callback
                self.add_item(explain_btn)

        quit_btn = Button(
            label="Quit",
            style=ButtonStyle.danger,
            custom_id="quit",
            row=CONTROL_ROW
        )
        quit_btn.callback = self._quit_callback
        self.add_item(quit_btn)

    def _make_option_callback(self, option: str):
        """Create a callback for an option button"""
        async def callback(interaction: Interaction):
            await self.on_answer_callback(interaction, option)
        return callback

    async def _previous_callback(self, interaction: Interaction):
        await self.on_previous_callback(interaction)

    async def _next_callback(self, interaction: Interaction):
        await self.on_next_callback(interaction)

    async def _explain_callback(self, interaction: Interaction):
        await self.on_explain_callback(interaction)

    async def _close_explanation_callback(self, interaction: Interaction):
        await self.on_close_explanation_callback(interaction)

    async def _quit_callback(self, interaction: Interaction):
        await self.on_quit_callback(interaction)


class ResultsView(View):
    """View shown on the results screen"""

    def __init__(
        self,
        owner_id: int,
        has_mistakes: bool,
        on_restart: Callable[[Interaction], Awaitable[None]],
        on_retake: Callable[[Interaction], Awaitable[None]],
        timeout: float = VIEW_TIMEOUT
    ):
        super().__init__(timeout=timeout)
        self.owner_id = owner_id
        self.on_restart_callback = on_restart
        self.on_retake_callback = on_retake

        restart_btn = Button(
            label="Restart Quiz",
            style=ButtonStyle.primary,
            custom_id="restart"
        )
        restart_btn.callback = self._restart_callback
        self.add_item(restart_btn)

        retake_btn = Button(
            label="Retake Mistakes",
            style=ButtonStyle.secondary,
            custom_id="retake",
            disabled=not has_mistakes
        )
        retake_btn.callback = self._retake_callback
        self.add_item(retake_btn)

    async def interaction_check(self, interaction: Interaction) -> bool:
        if interaction.user.id != self.owner_id:
            await interaction.response.send_message(NOT_OWNER_NOTICE, ephemeral=True)
            return False
        return True

    async def _restart_callback(self, interaction: Interaction):
        await self.on_restart_callback(interaction)

    async def _retake_callback(self, interaction: Interaction):
        await self.on_retake_callback(interaction)


def create_question_embed(session: QuizSession) -> Embed:
    """Create an embed for the current question, revealed if it was answered"""
    record = session.current_question
    selected = session.current_answered_state

    title = QUIZ_TITLE
    if session.mode == QuizMode.RETAKE:
        title += " (Retake)"

    embed = Embed(
        title=title,
        description=f"**{_truncate(record.question, EMBED_DESCRIPTION_LIMIT - 4)}**",
        color=QUESTION_COLOR
    )

    if selected is not None:
        if record.is_correct(selected):
            embed.color = CORRECT_COLOR
            embed.add_field(name="Correct!", value=_truncate(record.answer, EMBED_FIELD_LIMIT), inline=False)
        else:
            embed.color = WRONG_COLOR
            value = f"Your answer: **{selected}**\nCorrect answer: **{record.answer}**"
            embed.add_field(name="Not quite", value=_truncate(value, EMBED_FIELD_LIMIT), inline=False)

    embed.set_footer(text=f"Question {session.progress_text} • Score: {session.score}")

    return embed


def create_explanation_embed(tracker: ExplanationTracker) -> Optional[Embed]:
    """Create an embed for the current explanation, or None if there is none"""
    if not tracker.active:
        return None

    result = tracker.result
    embed = Embed(title="Explanation", color=EXPLANATION_COLOR)

    if result is None:
        embed.description = "Thinking..."
    elif isinstance(result, ExplanationText):
        embed.description = result.text
    elif isinstance(result, ExplanationBlocked):
        embed.description = f"The explanation was blocked by the safety filters ({result.reason})."
        embed.color = WRONG_COLOR
    elif isinstance(result, ExplanationStopped):
        embed.description = f"The explanation stopped early ({result.reason})."
        if result.partial_text:
            embed.description += f"\n\n{result.partial_text}"
        embed.color = WRONG_COLOR
    elif isinstance(result, ExplanationError):
        embed.description = f"Could not get an explanation: {result.message}"
        embed.color = WRONG_COLOR

    embed.description = _truncate(embed.description, EMBED_DESCRIPTION_LIMIT)
    return embed


def question_embeds(session: QuizSession) -> List[Embed]:
    """All embeds for the question screen"""
    embeds = [create_question_embed(session)]
    explanation = create_explanation_embed(session.explanations)
    if explanation is not None:
        embeds.append(explanation)
    return embeds


def _missed_lines(records: List[QuestionRecord]) -> str:
    lines = [f"• {_truncate(r.question, 150)}" for r in records[:MISTAKE_PREVIEW_LIMIT]]
    if len(records) > MISTAKE_PREVIEW_LIMIT:
        lines.append(f"...and {len(records) - MISTAKE_PREVIEW_LIMIT} more")
    return _truncate("\n".join(lines), EMBED_FIELD_LIMIT)


def create_results_embed(session: QuizSession, mistakes_outstanding: int) -> Embed:
    """Create the summary embed for a completed quiz"""
    embed = Embed(
        title="Quiz Completed!",
        description=(
            f"Your Score: **{session.score}** out of **{session.total}**\n"
            f"({session.percentage}%)"
        ),
        color=RESULTS_COLOR
    )

    missed = [record for record, chosen in session.review()
              if chosen is not None and not record.is_correct(chosen)]
    if missed:
        embed.add_field(name="Missed this time", value=_missed_lines(missed), inline=False)

    embed.set_footer(text=f"Questions to retake: {mistakes_outstanding}")

    return embed


def create_mistakes_embed(records: List[QuestionRecord]) -> Embed:
    """Create an embed listing the questions in a mistake ledger"""
    if not records:
        return Embed(
            title="Your Mistakes",
            description="No mistakes recorded. Nice work!",
            color=CORRECT_COLOR
        )

    embed = Embed(
        title="Your Mistakes",
        description=f"You have **{len(records)}** question(s) to retake. Use `/quiz retake`.",
        color=WRONG_COLOR
    )
    embed.add_field(name="Questions", value=_missed_lines(records), inline=False)
    return embed


def create_quit_embed(session: QuizSession) -> Embed:
    """Create an embed for a quiz quit before the end"""
    answered = sum(1 for chosen in session.answered if chosen is not None)
    return Embed(
        title="Quiz Ended",
        description=(
            f"Quiz quit after {answered} of {session.total} question(s). "
            f"Score: {session.score}"
        ),
        color=NOTICE_COLOR
    )
