"""ConversationalAgentSession: the agent loop and its lifecycle.

The session owns the message history, the interrupt queue, the pending
ask_user rendezvous and the status. Public operations are synchronous and
run on the event loop thread, so they never interleave with each other or
with the loop between awaits. Each run()/resume() starts one loop task and
returns the PhaseStream that task reports through.

Loop outline (one iteration is one model call):

    toolUse:      drain interrupts -> call model with tools
                  no tool calls   -> finalOutput(0), or complete directly
                                     when there are no tools
                  tool calls      -> execute, report, maybe ask the user
    finalOutput:  call model with the output schema and no tools
                  decode ok       -> completed
                  decode failed   -> ask again, up to MAX_DECODE_RETRIES
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable, Iterable
from typing import Any

from conversant.config.schema import AgentConfig
from conversant.core.llm.provider import ModelClient, ModelResponse, ToolChoice
from conversant.core.messages import (
    Message,
    Role,
    ToolCall,
    ToolResponse,
    ToolResultContent,
    find_unanswered_tool_uses,
)
from conversant.core.output import (
    FINAL_OUTPUT_REQUEST,
    decode_output,
    is_text_output,
    output_schema,
)
from conversant.errors import (
    ConversationalAgentError,
    InvalidStateError,
    MaxStepsExceededError,
    ModelClientError,
    OutputDecodingError,
    SessionAlreadyRunningError,
)
from conversant.logging import TRACE, get_logger
from conversant.session.events import EventDispatcher, SessionEventKind, SessionListener
from conversant.session.phase import (
    AskingUserStep,
    AwaitingUserInput,
    Completed,
    Failed,
    FinalOutputPhase,
    Idle,
    InterruptedStep,
    LoopPhase,
    Paused,
    Running,
    SessionStatus,
    ThinkingStep,
    ToolCallStep,
    ToolResultStep,
    ToolUsePhase,
    UserMessageStep,
    status_to_dict,
)
from conversant.session.rendezvous import AnswerRendezvous
from conversant.session.stream import PhaseStream
from conversant.tools.ask_user import (
    ASK_USER_TOOL_NAME,
    NO_ANSWER_PROVIDED,
    SECOND_QUESTION_ERROR,
    AskUserTool,
    extract_question,
    is_ask_user,
)
from conversant.tools.base import Tool, ToolSet

log = get_logger("session")

MAX_DECODE_RETRIES = 2
CONTINUE_MESSAGE = "Please continue where you left off."
INTERRUPTED_TOOL_RESULT = "Session was interrupted. Continuing from where we left off."


class _RunContext:
    """State private to one run()/resume() loop.

    ``cancelled`` is set by cancel(); once set, the loop stops touching the
    session and only closes its own stream.
    """

    __slots__ = ("stream", "model", "output_type", "schema", "cancelled", "task")

    def __init__(
        self,
        stream: PhaseStream[Any],
        model: str,
        output_type: type,
        schema: dict[str, Any] | None,
    ) -> None:
        self.stream = stream
        self.model = model
        self.output_type = output_type
        self.schema = schema
        self.cancelled = False
        self.task: asyncio.Task[None] | None = None


def _answer_response(call: ToolCall, answer: str) -> ToolResponse:
    return ToolResponse(call.id, call.name, answer or NO_ANSWER_PROVIDED)


class ConversationalAgentSession:
    """Multi-turn, tool-using agent session.

    Usage:
        session = ConversationalAgentSession(
            LiteLLMClient(),
            ToolSet([lookup]),
            system_prompt="You are a research assistant.",
            interactive_mode=True,
        )
        async for phase in session.run("Find the capital", model="gpt-4o", output_type=Answer):
            if isinstance(phase, AwaitingUserInput):
                session.reply(input(phase.question))
            elif isinstance(phase, Completed):
                print(phase.output)
    """

    def __init__(
        self,
        client: ModelClient,
        tools: ToolSet | Iterable[Tool] | None = None,
        *,
        system_prompt: str | None = None,
        configuration: AgentConfig | None = None,
        interactive_mode: bool = False,
        initial_messages: Iterable[Message] = (),
        session_id: str | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            client: Model client used for every agent step
            tools: Tools the model may call
            system_prompt: System prompt sent with every model call
            configuration: Loop configuration (defaults to the ``agent`` config section)
            interactive_mode: Offer the ask_user tool to the model
            initial_messages: History restored from a previous session
            session_id: Identifier used in events and logs
        """
        self._client = client
        if configuration is None:
            from conversant.config import get_config

            configuration = get_config().agent
        self._configuration = configuration
        toolset = tools if isinstance(tools, ToolSet) else ToolSet(tools or ())
        interactive = interactive_mode or self._configuration.interactive_mode
        if interactive and ASK_USER_TOOL_NAME not in toolset:
            toolset = toolset.appending(AskUserTool())
        self._tools = toolset
        self._system_prompt = system_prompt
        self._session_id = session_id or f"sess-{uuid.uuid4().hex[:8]}"

        self._messages: list[Message] = list(initial_messages)
        self._interrupts: list[str] = []
        self._status: SessionStatus = Idle()
        self._pending: AnswerRendezvous | None = None
        self._run: _RunContext | None = None
        self._events = EventDispatcher(self._session_id)

    # -------------------------------------------------------------------------
    # Read-only state
    # -------------------------------------------------------------------------

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def running(self) -> bool:
        """True while a run is in progress, including while awaiting an answer."""
        return self._status.is_active

    @property
    def turn_count(self) -> int:
        """Number of user-role messages in the history."""
        return sum(1 for m in self._messages if m.role == Role.USER)

    @property
    def waiting_for_answer(self) -> bool:
        return self._status.can_reply

    @property
    def pending_question(self) -> str | None:
        return self._pending.question if self._pending is not None else None

    @property
    def pending_interrupts(self) -> list[str]:
        return list(self._interrupts)

    @property
    def tools(self) -> ToolSet:
        return self._tools

    @property
    def configuration(self) -> AgentConfig:
        return self._configuration

    @property
    def system_prompt(self) -> str | None:
        return self._system_prompt

    def get_messages(self) -> list[Message]:
        """Snapshot of the conversation history."""
        return list(self._messages)

    def add_listener(self, listener: SessionListener) -> Callable[[], None]:
        """Register a lifecycle event listener. Returns an unregister function."""
        return self._events.add_listener(listener)

    # -------------------------------------------------------------------------
    # Starting runs
    # -------------------------------------------------------------------------

    def run(
        self,
        message: str,
        *,
        model: str | None = None,
        output_type: type[Any] = str,
    ) -> PhaseStream[Any]:
        """Start a new turn with a user message.

        Must be called from a running event loop. Legal only while idle;
        otherwise the returned stream raises SessionAlreadyRunningError
        when iterated. Tool calls a previous run reported without executing
        are answered with placeholder results before the message is added.

        Args:
            message: The user's message
            model: Model identifier (defaults to config ``llm.model``)
            output_type: pydantic model to decode the result into, or str

        Raises:
            TypeError: If output_type is neither str nor a structured type
        """
        schema = output_schema(output_type)
        model = self._resolve_model(model)
        stream: PhaseStream[Any] = PhaseStream()

        if not self._status.can_run:
            log.warning("Session %s: run() rejected in state %s", self._session_id, self._status)
            stream.reject(SessionAlreadyRunningError())
            return stream

        # Calls left unexecuted (auto_execute_tools=False) get placeholder results
        self._repair_incomplete_tool_uses()
        self._messages.append(Message.user(message))
        self._events.emit(SessionEventKind.USER_MESSAGE, text=message)
        ctx = _RunContext(stream, model, output_type, schema)
        self._start(ctx, UserMessageStep(message), resumed=False)
        return stream

    def resume(
        self,
        *,
        model: str | None = None,
        output_type: type[Any] = str,
    ) -> PhaseStream[Any]:
        """Continue after a failure, a cancellation, or from restored history.

        Dangling tool calls in the history get placeholder results, then a
        continue message is added and the loop restarts.

        Raises:
            TypeError: If output_type is neither str nor a structured type
        """
        schema = output_schema(output_type)
        model = self._resolve_model(model)
        stream: PhaseStream[Any] = PhaseStream()

        if not self._status.can_resume:
            log.warning(
                "Session %s: resume() rejected in state %s", self._session_id, self._status
            )
            stream.reject(SessionAlreadyRunningError())
            return stream
        if not self._messages:
            stream.reject(InvalidStateError("No conversation history to resume. Use run() instead."))
            return stream

        self._repair_incomplete_tool_uses()
        self._messages.append(Message.user(CONTINUE_MESSAGE))
        ctx = _RunContext(stream, model, output_type, schema)
        self._start(ctx, UserMessageStep(CONTINUE_MESSAGE), resumed=True)
        return stream

    def _resolve_model(self, model: str | None) -> str:
        if model:
            return model
        from conversant.config import get_config

        configured = get_config().llm.model
        if not configured:
            raise ValueError("No model given and llm.model is not configured")
        return configured

    def _start(self, ctx: _RunContext, first: UserMessageStep, *, resumed: bool) -> None:
        loop = asyncio.get_running_loop()
        self._run = ctx
        self._advance(ctx, Running(first))
        self._events.emit(SessionEventKind.SESSION_STARTED, model=ctx.model, resumed=resumed)
        log.info(
            "Session %s: %s (model=%s, history=%d)",
            self._session_id,
            "resumed" if resumed else "run started",
            ctx.model,
            len(self._messages),
        )
        ctx.task = loop.create_task(self._loop(ctx))

    def _repair_incomplete_tool_uses(self) -> None:
        orphans = find_unanswered_tool_uses(self._messages)
        if not orphans:
            return
        log.info("Session %s: repairing %d dangling tool calls", self._session_id, len(orphans))
        self._messages.append(
            Message(
                role=Role.USER,
                contents=tuple(
                    ToolResultContent(
                        call_id=use.id,
                        name=use.name,
                        output=INTERRUPTED_TOOL_RESULT,
                        is_error=False,
                    )
                    for use in orphans
                ),
            )
        )

    # -------------------------------------------------------------------------
    # Operations on a live session
    # -------------------------------------------------------------------------

    def interrupt(self, message: str) -> None:
        """Queue a message to splice into the history at the next safe point.

        Interrupts still queued when the run ends are dropped; they never
        carry over into the next run.
        """
        if not self._status.can_interrupt:
            log.debug("Session %s: interrupt ignored in state %s", self._session_id, self._status)
            return
        self._interrupts.append(message)
        self._events.emit(SessionEventKind.INTERRUPT_QUEUED, text=message)

    def clear_interrupts(self) -> None:
        """Drop interrupts that have not been applied yet."""
        self._interrupts.clear()

    def reply(self, answer: str) -> None:
        """Answer the pending ask_user question. No-op unless awaiting input."""
        if not self._status.can_reply or self._pending is None:
            log.debug("Session %s: reply ignored in state %s", self._session_id, self._status)
            return
        rendezvous, self._pending = self._pending, None
        if rendezvous.resolve(answer):
            # Leave awaitingUserInput now so a second reply is rejected
            self._status = Running(ToolResultStep(_answer_response(rendezvous.call, answer)))
            self._events.emit(SessionEventKind.USER_ANSWER_PROVIDED, answer=answer)

    def cancel(self) -> None:
        """Stop the current run cooperatively; the session becomes paused.

        An in-flight model or tool call finishes on its own and its result
        is discarded.
        """
        if not self._status.can_cancel:
            return
        self._status = Paused()
        self._interrupts.clear()
        if self._run is not None:
            self._run.cancelled = True
            self._run = None
        if self._pending is not None:
            rendezvous, self._pending = self._pending, None
            rendezvous.cancel()
        log.info("Session %s: cancelled", self._session_id)
        self._events.emit(SessionEventKind.SESSION_CANCELLED)

    def clear(self) -> None:
        """Forget the history after a pause or failure and return to idle."""
        if not self._status.can_clear:
            return
        self._messages.clear()
        self._interrupts.clear()
        self._status = Idle()
        self._events.emit(SessionEventKind.CLEARED)

    # -------------------------------------------------------------------------
    # The loop
    # -------------------------------------------------------------------------

    async def _loop(self, ctx: _RunContext) -> None:
        try:
            await self._agent_loop(ctx)
        except ConversationalAgentError as e:
            self._fail(ctx, e)
        except Exception as e:
            log.exception("Session %s: unexpected loop error", self._session_id)
            self._fail(ctx, InvalidStateError(str(e)))
        finally:
            if not ctx.stream.closed:
                ctx.stream.finish()
            if self._run is ctx:
                self._run = None

    async def _agent_loop(self, ctx: _RunContext) -> None:
        max_steps = self._configuration.max_steps
        phase: LoopPhase = ToolUsePhase()
        step = 0

        while step < max_steps:
            if ctx.cancelled:
                self._finish_cancelled(ctx)
                return
            step += 1

            if isinstance(phase, ToolUsePhase) and self._interrupts:
                self._drain_interrupts(ctx)

            self._advance(ctx, Running(ThinkingStep()))
            log.debug("Session %s: step %d/%d (%s)", self._session_id, step, max_steps, phase)
            response = await self._call_model(ctx, phase)
            if ctx.cancelled:
                log.debug("Session %s: discarding response of cancelled run", self._session_id)
                self._finish_cancelled(ctx)
                return
            self._record_response(response)

            if isinstance(phase, FinalOutputPhase):
                next_phase = self._handle_final_output(ctx, phase, response)
                if next_phase is None:
                    return
                phase = next_phase
                continue

            calls = response.tool_calls
            if not calls:
                if self._tools.is_empty or is_text_output(ctx.output_type):
                    self._complete_from_text(ctx, response.text)
                    return
                phase = FinalOutputPhase()
                self._messages.append(Message.user(FINAL_OUTPUT_REQUEST))
                continue

            if not self._configuration.auto_execute_tools:
                self._report_tool_calls(ctx, calls)
                return

            if step >= max_steps:
                log.debug(
                    "Session %s: step budget spent, not executing %d tool calls",
                    self._session_id,
                    len(calls),
                )
                break

            if not await self._execute_tool_batch(ctx, calls):
                return

        raise MaxStepsExceededError(max_steps)

    def _drain_interrupts(self, ctx: _RunContext) -> None:
        pending, self._interrupts = self._interrupts, []
        for text in pending:
            self._messages.append(Message.user(text))
            self._advance(ctx, Running(InterruptedStep(text)))
            self._events.emit(SessionEventKind.INTERRUPT_PROCESSED, text=text)

    async def _call_model(self, ctx: _RunContext, phase: LoopPhase) -> ModelResponse:
        if isinstance(phase, FinalOutputPhase):
            tools = ToolSet()
            tool_choice = None
            schema = ctx.schema
        else:
            tools = self._tools
            tool_choice = None if tools.is_empty else ToolChoice.auto()
            schema = None

        try:
            return await self._client.execute_agent_step(
                list(self._messages),
                model=ctx.model,
                system_prompt=self._system_prompt,
                tools=tools,
                tool_choice=tool_choice,
                response_schema=schema,
            )
        except ConversationalAgentError:
            raise
        except Exception as e:
            raise ModelClientError(e) from e

    def _record_response(self, response: ModelResponse) -> None:
        message = response.to_message()
        if message is None:
            return
        self._messages.append(message)
        self._events.emit(
            SessionEventKind.ASSISTANT_MESSAGE,
            text=message.text,
            tool_calls=[u.name for u in message.tool_uses],
        )

    # -------------------------------------------------------------------------
    # Tool calls
    # -------------------------------------------------------------------------

    def _report_tool_calls(self, ctx: _RunContext, calls: list[ToolCall]) -> None:
        for call in calls:
            self._advance(ctx, Running(ToolCallStep(call)))
        if ctx.cancelled:
            self._finish_cancelled(ctx)
            return
        log.info(
            "Session %s: stopping with %d unexecuted tool calls", self._session_id, len(calls)
        )
        self._drop_interrupts()
        self._status = Idle()
        self._run = None
        ctx.stream.emit(Idle())
        ctx.stream.finish()

    async def _execute_tool_batch(self, ctx: _RunContext, calls: list[ToolCall]) -> bool:
        """Run one batch of tool calls. Returns False if the run ended."""
        question_call: ToolCall | None = None
        responses: list[ToolResponse] = []

        if self._configuration.parallel_tool_calls:
            for call in calls:
                self._advance(ctx, Running(ToolCallStep(call)))
                if question_call is None and is_ask_user(call):
                    question_call = call
                    self._announce_question(ctx, call)
            executable = [c for c in calls if c is not question_call]
            responses = list(await asyncio.gather(*(self._execute_tool(c) for c in executable)))
            if ctx.cancelled:
                self._finish_cancelled(ctx)
                return False
            for response in responses:
                self._advance(ctx, Running(ToolResultStep(response)))
        else:
            for call in calls:
                self._advance(ctx, Running(ToolCallStep(call)))
                if question_call is None and is_ask_user(call):
                    question_call = call
                    self._announce_question(ctx, call)
                    continue
                response = await self._execute_tool(call)
                if ctx.cancelled:
                    self._finish_cancelled(ctx)
                    return False
                responses.append(response)
                self._advance(ctx, Running(ToolResultStep(response)))

        if responses:
            self._messages.append(Message.tool_results(responses))
        if question_call is None:
            return True
        return await self._await_answer(ctx, question_call)

    async def _execute_tool(self, call: ToolCall) -> ToolResponse:
        if is_ask_user(call):
            # Only the first question of a batch is asked.
            return ToolResponse(call.id, call.name, SECOND_QUESTION_ERROR, is_error=True)
        try:
            result = await self._tools.execute(call.name, call.arguments)
        except Exception as e:
            log.warning("Session %s: tool %s failed: %s", self._session_id, call.name, e)
            return ToolResponse(call.id, call.name, f"Error: {e}", is_error=True)
        log.log(TRACE, "Tool %s returned %d chars", call.name, len(result.output))
        return ToolResponse(call.id, call.name, result.output, result.is_error)

    def _announce_question(self, ctx: _RunContext, call: ToolCall) -> None:
        question = extract_question(call)
        self._advance(ctx, Running(AskingUserStep(question)))
        if not ctx.cancelled:
            self._events.emit(SessionEventKind.ASKING_USER, question=question)

    async def _await_answer(self, ctx: _RunContext, call: ToolCall) -> bool:
        if ctx.cancelled:
            self._finish_cancelled(ctx)
            return False

        question = extract_question(call)
        rendezvous = AnswerRendezvous(call, question)
        self._pending = rendezvous
        self._advance(ctx, AwaitingUserInput(question))
        log.info("Session %s: waiting for an answer", self._session_id)

        answer = await rendezvous.wait()
        if ctx.cancelled:
            self._finish_cancelled(ctx)
            return False

        if self._pending is rendezvous:
            self._pending = None
        response = _answer_response(call, answer)
        self._messages.append(Message.tool_results([response]))
        self._advance(ctx, Running(ToolResultStep(response)))
        return True

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    def _handle_final_output(
        self, ctx: _RunContext, phase: FinalOutputPhase, response: ModelResponse
    ) -> FinalOutputPhase | None:
        """Complete the run, or return the retry phase. Raises when out of retries."""
        try:
            output = decode_output(ctx.output_type, response.text)
        except OutputDecodingError as e:
            if phase.retry_count >= MAX_DECODE_RETRIES:
                raise
            log.info(
                "Session %s: final output did not decode (attempt %d): %s",
                self._session_id,
                phase.retry_count + 1,
                e,
            )
            self._messages.append(Message.user(FINAL_OUTPUT_REQUEST))
            return phase.retried()

        self._complete(ctx, Completed(output, raw_text=response.text))
        return None

    def _complete_from_text(self, ctx: _RunContext, text: str) -> None:
        try:
            output = decode_output(ctx.output_type, text)
        except OutputDecodingError as e:
            if not text.strip():
                raise
            log.info("Session %s: returning undecoded text: %s", self._session_id, e)
            self._complete(ctx, Completed(text, raw_text=text, decoded=False))
            return
        self._complete(ctx, Completed(output, raw_text=text))

    # -------------------------------------------------------------------------
    # Status and stream
    # -------------------------------------------------------------------------

    def _advance(self, ctx: _RunContext, status: SessionStatus) -> None:
        """Set the status and report it, unless the run was cancelled."""
        if ctx.cancelled:
            return
        self._status = status
        log.log(TRACE, "Session %s: %s", self._session_id, status_to_dict(status))
        ctx.stream.emit(status)

    def _complete(self, ctx: _RunContext, completed: Completed[Any]) -> None:
        if ctx.cancelled:
            self._finish_cancelled(ctx)
            return
        self._drop_interrupts()
        self._status = Idle()
        self._run = None
        ctx.stream.emit(completed)
        self._events.emit(SessionEventKind.SESSION_COMPLETED, decoded=completed.decoded)
        log.info("Session %s: completed", self._session_id)
        ctx.stream.finish()

    def _fail(self, ctx: _RunContext, error: ConversationalAgentError) -> None:
        if ctx.cancelled:
            self._finish_cancelled(ctx)
            return
        text = str(error)
        log.warning("Session %s: run failed: %s", self._session_id, text)
        self._status = Failed(text)
        self._pending = None
        self._drop_interrupts()
        self._run = None
        ctx.stream.emit(Failed(text))
        self._events.emit(SessionEventKind.ERROR, error=text)
        ctx.stream.finish(error)

    def _drop_interrupts(self) -> None:
        if self._interrupts:
            log.info(
                "Session %s: dropping %d unapplied interrupts",
                self._session_id,
                len(self._interrupts),
            )
            self._interrupts.clear()

    def _finish_cancelled(self, ctx: _RunContext) -> None:
        ctx.stream.emit(Paused())
        ctx.stream.finish()

    def __repr__(self) -> str:
        return (
            f"ConversationalAgentSession({self._session_id}, {self._status}, "
            f"messages={len(self._messages)})"
        )
