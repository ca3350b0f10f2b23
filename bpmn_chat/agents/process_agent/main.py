from typing import Callable

from bpmn_chat.config import create_run_dir
from bpmn_chat.core.exceptions import ProcessAssistantError
from bpmn_chat.core.logger import Logger
from bpmn_chat.core.prompts import GREETING
from bpmn_chat.core.sinks import JsonFileSink
from bpmn_chat.core.utils import initialize_process_assistant
from bpmn_chat.agents.process_agent.config import SystemConfig
from bpmn_chat.agents.process_agent.session import Session


EXIT_COMMANDS = {"exit", "quit"}


def main(
    config: SystemConfig,
    save: bool = False,
    read_line: Callable[[str], str] = input,
    write_line: Callable[[str], None] = print,
) -> Session:
    """
    Run an interactive chat session in the terminal.

    Args:
        config: System configuration
        save: Whether accepted payloads are written to the output directory
        read_line: Prompt function returning the next user message
        write_line: Function showing assistant messages

    Returns:
        The session at the end of the conversation
    """
    session = Session()
    sink = JsonFileSink(create_run_dir(session.session_id)) if save else None
    orchestrator = initialize_process_assistant(config, sink=sink, session=session)

    write_line(GREETING)

    while True:
        try:
            user_text = read_line("> ")
        except EOFError:
            break

        if user_text.strip().lower() in EXIT_COMMANDS:
            break

        try:
            result = orchestrator.handle_turn(user_text)
        except ProcessAssistantError as e:
            write_line(f"Error: {e.message}")
            continue

        write_line(result.message)
        write_line(
            f"({len(result.payload.elements)} elements, "
            f"{result.payload.flow_count()} sequence flows)"
        )

    Logger.log_info(f"Session ended after {session.accepted_turns} accepted turns")
    return session
