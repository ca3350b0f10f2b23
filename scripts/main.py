import sys
from pathlib import Path

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from argparse import ArgumentParser, Namespace
from dotenv import load_dotenv

from bpmn_chat.config import ensure_output_dirs, DOTENV
from bpmn_chat.core.models import FallbackMode
from bpmn_chat.agents.process_agent.config import SystemConfig
from bpmn_chat.agents.process_agent.main import main as run_chat
from bpmn_chat.core.logger import Logger

def define_parser() -> ArgumentParser:
    parser = ArgumentParser(description="Chat with the BPMN assistant to create and refine a process")
    parser.add_argument("--fallback", choices=[mode.value for mode in FallbackMode], required=False, help="Use the canned payload: never, when the model is unreachable, or always", default=None)
    parser.add_argument("--no-connectivity-check", action="store_true", help="Accept processes with disconnected elements")
    parser.add_argument("--save", action="store_true", help="Write every accepted process to the output directory")
    return parser


def retrieve_args() -> Namespace:
    parser = define_parser()
    return parser.parse_args()


def main():
    load_dotenv(dotenv_path=DOTENV)
    ensure_output_dirs()

    args = retrieve_args()

    overrides = {"enforce_connectivity": not args.no_connectivity_check}
    if args.fallback:
        overrides["fallback_mode"] = FallbackMode(args.fallback)
    config = SystemConfig(**overrides)

    session = run_chat(config, save=args.save)

    Logger.log_info(f"Completed! Last process: {session.payload.id if session.payload else None}")


if __name__ == "__main__":
    main()
