import logging

from typing import Optional

from bpmn_chat.core.models import Intent, ProcessPayload


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

class Logger:
    @staticmethod
    def log_info(line: str) -> None:
        logger.info(line)


    @staticmethod
    def log_error(line: str) -> None:
        logger.error(line)


    @staticmethod
    def log_warning(line: str) -> None:
        logger.warning(line)


    @staticmethod
    def log_debug(line: str) -> None:
        logger.debug(line)


    @staticmethod
    def log_title(title: str) -> None:
        logger.info("="*60)
        logger.info(title)
        logger.info("="*60)


    @staticmethod
    def log_models(model: str, base_url: Optional[str] = None) -> None:
        if base_url:
            logger.info(f"Using model: {model} @ {base_url}")
        else:
            logger.info(f"Using model: {model}")


    @staticmethod
    def log_turn_start(session_id: str, intent: Intent, user_text: str) -> None:
        Logger.log_title(f"TURN ({intent.value.upper()}) - session {session_id[:8]}")
        logger.info(f"User text preview: {user_text[:200]}")


    @staticmethod
    def log_instruction(intent: Intent, instruction: str) -> None:
        logger.debug(f"{intent.value} instruction:\n{instruction}")


    @staticmethod
    def log_response(raw_response: str) -> None:
        logger.debug(f"Raw model response:\n{raw_response}")


    @staticmethod
    def log_elapsed(seconds: float) -> None:
        logger.info(f"Time elapsed: {seconds:.2f} seconds")


    @staticmethod
    def log_payload(payload: ProcessPayload) -> None:
        logger.info(
            f"Accepted process '{payload.id}' with {len(payload.elements)} elements "
            f"({payload.flow_count()} sequence flows)"
        )
