import time
from typing import Callable, FrozenSet, TypeVar

from bpmn_chat.core.exceptions import GatewayError
from bpmn_chat.core.logger import Logger
from bpmn_chat.core.models import GatewayCause

T = TypeVar("T")

RETRYABLE_CAUSES: FrozenSet[GatewayCause] = frozenset({GatewayCause.NETWORK})


def call_with_retries(
    fn: Callable[[], T],
    retries: int = 0,
    retry_causes: FrozenSet[GatewayCause] = RETRYABLE_CAUSES,
    backoff_seconds: float = 2.0,
) -> T:
    """
    Call a gateway operation, retrying transient gateway failures.

    Args:
        fn: Zero-argument callable performing one gateway call
        retries: Additional attempts after the first one
        retry_causes: Gateway causes worth another attempt
        backoff_seconds: Base delay, multiplied by the attempt number

    Returns:
        Result of the first successful call

    Raises:
        GatewayError: The last failure, or the first one with a non-retryable cause
    """
    attempts = retries + 1
    attempt = 0

    while True:
        attempt += 1
        try:
            return fn()
        except GatewayError as e:
            if e.cause not in retry_causes or attempt >= attempts:
                raise
            Logger.log_warning(
                f"LLM call failed (attempt {attempt}/{attempts}): {e}"
            )
            time.sleep(backoff_seconds * attempt)
