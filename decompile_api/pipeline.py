import logging

from .config import Config
from .invoker import classify, run_decompiler
from .staging import staged_file
from .validation import validate_payload

logger = logging.getLogger(__name__)


def decompile(body: bytes, content_type, config: Config) -> str:
    """Validate, stage and decompile one payload.

    The staged file is gone by the time this returns or raises.
    """
    request = validate_payload(body, content_type, config.max_file_size)
    logger.info(f"Decompiling {request.size} bytes ({request.encoding})")

    with staged_file(request.payload) as staged:
        outcome = run_decompiler(
            config.decompiler_path,
            staged.path,
            config.output_flag,
            timeout=config.timeout,
            max_output=config.max_output_size,
            env=config.decompiler_env(),
        )

    return classify(outcome)
