import os
from dataclasses import dataclass
from typing import Mapping, Optional


def _int_env(environ: Mapping[str, str], name: str, default: int) -> int:
    # Unset, garbage and non-positive values all mean "use the default".
    try:
        value = int(environ.get(name, ""))
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class Config:
    host: str = "0.0.0.0"
    port: int = 8080
    max_file_size: int = 5 * 1024 * 1024
    decompiler_path: str = "/usr/local/bin/luau-lifter"
    output_flag: str = "-e"
    rate_limit_window: float = 15 * 60.0
    rate_limit_max_requests: int = 100
    timeout: float = 30.0
    max_output_size: int = 10 * 1024 * 1024
    log_level: str = "INFO"
    rust_log: str = "info"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """Read the process configuration once; durations are given in milliseconds."""
        if environ is None:
            environ = os.environ
        defaults = cls()
        return cls(
            host=environ.get("HOST") or defaults.host,
            port=_int_env(environ, "PORT", defaults.port),
            max_file_size=_int_env(environ, "MAX_FILE_SIZE", defaults.max_file_size),
            decompiler_path=environ.get("RUST_BINARY_PATH") or defaults.decompiler_path,
            output_flag=environ.get("DECOMPILER_OUTPUT_FLAG") or defaults.output_flag,
            rate_limit_window=_int_env(
                environ, "RATE_LIMIT_WINDOW", int(defaults.rate_limit_window * 1000)
            ) / 1000.0,
            rate_limit_max_requests=_int_env(
                environ, "RATE_LIMIT_MAX_REQUESTS", defaults.rate_limit_max_requests
            ),
            timeout=_int_env(environ, "BINARY_TIMEOUT", int(defaults.timeout * 1000)) / 1000.0,
            max_output_size=_int_env(environ, "MAX_OUTPUT_SIZE", defaults.max_output_size),
            log_level=(environ.get("LOG_LEVEL") or defaults.log_level).upper(),
            rust_log=environ.get("RUST_LOG") or defaults.rust_log,
        )

    def decompiler_env(self) -> dict:
        env = dict(os.environ)
        env["RUST_LOG"] = self.rust_log
        return env
