import os
from typing import List, Optional
from pydantic import BaseModel, Field


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return float(value)


class Settings(BaseModel):
    """Runtime configuration, populated from NETPILOT_* environment variables"""
    host: str = "0.0.0.0"
    port: int = 8080

    tc_binary: str = "tc"
    ip_binary: str = "ip"
    use_sudo: bool = Field(False, description="Prefix every command with sudo")

    executor: str = Field("local", description="Command executor: 'local' or 'docker'")
    container: str = Field("router", description="Target container for the docker executor")
    command_timeout: Optional[float] = Field(None, description="Seconds before a command is abandoned")

    cors_origins: List[str] = ["*"]
    static_dir: str = "frontend/build"

    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv('NETPILOT_CORS_ORIGINS', '*')
        return cls(
            host=os.getenv('NETPILOT_HOST', '0.0.0.0'),
            port=int(os.getenv('NETPILOT_PORT', '8080')),
            tc_binary=os.getenv('NETPILOT_TC_BINARY', 'tc'),
            ip_binary=os.getenv('NETPILOT_IP_BINARY', 'ip'),
            use_sudo=_env_bool('NETPILOT_USE_SUDO'),
            executor=os.getenv('NETPILOT_EXECUTOR', 'local').lower(),
            container=os.getenv('NETPILOT_CONTAINER', 'router'),
            command_timeout=_env_float('NETPILOT_COMMAND_TIMEOUT'),
            cors_origins=[o.strip() for o in origins.split(',') if o.strip()],
            static_dir=os.getenv('NETPILOT_STATIC_DIR', 'frontend/build'),
            log_level=os.getenv('NETPILOT_LOG_LEVEL', 'INFO').upper(),
            log_file=os.getenv('NETPILOT_LOG_FILE') or None,
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Settings for this process (read from the environment once)"""
    global _settings

    if _settings is None:
        _settings = Settings.from_env()
    return _settings
