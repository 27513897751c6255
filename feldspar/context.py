"""Runtime context shared by the host functions.

``FeldsparRuntime`` owns the two pieces of process-wide state the host
functions need: the current model target and the background loop used to run
asynchronous requests. It is created once by the CLI and passed explicitly to
the function registry.
"""

import threading

from feldspar.config import FeldsparSettings, get_settings
from feldspar.logging_config import get_logger
from feldspar.models.config import ModelConfig
from feldspar.runtime import BackgroundLoop

logger = get_logger(__name__)


class FeldsparRuntime:
    """Holds the live model configuration and the background loop.

    The configuration is swapped as a whole under a lock; readers take a
    snapshot and never see half of an update.
    """

    def __init__(
        self,
        config: ModelConfig | None = None,
        loop: BackgroundLoop | None = None,
        settings: FeldsparSettings | None = None,
    ):
        """Initialize the runtime.

        Args:
            config: Starting model target (defaults to the one described by settings)
            loop: Background loop to use (a new one is started if omitted)
            settings: Settings to read defaults from (defaults to the global settings)
        """
        self.settings = settings or get_settings()
        self._config = config or ModelConfig.from_names(
            self.settings.default_url,
            self.settings.default_token,
            self.settings.default_model,
            self.settings.default_adapter,
        )
        self._config_lock = threading.Lock()
        self.loop = loop or BackgroundLoop()

    def snapshot(self) -> ModelConfig:
        """Return the current model configuration."""
        with self._config_lock:
            return self._config

    def replace(self, config: ModelConfig) -> ModelConfig:
        """Swap in a new model configuration and return the previous one."""
        with self._config_lock:
            previous, self._config = self._config, config
        logger.debug(f"Model target replaced: {previous!r} -> {config!r}")
        return previous

    def close(self) -> None:
        self.loop.close()

    def __enter__(self) -> "FeldsparRuntime":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
