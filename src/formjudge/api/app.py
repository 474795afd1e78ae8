"""FastAPI application serving the uniqueness endpoint."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from formjudge.api.endpoints import create_validations_router
from formjudge.config import JudgeConfig
from formjudge.exposure import ExposurePolicy, load_exposure_file
from formjudge.remote.checker import UniquenessChecker

logger = logging.getLogger(__name__)


def create_app(
    checker: UniquenessChecker,
    policy: ExposurePolicy | None = None,
    config: JudgeConfig | None = None,
) -> FastAPI:
    """Create the application.

    The exposure policy is resolved once at startup: an explicit policy wins,
    otherwise it is loaded from config.exposure_file, otherwise nothing is
    exposed and every query is refused.

    Args:
        checker: Performs uniqueness lookups
        policy: Exposure allow-list
        config: Mount path, exposure file and messages; read from env if None
    """
    config = config or JudgeConfig.from_env(Path.cwd())
    state: dict[str, ExposurePolicy | None] = {"policy": policy}

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Load the exposure policy on startup."""
        if state["policy"] is None:
            if config.exposure_file is not None:
                state["policy"] = load_exposure_file(config.exposure_file)
            else:
                logger.warning("No exposure policy configured; all uniqueness queries will be refused")
                state["policy"] = ExposurePolicy()
        yield

    app = FastAPI(title="formjudge", lifespan=lifespan)
    app.include_router(
        create_validations_router(
            get_policy=lambda: state["policy"],
            get_checker=lambda: checker,
            mount_path=config.mount_path,
            taken_message=config.taken_message,
        )
    )
    return app
