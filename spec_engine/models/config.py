"""Engine configuration."""

from typing import Any, Literal

from pydantic import Field

from spec_engine.locations import (
    ExceptionCarriesLocation,
    LocationStrategy,
    RecoverLocationByReplay,
)
from spec_engine.models.base import Model


class EngineConfig(Model):
    """Settings for a run, usually passed as JSON on the command line."""

    location_strategy: Literal["traceback", "replay"] = Field(
        default="traceback",
        description=(
            "How failure locations are obtained: from the exception traceback, "
            "or by replaying the failing task"
        ),
    )
    reporter: str = Field(
        default="logging", description="Key of the reporter entry point"
    )
    reporter_config: dict[str, Any] = Field(
        default_factory=dict, description="Settings passed to the reporter"
    )

    def build_location_strategy(self) -> LocationStrategy:
        if self.location_strategy == "replay":
            return RecoverLocationByReplay()
        return ExceptionCarriesLocation()
