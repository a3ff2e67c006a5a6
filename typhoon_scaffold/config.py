"""typhoon-scaffold configuration.

Typed settings for the scaffolder.  All settings use Pydantic v2 models so
they are validated at construction time and can be serialised to/from JSON or
read from environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator


# Published release of the Typhoon crates referenced by programs created
# outside the framework repository.
TYPHOON_VERSION = "0.1.0-alpha.16"


class Config(BaseModel):
    """Global scaffolder configuration.

    Instances are typically created once by the CLI entry point and handed to
    the ``ScaffoldOrchestrator``.
    """

    output_dir: Path = Field(
        default=Path("."),
        description="Directory new projects are created in, relative to the working directory",
    )
    license: str = Field(default="Apache-2.0", min_length=1)
    default_template: str = Field(default="counter")
    programs_dir: str = Field(
        default="programs",
        description="Directory inside a workspace that holds member programs",
    )
    typhoon_version: str = Field(default=TYPHOON_VERSION, min_length=1)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @field_validator("default_template")
    @classmethod
    def _known_template(cls, value: str) -> str:
        from .scaffolder.catalog import available_templates

        if value not in available_templates():
            raise ValueError(
                f"unknown template {value!r}; expected one of {', '.join(available_templates())}"
            )
        return value

    @field_validator("programs_dir")
    @classmethod
    def _single_component(cls, value: str) -> str:
        if not value or value in (".", "..") or "/" in value or "\\" in value:
            raise ValueError("programs_dir must be a single directory name")
        return value

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file.

        Returns:
            The path where the file was written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            TYPHOON_OUTPUT_DIR, TYPHOON_LICENSE, TYPHOON_DEFAULT_TEMPLATE,
            TYPHOON_PROGRAMS_DIR.
        """
        return cls(
            output_dir=Path(os.environ.get("TYPHOON_OUTPUT_DIR", ".")),
            license=os.environ.get("TYPHOON_LICENSE", "Apache-2.0"),
            default_template=os.environ.get("TYPHOON_DEFAULT_TEMPLATE", "counter"),
            programs_dir=os.environ.get("TYPHOON_PROGRAMS_DIR", "programs"),
        )
