"""Caller-visible step outputs."""

import logging
import os
import uuid
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class StepOutputs:
    """Records outputs and mirrors them to the CI output file when one is configured.

    On GitHub Actions the file is named by GITHUB_OUTPUT; elsewhere outputs
    are only logged and kept in ``values``.
    """

    def __init__(self, output_file: Optional[Path] = None):
        if output_file is None and os.environ.get("GITHUB_OUTPUT"):
            output_file = Path(os.environ["GITHUB_OUTPUT"])
        self.output_file = output_file
        self.values: Dict[str, str] = {}

    def set(self, name: str, value: str) -> None:
        self.values[name] = value
        logger.info(f"Output {name}={value}")
        if self.output_file is None:
            return
        with open(self.output_file, "a", encoding="utf-8") as f:
            if "\n" in value:
                delimiter = f"ghadelimiter_{uuid.uuid4().hex}"
                f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
            else:
                f.write(f"{name}={value}\n")
