"""
Trace file writer — drops an execution snapshot on disk as JSON.

Files land at {traces_dir}/{executionId}.json, where traces_dir defaults
to settings.traces_dir (XRAY_TRACES_DIR).
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

from xray.config import settings
from xray.utils.logger import get_logger

logger = get_logger(__name__)


def execution_file_path(snapshot: Dict[str, Any], traces_dir: Optional[Union[str, Path]] = None) -> Path:
    """Path the snapshot would be written to."""
    base = Path(traces_dir) if traces_dir is not None else settings.traces_dir
    return base / f"{snapshot['executionId']}.json"


def write_execution_file(snapshot: Dict[str, Any], traces_dir: Optional[Union[str, Path]] = None) -> Path:
    """
    Write a snapshot as pretty-printed JSON.

    Args:
        snapshot: Snapshot produced by XRay.serialize()
        traces_dir: Target directory; created if missing

    Returns:
        Path to the written file
    """
    file_path = execution_file_path(snapshot, traces_dir)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    with open(file_path, "w") as f:
        json.dump(snapshot, f, indent=2, default=str)

    logger.info(f"Execution file written: {file_path}")
    return file_path


def read_execution_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a snapshot written by write_execution_file()."""
    with open(path) as f:
        return json.load(f)
