"""
PipelineLogger: Structured JSON logging for the matting pipeline
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_LOG_FILE = Path.home() / ".local/share/flatmatte/debug.log"


class PipelineLogger:
    """Logger with per-image JSON records and debug modes"""

    def __init__(
        self,
        log_file: Optional[Path] = None,
        debug_mode: bool = False,
        verbose: bool = False,
    ):
        self.log_file = log_file or DEFAULT_LOG_FILE
        self.debug_mode = debug_mode
        self.verbose = verbose
        self.current_image: Optional[Dict[str, Any]] = None
        self.logs: list[Dict[str, Any]] = []

        self.logger = logging.getLogger("flatmatte.pipeline")
        self.logger.setLevel(logging.DEBUG if debug_mode else logging.INFO)

    def start_image(self, source: Any, **info):
        """Start logging for a new image (a path or a buffer description)"""
        self.current_image = {
            "image": str(source),
            "timestamp": datetime.now().isoformat(),
            **info,
            "stages": [],
        }

    def log_s1(self, **kwargs):
        """Log Stage 1: Background Estimation"""
        self._log_stage("s1_background_estimation", kwargs)

    def log_s2(self, **kwargs):
        """Log Stage 2: Border Flood Fill"""
        self._log_stage("s2_segmentation", kwargs)

    def log_s3(self, **kwargs):
        """Log Stage 3: Interior Islands"""
        self._log_stage("s3_interior_islands", kwargs)

    def log_s4(self, **kwargs):
        """Log Stage 4: Transition Refinement"""
        self._log_stage("s4_transition_refinement", kwargs)

    def log_s5(self, **kwargs):
        """Log Stage 5: Boundary Relaxation"""
        self._log_stage("s5_boundary_relaxation", kwargs)

    def log_s6(self, **kwargs):
        """Log Stage 6: Alpha Compositing"""
        self._log_stage("s6_alpha_composite", kwargs)

    def log_s7(self, **kwargs):
        """Log Stage 7: Post-Filters"""
        self._log_stage("s7_post_filters", kwargs)

    def _log_stage(self, stage_name: str, data: Dict[str, Any]):
        """Internal method to log a stage"""
        if self.current_image is None:
            raise RuntimeError("Must call start_image() before logging stages")

        stage_log = {
            "stage": stage_name,
            "timestamp": datetime.now().isoformat(),
            **data,
        }
        self.current_image["stages"].append(stage_log)

        if self.debug_mode:
            print(f"[{stage_name}] {json.dumps(data, indent=2, default=str)}")

    def log_info(self, message: str):
        """Log info message"""
        self.logger.info(message)
        if self.verbose:
            print(f"INFO: {message}")

    def log_warning(self, message: str):
        """Log warning message"""
        self.logger.warning(message)
        print(f"WARNING: {message}")

    def log_error(self, message: str, exc_info: bool = False):
        """Log error message"""
        self.logger.error(message, exc_info=exc_info)
        print(f"ERROR: {message}")

    def finish_image(self) -> Optional[Dict[str, Any]]:
        """Close the current image record without writing it"""
        record = self.current_image
        if record is not None:
            self.logs.append(record)
        self.current_image = None
        return record

    def save_image_log(self):
        """Save current image log to file"""
        record = self.finish_image()
        if record is None:
            return

        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.log_file, "a") as f:
            json.dump(record, f, default=str)
            f.write("\n")
