import logging
import threading
import time
from typing import Optional

from .composer import PoseComposer
from .config import RunConfig, RunSummary
from .dm_types import CameraIntrinsics, MarkerObservation, MarkerPose
from .strategies.display import ESC_KEY, NullDisplay, annotate
from .transforms import DegenerateTransformError


class MarkerPoseFacade:
    """
    The frame loop: capture -> detect -> estimate -> compose -> show.

    Every stage is injected so the loop runs without a camera or window.
    """

    def __init__(
        self,
        cap,
        det,
        loc,
        composer: PoseComposer,
        display=None,
        logger: Optional[logging.Logger] = None,
        target_ids=None,
    ):
        self.cap = cap
        self.det = det
        self.loc = loc
        self.composer = composer
        self.display = display if display is not None else NullDisplay()
        self.log = logger or logging.getLogger(__name__)
        self._stop_event = threading.Event()

        if target_ids is None:
            self.target_ids = None
        elif isinstance(target_ids, int):
            self.target_ids = {int(target_ids)}
        elif isinstance(target_ids, (list, tuple, set)):
            self.target_ids = {int(tid) for tid in target_ids}
        else:
            raise TypeError("target_ids must be int, list, tuple, set, or None")

    def stop(self) -> None:
        self._stop_event.set()

    @property
    def intrinsics(self) -> CameraIntrinsics:
        return getattr(self.loc, "intrinsics", CameraIntrinsics())

    def _first_pose(
        self, observations: list[MarkerObservation], poses: list[Optional[MarkerPose]]
    ) -> Optional[MarkerPose]:
        # poses line up with observations; None where the solver failed
        for obs, pose in zip(observations, poses):
            if self.target_ids is not None and obs.marker_id not in self.target_ids:
                continue
            if pose is not None:
                return pose
        return None

    def run(self, config: RunConfig) -> RunSummary:
        self.log.info("run started: %s", config.as_dict())

        frames = 0
        with_markers = 0
        compositions = 0
        errors = 0
        stopped_by = "end_of_stream"

        try:
            self.cap.start()
            t0 = time.time()
            while True:
                if self._stop_event.is_set():
                    stopped_by = "stopped"
                    break
                if config.duration_sec is not None and (time.time() - t0) >= config.duration_sec:
                    stopped_by = "duration"
                    break
                if config.max_frames is not None and frames >= config.max_frames:
                    stopped_by = "max_frames"
                    break

                f = self.cap.next_frame()
                if f is None:
                    stopped_by = "end_of_stream"
                    break

                observations = self.det.detect(f.image)
                poses: list[Optional[MarkerPose]] = []
                if observations:
                    with_markers += 1
                    poses = self.loc.estimate(observations)

                    pose = self._first_pose(observations, poses)
                    if pose is not None:
                        try:
                            self.composer.compose(pose)
                            compositions += 1
                        except DegenerateTransformError as e:
                            errors += 1
                            self.log.warning(
                                "frame=%d marker=%d: cannot compose pose: %s",
                                f.idx, pose.marker_id, e,
                            )

                draw = annotate(
                    f.image, observations, poses, self.intrinsics, config.marker_length_m
                )
                frames += 1
                self.log.debug(
                    "frame=%d markers=%d poses=%d", f.idx, len(observations),
                    sum(p is not None for p in poses),
                )

                if self.display.show(draw) == ESC_KEY:
                    stopped_by = "key"
                    break

        finally:
            try:
                self.cap.stop()
            except Exception as e:
                self.log.warning("Stopping capture failed: %s", e)
            try:
                self.display.close()
            except Exception as e:
                self.log.warning("Closing display failed: %s", e)
            self.composer.close()

        avg = frames / max(1e-6, (time.time() - t0))
        self.log.info(
            "summary frames=%d with_markers=%d compositions=%d errors=%d avg_fps=%.2f stopped_by=%s",
            frames, with_markers, compositions, errors, avg, stopped_by,
        )
        return RunSummary(frames, with_markers, compositions, errors, avg, stopped_by)
