import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Any

from ..core.transform import RigidTransform
from ..core.types import Tracker, Lighthouse, Light, Correction, CalibrationResult, TrajectorySample
from .bundler import bundle_measurements, bundle_corrections, CorrectionBundle
from .pose_solver import PerspectivePoseSolver, PoseSolverConfig, PoseMap
from .registration import register_lighthouses, register_world

logger = logging.getLogger(__name__)


@dataclass
class CalibratorConfig:
    resolution: float = 0.1
    correct: bool = False
    offset: List[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])
    min_alignment_correspondences: int = 3
    solver: PoseSolverConfig = field(default_factory=PoseSolverConfig)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "CalibratorConfig":
        solver_cfg = d.get("solver", {})
        return CalibratorConfig(
            resolution=float(d.get("resolution", 0.1)),
            correct=bool(d.get("correct", False)),
            offset=[float(x) for x in d.get("offset", [0.0, 0.0, 0.0])],
            min_alignment_correspondences=int(solver_cfg.get("min_alignment_correspondences", 3)),
            solver=PoseSolverConfig.from_dict(solver_cfg),
        )


def _sample(t: float, T: RigidTransform) -> TrajectorySample:
    return TrajectorySample(timestamp=t, position=T.translation.copy(), orientation=T.as_quaternion())


class Calibrator:
    """
    Batch solver: bundle -> per-instant poses -> lighthouse registration ->
    world registration. Degenerate stages produce identity or missing entries
    and the pipeline keeps going.
    """

    def __init__(self, config: CalibratorConfig = CalibratorConfig()):
        self._cfg = config
        self._pose_solver = PerspectivePoseSolver(config.solver)

    @property
    def config(self) -> CalibratorConfig:
        return self._cfg

    def solve(self, trackers: Dict[str, Tracker], lighthouses: Dict[str, Lighthouse],
              measurements: Sequence[Light], corrections: Sequence[Correction]) -> CalibrationResult:
        if len(measurements) == 0:
            logger.warning("Insufficient measurements received, so cannot solve problem.")
            return CalibrationResult(success=False, message="No measurements recorded.")
        t0 = min(m.timestamp for m in measurements)
        t1 = max(m.timestamp for m in measurements)
        logger.info(f"Processing {len(measurements)} measurements running for {t1 - t0:.3f} seconds from {t0:.3f} to {t1:.3f}")
        if len(corrections) == 0:
            logger.info("No corrections in dataset. Assuming first body pose at origin.")
        else:
            c0 = min(c.timestamp for c in corrections)
            c1 = max(c.timestamp for c in corrections)
            logger.info(f"Processing {len(corrections)} corrections running for {c1 - c0:.3f} seconds from {c0:.3f} to {c1:.3f}")

        res = float(self._cfg.resolution)
        logger.info("Bundling measurements into larger discrete time units.")
        bundle = bundle_measurements(measurements, res)
        logger.info("Bundling corrections into larger discrete time units.")
        cor = bundle_corrections(corrections, res)

        logger.info("Using PnP to estimate pose sequence in every lighthouse frame.")
        poses, count = self._pose_solver.solve_bundle(bundle, trackers, lighthouses, self._cfg.correct)

        lserials = list(lighthouses.keys())
        tserials = list(trackers.keys())
        vTl, counts = register_lighthouses(poses, lserials, tserials, int(self._cfg.min_alignment_correspondences))

        wTv = RigidTransform.identity()
        if lserials:
            wTv, n_world = register_world(poses, cor, tserials, lserials[0], self._cfg.offset)
            counts["world"] = n_world

        return CalibrationResult(
            success=True,
            message="Solution found.",
            wTv=wTv,
            lighthouses=vTl,
            trackers={serial: tr.extrinsics for serial, tr in trackers.items()},
            paths=self.build_paths(poses, lserials, tserials),
            truth=self.build_truth(cor),
            height=cor.height,
            num_poses=count,
            num_correspondences=counts,
        )

    @staticmethod
    def build_paths(poses: PoseMap, lighthouses: Sequence[str], trackers: Sequence[str]) -> Dict[str, Dict[str, List[TrajectorySample]]]:
        paths: Dict[str, Dict[str, List[TrajectorySample]]] = {}
        for lserial in lighthouses:
            paths[lserial] = {}
            for tserial in trackers:
                sequence = poses.get(tserial, {})
                paths[lserial][tserial] = [
                    _sample(t, sequence[t][lserial]) for t in sorted(sequence.keys()) if lserial in sequence[t]
                ]
        return paths

    @staticmethod
    def build_truth(cor: CorrectionBundle) -> List[TrajectorySample]:
        return [_sample(t, cor.transforms[t]) for t in cor.buckets()]
