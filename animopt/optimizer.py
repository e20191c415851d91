"""Hierarchical key-frame reduction of a RawAnimation.

Joints are optimized root to leaves. Each joint receives a target error
from HierarchyBudget and shares it between its translation, rotation and
scale tracks: with the SUM combination every decimatable track gets an
equal share, with MAX each gets the whole target.

Tracks are then refined over iterations, one per rung of the tolerance
ladder: at each rung every track is decimated again with a larger own
tolerance (a fraction of its share) and the candidate is validated if it
removes keys while keeping the joint within target. Every candidate is
reported to the observer, which may stop the pass early; the rungs already
validated are kept.
"""

import logging

from animopt.config import DEFAULT_COMBINATION, TOLERANCE_LADDER
from animopt.decimate import decimate
from animopt.hierarchy import (
    HierarchyBudget,
    Setting,
    build_hierarchy_specs,
    resolve_settings,
)
from animopt.observer import ObserverData
from animopt.propagation import ErrorCombination, positional_error_fn, track_error
from animopt.raw_animation import JointTrack, RawAnimation, TrackType

logger = logging.getLogger(__name__)

# Relative slack on the joint target, absorbs float rounding between the
# decimation span check and the resampled track error.
_TARGET_SLACK = 1e-9


class _TrackState:
    """Search state of one track of the joint being optimized."""

    def __init__(self, track_type, keys, error_fn):
        self.type = track_type
        self.original = list(keys)
        self.validated = list(keys)
        self.error = 0.0
        self.error_fn = error_fn
        self.done = len(keys) <= 2


class AnimationOptimizer:
    """Decimates keys within hierarchical error tolerances.

    The error of each joint is evaluated on its whole child hierarchy, so a
    small error on a shoulder that gets magnified at the finger tip is
    accounted for. Per-joint overrides apply to the joint and, unless
    overridden again, to its descendants.
    """

    def __init__(self, setting=None, joints_setting_override=None, observer=None,
                 combination=DEFAULT_COMBINATION, ladder=TOLERANCE_LADDER):
        self.setting = setting if setting is not None else Setting()
        self.joints_setting_override = dict(joints_setting_override or {})
        self.observer = observer
        self.combination = ErrorCombination.parse(combination)
        self.ladder = tuple(sorted(float(r) for r in ladder))

    def __call__(self, input_animation: RawAnimation, skeleton,
                 output: RawAnimation) -> bool:
        """Optimize input_animation into output.

        Returns False and resets output when the input is invalid, does not
        match the skeleton, or a setting is negative.
        """
        if not self._check(input_animation, skeleton):
            output.reset()
            return False

        resolved = resolve_settings(skeleton, self.setting, self.joints_setting_override)
        specs = build_hierarchy_specs(skeleton, input_animation, resolved)
        budget = HierarchyBudget(skeleton, specs)

        result = RawAnimation(duration=input_animation.duration,
                              name=input_animation.name)
        iteration = 0
        aborted = False
        for si in skeleton.iter_topological():
            source = input_animation.tracks[si]
            if aborted:
                result.tracks.append(JointTrack(list(source.translations),
                                                list(source.rotations),
                                                list(source.scales)))
                continue

            target = budget.target(si)
            track, spent, iteration, aborted = self._optimize_joint(
                si, source, specs[si], target, iteration)
            result.tracks.append(track)
            logger.debug("joint %d (%s): target %.6g spent %.6g keys %d -> %d",
                         si, skeleton.joint_names[si], target, spent,
                         source.key_count(), track.key_count())

        if aborted:
            logger.debug("Optimization of %r stopped by observer after %d iterations",
                         input_animation.name, iteration)
        output.assign(result)
        return True

    def _check(self, animation, skeleton) -> bool:
        if not animation.validate():
            logger.debug("Optimizer input %r is not a valid animation", animation.name)
            return False
        if animation.num_tracks != skeleton.num_joints:
            logger.debug("Animation has %d tracks, skeleton has %d joints",
                         animation.num_tracks, skeleton.num_joints)
            return False
        settings = [self.setting, *self.joints_setting_override.values()]
        if not all(s.is_valid() for s in settings):
            logger.debug("Negative optimization setting")
            return False
        return True

    def _share(self, target, states) -> float:
        """Own error budget of each decimatable track."""
        count = sum(1 for s in states if not s.done)
        if self.combination is ErrorCombination.SUM and count:
            return target / count
        return target

    def _optimize_joint(self, joint, source, spec, target, iteration):
        """Returns (JointTrack, error spent, iteration, aborted)."""
        states = [
            _TrackState(tt, source.keys(tt),
                        positional_error_fn(tt, spec.lever, spec.own_scale, spec.parent_scale))
            for tt in TrackType
        ]
        if not target > 0.0:
            for state in states:
                state.done = True
        share = self._share(target, states)

        aborted = False
        for ratio in self.ladder:
            if aborted or all(s.done for s in states):
                break
            iteration += 1
            own_tolerance = ratio * share
            for state in states:
                if state.done:
                    continue
                candidate = decimate(state.original, own_tolerance, state.type, state.error_fn)
                own_error = track_error(state.original, candidate, state.type, state.error_fn)
                others = [s.error for s in states if s is not state]
                joint_error = self.combination.combine(others + [own_error])
                removed = len(state.validated) - len(candidate)
                delta = 0.0
                if removed > 0:
                    delta = removed / max(own_error - state.error, 1e-12)

                if self.observer is not None:
                    keep_going = self.observer.push(ObserverData(
                        iteration=iteration,
                        joint=joint,
                        type=int(state.type),
                        target_error=target,
                        distance=spec.lever,
                        original_size=len(state.original),
                        validated_size=len(state.validated),
                        candidate_size=len(candidate),
                        own_tolerance=own_tolerance,
                        own_error=own_error,
                        hierarchy_error_ratio=joint_error / target,
                        optimization_delta=delta,
                    ))
                    if not keep_going:
                        aborted = True
                        break

                if removed > 0 and joint_error <= target * (1.0 + _TARGET_SLACK):
                    state.validated = candidate
                    state.error = own_error
                if len(state.validated) <= 2:
                    state.done = True

        track = JointTrack()
        for state in states:
            track.set_keys(state.type, state.validated)
        spent = self.combination.combine(s.error for s in states)
        return track, spent, iteration, aborted
