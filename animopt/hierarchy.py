"""Hierarchical error budgeting.

Every joint resolves its own Setting (own override, else nearest ancestor
override, else the global setting) and gets a HierarchySpec describing how
far its error can be carried: the lever (reach of its whole child hierarchy,
or its setting distance if bigger) and the scale accumulated from its
ancestors.

Targets are handed out root to leaves. A joint's residual is its tolerance
minus the targets of its ancestors; it may spend an equal share of that
residual per level of its deepest downstream chain, so that the error
summed along any chain stays within the chain's tolerance.
"""

import logging
from dataclasses import dataclass

import numpy as np

from animopt.config import DEFAULT_DISTANCE, DEFAULT_TOLERANCE
from animopt.raw_animation import TrackType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Setting:
    # Maximum error an optimization may generate on a whole joint hierarchy.
    tolerance: float = DEFAULT_TOLERANCE
    # Distance from the joint at which error is measured, emulating skinning.
    distance: float = DEFAULT_DISTANCE

    def is_valid(self) -> bool:
        return self.tolerance >= 0.0 and self.distance >= 0.0


@dataclass(frozen=True)
class HierarchySpec:
    setting: Setting      # resolved setting of the joint
    lever: float          # reach of the joint hierarchy, at least setting.distance
    own_scale: float      # largest scale component of the joint's scale keys
    parent_scale: float   # scale accumulated from all parents
    height: int           # joints on the longest chain below this one


def resolve_settings(skeleton, setting: Setting, overrides: dict) -> list:
    """Effective Setting per joint, computed once in topological order."""
    n = skeleton.num_joints
    for joint in sorted(overrides):
        if not 0 <= joint < n:
            logger.warning("Ignoring setting override for unknown joint %d", joint)

    resolved = [None] * n
    for si in skeleton.iter_topological():
        if si in overrides:
            resolved[si] = overrides[si]
        else:
            pi = skeleton.parent_indices[si]
            resolved[si] = resolved[pi] if pi >= 0 else setting
    return resolved


def _max_scale(keys) -> float:
    if not keys:
        return 1.0
    return float(np.abs(np.array([k.value for k in keys], dtype=np.float64)).max())


def _max_length(keys) -> float:
    if not keys:
        return 0.0
    values = np.array([k.value for k in keys], dtype=np.float64)
    return float(np.sqrt((values ** 2).sum(axis=-1)).max())


def build_hierarchy_specs(skeleton, animation, resolved: list) -> list:
    """One HierarchySpec per joint, from the (original) animation key values."""
    n = skeleton.num_joints
    parents = skeleton.parent_indices
    own_scale = [_max_scale(animation.tracks[si].keys(TrackType.SCALE)) for si in range(n)]
    max_translation = [_max_length(animation.tracks[si].keys(TrackType.TRANSLATION))
                       for si in range(n)]

    # Levers, children to parents.
    lever = [resolved[si].distance for si in range(n)]
    for si in reversed(range(n)):
        pi = parents[si]
        if pi >= 0:
            lever[pi] = max(lever[pi], max_translation[si] + own_scale[si] * lever[si])

    # Accumulated scales, parents to children.
    parent_scale = [1.0] * n
    for si in skeleton.iter_topological():
        pi = parents[si]
        if pi >= 0:
            parent_scale[si] = parent_scale[pi] * own_scale[pi]

    heights = skeleton.heights()
    return [
        HierarchySpec(
            setting=resolved[si],
            lever=lever[si],
            own_scale=own_scale[si],
            parent_scale=parent_scale[si],
            height=heights[si],
        )
        for si in range(n)
    ]


class HierarchyBudget:
    """Error targets of every joint, fixed before any track is decimated.

    A joint never spends more than its target, so the targets of its
    ancestors bound the error they introduce. Each joint inherits the sum of
    its ancestors' targets; targets only depend on the settings and the
    hierarchy.
    """

    def __init__(self, skeleton, specs: list):
        self.skeleton = skeleton
        self.specs = specs
        self.inherited = [0.0] * skeleton.num_joints
        for si in skeleton.iter_topological():
            pi = skeleton.parent_indices[si]
            if pi >= 0:
                self.inherited[si] = self.inherited[pi] + self.target(pi)

    def residual(self, joint: int) -> float:
        return max(0.0, self.specs[joint].setting.tolerance - self.inherited[joint])

    def target(self, joint: int) -> float:
        """Error the joint's own tracks may introduce."""
        return self.residual(joint) / (self.specs[joint].height + 1)
