#!/usr/bin/env python3
"""Optimization check on a procedural rig: key counts vs FK-measured error.

Builds a small humanoid-like rig (spine, head, two arms down to the
fingers), animates it with swinging rotations and a travelling root, then
runs the constant and hierarchical optimizers and compares world-space
joint trajectories of the result with the raw animation.

Usage:
    python verify_optimization.py [--tolerance 0.001] [--distance 0.1]
        [--override 8=0.0001] [--combination sum|max] [--trace]
"""

import argparse
import logging

import numpy as np

from animopt.constant import AnimationConstantOptimizer
from animopt.hierarchy import Setting, resolve_settings
from animopt.observer import LoggingObserver, RecordingObserver
from animopt.optimizer import AnimationOptimizer
from animopt.propagation import measure_joint_errors
from animopt.raw_animation import (
    JointTrack,
    RawAnimation,
    RotationKey,
    ScaleKey,
    TranslationKey,
)
from animopt.skeleton import Skeleton

# (name, parent, rest offset from parent, swing axis, swing amplitude in radians)
RIG = [
    ("hips",       -1, (0.0, 1.0, 0.0),   (0, 1, 0), 0.15),
    ("spine",       0, (0.0, 0.15, 0.0),  (1, 0, 0), 0.05),
    ("chest",       1, (0.0, 0.2, 0.0),   (1, 0, 0), 0.05),
    ("neck",        2, (0.0, 0.2, 0.0),   (0, 1, 0), 0.1),
    ("head",        3, (0.0, 0.1, 0.0),   (1, 0, 0), 0.1),
    ("l_shoulder",  2, (0.15, 0.15, 0.0), (0, 0, 1), 0.3),
    ("l_elbow",     5, (0.3, 0.0, 0.0),   (0, 1, 0), 0.6),
    ("l_hand",      6, (0.25, 0.0, 0.0),  (1, 0, 0), 0.2),
    ("l_finger",    7, (0.08, 0.0, 0.0),  (0, 0, 1), 0.4),
    ("r_shoulder",  2, (-0.15, 0.15, 0.0), (0, 0, 1), 0.3),
    ("r_elbow",     9, (-0.3, 0.0, 0.0),  (0, 1, 0), 0.6),
    ("r_hand",     10, (-0.25, 0.0, 0.0), (1, 0, 0), 0.2),
    ("r_finger",   11, (-0.08, 0.0, 0.0), (0, 0, 1), 0.4),
]


def build_rig(frames, fps):
    """Procedural skeleton + densely sampled raw animation."""
    skeleton = Skeleton(parent_indices=tuple(p for _, p, _, _, _ in RIG),
                        joint_names=tuple(n for n, _, _, _, _ in RIG))
    times = np.arange(frames, dtype=np.float64) / fps
    duration = float(times[-1])

    tracks = []
    for ji, (_, _, offset, axis, amplitude) in enumerate(RIG):
        axis = np.asarray(axis, dtype=np.float64)
        phase = 0.7 * ji
        angles = amplitude * np.sin(2.0 * np.pi * 0.5 * times + phase)
        half = angles / 2.0
        quats = np.concatenate([axis * np.sin(half)[:, None], np.cos(half)[:, None]], axis=-1)

        if ji == 0:
            # Root walks forward with a little bounce
            trans = np.tile(np.asarray(offset), (frames, 1))
            trans[:, 2] = 0.8 * times
            trans[:, 1] += 0.02 * np.sin(2.0 * np.pi * 2.0 * times)
        else:
            trans = np.tile(np.asarray(offset), (frames, 1))

        tracks.append(JointTrack(
            translations=[TranslationKey(float(t), tuple(v)) for t, v in zip(times, trans)],
            rotations=[RotationKey(float(t), tuple(q)) for t, q in zip(times, quats)],
            scales=[ScaleKey(float(t), (1.0, 1.0, 1.0)) for t in times],
        ))
    return skeleton, RawAnimation(duration=duration, tracks=tracks, name="procedural_walk")


def parse_override(text):
    """'JOINT=TOL' or 'JOINT=TOL:DIST' → (joint, Setting)."""
    joint, _, rest = text.partition("=")
    tolerance, _, distance = rest.partition(":")
    if distance:
        setting = Setting(tolerance=float(tolerance), distance=float(distance))
    else:
        setting = Setting(tolerance=float(tolerance))
    return int(joint), setting


def main():
    parser = argparse.ArgumentParser(
        description="Hierarchical key-frame reduction check on a procedural rig")
    parser.add_argument("--frames", type=int, default=90)
    parser.add_argument("--fps", type=int, default=30)
    parser.add_argument("--tolerance", type=float, default=Setting().tolerance)
    parser.add_argument("--distance", type=float, default=Setting().distance)
    parser.add_argument("--override", action="append", default=[],
                        help="Per-joint setting JOINT=TOL[:DIST], repeatable")
    parser.add_argument("--combination", choices=["sum", "max"], default="sum")
    parser.add_argument("--no-constant", action="store_true",
                        help="Skip constant track stripping")
    parser.add_argument("--trace", action="store_true",
                        help="Log every decimation decision")
    args = parser.parse_args()

    if args.trace:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    skeleton, raw = build_rig(args.frames, args.fps)
    print(f"Rig: {skeleton.num_joints} joints, {args.frames} frames, {raw.key_count()} keys")

    source = raw
    if not args.no_constant:
        stripped = RawAnimation()
        if not AnimationConstantOptimizer()(raw, stripped):
            print("Constant stripping FAILED")
            return
        print(f"Constant stripping: {raw.key_count()} -> {stripped.key_count()} keys")
        source = stripped

    setting = Setting(tolerance=args.tolerance, distance=args.distance)
    overrides = dict(parse_override(o) for o in args.override)
    recorder = RecordingObserver()
    observer = LoggingObserver() if args.trace else recorder

    optimizer = AnimationOptimizer(setting=setting, joints_setting_override=overrides,
                                   observer=observer, combination=args.combination)
    optimized = RawAnimation()
    if not optimizer(source, skeleton, optimized):
        print("Optimization FAILED")
        return
    print(f"Optimization: {source.key_count()} -> {optimized.key_count()} keys")

    resolved = resolve_settings(skeleton, setting, overrides)
    errors = measure_joint_errors(skeleton, raw, optimized, [s.distance for s in resolved])

    print(f"\n{'='*78}")
    print("PER-JOINT KEYS (translation/rotation/scale) AND WORLD ERROR")
    print(f"{'='*78}")
    print(f"  {'Joint':<12s} {'Raw':>12s} {'Optimized':>12s} {'Error':>10s} {'Tolerance':>10s}")
    print(f"  {'-'*12} {'-'*12} {'-'*12} {'-'*10} {'-'*10}")
    exceeded = 0
    for si in skeleton.iter_topological():
        before, after = raw.tracks[si], optimized.tracks[si]
        b = f"{len(before.translations)}/{len(before.rotations)}/{len(before.scales)}"
        a = f"{len(after.translations)}/{len(after.rotations)}/{len(after.scales)}"
        flag = ""
        if errors[si] > resolved[si].tolerance * 1.01:
            flag = "  <-- exceeds"
            exceeded += 1
        print(f"  {skeleton.joint_names[si]:<12s} {b:>12s} {a:>12s} "
              f"{errors[si]:10.6f} {resolved[si].tolerance:10.6f}{flag}")

    if not args.trace:
        print(f"\n  Observer: {len(recorder.records)} decimation candidates evaluated")
    print(f"  Max error: {errors.max():.6f}, joints over tolerance: {exceeded}")


if __name__ == "__main__":
    main()
