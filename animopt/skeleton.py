"""Joint hierarchy as a flat parent-index array (parents listed before children)."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Skeleton:
    parent_indices: tuple  # parent index per joint (-1 for root)
    joint_names: tuple = ()
    children: tuple = field(init=False, repr=False)  # child indices per joint

    def __post_init__(self):
        parents = tuple(int(p) for p in self.parent_indices)
        n = len(parents)
        for si, pi in enumerate(parents):
            if pi >= si or pi < -1:
                raise ValueError(
                    f"joint {si}: parent {pi} must be -1 or a preceding joint index")
        names = tuple(self.joint_names) or tuple(f"joint_{i}" for i in range(n))
        if len(names) != n:
            raise ValueError(f"expected {n} joint names, got {len(names)}")

        children = [[] for _ in range(n)]
        for si, pi in enumerate(parents):
            if pi >= 0:
                children[pi].append(si)

        object.__setattr__(self, "parent_indices", parents)
        object.__setattr__(self, "joint_names", names)
        object.__setattr__(self, "children", tuple(tuple(c) for c in children))

    @property
    def num_joints(self) -> int:
        return len(self.parent_indices)

    @property
    def roots(self) -> list:
        return [si for si, pi in enumerate(self.parent_indices) if pi < 0]

    def iter_topological(self):
        """Parents before children. Joints are stored in that order already."""
        return iter(range(self.num_joints))

    def depth(self, joint: int) -> int:
        d = 0
        pi = self.parent_indices[joint]
        while pi >= 0:
            d += 1
            pi = self.parent_indices[pi]
        return d

    def heights(self) -> list:
        """Number of joints on the longest chain below each joint (0 for leaves)."""
        heights = [0] * self.num_joints
        for si in reversed(range(self.num_joints)):
            pi = self.parent_indices[si]
            if pi >= 0:
                heights[pi] = max(heights[pi], heights[si] + 1)
        return heights
