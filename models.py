from dataclasses import dataclass, field
from typing import List, Optional, Tuple

Cell = Tuple[int, int]                      # (row, col)
CanonicalShape = Tuple[Cell, ...]
OrientationSet = Tuple[CanonicalShape, ...]
OrientationTable = Tuple[OrientationSet, ...]


@dataclass(frozen=True)
class Region:
    width: int
    height: int
    counts: Tuple[Tuple[int, int], ...]     # (shape-type index, required count)
    label: str = ""

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def instance_count(self) -> int:
        return sum(n for _, n in self.counts)

    def display_label(self) -> str:
        return self.label or f"{self.width}x{self.height}"


@dataclass(frozen=True)
class Placed:
    instance: int
    shape: int
    orientation: int
    row: int
    col: int
    cells: Tuple[Cell, ...]

    def absolute_cells(self) -> List[Cell]:
        return [(self.row + dr, self.col + dc) for dr, dc in self.cells]


@dataclass
class RegionOutcome:
    index: int
    region: Region
    ok: bool
    reason: str
    steps: int = 0
    elapsed_sec: float = 0.0
    placements: Optional[List[Placed]] = None
    cross_check: Optional[bool] = None
    notes: List[str] = field(default_factory=list)

    def summary_line(self) -> str:
        verdict = "fits" if self.ok else "does not fit"
        return f"{self.region.display_label()}: {verdict} ({self.reason})"
