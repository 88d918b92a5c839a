"""Polygon checks run when a drawn path is closed into a shape.

The editor never rewrites what the user drew, so apart from dropping
consecutive duplicates nothing here repairs geometry: issues are reported
back to the caller, and only ERROR issues stop the shape from closing.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum, auto

from shapely.geometry import Polygon
from shapely.validation import explain_validity

from landsub.core.geometry.kernel import (
    DEDUP_EPS,
    Point,
    distance,
    points_equal,
    signed_area,
)

MICRO_EDGE_LENGTH = 0.01  # scene units
MIN_AREA = 1e-6


class ValidationSeverity(Enum):
    ERROR = auto()    # blocks closing
    WARNING = auto()  # shape is kept, user should look
    INFO = auto()     # informational only


@dataclass
class GeometryIssue:
    severity: ValidationSeverity
    code: str
    message: str
    location: Point | None = None

    def to_dict(self) -> dict:
        return {
            "severity": self.severity.name.lower(),
            "code": self.code,
            "message": self.message,
            "location": list(self.location) if self.location is not None else None,
        }


@dataclass
class ValidationResult:
    polygon: list[Point] | None
    issues: list[GeometryIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def errors(self) -> list[GeometryIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.ERROR]


# ── 1. Coordinate-level validation ──────────────────────────────────────

def validate_coordinates(coords: list[Point]) -> list[GeometryIssue]:
    """Check a raw open ring for problems before treating it as a polygon."""
    issues: list[GeometryIssue] = []

    if len(coords) < 3:
        issues.append(GeometryIssue(
            ValidationSeverity.ERROR,
            "TOO_FEW_POINTS",
            f"Need at least 3 points for a polygon, got {len(coords)}",
        ))
        return issues

    for i, (x, y) in enumerate(coords):
        if not (math.isfinite(x) and math.isfinite(y)):
            issues.append(GeometryIssue(
                ValidationSeverity.ERROR,
                "NON_FINITE_COORD",
                f"Point {i} has non-finite coordinate ({x}, {y})",
                location=(x if math.isfinite(x) else 0, y if math.isfinite(y) else 0),
            ))
    if issues:
        return issues

    n = len(coords)
    for i in range(n):
        j = (i + 1) % n
        if points_equal(coords[i], coords[j]):
            issues.append(GeometryIssue(
                ValidationSeverity.WARNING,
                "CONSECUTIVE_DUPLICATE",
                f"Points {i} and {j} coincide at ({coords[i][0]}, {coords[i][1]})",
                location=coords[i],
            ))

    unique = deduplicate_consecutive(coords)
    if len(unique) < 3:
        issues.append(GeometryIssue(
            ValidationSeverity.ERROR,
            "DEGENERATE_AFTER_DEDUP",
            f"Only {len(unique)} distinct consecutive points, cannot form polygon",
        ))
        return issues

    if _all_collinear(unique):
        issues.append(GeometryIssue(
            ValidationSeverity.ERROR,
            "ALL_COLLINEAR",
            "All points are collinear, polygon would have zero area",
        ))

    for i in range(len(unique)):
        j = (i + 1) % len(unique)
        d = distance(unique[i], unique[j])
        if d < MICRO_EDGE_LENGTH:
            issues.append(GeometryIssue(
                ValidationSeverity.WARNING,
                "MICRO_EDGE",
                f"Edge {i}-{j} is only {d:.4f} units long",
                location=unique[i],
            ))

    return issues


# ── 2. Full polygon validation ─────────────────────────────────────────

def validate_polygon(coords: list[Point]) -> ValidationResult:
    """Validate an open ring about to become a closed shape.

    Steps:
    1. Coordinate checks (count, NaN, duplicates, collinearity)
    2. Drop consecutive duplicates
    3. Shapely validity (self-intersection, bow-ties)
    4. Winding and area
    """
    all_issues = validate_coordinates(coords)
    if any(i.severity == ValidationSeverity.ERROR for i in all_issues):
        return ValidationResult(polygon=None, issues=all_issues)

    clean = deduplicate_consecutive(coords)

    poly = Polygon(clean)
    if not poly.is_valid:
        all_issues.append(GeometryIssue(
            ValidationSeverity.WARNING,
            "SELF_INTERSECTION",
            f"Shapely reports: {explain_validity(poly)}",
        ))

    sa = signed_area(clean)
    if abs(sa) < MIN_AREA:
        all_issues.append(GeometryIssue(
            ValidationSeverity.ERROR,
            "ZERO_AREA",
            f"Polygon has negligible area ({abs(sa):.8f})",
        ))
        return ValidationResult(polygon=None, issues=all_issues)

    if sa < 0:
        all_issues.append(GeometryIssue(
            ValidationSeverity.INFO,
            "CW_ORIENTATION",
            "Ring is clockwise; it is exported counter-clockwise",
        ))

    return ValidationResult(polygon=clean, issues=all_issues)


# ── Helpers ─────────────────────────────────────────────────────────────

def deduplicate_consecutive(coords: list[Point]) -> list[Point]:
    """Drop points that repeat their predecessor, including a closing repeat."""
    if not coords:
        return []
    result = [coords[0]]
    for c in coords[1:]:
        if not points_equal(c, result[-1], DEDUP_EPS):
            result.append(c)
    while len(result) > 1 and points_equal(result[0], result[-1], DEDUP_EPS):
        result.pop()
    return result


def _all_collinear(points: list[Point]) -> bool:
    """Check if all points lie on a single line using cross product."""
    if len(points) < 3:
        return True
    x0, y0 = points[0]
    x1, y1 = points[1]
    for x2, y2 in points[2:]:
        cross = (x1 - x0) * (y2 - y0) - (y1 - y0) * (x2 - x0)
        if abs(cross) > 1e-9:
            return False
    return True
