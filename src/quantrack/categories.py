from __future__ import annotations

from typing import Literal

AdjustDirection = Literal["slide_up", "slide_down", "fixed", "skipped"]
# "skipped" marks a replace that could not move the quantile

IssueKind = Literal["range", "samples_below_upper", "population"]
