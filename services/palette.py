# SPDX-License-Identifier: Apache-2.0
# This file was created or modified with the assistance of an AI (Large Language Model).
"""Fiber and tube color codes."""

from __future__ import annotations

from typing import Literal

ColorStandard = Literal["ABNT", "EIA598"]

# 1 green, 2 yellow, 3 white, 4 blue, 5 red, 6 violet,
# 7 brown, 8 pink, 9 black, 10 gray, 11 orange, 12 aqua
ABNT_COLORS = [
    "#22c55e",
    "#eab308",
    "#ffffff",
    "#3b82f6",
    "#ef4444",
    "#a855f7",
    "#78350f",
    "#ec4899",
    "#000000",
    "#9ca3af",
    "#f97316",
    "#22d3ee",
]

# 1 blue, 2 orange, 3 green, 4 brown, 5 slate, 6 white,
# 7 red, 8 black, 9 yellow, 10 violet, 11 rose, 12 aqua
EIA598_COLORS = [
    "#3b82f6",
    "#f97316",
    "#22c55e",
    "#78350f",
    "#9ca3af",
    "#ffffff",
    "#ef4444",
    "#000000",
    "#eab308",
    "#a855f7",
    "#ec4899",
    "#22d3ee",
]

SPLICE_COLOR = "#22c55e"

# green, yellow, white, pink, gray, orange, aqua need dark text on top of them
LIGHT_COLORS = {
    "#22c55e",
    "#eab308",
    "#ffffff",
    "#ec4899",
    "#9ca3af",
    "#f97316",
    "#22d3ee",
}


def palette(standard: ColorStandard = "ABNT") -> list[str]:
    return EIA598_COLORS if standard == "EIA598" else ABNT_COLORS


def fiber_color(index: int, standard: ColorStandard = "ABNT") -> str:
    colors = palette(standard)
    return colors[index % len(colors)]


def is_light(index: int, standard: ColorStandard = "ABNT") -> bool:
    return fiber_color(index, standard) in LIGHT_COLORS
