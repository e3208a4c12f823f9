"""Prompt fragments shared by the image tools."""

from typing import Literal

VisualStyle = Literal["realistic", "artistic", "minimal", "dynamic"]

STYLE_PHRASES: dict[str, str] = {
    "realistic": "photorealistic, high quality, detailed, professional photography",
    "artistic": "artistic, creative, stylized, beautiful composition, digital art",
    "minimal": "clean, minimal, simple, modern design, uncluttered",
    "dynamic": "dynamic, energetic, motion, vibrant colors, engaging",
}
