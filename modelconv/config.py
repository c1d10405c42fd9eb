"""Options for one conversion run."""

from dataclasses import dataclass
from pathlib import Path

from .layout import LAYOUT_POLICIES


@dataclass
class ConversionOptions:
    destination: Path
    import_materials: bool = True
    convert_textures: bool = False
    texture_format: str = "dds"
    import_animations: bool = True
    # The legacy importer only ever wrote the first clip
    first_clip_only: bool = False
    layout_policy: str = "tree"

    def __post_init__(self):
        self.destination = Path(self.destination)
        self.texture_format = self.texture_format.lstrip(".").lower()
        if not self.texture_format:
            raise ValueError("texture_format must not be empty")
        if self.layout_policy not in LAYOUT_POLICIES:
            raise ValueError(f"Unknown layout policy: {self.layout_policy}")
