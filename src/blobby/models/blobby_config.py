"""Configuration models for blobby.yml."""

import zlib

from pydantic import BaseModel, Field, field_validator

from .task import Task


def _validate_color(v: str) -> str:
    """Validate color is a valid named color or hex code."""
    if v.startswith("#"):
        hex_part = v[1:]
        if len(hex_part) not in (3, 6):
            raise ValueError("Hex color must be 3 or 6 characters (e.g., #fff or #ffffff)")
        if not all(c in "0123456789abcdefABCDEF" for c in hex_part):
            raise ValueError("Invalid hex color code")
    return v


class CanvasConfig(BaseModel):
    """How canvas pixels map onto the terminal, and how blobs look."""

    cell_width_px: float = Field(default=10.0, gt=0)
    cell_height_px: float = Field(default=20.0, gt=0)
    nudge_px: float = Field(default=10.0, gt=0, description="Distance moved per arrow key")
    trash_zone_px: float = Field(
        default=100.0,
        ge=0,
        description="Size of the top-right drop zone that deletes a blob",
    )
    palette: list[str] = Field(default_factory=lambda: ["#4ade80", "#3b82f6", "#6b7280"])
    new_blob_color: str = "#fbbf24"

    @field_validator("palette")
    @classmethod
    def validate_palette(cls, v: list[str]) -> list[str]:
        """Validate the palette is non-empty and every entry is a color."""
        if not v:
            raise ValueError("palette must contain at least one color")
        return [_validate_color(c) for c in v]

    @field_validator("new_blob_color")
    @classmethod
    def validate_new_blob_color(cls, v: str) -> str:
        return _validate_color(v)

    def to_cells(self, x: float, y: float) -> tuple[int, int]:
        """Convert canvas pixels to a (column, row) cell offset."""
        return round(x / self.cell_width_px), round(y / self.cell_height_px)

    def to_pixels(self, column: int, row: int) -> tuple[float, float]:
        """Convert a (column, row) cell offset to canvas pixels."""
        return column * self.cell_width_px, row * self.cell_height_px

    def blob_cells(self, size: float) -> tuple[int, int]:
        """Width and height in cells of a blob with the given diameter."""
        width = max(8, round(size / self.cell_width_px))
        height = max(3, round(size / self.cell_height_px))
        return width, height

    def color_for(self, task: Task) -> str:
        """Stable color for a task; unsaved blobs use new_blob_color."""
        if task.is_temporary:
            return self.new_blob_color
        index = zlib.crc32(str(task.id).encode()) % len(self.palette)
        return self.palette[index]


class SyncConfig(BaseModel):
    """Optimistic update policy."""

    rollback_failed_moves: bool = Field(
        default=False,
        description="Revert a blob's position when saving a drag fails",
    )


class BlobbyConfig(BaseModel):
    """Root configuration from blobby.yml."""

    version: int = 1
    default_board: str = Field(default="Home", min_length=1)
    canvas: CanvasConfig = Field(default_factory=CanvasConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)

    @classmethod
    def default(cls) -> "BlobbyConfig":
        """Return default configuration."""
        return cls()
