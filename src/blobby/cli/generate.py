"""Generate command for creating the default blobby.yml."""

import logging
from pathlib import Path

import yaml

from ..models import BlobbyConfig
from ..services import ConfigService
from .output import info, success

logger = logging.getLogger(__name__)

# Header comments for generated file
CONFIG_HEADER = """\
# Blobby Configuration
#
# default_board: Board shown on start (overridden by --board)
#
# canvas:
#   cell_width_px / cell_height_px: Canvas pixels per terminal cell.
#     Positions are stored in pixels so boards look the same in the
#     terminal and in other clients.
#   nudge_px: Distance moved by h/j/k/l and the arrow keys
#   trash_zone_px: Size of the top-right drop zone that deletes a blob
#     (0 disables it)
#   palette: Blob border colors, picked per task; named colors or hex
#   new_blob_color: Border of blobs that are not saved yet
#
# sync:
#   rollback_failed_moves: Put a blob back where it was when saving a
#     drag fails. Off by default: the new position stays and a warning
#     is shown.

"""


def generate_config_yaml() -> str:
    """Generate YAML config from the default BlobbyConfig model.

    Uses BlobbyConfig.default() as the single source of truth,
    ensuring generated config always matches internal defaults.
    """
    config_dict = BlobbyConfig.default().model_dump()
    yaml_content = yaml.dump(config_dict, default_flow_style=False, sort_keys=False)
    return CONFIG_HEADER + yaml_content


def run_generate(config_dir: Path) -> int:
    """
    Generate default configuration.

    Args:
        config_dir: Directory where blobby.yml will be created

    Returns:
        Exit code (0 = success, 1 = nothing to do)
    """
    config_path = config_dir / ConfigService.CONFIG_FILE

    if config_path.exists():
        info(f"Config exists: {config_path}")
        print("Nothing to generate.")
        return 1

    config_dir.mkdir(parents=True, exist_ok=True)
    config_path.write_text(generate_config_yaml())
    logger.info("Generated %s", config_path)
    success(f"Generated config: {config_path}")
    return 0
