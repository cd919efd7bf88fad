"""
Image export and output naming for fractal renders.

Rasters are written with Pillow as PNG (metadata in text chunks) or TIFF
(metadata in the ImageDescription tag). Output paths follow the
``tiles/<type>/<method>/<name>.png`` scheme, where the name encodes every
non-default parameter of the render.
"""

import numpy as np
from typing import Dict, Any, Optional, Tuple, TYPE_CHECKING
from pathlib import Path
from dataclasses import dataclass, asdict, field
import json
import logging
from datetime import datetime

try:
    from PIL import Image, PngImagePlugin, TiffImagePlugin
    PIL_AVAILABLE = True
except ImportError:
    PIL_AVAILABLE = False
    logging.warning("Pillow not available - image export disabled")

if TYPE_CHECKING:
    from ..api import RenderConfig, RenderStatistics

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_ROOT = Path("tiles")

# TIFF tag numbers
IMAGE_DESCRIPTION = 270
SOFTWARE = 305
DATE_TIME = 306


@dataclass
class RenderMetadata:
    """Metadata embedded in exported renders."""

    # Fractal parameters
    fractal_type: str
    bounds: Tuple[float, float, float, float]  # left, right, bottom, top
    resolution: Tuple[int, int]  # width, height
    max_iterations: int
    escape_limit: float

    # Rendering parameters
    color_method: int
    precision: str

    # Timing and outcome
    render_time_seconds: float
    partial: bool = False
    statistics: Dict[str, Any] = field(default_factory=dict)

    # Generation info
    timestamp: str = ""
    software_version: str = "1.0.0"

    # Full parameter sets
    fractal_parameters: Dict[str, Any] = field(default_factory=dict)
    color_options: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Set default timestamp if not provided."""
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        """Convert metadata to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderMetadata':
        """Create metadata from dictionary."""
        return cls(**data)

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> 'RenderMetadata':
        """Create metadata from JSON string."""
        return cls.from_dict(json.loads(json_str))


class ImageExporter:
    """Pillow-backed raster export with metadata support."""

    def __init__(self):
        """Initialize image exporter."""
        if not PIL_AVAILABLE:
            raise RuntimeError("Pillow required for image export")

        self.supported_formats = {
            '.png': self._save_png,
            '.tiff': self._save_tiff,
            '.tif': self._save_tiff,
        }

    def save_image(self, image_array: np.ndarray, filepath: Path,
                   metadata: Optional[RenderMetadata] = None) -> Path:
        """
        Save an RGB raster to file with metadata.

        Args:
            image_array: uint8 RGB array of shape (height, width, 3)
            filepath: Output file path; parent directories are created
            metadata: Render metadata to embed

        Returns:
            The path written
        """
        filepath = Path(filepath)
        suffix = filepath.suffix.lower()

        if suffix not in self.supported_formats:
            supported = ', '.join(self.supported_formats.keys())
            raise ValueError(f"Unsupported format '{suffix}'. Supported: {supported}")

        image_array = self._prepare_image_array(image_array)
        pil_image = Image.fromarray(image_array)

        filepath.parent.mkdir(parents=True, exist_ok=True)
        self.supported_formats[suffix](pil_image, filepath, metadata)

        logger.info(f"Saved image: {filepath} ({pil_image.size[0]}x{pil_image.size[1]})")
        return filepath

    def _prepare_image_array(self, image_array: np.ndarray) -> np.ndarray:
        """Validate the raster shape and convert it to 8-bit."""
        if image_array.ndim != 3 or image_array.shape[2] != 3:
            raise ValueError(f"Expected RGB image array (H, W, 3), got {image_array.shape}")

        if image_array.dtype != np.uint8:
            image_array = np.clip(image_array, 0, 255).astype(np.uint8)
        return image_array

    def _save_png(self, pil_image: 'Image.Image', filepath: Path,
                  metadata: Optional[RenderMetadata]) -> None:
        """Save as PNG with metadata text chunks."""
        pnginfo = PngImagePlugin.PngInfo()

        if metadata:
            pnginfo.add_text("Title", f"Fractal: {metadata.fractal_type}")
            pnginfo.add_text("Software", f"escapetime v{metadata.software_version}")
            pnginfo.add_text("Creation Time", metadata.timestamp)
            pnginfo.add_text("FractalMetadata", metadata.to_json())

        pil_image.save(filepath, "PNG", pnginfo=pnginfo)

    def _save_tiff(self, pil_image: 'Image.Image', filepath: Path,
                   metadata: Optional[RenderMetadata]) -> None:
        """Save as LZW-compressed TIFF with metadata in standard tags."""
        tiffinfo = TiffImagePlugin.ImageFileDirectory_v2()

        if metadata:
            tiffinfo[IMAGE_DESCRIPTION] = metadata.to_json()
            tiffinfo[SOFTWARE] = f"escapetime v{metadata.software_version}"
            tiffinfo[DATE_TIME] = metadata.timestamp

        pil_image.save(filepath, format='TIFF', tiffinfo=tiffinfo, compression='tiff_lzw')

    def extract_metadata_from_image(self, filepath: Path) -> Optional[RenderMetadata]:
        """
        Extract render metadata from a saved image.

        Args:
            filepath: Path to image file

        Returns:
            Extracted metadata or None when the image carries none
        """
        filepath = Path(filepath)

        with Image.open(filepath) as img:
            text = getattr(img, 'text', {})
            if 'FractalMetadata' in text:
                return RenderMetadata.from_json(text['FractalMetadata'])

            tags = getattr(img, 'tag_v2', None)
            if tags is not None and IMAGE_DESCRIPTION in tags:
                try:
                    return RenderMetadata.from_json(tags[IMAGE_DESCRIPTION])
                except (ValueError, TypeError) as e:
                    logger.warning(f"Could not parse metadata from {filepath}: {e}")

        return None


def format_number(value: Any) -> str:
    """Format a number in ``%g`` style (six significant digits, no trailing zeros)."""
    return f"{float(value):g}"


def make_filename(config: 'RenderConfig', statistics: 'RenderStatistics',
                  root: Path = DEFAULT_OUTPUT_ROOT) -> Path:
    """
    Build the output path for a finished (or cancelled) render.

    The name lists the exponent, every bound that differs from its default,
    the Julia constant, the escape limit, the largest iteration counts
    reached, the raster size and the non-default color options, followed by
    ``_partial`` for cancelled renders or ``_complete`` when no point stayed
    bounded.

    Args:
        config: Render configuration
        statistics: Statistics of the render
        root: Output root directory

    Returns:
        Path of the form ``root/<type label>/<method>/<name>.png``
    """
    fractal = config.fractal
    coloring = config.coloring
    parts = []

    if fractal.single:
        parts.append("single_")
    parts.append(f"e{format_number(fractal.exponent)}")

    for prefix, value, default in (('lb', fractal.left, -2), ('rb', fractal.right, 2),
                                   ('bb', fractal.bottom, -2), ('ub', fractal.top, 2)):
        if value != default:
            parts.append(f"_{prefix}{format_number(value)}")

    if fractal.variant.value == 'julia':
        parts.append(f"_jx{format_number(fractal.julia_real)}_jy{format_number(fractal.julia_imag)}")
    if coloring.method == 1 and coloring.disable_fancy:
        parts.append("_df")

    if not fractal.single:
        parts.append(f"_el{format_number(fractal.escape_limit)}")
    max_n = config.max_iterations if fractal.single else statistics.max_iteration
    parts.append(f"_mi{max_n}")
    parts.append(f"_mpi{statistics.max_period_iteration}")

    if coloring.method in (0, 1) and coloring.smooth:
        parts.append("_smooth")
    parts.append(f"_{config.width}x")
    if config.width != config.height:
        parts.append(str(config.height))
    if coloring.multiplier != 1:
        parts.append(f"_cm{format_number(coloring.multiplier)}")
    if coloring.c_log != 0:
        parts.append(f"_clog{coloring.c_log}")

    if statistics.cancelled:
        parts.append("_partial")
    elif statistics.not_escaped == 0 and not fractal.single:
        parts.append("_complete")
    # working precision: long double or double
    parts.append("_ld.png" if config.precision == "extended" else "_d.png")

    return Path(root) / fractal.variant.label / str(coloring.method) / ''.join(parts)
