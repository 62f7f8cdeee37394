
# Panel + engine configuration
import os

# Default panel: 8 wide, 32 tall, text runs along the 32 axis.
MATRIX_WIDTH = int(os.environ.get("NEOMATRIX_WIDTH", 8))
MATRIX_HEIGHT = int(os.environ.get("NEOMATRIX_HEIGHT", 32))
SERPENTINE = os.environ.get("NEOMATRIX_SERPENTINE", "1") not in ("0", "false", "no")

# Hardware pixel budget for one chain
MAX_PIXELS = int(os.environ.get("NEOMATRIX_MAX_PIXELS", 256))

DEFAULT_BRIGHTNESS = 60  # 0..255

# Animation defaults
MS_PER_COLUMN = 40
MS_PER_FRAME = 40
SWIRL_DURATION_MS = 3000
SWIRL_HUE_SPEED = 120
SWIRL_SCALE = 10
FRAME_DELAY_MS = 100  # GIF frames without a duration

# Image import
DEFAULT_GAMMA = 2.2

WHITE = 0xFFFFFF
BLACK = 0x000000
PALETTE = [
    0xFFFFFF, # 1
    0xFF0000, # 2
    0x00FF00, # 3
    0x0000FF, # 4
    0xFFFF00, # 5
    0xFF00FF, # 6
    0x00FFFF, # 7
    0xFF8000, # 8
    0x8000FF, # 9
]
