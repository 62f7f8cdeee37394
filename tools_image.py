
from __future__ import annotations
from typing import Iterator, List, Tuple
from PIL import Image, ImageOps, ImageSequence
import numpy as np

import config
from geometry import PanelGeometry

def gamma_table(gamma: float) -> List[int]:
    return [int(255 * ((i / 255.0) ** (1.0 / gamma))) for i in range(256)]

def apply_gamma(img: Image.Image, gamma: float) -> Image.Image:
    im = img.convert("RGB")
    if gamma <= 0:
        return im
    return im.point(gamma_table(gamma) * 3)  # same curve for R,G,B

# 4x4 Bayer thresholds, centered on 0
_BAYER_4x4 = (np.array([
    [ 0,  8,  2, 10],
    [12,  4, 14,  6],
    [ 3, 11,  1,  9],
    [15,  7, 13,  5],
]) + 0.5) / 16.0 - 0.5

def ordered_dither(img: Image.Image) -> Image.Image:
    arr = np.asarray(img.convert("RGB"), dtype=np.float32) / 255.0
    h, w, _ = arr.shape
    thresh = np.tile(_BAYER_4x4, (h // 4 + 1, w // 4 + 1))[:h, :w, None]
    arr = np.clip(arr + thresh / 255.0, 0.0, 1.0)
    return Image.fromarray((arr * 255.0 + 0.5).astype(np.uint8))

def fit_letterbox(img: Image.Image, size: Tuple[int, int], bg=(0, 0, 0)) -> Image.Image:
    tw, th = size
    im = ImageOps.contain(img.convert("RGB"), (tw, th), method=Image.Resampling.LANCZOS)
    out = Image.new("RGB", (tw, th), bg)
    out.paste(im, ((tw - im.width) // 2, (th - im.height) // 2))
    return out

def fit_to_panel(img: Image.Image, geometry: PanelGeometry,
                 gamma: float = config.DEFAULT_GAMMA, dither: bool = False) -> Image.Image:
    im = fit_letterbox(img, (geometry.width, geometry.height))
    im = apply_gamma(im, gamma)
    if dither:
        im = ordered_dither(im)
    return im

def image_colors(img: Image.Image) -> Iterator[Tuple[int, int, int]]:
    """Yield (x, y, packed color) for every pixel of an image."""
    arr = np.asarray(img.convert("RGB"), dtype=np.uint32)
    packed = (arr[..., 0] << 16) | (arr[..., 1] << 8) | arr[..., 2]
    h, w = packed.shape
    for y in range(h):
        for x in range(w):
            yield x, y, int(packed[y, x])

def gif_frames(fp) -> List[Tuple[Image.Image, int]]:
    """Decode every frame of an animated image together with its delay in ms."""
    with Image.open(fp) as im:
        return [(f.convert("RGB"), int(f.info.get("duration") or config.FRAME_DELAY_MS))
                for f in ImageSequence.Iterator(im)]

def strip_frames(img: Image.Image, cols: int, rows: int) -> List[Image.Image]:
    """Slice a sprite sheet into cols x rows frames, row by row."""
    if cols < 1 or rows < 1:
        raise ValueError(f"bad sprite grid {cols}x{rows}")
    fw, fh = img.width // cols, img.height // rows
    boxes = [(c * fw, r * fh, (c + 1) * fw, (r + 1) * fh) for r in range(rows) for c in range(cols)]
    return [img.crop(box) for box in boxes]
