import asyncio
import io
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Tuple

from loguru import logger
from PIL import Image, ImageChops, ImageColor, ImageDraw, UnidentifiedImageError

from avatar_service.core.exceptions import ConfigurationError, ImageDecodeError

THUMBNAIL_FORMAT = "PNG"

executor = ThreadPoolExecutor(thread_name_prefix="thumbnail")


@dataclass(frozen=True)
class ThumbnailSpec:
    """Параметры миниатюры: итоговый размер, толщина и цвет кольца."""
    pixel_size: int = 128
    border_width: int = 4
    border_color: str = "#4F46E5"

    def __post_init__(self):
        if self.border_width < 0:
            raise ConfigurationError(
                f"border_width must not be negative, got {self.border_width}",
                details={"border_width": self.border_width},
            )
        if self.inner_size <= 0:
            raise ConfigurationError(
                f"inner size must be positive: pixel_size={self.pixel_size}, border_width={self.border_width}",
                details={"pixel_size": self.pixel_size, "border_width": self.border_width},
            )
        try:
            ImageColor.getrgb(self.border_color)
        except ValueError as e:
            raise ConfigurationError(f"Invalid border color: {self.border_color!r}") from e

    @property
    def inner_size(self) -> int:
        return self.pixel_size - 2 * self.border_width


def build_masks(spec: ThumbnailSpec) -> Tuple[Image.Image, Image.Image]:
    """
    Строит маски для миниатюры.

    Returns:
        (clip_mask, ring_mask): круг диаметром inner_size для обрезки (режим L)
        и кольцо толщиной border_width на холсте pixel_size (режим RGBA).
    """
    inner = spec.inner_size

    clip_mask = Image.new("L", (inner, inner), 0)
    ImageDraw.Draw(clip_mask).ellipse((0, 0, inner - 1, inner - 1), fill=255)

    ring_mask = Image.new("RGBA", (spec.pixel_size, spec.pixel_size), (0, 0, 0, 0))
    if spec.border_width:
        # Обводка центрирована на окружности диаметром inner_size,
        # а Pillow рисует толщину внутрь рамки, поэтому рамку расширяем на половину обводки
        offset = spec.border_width - spec.border_width // 2
        far = spec.pixel_size - 1 - offset
        ImageDraw.Draw(ring_mask).ellipse(
            (offset, offset, far, far),
            outline=spec.border_color,
            width=spec.border_width,
        )
    return clip_mask, ring_mask


def _decode(raw: bytes) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(raw))
        img.load()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(f"Cannot decode image: {e}") from e
    return img


def composite_thumbnail(raw: bytes, spec: ThumbnailSpec) -> bytes:
    """Синхронно строит круглую миниатюру с кольцом и возвращает PNG-байты."""
    clip_mask, ring_mask = build_masks(spec)
    inner = spec.inner_size

    with _decode(raw) as source:
        avatar = source.convert("RGBA").resize((inner, inner), Image.LANCZOS)

    # destination-in: альфа исходника остаётся только там, где маска непрозрачна
    avatar.putalpha(ImageChops.multiply(avatar.getchannel("A"), clip_mask))

    canvas = Image.new("RGBA", (spec.pixel_size, spec.pixel_size), (0, 0, 0, 0))
    canvas.alpha_composite(avatar, dest=(spec.border_width, spec.border_width))
    canvas.alpha_composite(ring_mask)

    with io.BytesIO() as buffer:
        canvas.save(buffer, format=THUMBNAIL_FORMAT)
        return buffer.getvalue()


async def make_thumbnail(raw: bytes, spec: ThumbnailSpec) -> bytes:
    """Асинхронно строит миниатюру в ThreadPoolExecutor."""
    logger.debug(f"Building thumbnail {spec.pixel_size}x{spec.pixel_size} from {len(raw)} bytes")
    return await asyncio.get_running_loop().run_in_executor(executor, composite_thumbnail, raw, spec)


def cleanup_executor():
    executor.shutdown(wait=True)
    logger.info("Thumbnail executor stopped")
