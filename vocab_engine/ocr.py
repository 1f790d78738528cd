"""Text recognition adapter: page image -> newline-joined text.

The parser only ever sees the joined string. Region boxes are kept on the
result for debugging, not passed downstream.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import cv2
import numpy as np
from PIL import Image, ImageEnhance


def _poly_to_xyxy(poly: list[list[float]] | list[tuple[float, float]]) -> tuple[int, int, int, int]:
    xs = [p[0] for p in poly]
    ys = [p[1] for p in poly]
    x0, y0, x1, y1 = min(xs), min(ys), max(xs), max(ys)
    return int(x0), int(y0), int(x1), int(y1)


def _reading_order_key(region: dict[str, Any]) -> tuple[int, int]:
    x0, y0, _, _ = region["bbox_xyxy"]
    return (y0, x0)


def regions_to_lines(regions: list[dict[str, Any]], *, join_rows: bool = False) -> list[str]:
    """Order regions top-to-bottom, left-to-right; one line per region.

    With join_rows, regions whose vertical centre falls inside the current
    row's span are tab-joined into one line, so a two-column glossary
    row reads "perro<TAB>dog".
    """
    ordered = sorted(regions, key=_reading_order_key)
    if not join_rows:
        return [str(r["text"]) for r in ordered]

    rows: list[dict[str, Any]] = []
    for r in ordered:
        _, y0, _, y1 = r["bbox_xyxy"]
        cy = (y0 + y1) / 2.0
        if rows and rows[-1]["y0"] <= cy <= rows[-1]["y1"]:
            rows[-1]["items"].append(r)
            continue
        rows.append({"y0": y0, "y1": y1, "items": [r]})

    lines: list[str] = []
    for row in rows:
        items = sorted(row["items"], key=lambda r: r["bbox_xyxy"][0])
        lines.append("\t".join(str(r["text"]) for r in items))
    return lines


@dataclass
class OCRText:
    text: str
    regions: list[dict[str, Any]] = field(default_factory=list)
    attempts: int = 0
    error: str | None = None


@dataclass
class OCRTextReader:
    lang: str = "es,en"
    min_confidence: float = 0.3
    join_rows: bool = False
    preprocess_retry: bool = True
    reader: Any | None = None  # anything with easyocr's readtext(ndarray)

    @classmethod
    def from_config(cls, ocr_cfg: dict[str, Any], reader: Any | None = None) -> OCRTextReader:
        return cls(
            lang=str(ocr_cfg.get("lang", "es,en")),
            min_confidence=float(ocr_cfg.get("min_confidence", 0.3)),
            join_rows=bool(ocr_cfg.get("join_rows", False)),
            preprocess_retry=bool(ocr_cfg.get("preprocess_retry", True)),
            reader=reader,
        )

    def _get_reader(self) -> Any:
        if self.reader is None:
            import easyocr

            langs = [code.strip() for code in self.lang.split(",") if code.strip()]
            self.reader = easyocr.Reader(langs, gpu=False)
        return self.reader

    def _preprocess_image(self, image: Image.Image) -> Image.Image:
        """Binarize, denoise and sharpen for a second pass on hard pages."""
        try:
            gray = cv2.cvtColor(np.array(image.convert("RGB")), cv2.COLOR_RGB2GRAY)
            binary = cv2.adaptiveThreshold(
                gray, 255,
                cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
                cv2.THRESH_BINARY,
                11, 2,
            )
            denoised = cv2.fastNlMeansDenoising(binary, None, 10, 7, 21)
            kernel = np.array([[-1, -1, -1], [-1, 9, -1], [-1, -1, -1]])
            sharpened = cv2.filter2D(denoised, -1, kernel)

            processed = ImageEnhance.Contrast(Image.fromarray(sharpened)).enhance(1.5)
            return processed.convert("RGB")
        except cv2.error:
            return image

    def read_regions(self, image: Image.Image) -> list[dict[str, Any]]:
        results = self._get_reader().readtext(np.array(image.convert("RGB")))

        regions: list[dict[str, Any]] = []
        for bbox, text, confidence in results:
            text = str(text).strip()
            if not text or float(confidence) < self.min_confidence:
                continue
            x0, y0, x1, y1 = _poly_to_xyxy(bbox)
            regions.append({"text": text, "confidence": float(confidence), "bbox_xyxy": [x0, y0, x1, y1]})
        return regions

    def read_text(self, image: Image.Image | str | Path) -> OCRText:
        """Recognize text; never raises for recognition failures.

        An empty first pass is retried once on a preprocessed image when
        preprocess_retry is set.
        """
        if not isinstance(image, Image.Image):
            try:
                with Image.open(image) as im:
                    image = im.convert("RGB")
            except OSError as e:
                return OCRText(text="", attempts=0, error=str(e))

        attempts = 1
        try:
            regions = self.read_regions(image)
            if not regions and self.preprocess_retry:
                attempts = 2
                regions = self.read_regions(self._preprocess_image(image))
        except Exception as e:
            return OCRText(text="", attempts=attempts, error=str(e))

        lines = regions_to_lines(regions, join_rows=self.join_rows)
        return OCRText(text="\n".join(lines), regions=regions, attempts=attempts)
