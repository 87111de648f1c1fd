#!/usr/bin/env python3
"""
Image OCR for photographed parts tables
Binarizes the photo with Pillow and reads it with PaddleOCR, rebuilding
one text line per table row.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from PIL import Image, ImageOps
import numpy as np

# OCR
try:
    from paddleocr import PaddleOCR
    PADDLEOCR_AVAILABLE = True
except ImportError:
    PADDLEOCR_AVAILABLE = False

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = ('.png', '.jpg', '.jpeg', '.bmp', '.tif', '.tiff', '.webp')


@dataclass
class ExtractedImage:
    """Text recognised from one table photo."""
    filepath: str
    text: str
    line_count: int
    confidence: float
    extraction_method: str
    errors: List[str] = field(default_factory=list)


def preprocess_image(image_path: Path, output_path: Optional[Path] = None, threshold: int = 200) -> Path:
    """
    Grayscale + binary threshold the photo to strip paper texture and shading.

    Pixels brighter than ``threshold`` become white, the rest black.
    The result is written to ``<stem>_processed<suffix>`` unless
    output_path is given.

    Returns:
        Path of the processed image
    """
    image_path = Path(image_path)
    if output_path is None:
        output_path = image_path.with_name(f"{image_path.stem}_processed{image_path.suffix}")

    with Image.open(image_path) as img:
        gray = ImageOps.exif_transpose(img).convert("L")
        binary = gray.point(lambda p: 255 if p > threshold else 0)
        binary.save(output_path)

    return Path(output_path)


class ImageOCRExtractor:
    """
    Reads table photos with PaddleOCR.

    One extractor holds one loaded model; reuse it across images.
    """

    def __init__(self, lang: str = 'korean', min_confidence: float = 0.5, use_gpu: bool = False):
        """
        Initialize OCR extractor.

        Args:
            lang: PaddleOCR language ('korean' also reads Latin text)
            min_confidence: Recognised boxes below this are dropped
            use_gpu: Whether to use GPU acceleration for OCR
        """
        self.lang = lang
        self.min_confidence = min_confidence
        self.use_gpu = use_gpu
        self.ocr = None
        self._init_ocr()

    def _init_ocr(self):
        """Initialize PaddleOCR if available."""
        if not PADDLEOCR_AVAILABLE:
            logger.warning("PaddleOCR not available. Install with: pip install paddlepaddle paddleocr")
            return

        try:
            self.ocr = PaddleOCR(use_angle_cls=True, lang=self.lang)
            logger.info(f"PaddleOCR initialized (lang={self.lang})")
        except Exception as e:
            logger.warning(f"Failed to initialize PaddleOCR: {e}")
            self.ocr = None

    def extract_from_image(
        self,
        image_path: str,
        preprocess: bool = True,
        binarize_threshold: int = 200
    ) -> ExtractedImage:
        """
        Recognise the text of one table photo.

        Failures are reported in ``errors`` with empty text rather than
        raised, so a batch can move on to the next photo.

        Args:
            image_path: Path to the photo
            preprocess: Binarize before OCR
            binarize_threshold: Gray level (0-255) used by preprocess_image

        Returns:
            ExtractedImage with the recognised text
        """
        image_path = Path(image_path)
        method = "paddleocr+binarize" if preprocess else "paddleocr"

        if not image_path.exists():
            return ExtractedImage(str(image_path), "", 0, 0.0, "error", [f"File not found: {image_path}"])

        if not self.ocr:
            return ExtractedImage(str(image_path), "", 0, 0.0, "error", ["PaddleOCR not initialized"])

        processed_path = None
        try:
            source = image_path
            if preprocess:
                processed_path = preprocess_image(image_path, threshold=binarize_threshold)
                source = processed_path

            with Image.open(source) as img:
                result = self.ocr.ocr(np.array(img.convert("RGB")))

            text, line_count, confidence = parse_ocr_result(result, self.min_confidence)
            logger.info(f"OCR read {line_count} lines from {image_path.name} (conf {confidence:.2f})")
            return ExtractedImage(str(image_path), text, line_count, confidence, method)

        except Exception as e:
            logger.error(f"OCR failed for {image_path.name}: {e}")
            return ExtractedImage(str(image_path), "", 0, 0.0, method, [f"OCR failed: {e}"])

        finally:
            if processed_path is not None and processed_path.exists():
                try:
                    processed_path.unlink()
                except OSError as e:
                    logger.warning(f"Could not remove temp image {processed_path}: {e}")


def _collect_boxes(result: Any) -> List[Tuple[Any, str, float]]:
    """
    Flatten a PaddleOCR result into (polygon, text, confidence) tuples.

    Handles both the 2.x list format ``[[[poly, (text, conf)], ...]]``
    and the 3.x per-page dicts with rec_texts/rec_scores/rec_polys.
    """
    boxes = []
    if not result:
        return boxes

    for page in result:
        if not page:
            continue

        if hasattr(page, 'get') and page.get('rec_texts') is not None:
            polys = page.get('rec_polys')
            if polys is None:
                polys = page.get('dt_polys')
            for poly, text, conf in zip(polys, page['rec_texts'], page['rec_scores']):
                boxes.append((poly, text, float(conf)))
            continue

        for line in page:
            if line and len(line) >= 2:
                bbox, (text, conf) = line[0], line[1]
                boxes.append((bbox, text, float(conf)))

    return boxes


def parse_ocr_result(result: Any, min_confidence: float = 0.5, y_threshold: Optional[float] = None) -> Tuple[str, int, float]:
    """
    Rebuild table rows from OCR boxes.

    Boxes are sorted top-to-bottom, then grouped into one line while
    their vertical centres stay within ``y_threshold`` of the previous
    box; each line reads left-to-right.

    Args:
        result: Raw PaddleOCR output
        min_confidence: Boxes below this confidence are dropped
        y_threshold: Max vertical gap within a row (default: half the median box height)

    Returns:
        Tuple of (text, line_count, average_confidence)
    """
    entries: List[Dict[str, Any]] = []
    for poly, text, conf in _collect_boxes(result):
        if conf < min_confidence or not str(text).strip():
            continue
        ys = [float(p[1]) for p in poly]
        xs = [float(p[0]) for p in poly]
        entries.append({
            'text': str(text).strip(),
            'confidence': conf,
            'y_center': (min(ys) + max(ys)) / 2,
            'x_min': min(xs),
            'height': max(ys) - min(ys),
        })

    if not entries:
        return "", 0, 0.0

    if y_threshold is None:
        heights = sorted(e['height'] for e in entries)
        y_threshold = max(5.0, heights[len(heights) // 2] / 2)

    entries.sort(key=lambda e: e['y_center'])

    rows: List[List[Dict[str, Any]]] = []
    last_y = None
    for entry in entries:
        if last_y is None or abs(entry['y_center'] - last_y) >= y_threshold:
            rows.append([])
        rows[-1].append(entry)
        last_y = entry['y_center']

    text_lines = [" ".join(e['text'] for e in sorted(row, key=lambda e: e['x_min'])) for row in rows]
    avg_confidence = sum(e['confidence'] for e in entries) / len(entries)

    return "\n".join(text_lines), len(text_lines), avg_confidence


def extract_text_from_image(image_path: str, lang: str = 'korean', preprocess: bool = True) -> ExtractedImage:
    """Convenience function to OCR a single photo."""
    extractor = ImageOCRExtractor(lang=lang)
    return extractor.extract_from_image(image_path, preprocess=preprocess)


if __name__ == "__main__":
    import sys

    if len(sys.argv) < 2:
        print("Usage: python -m matcher.image_ocr <image_file>")
        sys.exit(1)

    doc = extract_text_from_image(sys.argv[1])

    print(f"\nExtracted from: {doc.filepath}")
    print(f"Lines: {doc.line_count}")
    print(f"Method: {doc.extraction_method}")
    print(f"\n--- Text ---\n")
    print(doc.text)
