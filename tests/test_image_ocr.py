"""
Tests for image preprocessing and OCR result parsing

PaddleOCR itself is not needed: results are fed in as the raw
structures it returns.
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from PIL import Image

from matcher.image_ocr import preprocess_image, parse_ocr_result, ImageOCRExtractor


def _box(x, y, w=40, h=20):
    return [[x, y], [x + w, y], [x + w, y + h], [x, y + h]]


class TestPreprocessImage:

    def test_binarizes_to_black_and_white(self, tmp_path):
        src = tmp_path / "table.png"
        img = Image.new("RGB", (4, 1))
        img.putpixel((0, 0), (255, 255, 255))
        img.putpixel((1, 0), (210, 210, 210))
        img.putpixel((2, 0), (190, 190, 190))
        img.putpixel((3, 0), (0, 0, 0))
        img.save(src)

        out = preprocess_image(src)

        assert out == tmp_path / "table_processed.png"
        with Image.open(out) as result:
            assert result.mode == "L"
            assert [result.getpixel((x, 0)) for x in range(4)] == [255, 255, 0, 0]

    def test_custom_output_and_threshold(self, tmp_path):
        src = tmp_path / "table.png"
        Image.new("L", (2, 2), color=150).save(src)

        out = preprocess_image(src, tmp_path / "bw.png", threshold=100)

        with Image.open(out) as result:
            assert result.getpixel((0, 0)) == 255


class TestParseOcrResult:

    def test_legacy_format_grouped_into_rows(self):
        result = [[
            [_box(200, 102), ("A2", 0.95)],
            [_box(10, 100), ("BOLT", 0.99)],
            [_box(10, 150), ("NUT", 0.97)],
            [_box(300, 98), ("10EA", 0.9)],
            [_box(200, 151), ("A2", 0.92)],
        ]]

        text, line_count, confidence = parse_ocr_result(result)

        assert text == "BOLT A2 10EA\nNUT A2"
        assert line_count == 2
        assert 0.9 <= confidence <= 1.0

    def test_low_confidence_dropped(self):
        result = [[
            [_box(10, 100), ("BOLT", 0.99)],
            [_box(100, 100), ("~~", 0.2)],
        ]]
        text, _, _ = parse_ocr_result(result, min_confidence=0.5)
        assert text == "BOLT"

    def test_dict_format(self):
        result = [{
            "rec_texts": ["NUT", "SUS304"],
            "rec_scores": [0.98, 0.96],
            "rec_polys": [_box(10, 40), _box(80, 42)],
        }]
        text, line_count, _ = parse_ocr_result(result)
        assert text == "NUT SUS304"
        assert line_count == 1

    def test_empty_results(self):
        assert parse_ocr_result(None) == ("", 0, 0.0)
        assert parse_ocr_result([None]) == ("", 0, 0.0)
        assert parse_ocr_result([[]]) == ("", 0, 0.0)


class TestExtractorErrors:

    def test_missing_file_reported_not_raised(self, tmp_path):
        extractor = ImageOCRExtractor.__new__(ImageOCRExtractor)
        extractor.ocr = None
        extractor.min_confidence = 0.5

        doc = extractor.extract_from_image(str(tmp_path / "missing.png"))

        assert doc.text == ""
        assert doc.extraction_method == "error"
        assert doc.errors

    def test_uninitialized_ocr_reported(self, tmp_path):
        src = tmp_path / "table.png"
        Image.new("L", (2, 2)).save(src)
        extractor = ImageOCRExtractor.__new__(ImageOCRExtractor)
        extractor.ocr = None
        extractor.min_confidence = 0.5

        doc = extractor.extract_from_image(str(src))

        assert doc.errors == ["PaddleOCR not initialized"]

    def test_fake_engine(self, tmp_path):
        src = tmp_path / "table.png"
        Image.new("RGB", (8, 8), color=(255, 255, 255)).save(src)

        class FakeOCR:
            def ocr(self, image):
                return [[[_box(0, 0), ("BOLT A2 1 M8", 0.99)]]]

        extractor = ImageOCRExtractor.__new__(ImageOCRExtractor)
        extractor.ocr = FakeOCR()
        extractor.min_confidence = 0.5

        doc = extractor.extract_from_image(str(src))

        assert doc.text == "BOLT A2 1 M8"
        assert doc.extraction_method == "paddleocr+binarize"
        assert doc.errors == []
        # Temp binarized image cleaned up
        assert not (tmp_path / "table_processed.png").exists()
