"""
Tests for text normalization and the OCR item parser

Tests normalization, quantity extraction, name expansion, header
filtering and line parsing.
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from matcher.text_normalize import normalize_str, extract_digits
from matcher.item_parser import (
    ParsedItem, ParseError, NAME_REPLACEMENTS,
    expand_name_subitems, is_header_noise, parse_line, parse_ocr_text,
    REASON_INSUFFICIENT_TOKENS
)


class TestNormalize:
    """Tests for comparison normalization."""

    def test_uppercases_and_strips_punctuation(self):
        assert normalize_str("hex-bolt m8x20") == "HEXBOLTM8X20"
        assert normalize_str("  SUS 304 / A2  ") == "SUS304A2"

    def test_only_alphanumerics_remain(self):
        for s in ["B-100 (no.3)", "φ12 * 30L", "M6x1.0 [ISO]", "  \t\n"]:
            result = normalize_str(s)
            assert all(c.isdigit() or 'A' <= c <= 'Z' for c in result), result

    def test_idempotent(self):
        for s in ["Hex Bolt, M8", "sw (spring washer)", "A2-70", "육각볼트 M8"]:
            assert normalize_str(normalize_str(s)) == normalize_str(s)

    def test_hangul_collapses_to_empty(self):
        assert normalize_str("육각볼트") == ""
        assert normalize_str("육각볼트 M8") == "M8"


class TestExtractDigits:
    """Tests for quantity extraction."""

    def test_strips_unit(self):
        assert extract_digits("3EA") == "3"
        assert extract_digits("10EA") == "10"

    def test_no_digits_gives_zero(self):
        assert extract_digits("EA") == "0"
        assert extract_digits("") == "0"

    def test_no_decimal_or_sign_handling(self):
        assert extract_digits("-1.5") == "15"
        assert extract_digits("1,200") == "1200"

    def test_result_is_digits(self):
        for s in ["x", "2개", "4 PCS", "O0", "1l"]:
            result = extract_digits(s)
            assert result == "0" or (result and result.isdigit())


class TestExpandNameSubitems:
    """Tests for compound name expansion."""

    def test_expands_abbreviations_in_order(self):
        items = expand_name_subitems("SW/PW,NUT", "SUS304", "10", "M6")

        assert [i.name for i in items] == ["SW (SPRING WASHER)", "PW (PLAIN WASHER)", "NUT"]
        for item in items:
            assert item.material == "SUS304"
            assert item.quantity == "10"
            assert item.spec == "M6"

    def test_lookup_is_case_insensitive(self):
        items = expand_name_subitems("sw", "A2", "1", "M8")
        assert items[0].name == "SW (SPRING WASHER)"

    def test_multi_word_abbreviation(self):
        items = expand_name_subitems("hex socket head bolt", "A2", "1", "M8")
        assert items[0].name == "HEX BOLT"

    def test_unknown_tokens_keep_case(self):
        items = expand_name_subitems(" Washer / Pin ", "A2", "1", "M8")
        assert [i.name for i in items] == ["Washer", "Pin"]

    def test_empty_tokens_dropped(self):
        items = expand_name_subitems("BOLT,,//NUT,", "A2", "1", "M8")
        assert [i.name for i in items] == ["BOLT", "NUT"]

    def test_custom_table(self):
        items = expand_name_subitems("SW/LW", "A2", "1", "M8", {"lw": "LW (LOCK WASHER)"})
        # Custom table replaces the default one
        assert [i.name for i in items] == ["SW", "LW (LOCK WASHER)"]

    def test_default_table_unchanged(self):
        assert NAME_REPLACEMENTS["SW"] == "SW (SPRING WASHER)"
        assert NAME_REPLACEMENTS["HEX SOCKET HEAD BOLT"] == "HEX BOLT"


class TestIsHeaderNoise:
    """Tests for header row detection."""

    def test_full_column_header(self):
        assert is_header_noise("명칭 재료 수량 규격")
        assert is_header_noise("| 명칭 | 재료 | 수량 | 규격 | 비고 |")

    def test_partial_header_kept(self):
        assert not is_header_noise("명칭 재료 수량")

    def test_furniture_keywords(self):
        assert is_header_noise("순번 1")
        assert is_header_noise("P.NO")
        assert is_header_noise("Remarks")
        assert is_header_noise("비고")

    def test_data_row_kept(self):
        assert not is_header_noise("BOLT SUS304 4EA M8X20")

    def test_custom_keywords(self):
        assert is_header_noise("NAME MAT QTY SPEC", header_keywords=["name", "mat", "qty", "spec"])
        assert not is_header_noise("remarks", furniture_keywords=[])


class TestParseLine:
    """Tests for single line parsing."""

    def test_four_columns(self):
        items = parse_line("BOLT SUS304 4EA M8X20")
        assert items == [ParsedItem(name="BOLT", material="SUS304", quantity="4", spec="M8X20")]

    def test_spec_rejoined_with_single_spaces(self):
        items = parse_line("BOLT  SUS304\t4EA   M8X20   L=30  HDG")
        assert items[0].spec == "M8X20 L=30 HDG"

    def test_too_few_tokens(self):
        result = parse_line("BOLT SUS304 4EA")
        assert isinstance(result, ParseError)
        assert result.raw_line == "BOLT SUS304 4EA"
        assert result.reason == REASON_INSUFFICIENT_TOKENS

    def test_single_token(self):
        result = parse_line("ABC")
        assert result == ParseError(raw_line="ABC", reason="insufficient tokens")

    def test_compound_name(self):
        items = parse_line("BOLT/SW A2 10EA M8X20")
        assert [i.name for i in items] == ["BOLT", "SW (SPRING WASHER)"]
        assert all(i.quantity == "10" for i in items)

    def test_multi_word_name_kept_together(self):
        items = parse_line("HEX SOCKET HEAD BOLT/SW A2 10EA M8X20")

        assert [i.name for i in items] == ["HEX BOLT", "SW (SPRING WASHER)"]
        assert items[0].material == "A2"
        assert items[0].quantity == "10"
        assert items[0].spec == "M8X20"

    def test_multi_word_name_needs_enough_columns(self):
        # Joining would leave too few columns, so plain splitting applies
        items = parse_line("HEX SOCKET HEAD BOLT")
        assert items == [ParsedItem(name="HEX", material="SOCKET", quantity="0", spec="BOLT")]

    def test_separator_only_name(self):
        items = parse_line("/ A2 1 M8")
        assert len(items) == 1
        assert items[0].name == "/"

    @pytest.mark.parametrize("line,expected_error", [
        ("A", True),
        ("A B", True),
        ("A B C", True),
        ("A B C D", False),
        ("A B C D E F", False),
    ])
    def test_token_count_decides(self, line, expected_error):
        result = parse_line(line)
        if expected_error:
            assert isinstance(result, ParseError)
        else:
            assert isinstance(result, list) and len(result) >= 1


class TestParseOcrText:
    """Tests for full text parsing."""

    def test_header_and_blank_lines_skipped(self):
        text = "명칭 재료 수량 규격\n\n   \nBOLT SUS304 4EA M8X20\n순번 P.NO 비고\nNUT SUS304 4EA M8\n"
        parsed = parse_ocr_text(text)

        assert [p.name for p in parsed] == ["BOLT", "NUT"]

    def test_order_with_expansion_and_errors(self):
        text = "BOLT/SW A2 10EA M8X20\nGARBAGE\nNUT A2 5 M8"
        parsed = parse_ocr_text(text)

        assert len(parsed) == 4
        assert parsed[0].name == "BOLT"
        assert parsed[1].name == "SW (SPRING WASHER)"
        assert parsed[2] == ParseError(raw_line="GARBAGE")
        assert parsed[3].name == "NUT"

    def test_crlf_lines(self):
        parsed = parse_ocr_text("BOLT A2 1 M8\r\nNUT A2 2 M8\r\n")
        assert [p.name for p in parsed] == ["BOLT", "NUT"]

    def test_empty_text(self):
        assert parse_ocr_text("") == []
        assert parse_ocr_text("\n\n  \n") == []

    def test_to_dict_round_trip(self):
        parsed = parse_ocr_text("BOLT A2 1 M8\nX")
        assert ParsedItem.from_dict(parsed[0].to_dict()) == parsed[0]
        assert parsed[1].to_dict()["parse_error"] is True
        assert ParseError.from_dict(parsed[1].to_dict()) == parsed[1]
